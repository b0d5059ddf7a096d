"""Story writers and question responders.

Each concern has one interface with two implementations: a generative one
backed by ``LLMClient`` and a deterministic rule-based one that cannot fail.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from typing import Sequence
from storyline.models.records import StoryEvent
from storyline.narrative.prompts import CHAT_PROMPT, build_answer_prompt, build_story_prompt, chronological

RECENT_ACTIVITY_COUNT = 5

NO_ACTIVITY_ANSWER = (
    "I don't have enough activity data for this user yet. As they use the application more, "
    "I'll be able to provide better insights about their behavior and answer questions about their activity patterns."
)


def excerpt(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class StoryWriter(ABC):
    @abstractmethod
    def write(self, events: Sequence[StoryEvent]) -> str:
        ...


class AIStoryWriter(StoryWriter):
    def __init__(self, llm):
        self.llm = llm

    def write(self, events: Sequence[StoryEvent]) -> str:
        return self.llm.complete(build_story_prompt(events))


class RuleBasedStoryWriter(StoryWriter):
    """Deterministic summary: same window in, byte-identical text out."""

    def write(self, events: Sequence[StoryEvent]) -> str:
        ordered = chronological(events)
        if not ordered:
            return "User Activity Summary:\n\nNo recorded activities yet.\n"
        action_counts = Counter(e.action for e in ordered)
        event_types = list(dict.fromkeys(e.event for e in ordered))
        first, last = ordered[0], ordered[-1]

        story = "User Activity Summary:\n\n"
        story += (
            f"This user has been active from {first.timestamp:%Y-%m-%d %H:%M:%S} UTC "
            f"to {last.timestamp:%Y-%m-%d %H:%M:%S} UTC, "
        )
        story += f"with a total of {len(ordered)} recorded activities.\n\n"
        story += "Activity Breakdown:\n"
        for action, count in action_counts.items():
            story += f"- {action[:1].upper() + action[1:]} actions: {count}\n"
        story += f"\nEvent Types: {', '.join(event_types)}\n\n"
        story += "Recent Activity:\n"
        for e in ordered[-RECENT_ACTIVITY_COUNT:]:
            story += f"- {e.timestamp:%Y-%m-%d}: {e.event} ({e.event_details})\n"
        return story


class Responder(ABC):
    @abstractmethod
    def respond(self, story: str, question: str) -> str:
        ...


class AIResponder(Responder):
    def __init__(self, llm, template: str = CHAT_PROMPT):
        self.llm = llm
        self.template = template

    def respond(self, story: str, question: str) -> str:
        return self.llm.complete(build_answer_prompt(story, question, self.template))

@dataclass(frozen=True)
class ResponderWording:
    """Phrasing of the keyword responder; ``{story}`` receives the excerpt."""
    summary: str
    timing: str
    counts: str
    default: str


SECOND_PERSON = ResponderWording(
    summary="Based on the available data, here's what I can tell you about your activity:\n\n{story}",
    timing=(
        "I can see activity patterns in your history, but for specific timing questions, "
        "you might want to check the detailed activity logs. Your activity shows: {story}"
    ),
    counts=(
        "For specific counts and metrics, I'd recommend checking the detailed analytics. "
        "Based on your activity, I can see various actions, but exact numbers would be in the raw activity data."
    ),
    default=(
        "I can help answer questions about your activity patterns. Here's your current activity summary:\n\n"
        "{story}\n\nCould you be more specific about what you'd like to know?"
    ),
)

# Operator-facing wording used by the story query endpoint
THIRD_PERSON = ResponderWording(
    summary="Based on the available data, here's what I can tell you about this user's activity:\n\n{story}",
    timing=(
        "I can see activity patterns in the user story, but for specific timing questions, "
        "you might want to check the detailed activity logs. The user story shows: {story}"
    ),
    counts=(
        "For specific counts and metrics, I'd recommend checking the detailed analytics. "
        "Based on the user story, I can see various activities, but exact numbers would be in the raw activity data."
    ),
    default=(
        "I can help answer questions about this user's activity patterns. Here's their current activity summary:\n\n"
        "{story}\n\nCould you be more specific about what you'd like to know?"
    ),
)


class RuleBasedResponder(Responder):
    """Keyword responder; first matching group wins."""

    def __init__(self, wording: ResponderWording = SECOND_PERSON):
        self.wording = wording

    def respond(self, story: str, question: str) -> str:
        if not story or not story.strip():
            return NO_ACTIVITY_ANSWER
        q = question.lower()
        if any(k in q for k in ("activity", "what", "summary")):
            return self.wording.summary.format(story=excerpt(story, 500))
        if any(k in q for k in ("when", "time")):
            return self.wording.timing.format(story=excerpt(story, 300))
        if any(k in q for k in ("how many", "count")):
            return self.wording.counts
        return self.wording.default.format(story=excerpt(story, 400))
