"""Prompt templates for the generative backend."""
from __future__ import annotations
from typing import Sequence
from storyline.models.records import StoryEvent

STORY_PROMPT = """You are an AI assistant that creates comprehensive user activity summaries based on application logs.

Activity Logs:
{log_lines}

Please create a comprehensive user story that:
1. Summarizes the user's journey and activities chronologically
2. Identifies patterns in user behavior
3. Highlights key actions and milestones
4. Provides insights into user engagement
5. Uses natural, flowing language that tells a story

The story should be informative yet concise, focusing on the user's experience and behavior patterns. Write it as a narrative that could help understand this user's interaction with the application.

User Story:"""

CHAT_PROMPT = """You are an AI assistant that answers questions about user activity based on their comprehensive activity story. You should provide helpful, contextual responses that help users understand their behavior patterns and activity history.

User Activity Story:
{story}

User's Question: {question}

Please provide a helpful, conversational response based on the user's activity data. If the question cannot be fully answered from the available activity data, acknowledge what information is available and provide what insights you can. Keep your response:

1. Conversational and friendly
2. Focused on the user's specific question
3. Based on factual information from their activity story
4. Helpful and actionable when possible
5. Concise but informative

Response:"""

QUERY_PROMPT = """You are an AI assistant that answers questions about user activity based on their activity story.

User Activity Story:
{story}

User's Question: {question}

Please provide a helpful, contextual response based on the user's activity data. If the question cannot be answered from the available activity data, politely explain what information is available and suggest how the user might get the answer they're looking for.

Keep your response conversational, informative, and focused on the user's specific question. Use insights from their activity pattern to provide valuable context.

Response:"""


def chronological(events: Sequence[StoryEvent]) -> list[StoryEvent]:
    return sorted(events, key=lambda e: e.timestamp)


def format_log_line(event: StoryEvent) -> str:
    return f"- {event.timestamp.isoformat()}Z: {event.action.upper()} - {event.event} ({event.event_details})"


def build_story_prompt(events: Sequence[StoryEvent]) -> str:
    return STORY_PROMPT.format(log_lines="\n".join(format_log_line(e) for e in chronological(events)))


def build_answer_prompt(story: str, question: str, template: str = CHAT_PROMPT) -> str:
    return template.format(story=story or "No user activity available yet.", question=question)
