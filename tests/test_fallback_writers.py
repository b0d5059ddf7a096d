"""Deterministic story writer and keyword responder."""

from __future__ import annotations

from conftest import make_event
from storyline.narrative.writers import NO_ACTIVITY_ANSWER, THIRD_PERSON, RuleBasedResponder, RuleBasedStoryWriter, excerpt


def _window():
    # Newest first, the way the store hands windows out
    return [
        make_event("update", "profile", "2024-01-17T09:00:00", "avatar"),
        make_event("create", "project", "2024-01-16T14:05:00", "first project"),
        make_event("create", "signup", "2024-01-15T10:30:00", "email form"),
    ]


def test_summary_covers_date_range_and_counts() -> None:
    story = RuleBasedStoryWriter().write(_window())

    assert story.startswith("User Activity Summary:\n\n")
    assert "from 2024-01-15 10:30:00 UTC to 2024-01-17 09:00:00 UTC" in story
    assert "with a total of 3 recorded activities." in story
    assert "- Create actions: 2\n" in story
    assert "- Update actions: 1\n" in story
    assert "Event Types: signup, project, profile\n" in story


def test_recent_activity_lists_latest_five_in_order() -> None:
    events = [make_event("other", f"step{i}", f"2024-02-0{i}T08:00:00", f"d{i}") for i in range(1, 8)]

    story = RuleBasedStoryWriter().write(events)
    recent = story.split("Recent Activity:\n", 1)[1].strip().splitlines()

    assert recent == [
        "- 2024-02-03: step3 (d3)",
        "- 2024-02-04: step4 (d4)",
        "- 2024-02-05: step5 (d5)",
        "- 2024-02-06: step6 (d6)",
        "- 2024-02-07: step7 (d7)",
    ]
    assert "- Other actions: 7\n" in story


def test_summary_is_stable_for_the_same_window() -> None:
    writer = RuleBasedStoryWriter()

    assert writer.write(_window()) == writer.write(list(reversed(_window())))


def test_empty_window_still_produces_text() -> None:
    story = RuleBasedStoryWriter().write([])

    assert story.strip()
    assert "No recorded activities yet." in story


def test_responder_without_story_explains_missing_data() -> None:
    assert RuleBasedResponder().respond("", "what did I do?") == NO_ACTIVITY_ANSWER
    assert RuleBasedResponder().respond("   ", "anything") == NO_ACTIVITY_ANSWER


def test_responder_keyword_groups_in_priority_order() -> None:
    responder = RuleBasedResponder()
    story = "User Activity Summary:\n\nThe user signed up."

    summary = responder.respond(story, "What happened last time?")
    timing = responder.respond(story, "When did I sign up?")
    counts = responder.respond(story, "How many projects exist?")
    other = responder.respond(story, "Tell me about billing")

    assert summary.startswith("Based on the available data, here's what I can tell you about your activity:")
    assert story in summary
    assert timing.startswith("I can see activity patterns in your history")
    assert counts.startswith("For specific counts and metrics")
    assert story not in counts
    assert other.endswith("Could you be more specific about what you'd like to know?")
    assert story in other


def test_long_stories_are_excerpted() -> None:
    story = "x" * 900

    answer = RuleBasedResponder().respond(story, "summary please")

    assert answer.endswith("x" * 500 + "...")
    assert excerpt("short", 10) == "short"


def test_third_person_wording_describes_the_user() -> None:
    responder = RuleBasedResponder(THIRD_PERSON)
    story = "User Activity Summary:\n\nThe user signed up."

    timing = responder.respond(story, "When did they sign up?")
    counts = responder.respond(story, "How many projects exist?")
    other = responder.respond(story, "Tell me about billing")

    assert timing.startswith("I can see activity patterns in the user story")
    assert f"The user story shows: {story}" in timing
    assert counts.startswith("For specific counts and metrics")
    assert "Based on the user story, I can see various activities" in counts
    assert "Here's their current activity summary:\n\n" in other
    assert responder.respond("", "anything") == NO_ACTIVITY_ANSWER
