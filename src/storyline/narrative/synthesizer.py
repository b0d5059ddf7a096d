from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Sequence
from storyline.errors import DownstreamUnavailable, StoreError, StoryWriteError
from storyline.models.records import StoryEvent
from storyline.narrative.generation import Generated, generate_with_fallback
from storyline.narrative.writers import RuleBasedStoryWriter, StoryWriter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SynthesisResult:
    story_id: str
    story_text: str
    source: str
    created: bool

    @property
    def message(self) -> str:
        return "User story created successfully" if self.created else "User story updated successfully"


class NarrativeSynthesizer:
    """Turn an event window into a persisted user story.

    Text generation never fails (rule-based fallback); persistence errors are
    reported as ``DATABASE_INSERT_ERROR`` / ``DATABASE_UPDATE_ERROR``.
    """

    def __init__(self, store, primary: StoryWriter, fallback: StoryWriter | None = None):
        self.store = store
        self.primary = primary
        self.fallback = fallback or RuleBasedStoryWriter()

    def compose(self, events: Sequence[StoryEvent]) -> Generated:
        return generate_with_fallback("story", self.primary.write, self.fallback.write, list(events))

    def synthesize(self, project_id: str, client_uuid: str, events: Sequence[StoryEvent]) -> SynthesisResult:
        generated = self.compose(events)
        latest = max(events, key=lambda e: e.timestamp, default=None)
        try:
            story = self.store.upsert_story(
                project_id,
                client_uuid,
                generated.text,
                last_activity_log_id=latest.id if latest else None,
            )
        except StoryWriteError as exc:
            logger.error(f"Failed to store user story for client {client_uuid}: {exc}")
            if exc.existed:
                raise DownstreamUnavailable("Failed to update user story", error_code="DATABASE_UPDATE_ERROR") from exc
            raise DownstreamUnavailable("Failed to create user story", error_code="DATABASE_INSERT_ERROR") from exc
        except StoreError as exc:
            logger.error(f"Failed to store user story for client {client_uuid}: {exc}")
            raise DownstreamUnavailable("Database error occurred") from exc
        logger.info(f"User story {'created' if story.created else 'updated'} for client {client_uuid} via {generated.source}")
        return SynthesisResult(story_id=story.id, story_text=story.story_text, source=generated.source, created=story.created)
