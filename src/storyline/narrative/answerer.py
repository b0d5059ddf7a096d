from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from storyline.errors import DownstreamUnavailable, InputValidationError, StoreError
from storyline.models.records import ApiCredentials
from storyline.narrative.generation import generate_with_fallback
from storyline.narrative.prompts import CHAT_PROMPT, QUERY_PROMPT
from storyline.narrative.writers import SECOND_PERSON, THIRD_PERSON, AIResponder, Responder, RuleBasedResponder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnswerChannel:
    """Per-endpoint flavour of question answering."""
    endpoint: str
    call_type: str
    template: str
    fallback: Responder


CHAT_CHANNEL = AnswerChannel(
    "/functions/v1/chat-question", "chat_question", CHAT_PROMPT, RuleBasedResponder(SECOND_PERSON)
)
QUERY_CHANNEL = AnswerChannel(
    "/functions/v1/query-user-story", "query_user_story", QUERY_PROMPT, RuleBasedResponder(THIRD_PERSON)
)


@dataclass(frozen=True)
class Answer:
    text: str
    source: str
    has_story: bool


class QueryAnswerer:
    """Answer a free-form question about a client's stored story.

    Read-only apart from call tracking. A client without a story is answered
    from an empty narrative rather than rejected.
    """

    def __init__(self, validator, store, tracker, llm, fallback: Responder | None = None):
        self.validator = validator
        self.store = store
        self.tracker = tracker
        self.llm = llm
        self.fallback = fallback

    def _primary(self, channel: AnswerChannel) -> Responder:
        return AIResponder(self.llm, channel.template)

    def answer(self, credentials: ApiCredentials, client_uuid: str, question: str, channel: AnswerChannel = CHAT_CHANNEL) -> Answer:
        start = time.time()
        if not credentials.is_complete() or not client_uuid or not question:
            raise InputValidationError("Missing required fields: API_key, API_secret, public_project_id, client_uuid and question are required")
        identity = self.validator.validate(credentials.public_project_id, credentials.api_key, credentials.api_secret)
        try:
            record = self.store.get_story(identity.project_id, client_uuid)
        except StoreError as exc:
            logger.error(f"Error fetching user story for client {client_uuid}: {exc}")
            raise DownstreamUnavailable("Failed to fetch user story") from exc
        story = record.story_text if record else ""
        fallback = self.fallback or channel.fallback
        generated = generate_with_fallback("answer", self._primary(channel).respond, fallback.respond, story, question)
        self.tracker.record(
            identity,
            endpoint=channel.endpoint,
            call_type=channel.call_type,
            metadata={
                "client_uuid": client_uuid,
                "question_length": len(question),
                "has_user_story": bool(story),
            },
            elapsed_ms=int((time.time() - start) * 1000),
        )
        return Answer(text=generated.text, source=generated.source, has_story=bool(story))
