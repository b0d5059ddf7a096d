from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from storyline.errors import DownstreamUnavailable, InputValidationError, StorylineError, StoreError
from storyline.infrastructure.metrics import EVENTS_INGESTED, INGEST_REJECTED
from storyline.models.records import ApiCredentials
from storyline.validation.events import is_present, require_action, require_timestamp

logger = logging.getLogger(__name__)

INGEST_ENDPOINT = "/functions/v1/ingest-logs"


@dataclass(frozen=True)
class IngestResult:
    log_id: str
    project_id: str
    regeneration_scheduled: bool

    message: str = "Client activity log entry created successfully"


class EventIngestor:
    """Validate and persist one activity event, then schedule story regeneration.

    Validation order: presence, timestamp, action, credentials. Nothing is
    written until all of them pass. Identical payloads produce distinct rows.
    """

    def __init__(self, validator, store, tracker, trigger):
        self.validator = validator
        self.store = store
        self.tracker = tracker
        self.trigger = trigger

    def ingest(
        self,
        credentials: ApiCredentials,
        client_uuid: str,
        action: str,
        event: str,
        event_details: str,
        timestamp: str,
    ) -> IngestResult:
        start = time.time()
        try:
            if not credentials.is_complete() or not all(
                is_present(v) for v in (client_uuid, action, event, event_details, timestamp)
            ):
                raise InputValidationError(
                    "Missing required fields: client_uuid, action, event, event_details and timestamp are required",
                    error_code="MISSING_PAYLOAD_FIELDS",
                )
            ts = require_timestamp(timestamp)
            require_action(action)
            identity = self.validator.validate(credentials.public_project_id, credentials.api_key, credentials.api_secret)
            try:
                log_id = self.store.insert_event(identity.project_id, client_uuid, action, event, event_details, ts)
            except StoreError as exc:
                logger.error(f"Failed to persist activity event for client {client_uuid}: {exc}")
                raise DownstreamUnavailable("Database error occurred") from exc
        except StorylineError as exc:
            try:
                INGEST_REJECTED.labels(error_code=exc.error_code).inc()
            except Exception:
                pass
            raise
        try:
            EVENTS_INGESTED.labels(action=action).inc()
        except Exception:
            pass
        logger.info(f"Activity event {log_id} stored for client {client_uuid}")
        scheduled = self.trigger.schedule(identity.project_id, client_uuid)
        self.tracker.record(
            identity,
            endpoint=INGEST_ENDPOINT,
            call_type="ingest_log",
            metadata={"client_uuid": client_uuid, "action": action, "event": event},
            elapsed_ms=int((time.time() - start) * 1000),
        )
        return IngestResult(log_id=log_id, project_id=identity.project_id, regeneration_scheduled=scheduled)
