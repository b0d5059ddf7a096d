from __future__ import annotations
import logging
from storyline.infrastructure.metrics import TRACKING_FAILURES
from storyline.models.records import CallRecord, ValidatedCredential

logger = logging.getLogger(__name__)


class CallTracker:
    """Best-effort audit/metering writes. Never raises into the request path."""

    def __init__(self, store):
        self.store = store

    def record(
        self,
        credential: ValidatedCredential,
        endpoint: str,
        call_type: str,
        metadata: dict | None = None,
        status: int = 200,
        elapsed_ms: int | None = None,
    ) -> bool:
        record = CallRecord(
            endpoint=endpoint,
            call_type=call_type,
            response_status=status,
            api_key_id=credential.credential_id,
            owner_id=credential.owner_id,
            project_id=credential.project_id,
            request_metadata=metadata or {},
            response_time_ms=elapsed_ms,
        )
        try:
            self.store.record_call(record)
            return True
        except Exception as e:
            try:
                TRACKING_FAILURES.labels(call_type=call_type).inc()
            except Exception:
                pass
            logger.error(f"Failed to track API call {call_type} for project {credential.project_id}: {e}")
            return False
