from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Iterable
from pydantic import BaseModel, ValidationError
from storyline.errors import InputValidationError
from storyline.models.records import StoryEvent

ACTIONS = ("create", "update", "delete", "other")


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def missing_fields(data: dict, names: Iterable[str]) -> list[str]:
    return [n for n in names if not is_present(data.get(n))]


def parse_timestamp(raw: Any) -> datetime | None:
    """Parse an ISO 8601 instant into naive UTC; None when it is not one."""
    if isinstance(raw, datetime):
        ts = raw
    elif isinstance(raw, str) and raw.strip():
        try:
            ts = datetime.fromisoformat(raw.strip().replace("Z", "+00:00").replace("z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def require_timestamp(raw: Any) -> datetime:
    ts = parse_timestamp(raw)
    if ts is None:
        raise InputValidationError(
            "Invalid timestamp format. Use ISO 8601 format (e.g., 2024-01-15T10:30:00Z)",
            error_code="INVALID_TIMESTAMP",
        )
    return ts


def require_action(action: Any) -> str:
    if action not in ACTIONS:
        raise InputValidationError(
            f"Invalid action type. Must be one of: {', '.join(ACTIONS)}",
            error_code="INVALID_ACTION",
        )
    return action


class ActivityLogIn(BaseModel):
    action: str
    event: str
    event_details: str = ""
    timestamp: str
    id: str | None = None


def parse_activity_logs(raw: Any) -> list[StoryEvent]:
    """Validate the event window posted to the regenerate endpoint."""
    if not isinstance(raw, list) or not raw:
        raise InputValidationError("activity_logs must be a non-empty array", error_code="INVALID_ACTIVITY_LOGS")
    events: list[StoryEvent] = []
    for i, item in enumerate(raw):
        try:
            log = ActivityLogIn.model_validate(item)
        except ValidationError as ve:
            raise InputValidationError(
                f"activity_logs[{i}] is invalid: {ve.errors()[0].get('msg', 'invalid')}",
                error_code="INVALID_ACTIVITY_LOGS",
            ) from ve
        ts = parse_timestamp(log.timestamp)
        if ts is None:
            raise InputValidationError(f"activity_logs[{i}] has an invalid timestamp", error_code="INVALID_ACTIVITY_LOGS")
        events.append(StoryEvent(action=log.action, event=log.event, event_details=log.event_details, timestamp=ts, id=log.id))
    return events
