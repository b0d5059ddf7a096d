from __future__ import annotations
from typing import Any
from fastapi import APIRouter, Body, Depends
from storyline.errors import InputValidationError
from storyline.models.records import ApiCredentials
from storyline.services import Services, get_services
from storyline.validation.events import missing_fields

router = APIRouter(prefix="/functions/v1", tags=["events"])

CREDENTIAL_FIELDS = ("API_key", "API_secret", "public_project_id")
LOG_PAYLOAD_FIELDS = ("client_uuid", "action", "event", "event_details", "timestamp")


def credentials_from(body: dict) -> ApiCredentials:
    return ApiCredentials(
        public_project_id=str(body["public_project_id"]),
        api_key=str(body["API_key"]),
        api_secret=str(body["API_secret"]),
    )


def require_envelope(body: dict, expected_type: str, payload_fields: tuple[str, ...]) -> dict:
    """Top-level fields, then ``type`` (must equal ``expected_type``), then payload fields."""
    if missing_fields(body, CREDENTIAL_FIELDS + ("payload",)):
        raise InputValidationError(
            "Missing required fields: API_key, API_secret, public_project_id, and payload are required",
            error_code="MISSING_FIELDS",
        )
    if body.get("type") != expected_type:
        raise InputValidationError(f'Invalid type. Must be "{expected_type}"', error_code="INVALID_TYPE")
    payload = body["payload"]
    if not isinstance(payload, dict) or missing_fields(payload, payload_fields):
        raise InputValidationError(
            f"Missing required payload fields: {', '.join(payload_fields)} are required",
            error_code="MISSING_PAYLOAD_FIELDS",
        )
    return payload


@router.post("/ingest-logs")
def ingest_logs(body: dict[str, Any] = Body(...), services: Services = Depends(get_services)):
    payload = require_envelope(body, "log", LOG_PAYLOAD_FIELDS)
    result = services.ingestor.ingest(
        credentials_from(body),
        client_uuid=str(payload["client_uuid"]),
        action=payload["action"],
        event=str(payload["event"]),
        event_details=str(payload["event_details"]),
        timestamp=payload["timestamp"],
    )
    return {"success": True, "message": result.message, "log_id": result.log_id}
