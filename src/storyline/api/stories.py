from __future__ import annotations
import hmac
from typing import Any, Optional
from fastapi import APIRouter, Body, Depends, Header
from storyline.api.events import CREDENTIAL_FIELDS, credentials_from, require_envelope
from storyline.errors import AuthorizationError, InputValidationError
from storyline.narrative.answerer import CHAT_CHANNEL, QUERY_CHANNEL
from storyline.services import Services, get_services
from storyline.validation.events import missing_fields, parse_activity_logs

router = APIRouter(prefix="/functions/v1", tags=["stories"])


@router.post("/chat-question")
def chat_question(body: dict[str, Any] = Body(...), services: Services = Depends(get_services)):
    payload = require_envelope(body, "chat", ("client_uuid", "questions"))
    answer = services.answerer.answer(
        credentials_from(body),
        str(payload["client_uuid"]),
        str(payload["questions"]),
        channel=CHAT_CHANNEL,
    )
    return {"success": True, "answer": answer.text}


@router.post("/query-user-story")
def query_user_story(body: dict[str, Any] = Body(...), services: Services = Depends(get_services)):
    if missing_fields(body, CREDENTIAL_FIELDS + ("client_uuid", "question")):
        raise InputValidationError(
            "Missing required fields: API_key, API_secret, public_project_id, client_uuid, and question are required",
            error_code="MISSING_FIELDS",
        )
    answer = services.answerer.answer(
        credentials_from(body),
        str(body["client_uuid"]),
        str(body["question"]),
        channel=QUERY_CHANNEL,
    )
    return {"success": True, "response": answer.text}


@router.post("/generate-user-story")
def generate_user_story(
    body: dict[str, Any] = Body(...),
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services),
):
    """Internal target: synthesize and store a story from a posted event window."""
    token = services.settings.internal_service_token
    if token and not hmac.compare_digest((authorization or "").encode(), f"Bearer {token}".encode()):
        raise AuthorizationError("Unauthorized", error_code="UNAUTHORIZED")
    if missing_fields(body, ("project_id", "client_uuid")) or body.get("activity_logs") is None:
        raise InputValidationError(
            "Missing required fields: project_id, client_uuid, and activity_logs are required",
            error_code="MISSING_FIELDS",
        )
    events = parse_activity_logs(body["activity_logs"])
    result = services.synthesizer.synthesize(str(body["project_id"]), str(body["client_uuid"]), events)
    return {
        "success": True,
        "message": result.message,
        "story_id": result.story_id,
        "story_text": result.story_text,
    }
