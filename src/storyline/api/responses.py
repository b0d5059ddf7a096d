from __future__ import annotations
from fastapi.responses import JSONResponse
from storyline.errors import StorylineError

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def error_response(message: str, error_code: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        {"success": False, "error": message, "error_code": error_code},
        status_code=status_code,
        headers=CORS_HEADERS,
    )


def from_error(exc: StorylineError) -> JSONResponse:
    return error_response(exc.message, exc.error_code, exc.status_code)
