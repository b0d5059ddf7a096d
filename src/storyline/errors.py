"""Error taxonomy shared by the ingestion, synthesis and answering services.

Every error carries a stable machine-readable ``error_code`` and the HTTP
status it maps to. The API layer renders them as
``{"success": false, "error": ..., "error_code": ...}``.
"""
from __future__ import annotations


class StorylineError(Exception):
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message, "error_code": self.error_code}


class InputValidationError(StorylineError):
    """Missing or malformed request fields; always caller-fixable."""
    status_code = 400
    error_code = "MISSING_FIELDS"


class AuthorizationError(StorylineError):
    """Bad key, bad secret or project-scope mismatch. Never retried."""
    status_code = 401
    error_code = "INVALID_API_KEY"


class InvalidProjectError(InputValidationError):
    error_code = "INVALID_PROJECT_ID"

    def __init__(self, message: str = "Invalid project ID"):
        super().__init__(message)


class InvalidCredentialError(AuthorizationError):
    def __init__(self, message: str = "Invalid API key", error_code: str = "INVALID_API_KEY"):
        super().__init__(message, error_code=error_code, status_code=401)


class ProjectAccessDenied(AuthorizationError):
    status_code = 403
    error_code = "PROJECT_ACCESS_DENIED"

    def __init__(self, message: str = "Project access denied"):
        super().__init__(message)


class DownstreamUnavailable(StorylineError):
    """Store or backend failure; the caller may retry the whole request."""
    status_code = 500
    error_code = "DATABASE_ERROR"


class InternalInvariantViolation(StorylineError):
    status_code = 500
    error_code = "INTERNAL_ERROR"


class StoreError(Exception):
    """Raised by the store when the underlying database operation fails."""


class StoryWriteError(StoreError):
    """Upsert of a user story failed; ``existed`` tells whether a row was already present."""

    def __init__(self, message: str, existed: bool):
        super().__init__(message)
        self.existed = existed


class LLMUnavailableError(Exception):
    """The generative backend is not configured, unreachable or returned no usable text."""
