from __future__ import annotations
import hmac
import logging
from storyline.errors import (
    DownstreamUnavailable,
    InvalidCredentialError,
    InvalidProjectError,
    ProjectAccessDenied,
    StoreError,
)
from storyline.models.records import ValidatedCredential

logger = logging.getLogger(__name__)


class CredentialValidator:
    """Check a (public project id, API key, API secret) triple.

    Order is fixed and each failure is terminal:
      1. public project id resolves to an internal id      -> INVALID_PROJECT_ID
      2. key exists and is active                           -> INVALID_API_KEY
         key is bound to the resolved project               -> PROJECT_ACCESS_DENIED
      3. secret matches the key exactly                     -> INVALID_API_SECRET
    Read-only.
    """

    def __init__(self, store, distinct_secret_errors: bool = True):
        self.store = store
        self.distinct_secret_errors = distinct_secret_errors

    def validate(self, public_project_id: str, api_key: str, api_secret: str) -> ValidatedCredential:
        try:
            project_id = self.store.resolve_project(public_project_id)
            if not project_id:
                raise InvalidProjectError()
            cred = self.store.find_credential(api_key)
        except StoreError as exc:
            logger.error(f"Credential lookup failed: {exc}")
            raise DownstreamUnavailable("Database error occurred") from exc
        if cred is None or not cred.active:
            raise InvalidCredentialError()
        if cred.project_id != project_id:
            raise ProjectAccessDenied()
        if not hmac.compare_digest(cred.api_secret.encode(), (api_secret or "").encode()):
            if self.distinct_secret_errors:
                raise InvalidCredentialError("Invalid API secret", error_code="INVALID_API_SECRET")
            raise InvalidCredentialError()
        return ValidatedCredential(project_id=project_id, credential_id=cred.id, owner_id=cred.owner_id)
