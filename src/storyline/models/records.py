"""Plain value objects passed between the store and the services.

ORM rows never leave the store; services only see these detached records.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class CredentialRecord:
    id: str
    project_id: str
    api_secret: str
    active: bool
    owner_id: str | None = None


@dataclass(frozen=True)
class ValidatedCredential:
    """Identity established by a successful credential check."""
    project_id: str
    credential_id: str
    owner_id: str | None


@dataclass(frozen=True)
class StoryEvent:
    action: str
    event: str
    event_details: str
    timestamp: datetime
    id: str | None = None


@dataclass(frozen=True)
class StoryRecord:
    id: str
    project_id: str
    client_uuid: str
    story_text: str
    created: bool = False
    updated_at: datetime | None = None


@dataclass
class CallRecord:
    endpoint: str
    call_type: str
    response_status: int
    api_key_id: str | None = None
    owner_id: str | None = None
    project_id: str | None = None
    request_metadata: dict[str, Any] = field(default_factory=dict)
    response_time_ms: int | None = None


@dataclass(frozen=True)
class ApiCredentials:
    """What a caller presents: public project id plus key/secret."""
    public_project_id: str
    api_key: str
    api_secret: str

    def is_complete(self) -> bool:
        return bool(self.public_project_id and self.api_key and self.api_secret)
