"""Shared fixtures: in-memory SQLite store, seeded tenants and a scriptable LLM stub."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LLM_ENABLED", "false")

import pytest
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from storyline.config import Settings
from storyline.errors import LLMUnavailableError
from storyline.infrastructure.db import Base, make_engine
from storyline.models import tables
from storyline.models.records import ApiCredentials, StoryEvent
from storyline.services import build_services
from storyline.store import ActivityStore


class StubLLM:
    """Stands in for ``LLMClient``; returns ``text`` or raises ``error``."""

    def __init__(self, text: str | None = None, error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.prompts: list[str] = []

    def complete(self, prompt: str, max_tokens: int | None = None) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text or ""


@dataclass(frozen=True)
class Tenant:
    project_id: str
    public_id: str
    owner_id: str
    credential_id: str
    api_key: str
    api_secret: str

    def credentials(self, **overrides: str) -> ApiCredentials:
        values = {
            "public_project_id": self.public_id,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
        }
        values.update(overrides)
        return ApiCredentials(**values)


def make_event(action: str, event: str, when: str, details: str = "", event_id: str | None = None) -> StoryEvent:
    return StoryEvent(
        action=action,
        event=event,
        event_details=details,
        timestamp=datetime.fromisoformat(when),
        id=event_id,
    )


def all_rows(session_factory: sessionmaker, model) -> list:
    with session_factory() as session:
        return list(session.scalars(select(model)).all())


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env="test",
        database_url="sqlite://",
        llm_enabled=False,
        regeneration_backend="inline",
        story_window_size=50,
    )


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> ActivityStore:
    return ActivityStore(session_factory)


def _seed_tenant(session_factory, suffix: str, active: int = 1) -> Tenant:
    with session_factory() as session:
        project = tables.Project(public_id=f"pub_{suffix}", owner_id=f"owner_{suffix}", name=suffix)
        session.add(project)
        session.flush()
        cred = tables.ApiKeyCredential(
            project_id=project.id,
            api_key=f"key_{suffix}",
            api_secret=f"secret_{suffix}",
            active=active,
        )
        session.add(cred)
        session.commit()
        return Tenant(
            project_id=project.id,
            public_id=project.public_id,
            owner_id=project.owner_id,
            credential_id=cred.id,
            api_key=cred.api_key,
            api_secret=cred.api_secret,
        )


@pytest.fixture
def tenant(session_factory) -> Tenant:
    return _seed_tenant(session_factory, "alpha")


@pytest.fixture
def other_tenant(session_factory) -> Tenant:
    return _seed_tenant(session_factory, "beta")


@pytest.fixture
def revoked_tenant(session_factory) -> Tenant:
    return _seed_tenant(session_factory, "revoked", active=0)


@pytest.fixture
def offline_llm() -> StubLLM:
    return StubLLM(error=LLMUnavailableError("generative backend not configured"))


@pytest.fixture
def services(settings, session_factory, offline_llm):
    return build_services(settings=settings, session_factory=session_factory, llm=offline_llm, backend="inline")
