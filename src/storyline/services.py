"""Wiring of the store, validators and services for one process."""
from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache, partial
from typing import Callable
from sqlalchemy.orm import sessionmaker
from storyline.config import Settings, effective_regeneration_backend, get_settings
from storyline.infrastructure.db import get_session_factory
from storyline.ingestion import EventIngestor
from storyline.llm import LLMClient
from storyline.narrative.answerer import QueryAnswerer
from storyline.narrative.synthesizer import NarrativeSynthesizer
from storyline.narrative.writers import AIStoryWriter
from storyline.security.credentials import CredentialValidator
from storyline.store import ActivityStore
from storyline.tasks.regeneration import (
    CeleryDispatcher,
    InlineDispatcher,
    RegenerationTrigger,
    ThreadPoolDispatcher,
    regenerate_story,
)
from storyline.tracking import CallTracker


@dataclass
class Services:
    settings: Settings
    store: ActivityStore
    validator: CredentialValidator
    tracker: CallTracker
    synthesizer: NarrativeSynthesizer
    answerer: QueryAnswerer
    trigger: RegenerationTrigger
    ingestor: EventIngestor
    regeneration_job: Callable[[str, str], object]


def _dispatcher(backend: str, job, settings: Settings):
    if backend == "inline":
        return InlineDispatcher(job)
    if backend == "thread":
        return ThreadPoolDispatcher(job, settings.regeneration_max_workers, settings.regeneration_max_pending)
    if backend == "celery":
        from storyline.infrastructure import celery_app  # noqa: F401  binds shared tasks to the configured app

        return CeleryDispatcher()
    raise ValueError(f"unknown regeneration backend: {backend}")


def build_services(
    settings: Settings | None = None,
    session_factory: sessionmaker | None = None,
    llm=None,
    backend: str | None = None,
) -> Services:
    settings = settings or get_settings()
    store = ActivityStore(session_factory or get_session_factory())
    llm = llm or LLMClient(settings)
    validator = CredentialValidator(store, distinct_secret_errors=settings.distinct_credential_errors)
    tracker = CallTracker(store)
    synthesizer = NarrativeSynthesizer(store, AIStoryWriter(llm))
    answerer = QueryAnswerer(validator, store, tracker, llm)
    job = partial(_regenerate, store, synthesizer, settings.story_window_size)
    trigger = RegenerationTrigger(_dispatcher(backend or effective_regeneration_backend(settings), job, settings))
    ingestor = EventIngestor(validator, store, tracker, trigger)
    return Services(
        settings=settings,
        store=store,
        validator=validator,
        tracker=tracker,
        synthesizer=synthesizer,
        answerer=answerer,
        trigger=trigger,
        ingestor=ingestor,
        regeneration_job=job,
    )


def _regenerate(store, synthesizer, window_size: int, project_id: str, client_uuid: str):
    return regenerate_story(store, synthesizer, project_id, client_uuid, window_size)


@lru_cache
def get_services() -> Services:
    return build_services()


def reset_services():
    get_services.cache_clear()
