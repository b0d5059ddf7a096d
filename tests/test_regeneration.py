"""Background regeneration: window selection, dispatch policies and failure isolation."""

from __future__ import annotations

import threading

from conftest import all_rows
from storyline.config import Settings, effective_regeneration_backend
from storyline.models.tables import UserStory
from storyline.tasks.regeneration import (
    InlineDispatcher,
    RegenerationTrigger,
    ThreadPoolDispatcher,
    regenerate_story,
    run_regeneration,
)


def _seed_events(store, project_id: str, client_uuid: str, count: int) -> None:
    from datetime import datetime, timedelta

    start = datetime(2024, 3, 1, 9, 0, 0)
    for i in range(count):
        store.insert_event(project_id, client_uuid, "other", f"step{i}", f"details {i}", start + timedelta(hours=i))


def test_story_is_built_from_the_newest_window(services, tenant, store) -> None:
    _seed_events(store, tenant.project_id, "client-1", 7)

    result = regenerate_story(store, services.synthesizer, tenant.project_id, "client-1", 3)

    assert "with a total of 3 recorded activities." in result.story_text
    assert "Event Types: step4, step5, step6" in result.story_text
    assert "step3" not in result.story_text


def test_no_events_means_no_story(services, tenant, store, session_factory) -> None:
    assert regenerate_story(store, services.synthesizer, tenant.project_id, "client-1", 50) is None
    assert all_rows(session_factory, UserStory) == []


def test_events_of_other_clients_are_ignored(services, tenant, store) -> None:
    _seed_events(store, tenant.project_id, "client-1", 2)
    _seed_events(store, tenant.project_id, "client-2", 5)

    result = regenerate_story(store, services.synthesizer, tenant.project_id, "client-1", 50)

    assert "with a total of 2 recorded activities." in result.story_text


def test_configured_window_size_is_used(services, tenant, store, session_factory) -> None:
    _seed_events(store, tenant.project_id, "client-1", 60)

    services.regeneration_job(tenant.project_id, "client-1")

    story = all_rows(session_factory, UserStory)[0].story_text
    assert "with a total of 50 recorded activities." in story


def test_job_failures_are_swallowed() -> None:
    def boom(project_id, client_uuid):
        raise RuntimeError("model exploded")

    assert run_regeneration(boom, "p", "c") is False
    assert RegenerationTrigger(InlineDispatcher(boom)).schedule("p", "c") is True


def test_trigger_never_raises_when_dispatch_fails() -> None:
    class DeadDispatcher:
        def dispatch(self, project_id, client_uuid):
            raise ConnectionError("redis unreachable")

    assert RegenerationTrigger(DeadDispatcher()).schedule("p", "c") is False


def test_thread_pool_drops_jobs_when_full() -> None:
    release = threading.Event()
    started = threading.Event()
    seen: list[str] = []

    def slow_job(project_id, client_uuid):
        started.set()
        release.wait(timeout=5)
        seen.append(client_uuid)
        return client_uuid

    dispatcher = ThreadPoolDispatcher(slow_job, max_workers=1, max_pending=1)
    try:
        assert dispatcher.dispatch("p", "first") is True
        assert started.wait(timeout=5)
        assert dispatcher.dispatch("p", "second") is False
    finally:
        release.set()
        dispatcher.shutdown(wait=True)

    assert seen == ["first"]


def test_celery_backend_runs_inline_under_test_env() -> None:
    assert effective_regeneration_backend(Settings(app_env="test", regeneration_backend="celery")) == "inline"
    assert effective_regeneration_backend(Settings(app_env="prod", regeneration_backend="celery")) == "celery"
    assert effective_regeneration_backend(Settings(app_env="prod", regeneration_backend="Thread")) == "thread"


def test_celery_task_uses_process_services(services, tenant, store, session_factory, monkeypatch) -> None:
    import storyline.services as services_module
    from storyline.infrastructure.celery_app import celery_app
    from storyline.tasks.regeneration import CeleryDispatcher

    monkeypatch.setattr(services_module, "get_services", lambda: services)
    _seed_events(store, tenant.project_id, "client-1", 2)
    celery_app.conf.task_always_eager = True
    try:
        assert CeleryDispatcher().dispatch(tenant.project_id, "client-1") is True
    finally:
        celery_app.conf.task_always_eager = False

    assert len(all_rows(session_factory, UserStory)) == 1
