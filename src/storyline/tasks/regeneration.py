"""Background user-story regeneration.

The ingest path only calls ``RegenerationTrigger.schedule``; it never waits for
synthesis and never sees its outcome. Failures end up in logs and the
``story_regenerations_total`` counter.
"""
from __future__ import annotations
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable
from celery import shared_task
from storyline.infrastructure.metrics import REGENERATIONS

logger = logging.getLogger(__name__)

RegenerationJob = Callable[[str, str], object]


def regenerate_story(store, synthesizer, project_id: str, client_uuid: str, window_size: int):
    """Fold the newest ``window_size`` events into the client's story."""
    events = store.recent_events(project_id, client_uuid, window_size)
    if not events:
        logger.info(f"No recent activity for client {client_uuid}; skipping story regeneration")
        return None
    return synthesizer.synthesize(project_id, client_uuid, events)


def _count(outcome: str):
    try:
        REGENERATIONS.labels(outcome=outcome).inc()
    except Exception:
        pass


def run_regeneration(job: RegenerationJob, project_id: str, client_uuid: str) -> bool:
    """Run a job, swallowing and logging any failure. Returns True on success."""
    try:
        result = job(project_id, client_uuid)
    except Exception as e:
        _count("failed")
        logger.error(f"Background user story generation failed for client {client_uuid}: {e}")
        return False
    _count("succeeded" if result is not None else "empty")
    return True


class InlineDispatcher:
    """Runs the job in the caller's thread (tests, local development)."""

    def __init__(self, job: RegenerationJob):
        self.job = job

    def dispatch(self, project_id: str, client_uuid: str) -> bool:
        run_regeneration(self.job, project_id, client_uuid)
        return True


class ThreadPoolDispatcher:
    """Bounded in-process pool. When ``max_pending`` jobs are queued or running, new ones are dropped."""

    def __init__(self, job: RegenerationJob, max_workers: int = 4, max_pending: int = 100):
        self.job = job
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="story-regen")
        self._slots = threading.BoundedSemaphore(max(1, max_pending))

    def dispatch(self, project_id: str, client_uuid: str) -> bool:
        if not self._slots.acquire(blocking=False):
            _count("dropped")
            logger.warning(f"Regeneration queue full; dropping job for client {client_uuid}")
            return False
        try:
            future = self._executor.submit(run_regeneration, self.job, project_id, client_uuid)
        except RuntimeError:
            self._slots.release()
            raise
        future.add_done_callback(lambda _f: self._slots.release())
        return True

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)


class CeleryDispatcher:
    def dispatch(self, project_id: str, client_uuid: str) -> bool:
        regenerate_user_story.delay(project_id, client_uuid)
        return True


class RegenerationTrigger:
    """Fire-and-forget entry point used by the ingestor. Never raises."""

    def __init__(self, dispatcher):
        self.dispatcher = dispatcher

    def schedule(self, project_id: str, client_uuid: str) -> bool:
        try:
            dispatched = self.dispatcher.dispatch(project_id, client_uuid)
        except Exception as e:
            _count("dropped")
            logger.error(f"Could not dispatch story regeneration for client {client_uuid}: {e}")
            return False
        if dispatched:
            _count("dispatched")
        return dispatched


@shared_task(name="storyline.tasks.regeneration.regenerate_user_story")
def regenerate_user_story(project_id: str, client_uuid: str) -> dict:
    from storyline.services import get_services

    services = get_services()
    ok = run_regeneration(services.regeneration_job, project_id, client_uuid)
    return {"project_id": project_id, "client_uuid": client_uuid, "ok": ok}
