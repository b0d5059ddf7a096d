from celery import Celery
from celery import signals
import time
from storyline.config import get_settings
from storyline.infrastructure.metrics import registry
from prometheus_client import Counter, Histogram

settings = get_settings()

celery_app = Celery(
    "storyline",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "storyline.tasks.regeneration",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_ignore_result=True,  # regeneration outcome is only logged
)

# Task metrics (worker process; scraped when the worker exposes the registry)
TASK_SUCCESS = Counter('celery_task_success_total', 'Celery task successes', ['task'], registry=registry)
TASK_FAILURE = Counter('celery_task_failure_total', 'Celery task failures', ['task'], registry=registry)
TASK_DURATION = Histogram('celery_task_duration_seconds', 'Celery task runtime', ['task'], registry=registry, buckets=(0.05,0.1,0.25,0.5,1,2,5,10,30,60))

_task_start_times = {}

@signals.task_prerun.connect
def _task_prerun(sender=None, task_id=None, **kwargs):  # noqa
    _task_start_times[task_id] = time.time()

@signals.task_postrun.connect
def _task_postrun(sender=None, task_id=None, state=None, **kwargs):  # noqa
    start = _task_start_times.pop(task_id, None)
    name = sender.name if sender else 'unknown'
    if start is not None:
        try:
            TASK_DURATION.labels(task=name).observe(time.time() - start)
        except Exception:
            pass
    if state == 'SUCCESS':
        try:
            TASK_SUCCESS.labels(task=name).inc()
        except Exception:
            pass
    elif state is not None:
        try:
            TASK_FAILURE.labels(task=name).inc()
        except Exception:
            pass
