from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import json
import logging
import time
import uuid
import redis
from storyline.api.events import router as events_router
from storyline.api.responses import CORS_HEADERS, error_response, from_error
from storyline.api.stories import router as stories_router
from storyline.config import effective_regeneration_backend, get_settings
from storyline.errors import StorylineError
from storyline.infrastructure.db import healthcheck
from storyline.infrastructure.metrics import LATENCY, REQUESTS, registry

logger = logging.getLogger("storyline.api")


def configure_logging(level: str = "INFO"):
    root = logging.getLogger("storyline")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        root.addHandler(handler)
    root.setLevel(level.upper())
    # Access lines are already JSON
    if not logger.handlers:
        access = logging.StreamHandler()
        access.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(access)
        logger.propagate = False


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(get_settings().log_level)
    yield


app = FastAPI(title="Storyline Activity Narrative API", version="0.1.0", lifespan=lifespan)
app.include_router(events_router)
app.include_router(stories_router)


@app.exception_handler(StorylineError)
async def storyline_error_handler(request: Request, exc: StorylineError):
    return from_error(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    kinds = {e.get("type") for e in exc.errors()}
    if "missing" in kinds:
        return error_response("Request body is required", "MISSING_FIELDS", 400)
    return error_response("Request body must be a valid JSON object", "INVALID_JSON", 400)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 405:
        return error_response("Method not allowed. Use POST.", "METHOD_NOT_ALLOWED", 405)
    if exc.status_code == 404:
        return error_response("Not found", "NOT_FOUND", 404)
    return error_response(str(exc.detail), "HTTP_ERROR", exc.status_code)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    cid = getattr(request.state, "correlation_id", "n/a")
    logger.error(json.dumps({
        "event": "error",
        "path": request.url.path,
        "detail": str(exc),
        "correlation_id": cid,
        "type": exc.__class__.__name__,
    }))
    return error_response("Internal server error", "INTERNAL_ERROR", 500)


@app.middleware("http")
async def cors_metrics_and_logging(request: Request, call_next):
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    start = time.time()
    correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))
    request.state.correlation_id = correlation_id
    response = await call_next(request)
    duration = time.time() - start
    ep = request.url.path
    try:
        REQUESTS.labels(endpoint=ep, status=str(response.status_code)).inc()
        LATENCY.labels(endpoint=ep).observe(duration)
    except Exception:
        pass
    for k, v in CORS_HEADERS.items():
        response.headers.setdefault(k, v)
    response.headers['X-Correlation-ID'] = correlation_id
    response.headers.setdefault('X-Content-Type-Options', 'nosniff')
    response.headers.setdefault('Cache-Control', 'no-store')
    logger.info(json.dumps({
        "event": "request",
        "path": ep,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": int(duration*1000),
        "correlation_id": correlation_id,
    }))
    return response


@app.get("/health")
def health():
    try:
        db_ok = healthcheck()
    except Exception:
        db_ok = False
    return {"db": db_ok, "status": "ok"}


@app.get("/ready")
def readiness():
    """Readiness probe: DB always, Redis only when Celery carries regeneration."""
    settings = get_settings()
    try:
        db_ok = healthcheck()
    except Exception:
        db_ok = False
    needs_redis = effective_regeneration_backend(settings) == "celery"
    redis_ok = None
    if needs_redis:
        try:
            redis.Redis.from_url(settings.redis_url).ping()
            redis_ok = True
        except Exception:
            redis_ok = False
    status = db_ok and (redis_ok or not needs_redis)
    return {"status": "ok" if status else "degraded", "db": db_ok, "redis": redis_ok}


@app.get("/metrics")
def metrics():
    data = generate_latest(registry)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
