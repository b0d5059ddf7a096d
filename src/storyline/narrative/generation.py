"""AI-primary / rule-based-fallback execution.

Exactly one attempt is made on the primary path; any exception or empty text
switches to the fallback, which must always return a non-empty string.
"""
from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Callable
from storyline.errors import LLMUnavailableError
from storyline.infrastructure.metrics import AI_LATENCY, GENERATIONS

logger = logging.getLogger(__name__)

SOURCE_AI = "ai"
SOURCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class Generated:
    text: str
    source: str

    @property
    def used_fallback(self) -> bool:
        return self.source == SOURCE_FALLBACK


def generate_with_fallback(kind: str, primary: Callable[..., str], fallback: Callable[..., str], *args) -> Generated:
    start = time.time()
    try:
        text = primary(*args)
        if not text or not text.strip():
            raise LLMUnavailableError("empty text")
        _count(kind, SOURCE_AI)
        return Generated(text.strip(), SOURCE_AI)
    except Exception as e:
        logger.warning(f"AI {kind} generation failed, using fallback: {e}")
    finally:
        try:
            AI_LATENCY.labels(kind=kind).observe(time.time() - start)
        except Exception:
            pass
    text = fallback(*args)
    _count(kind, SOURCE_FALLBACK)
    return Generated(text, SOURCE_FALLBACK)


def _count(kind: str, source: str):
    try:
        GENERATIONS.labels(kind=kind, source=source).inc()
    except Exception:
        pass
