"""LLM client using LiteLLM for model abstraction."""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional
from litellm import completion
from storyline.config import Settings, get_settings
from storyline.errors import LLMUnavailableError

logger = logging.getLogger(__name__)


class LLMClient:
    """Single-prompt text generation against the configured backend.

    Any failure (not configured, transport error, non-success status, empty
    text) raises; callers decide what to do instead. No retries.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.model = self.settings.llm_model

    @property
    def configured(self) -> bool:
        return bool(self.settings.llm_enabled and self.settings.llm_api_key)

    def _litellm_kwargs(self) -> Dict[str, Any]:
        extra: Dict[str, Any] = {"api_key": self.settings.llm_api_key}
        if self.settings.llm_base_url:
            extra["api_base"] = self.settings.llm_base_url
        return extra

    def complete(self, prompt: str, max_tokens: Optional[int] = None) -> str:
        """Return the stripped completion text for ``prompt``."""
        if not self.configured:
            raise LLMUnavailableError("generative backend not configured")
        response = completion(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.settings.llm_temperature,
            top_p=self.settings.llm_top_p,
            max_tokens=max_tokens or self.settings.llm_max_output_tokens,
            timeout=self.settings.llm_timeout_seconds,
            **self._litellm_kwargs(),
        )
        try:
            text = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as exc:
            raise LLMUnavailableError("malformed response from generative backend") from exc
        if not text or not text.strip():
            raise LLMUnavailableError("no usable text from generative backend")
        return text.strip()
