"""LLM client module for generative model interactions.

Routes requests through LiteLLM so the model route is a configuration
value. The model is treated as an opaque text-in/text-out service: one
prompt string goes out, one reply string comes back.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Protocol

import litellm
from litellm import acompletion

from src.core.config import Settings, settings
from src.core.exceptions import ModelServiceError, ModelTimeoutError

litellm.set_verbose = False  # type: ignore[assignment]

logger = logging.getLogger(__name__)


class TextModel(Protocol):
    """Anything that turns one prompt into one reply."""

    async def complete(self, prompt: str) -> str:
        """Return the model's raw text reply to ``prompt``."""
        ...


class LLMClient:
    """Async client for the generative model behind campaign validation.

    One call per request, bounded by ``LLM_TIMEOUT_SECONDS``. Caller
    cancellation propagates into the outbound call. Failures are never
    retried.
    """

    def __init__(self, config: Settings | None = None) -> None:
        """Initialize LLM client.

        Args:
            config: Settings to read the model route and credentials from.

        Raises:
            ConfigurationError: If the model credentials are missing.
        """
        cfg = config or settings
        cfg.require_model_credentials()
        self._api_key = cfg.ANTHROPIC_API_KEY.get_secret_value()
        self._model = cfg.LLM_MODEL
        self._max_tokens = cfg.LLM_MAX_TOKENS
        self._temperature = cfg.LLM_TEMPERATURE
        self._timeout = cfg.LLM_TIMEOUT_SECONDS

    @property
    def model(self) -> str:
        """Return the LiteLLM model route in use."""
        return self._model

    @property
    def timeout(self) -> float:
        """Return the call timeout in seconds."""
        return self._timeout

    async def complete(self, prompt: str) -> str:
        """Send a single user prompt and return the reply text.

        Args:
            prompt: The fully assembled prompt.

        Returns:
            Raw reply text (may be empty).

        Raises:
            ModelTimeoutError: If the call exceeds the configured timeout.
            ModelServiceError: If the model service call fails.
        """
        logger.debug(
            "Calling LiteLLM",
            extra={"model": self._model, "prompt_chars": len(prompt)},
        )

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                acompletion(
                    model=self._model,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=self._max_tokens,
                    temperature=self._temperature,
                    api_key=self._api_key,
                    timeout=self._timeout,
                ),
                timeout=self._timeout,
            )
        except (TimeoutError, litellm.exceptions.Timeout) as exc:
            latency_ms = int((time.monotonic() - start) * 1000)
            logger.warning(
                "Model call timed out",
                extra={"model": self._model, "latency_ms": latency_ms},
            )
            raise ModelTimeoutError(self._timeout) from exc
        except Exception as exc:
            latency_ms = int((time.monotonic() - start) * 1000)
            logger.error(
                "Model call failed: %s",
                exc,
                extra={"model": self._model, "latency_ms": latency_ms},
            )
            raise ModelServiceError(f"AI service call failed: {type(exc).__name__}") from exc

        latency_ms = int((time.monotonic() - start) * 1000)
        text_content = _reply_text(response)
        usage = getattr(response, "usage", None)
        logger.info(
            "Model call completed",
            extra={
                "model": getattr(response, "model", self._model),
                "latency_ms": latency_ms,
                "input_tokens": getattr(usage, "prompt_tokens", 0) or 0,
                "output_tokens": getattr(usage, "completion_tokens", 0) or 0,
            },
        )
        return text_content


def _reply_text(response: Any) -> str:
    """Pull the first choice's text out of a LiteLLM response."""
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError) as exc:
        raise ModelServiceError("AI service returned no choices") from exc
    return str(content or "")
