"""LiteLLM-backed engine for OpenAI-compatible and other providers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import litellm
from litellm.exceptions import (
    APIConnectionError as LiteLLMConnectionError,
)
from litellm.exceptions import (
    APIError as LiteLLMAPIError,
)
from litellm.exceptions import (
    AuthenticationError as LiteLLMAuthError,
)
from litellm.exceptions import (
    BadRequestError as LiteLLMBadRequestError,
)
from litellm.exceptions import (
    InternalServerError as LiteLLMInternalServerError,
)
from litellm.exceptions import (
    NotFoundError as LiteLLMNotFoundError,
)
from litellm.exceptions import (
    PermissionDeniedError as LiteLLMPermissionDeniedError,
)
from litellm.exceptions import (
    RateLimitError as LiteLLMRateLimitError,
)
from litellm.exceptions import (
    ServiceUnavailableError as LiteLLMServiceUnavailableError,
)
from litellm.exceptions import (
    Timeout as LiteLLMTimeout,
)
from litellm.exceptions import (
    UnprocessableEntityError as LiteLLMUnprocessableEntityError,
)

from autojest.llm.engine import (
    GenerationRequest,
    LLMAuthError,
    LLMConnectionError,
    LLMEngine,
    LLMError,
    LLMRateLimitError,
    LLMResponse,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

# Suppress litellm's noisy default logging
litellm.suppress_debug_info = True


@dataclass
class RetryConfig:
    """Transport-level retry on transient provider failures.

    This is independent of the test repair budget: it only re-sends the
    same request when the provider could not answer it.
    """

    max_retries: int = 2
    """Maximum number of retry attempts."""

    base_delay: float = 1.0
    """Base delay in seconds for exponential backoff."""

    max_delay: float = 30.0
    """Maximum delay cap in seconds."""

    backoff_factor: float = 2.0
    """Multiplier applied to the delay on each retry."""


# Retried with backoff; raised as LLMConnectionError once retries run out.
_CONNECTION_ERRORS = (LiteLLMConnectionError, LiteLLMTimeout)

# Retried with backoff; raised as LLMError once retries run out.
_UNAVAILABLE_ERRORS = (LiteLLMInternalServerError, LiteLLMServiceUnavailableError)

# The provider refused the request itself (unknown model, context window
# exceeded, malformed request); raised as LLMError without retrying.
_REJECTED_ERRORS = (
    LiteLLMBadRequestError,
    LiteLLMNotFoundError,
    LiteLLMPermissionDeniedError,
    LiteLLMUnprocessableEntityError,
)

# Connection blob keys accepted for each litellm argument, in priority order.
_CONNECTION_KEYS: dict[str, tuple[str, ...]] = {
    "api_key": ("api_key", "apiKey"),
    "api_base": ("base_url", "baseURL", "api_base"),
    "organization": ("organization",),
    "api_version": ("api_version", "apiVersion"),
    "timeout": ("timeout",),
}


def connection_kwargs(connection: Mapping[str, Any]) -> dict[str, Any]:
    """Translate a saved connection mapping into ``litellm.acompletion`` kwargs.

    Both snake_case and the camelCase spellings used by OpenAI client
    options are accepted. Unknown keys are ignored.
    """
    kwargs: dict[str, Any] = {}
    for target, aliases in _CONNECTION_KEYS.items():
        for alias in aliases:
            value = connection.get(alias)
            if value not in (None, ""):
                kwargs[target] = value
                break
    return kwargs


class BuiltinLLM(LLMEngine):
    """Chat-completion engine delegating provider logic to LiteLLM.

    Any provider LiteLLM supports is reachable through the ``model`` string
    (``"gpt-4o"``, ``"anthropic/claude-sonnet-4-5"``, ``"ollama/codellama"``);
    the connection mapping supplies credentials and endpoint.
    """

    def __init__(
        self,
        model: str,
        *,
        connection: Mapping[str, Any] | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self._model = model
        self._connection = connection_kwargs(connection or {})
        self._retry = retry or RetryConfig()

    # ── Public API ────────────────────────────────────────────────

    @property
    def model_name(self) -> str:
        return self._model

    async def generate(self, request: GenerationRequest) -> LLMResponse:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": m.role, "content": m.content} for m in request.messages],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            **self._connection,
        }

        logger.debug(
            "Requesting completion from %s (%d messages)", self._model, len(request.messages)
        )
        raw = await self._call_with_retry(kwargs)
        response = self._parse_response(raw, self._model)
        logger.debug(
            "Completion from %s: %d prompt + %d completion tokens",
            response.model,
            response.prompt_tokens,
            response.completion_tokens,
        )
        return response

    # ── Internal helpers ──────────────────────────────────────────

    async def _call_with_retry(self, kwargs: dict[str, Any]) -> Any:
        """Call ``litellm.acompletion``, retrying transient failures.

        Every litellm failure leaves this method as an ``LLMError``.
        """
        last_exc: Exception | None = None
        attempts = self._retry.max_retries + 1

        for attempt in range(attempts):
            try:
                return await litellm.acompletion(**kwargs)
            except LiteLLMAuthError as exc:
                raise LLMAuthError(str(exc)) from exc
            except _REJECTED_ERRORS as exc:
                raise LLMError(str(exc)) from exc
            except LiteLLMRateLimitError as exc:
                last_exc = exc
                kind = "Rate limit hit"
            except _CONNECTION_ERRORS as exc:
                last_exc = exc
                kind = "Connection error"
            except _UNAVAILABLE_ERRORS as exc:
                last_exc = exc
                kind = "Provider unavailable"
            except LiteLLMAPIError as exc:
                if not _is_transient(exc):
                    raise LLMError(str(exc)) from exc
                last_exc = exc
                kind = "Transient API error"

            if attempt + 1 < attempts:
                delay = self._backoff_delay(attempt)
                logger.warning(
                    "%s (attempt %d/%d), retrying in %.1fs",
                    kind,
                    attempt + 1,
                    attempts,
                    delay,
                )
                await asyncio.sleep(delay)

        if isinstance(last_exc, LiteLLMRateLimitError):
            raise LLMRateLimitError(str(last_exc)) from last_exc
        if isinstance(last_exc, _CONNECTION_ERRORS):
            raise LLMConnectionError(str(last_exc)) from last_exc
        raise LLMError(str(last_exc)) from last_exc

    def _backoff_delay(self, attempt: int) -> float:
        """Calculate exponential backoff delay for the given attempt."""
        delay = self._retry.base_delay * (self._retry.backoff_factor**attempt)
        return min(delay, self._retry.max_delay)

    @staticmethod
    def _parse_response(raw: Any, model: str) -> LLMResponse:
        """Extract an ``LLMResponse`` from a LiteLLM completion result."""
        choice = raw.choices[0]
        usage = getattr(raw, "usage", None)

        return LLMResponse(
            text=choice.message.content or "",
            model=raw.model or model,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
        )


_SERVER_ERROR_THRESHOLD = 500


def _is_transient(exc: Exception) -> bool:
    """Return ``True`` if the API error looks transient (5xx or timeout)."""
    status = getattr(exc, "status_code", None)
    if isinstance(status, int) and status >= _SERVER_ERROR_THRESHOLD:
        return True
    msg = str(exc).lower()
    return "timeout" in msg or "overloaded" in msg
