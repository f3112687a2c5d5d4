"""LLMEngine — the drafting model behind a generation session.

The session builds one :class:`GenerationRequest` per draft (system
instruction followed by the conversation window) and reads back the text of
the :class:`LLMResponse`. Every provider failure an engine cannot recover
from is raised as an :class:`LLMError` subclass.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class LLMMessage:
    """A single role-tagged chat message."""

    role: str
    """``'system'``, ``'user'`` or ``'assistant'``."""

    content: str


@dataclass
class GenerationRequest:
    """One chat-completion call made while drafting a test."""

    messages: list[LLMMessage]
    """System message first, then the conversation window."""

    temperature: float = 1.0
    max_tokens: int = 4096


@dataclass
class LLMResponse:
    """A completed draft and the usage reported for it."""

    text: str
    """Completion text, used verbatim as the test file content."""

    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0


class LLMEngine(ABC):
    """Chat-completion backend used for drafting tests."""

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> LLMResponse:
        """Return the completion for *request*.

        No timeout is imposed by callers; any deadline belongs to the
        implementation.

        Raises:
            LLMError: When the provider cannot produce a completion.
        """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier requests are sent to."""


# ── Errors ────────────────────────────────────────────────────────


class LLMError(Exception):
    """Base exception for drafting failures."""


class LLMAuthError(LLMError):
    """The provider rejected the configured credentials."""


class LLMRateLimitError(LLMError):
    """The provider kept rate limiting after all retries."""


class LLMConnectionError(LLMError):
    """The provider could not be reached or timed out after all retries."""
