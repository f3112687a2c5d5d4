"""Factory for creating an ``LLMEngine`` from configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from autojest.llm.builtin import BuiltinLLM, RetryConfig
from autojest.llm.engine import LLMEngine, LLMError

if TYPE_CHECKING:
    from autojest.config import AutojestConfig

logger = logging.getLogger(__name__)


def create_engine(config: AutojestConfig) -> LLMEngine:
    """Instantiate the LiteLLM engine described by *config*.

    Raises:
        LLMError: If no model is configured.
    """
    if not config.model:
        raise LLMError(
            "No LLM model configured. Run `autojest run` to set one up "
            "or add `model:` to the config file."
        )

    logger.debug("Creating LiteLLM engine for %s", config.model)
    return BuiltinLLM(
        model=config.model,
        connection=config.connection,
        retry=RetryConfig(max_retries=config.request_retries),
    )
