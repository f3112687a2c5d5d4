"""LLM integration layer for autojest."""

from autojest.llm.builtin import BuiltinLLM
from autojest.llm.conversation import Conversation
from autojest.llm.engine import LLMEngine, LLMError, LLMMessage, LLMResponse
from autojest.llm.factory import create_engine

__all__ = [
    "BuiltinLLM",
    "Conversation",
    "LLMEngine",
    "LLMError",
    "LLMMessage",
    "LLMResponse",
    "create_engine",
]
