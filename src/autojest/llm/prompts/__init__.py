"""Prompt templates for test drafting and repair."""

from autojest.llm.prompts.base import PromptContext, PromptSection, PromptTemplate
from autojest.llm.prompts.jest_prompt import JestTemplate

__all__ = [
    "JestTemplate",
    "PromptContext",
    "PromptSection",
    "PromptTemplate",
]
