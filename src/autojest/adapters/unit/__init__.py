"""Unit test framework adapters."""

from autojest.adapters.unit.jest_adapter import JestAdapter

__all__ = ["JestAdapter"]
