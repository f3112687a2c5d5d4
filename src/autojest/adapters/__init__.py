"""Test framework adapters for execution and coverage."""

from autojest.adapters.base import ExecutionResult, TestFrameworkAdapter

__all__ = [
    "ExecutionResult",
    "TestFrameworkAdapter",
]
