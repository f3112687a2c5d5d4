"""Abstract base class for the test executor used to verify generated tests."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from autojest.utils.subprocess_runner import SubprocessResult


@dataclass
class ExecutionResult:
    """Outcome of running a single test file."""

    passed: bool
    """True when the runner exited successfully."""

    error: str = ""
    """Raw runner output on failure; empty on success."""

    duration_ms: float = 0.0
    """How long the runner took."""


class TestFrameworkAdapter(ABC):
    """Writes and runs test files for a specific framework.

    The generation loop treats the adapter as its oracle: a test is accepted
    exactly when :meth:`run_test` reports ``passed``.
    """

    @abstractmethod
    async def run_test(self, test_path: Path, test_code: str | None) -> ExecutionResult:
        """Write *test_code* to *test_path* and run that file alone.

        ``None`` runs the file as it already exists on disk; any string,
        including an empty one, replaces the file first.

        Raises:
            SubprocessError: If the runner command cannot be launched.
        """

    @abstractmethod
    async def run_coverage(self, project_root: Path) -> SubprocessResult:
        """Run the whole suite with coverage reporting enabled.

        A failing suite is reported through the result, never raised.
        """
