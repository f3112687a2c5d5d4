"""Jest adapter — writes generated tests and runs them through Jest.

Implements ``TestFrameworkAdapter`` for JavaScript/TypeScript projects.
Jest is invoked through the project's package manager (``npx``, ``yarn``,
``pnpm exec`` or ``bunx``) inside the project root.
"""

from __future__ import annotations

import logging
from pathlib import Path

from autojest.adapters.base import ExecutionResult, TestFrameworkAdapter
from autojest.utils.package_manager import detect_package_manager, runner_command
from autojest.utils.subprocess_runner import SubprocessResult, run_subprocess

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────

_DEFAULT_TIMEOUT = 300.0

_RUN_FLAGS = ("--runInBand", "--verbose", "--watchAll=false")

_COVERAGE_FLAGS = (
    "--coverage",
    "--coverageReporters=json-summary",
    "--coverageReporters=json",
    "--runInBand",
    "--watchAll=false",
)

# Non-interactive, uncoloured output.
_JEST_ENV = {"CI": "true", "FORCE_COLOR": "0"}


# ── Adapter ──────────────────────────────────────────────────────


class JestAdapter(TestFrameworkAdapter):
    """Runs one Jest test file at a time, or the whole suite for coverage."""

    def __init__(self, project_root: Path, *, timeout: float = _DEFAULT_TIMEOUT) -> None:
        self._root = project_root
        self._timeout = timeout
        self._runner = runner_command(detect_package_manager(project_root))

    # ── Command construction ─────────────────────────────────────

    def build_test_command(self, test_path: Path) -> list[str]:
        """Return the command that runs *test_path* and nothing else."""
        return [
            *self._runner,
            "jest",
            "--runTestsByPath",
            self._display_path(test_path),
            *_RUN_FLAGS,
        ]

    def build_coverage_command(self) -> list[str]:
        """Return the command that runs the full suite with JSON coverage."""
        return [*self._runner, "jest", *_COVERAGE_FLAGS]

    # ── Execution ────────────────────────────────────────────────

    async def run_test(self, test_path: Path, test_code: str | None) -> ExecutionResult:
        if test_code is not None:
            test_path.parent.mkdir(parents=True, exist_ok=True)
            test_path.write_text(test_code, encoding="utf-8")
            logger.debug("Wrote %d chars to %s", len(test_code), test_path)

        result = await run_subprocess(
            self.build_test_command(test_path),
            cwd=self._root,
            timeout=self._timeout,
            env=_JEST_ENV,
        )

        if result.success:
            return ExecutionResult(passed=True, duration_ms=result.duration_ms)

        if result.timed_out:
            logger.warning("Jest timed out after %.1fs on %s", self._timeout, test_path)
            error = f"Jest timed out after {self._timeout:.0f}s.\n{result.output}"
        else:
            error = result.output or f"Jest exited with code {result.returncode}"
        return ExecutionResult(passed=False, error=error, duration_ms=result.duration_ms)

    async def run_coverage(self, project_root: Path) -> SubprocessResult:
        result = await run_subprocess(
            self.build_coverage_command(),
            cwd=project_root,
            timeout=self._timeout,
            env=_JEST_ENV,
        )
        if not result.success:
            # Failing suites still write a report
            logger.warning(
                "Jest coverage run exited with code %d (timed out: %s)",
                result.returncode,
                result.timed_out,
            )
        return result

    # ── Helpers ──────────────────────────────────────────────────

    def _display_path(self, test_path: Path) -> str:
        try:
            return test_path.resolve().relative_to(self._root.resolve()).as_posix()
        except ValueError:
            return test_path.as_posix()
