"""Orchestrator — one sequential pass of generate, repair and coverage top-up.

Steps, each finishing before the next starts:

1. Draft tests for every source file without a matching test.
2. Run each existing test on its own; repair the ones that fail.
3. Run the suite with coverage and offer to regenerate tests for files
   below the coverage threshold.

Files are processed one at a time. A file whose repair budget runs out is
recorded in the summary and the run moves on; engine and runner launch
errors abort the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from autojest.adapters.coverage.istanbul import (
    DEFAULT_THRESHOLD,
    CoverageError,
    FileCoverageReportReader,
    NoCoverageReportError,
    load_coverage,
    select_undercovered,
)
from autojest.agents.analyzers.test_mapper import locate_test_file
from autojest.agents.builders.unit import BuildTask, RepairSeed
from autojest.agents.reporters.terminal import reporter as default_reporter

if TYPE_CHECKING:
    from autojest.adapters.base import TestFrameworkAdapter
    from autojest.adapters.coverage.istanbul import CoverageReportReader
    from autojest.agents.analyzers.scanner import SourceScanner
    from autojest.agents.builders.unit import GenerationSession, UnitBuilder
    from autojest.agents.reporters.terminal import CLIReporter
    from autojest.cli_helpers import Confirmer

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Everything a run needs to know about where it operates."""

    project_root: Path
    """Absolute project directory; Jest runs here."""

    source_dir: str = "."
    """Source directory, relative to ``project_root``."""

    test_dir: str = "tests"
    """Directory the test tree is mirrored into, relative to ``project_root``."""

    coverage_threshold: float = DEFAULT_THRESHOLD
    """Statement coverage percentage below which tests are regenerated."""

    run_coverage: bool = True
    """Whether to run the coverage step at all."""

    @property
    def source_root(self) -> Path:
        return self.project_root / self.source_dir

    @property
    def test_root(self) -> Path:
        return self.project_root / self.test_dir


@dataclass
class RunSummary:
    """What a run did, per source file (paths relative to the source root)."""

    generated: list[str] = field(default_factory=list)
    repaired: list[str] = field(default_factory=list)
    regenerated: list[str] = field(default_factory=list)
    exhausted: list[str] = field(default_factory=list)
    undercovered: list[tuple[str, float]] = field(default_factory=list)
    coverage_checked: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.exhausted


class Orchestrator:
    """Runs the full generate/repair/coverage sequence for one project."""

    def __init__(  # noqa: PLR0913
        self,
        context: RunContext,
        builder: UnitBuilder,
        adapter: TestFrameworkAdapter,
        scanner: SourceScanner,
        confirmer: Confirmer,
        *,
        reporter: CLIReporter | None = None,
        reader: CoverageReportReader | None = None,
    ) -> None:
        self._context = context
        self._builder = builder
        self._adapter = adapter
        self._scanner = scanner
        self._confirmer = confirmer
        self._reporter = reporter or default_reporter
        self._reader = reader or FileCoverageReportReader()

    # ── Public API ────────────────────────────────────────────────

    async def run(self) -> RunSummary:
        """Execute every step and return what happened.

        Raises:
            ScanError: If the source tree cannot be listed.
            LLMError: If the engine fails.
            SubprocessError: If the test runner cannot be launched.
        """
        summary = RunSummary()
        handled: set[str] = set()

        await self._generate_missing(summary, handled)
        await self._repair_failing(summary, handled)
        if self._context.run_coverage:
            await self._top_up_coverage(summary)
        else:
            self._reporter.print_info("Coverage step skipped")

        self._reporter.print_summary(summary)
        return summary

    # ── Steps ─────────────────────────────────────────────────────

    async def _generate_missing(self, summary: RunSummary, handled: set[str]) -> None:
        ctx = self._context
        untested = self._scanner.untested_files(ctx.source_root, [ctx.test_root])
        if not untested:
            self._reporter.print_success("All source files already have tests")
            return

        self._reporter.print_header(f"Writing tests for {len(untested)} untested file(s)")
        for source in untested:
            handled.add(source)
            session = await self._run_session(source)
            self._record(summary, summary.generated, source, session)

    async def _repair_failing(self, summary: RunSummary, handled: set[str]) -> None:
        ctx = self._context
        sources = self._scanner.all_source_files(ctx.source_root, [ctx.test_root])
        # Files drafted in the first step, passing or exhausted, are not rerun.
        existing = [
            source
            for source in sources
            if source not in handled and self._test_file(source).is_file()
        ]
        if not existing:
            return

        self._reporter.print_header(f"Checking {len(existing)} existing test(s)")
        for source in existing:
            test_file = self._test_file(source)
            with self._reporter.create_status(f"Running {self._display(test_file)}"):
                result = await self._adapter.run_test(test_file, None)
            if result.passed:
                self._reporter.print_success(f"Passing: {self._display(test_file)}")
                continue

            self._reporter.print_warning(f"Failing: {self._display(test_file)}")
            seed = RepairSeed(test_code=test_file.read_text(encoding="utf-8"), error=result.error)
            session = await self._run_session(source, seed=seed)
            self._record(summary, summary.repaired, source, session)

    async def _top_up_coverage(self, summary: RunSummary) -> None:
        ctx = self._context
        self._reporter.print_header("Measuring coverage")
        with self._reporter.create_status("Running the test suite with coverage..."):
            await self._adapter.run_coverage(ctx.project_root)

        try:
            record = load_coverage(ctx.project_root, self._reader)
        except NoCoverageReportError:
            self._reporter.print_warning("No coverage report found; skipping regeneration")
            return
        except CoverageError as exc:
            logger.warning("Unreadable coverage report: %s", exc)
            self._reporter.print_warning(f"Could not read coverage report: {exc}")
            return

        logger.info("Read %s with %d file(s)", record.shape.value, len(record))
        summary.coverage_checked = True
        sources = self._scanner.all_source_files(ctx.source_root, [ctx.test_root])
        under = select_undercovered(
            record,
            sources,
            ctx.coverage_threshold,
            base=ctx.source_root.resolve().as_posix(),
        )
        summary.undercovered = under
        if not under:
            self._reporter.print_success(
                f"Every file meets {ctx.coverage_threshold:.0f}% statement coverage"
            )
            return

        self._reporter.print_undercovered(under, ctx.coverage_threshold)
        if not await self._confirmer.confirm(
            f"Regenerate tests for {len(under)} under-covered file(s)?", default=True
        ):
            self._reporter.print_info("Leaving under-covered tests as they are")
            return

        for source, _pct in under:
            session = await self._run_session(source)
            self._record(summary, summary.regenerated, source, session)

    # ── Internal helpers ──────────────────────────────────────────

    async def _run_session(
        self, source: str, *, seed: RepairSeed | None = None
    ) -> GenerationSession:
        source_file = self._context.source_root / source
        test_file = self._test_file(source)
        name = source_file.name
        with self._reporter.create_status(f"Generating test for {name}"):
            session = await self._builder.run(
                BuildTask(source_file=source_file, test_file=test_file, seed=seed)
            )
        if session.succeeded:
            self._reporter.print_success(f"Test written: {name}")
        else:
            self._reporter.print_error(f"Failed to write test for: {name}")
        return session

    @staticmethod
    def _record(
        summary: RunSummary,
        bucket: list[str],
        source: str,
        session: GenerationSession,
    ) -> None:
        if session.succeeded:
            bucket.append(source)
            if source in summary.exhausted:
                summary.exhausted.remove(source)
        elif source not in summary.exhausted:
            summary.exhausted.append(source)

    def _test_file(self, source: str) -> Path:
        return self._context.project_root / locate_test_file(source, self._context.test_dir)

    def _display(self, path: Path) -> str:
        try:
            return path.relative_to(self._context.project_root).as_posix()
        except ValueError:
            return path.as_posix()
