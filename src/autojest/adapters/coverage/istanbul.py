"""Istanbul coverage report parsing for Jest projects.

Jest writes Istanbul reports into ``coverage/``. Two shapes are understood:

- ``coverage-summary.json`` (``json-summary`` reporter): per-file totals,
  read from ``statements.pct``.
- ``coverage-final.json`` (``json`` reporter): raw per-statement hit
  counts under ``s``, from which the statement percentage is computed.

The parsed result is a :class:`CoverageRecord` mapping each file path to a
statement-coverage percentage; :func:`select_undercovered` picks the source
files that fall below a threshold.
"""

from __future__ import annotations

import json
import logging
import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────

DEFAULT_THRESHOLD = 80.0
"""Statement coverage percentage below which a file is regenerated."""

_FULL_COVERAGE = 100.0
_SUMMARY_TOTAL_KEY = "total"


class ReportShape(Enum):
    """Which Istanbul reporter produced a report."""

    SUMMARY = "coverage-summary.json"
    FINAL = "coverage-final.json"


# Preferred first.
_REPORT_PATHS = (
    ("coverage/coverage-summary.json", ReportShape.SUMMARY),
    ("coverage/coverage-final.json", ReportShape.FINAL),
)


# ── Errors ───────────────────────────────────────────────────────


class CoverageError(Exception):
    """Base exception for coverage report problems."""


class NoCoverageReportError(CoverageError):
    """Raised when no coverage report exists in the project."""


class CoverageParseError(CoverageError):
    """Raised when a coverage report is not valid Istanbul JSON."""


# ── Data models ──────────────────────────────────────────────────


@dataclass
class CoverageRecord:
    """Statement coverage per file for one coverage pass."""

    files: dict[str, float] = field(default_factory=dict)
    """File path (``/``-separated, as written by Istanbul) -> percentage."""

    shape: ReportShape = ReportShape.SUMMARY
    """Report shape the record was built from."""

    def percentage(self, path: str) -> float | None:
        """Return the percentage recorded for *path*, or None if absent."""
        return self.files.get(_normalize(path))

    def __len__(self) -> int:
        return len(self.files)


# ── Report reading ───────────────────────────────────────────────


class CoverageReportReader(ABC):
    """Reads raw coverage report bytes."""

    @abstractmethod
    def read(self, path: Path) -> bytes | None:
        """Return the file contents, or None when the file does not exist."""


class FileCoverageReportReader(CoverageReportReader):
    """Reads reports from the local filesystem."""

    def read(self, path: Path) -> bytes | None:
        if not path.is_file():
            return None
        return path.read_bytes()


# ── Parsing ──────────────────────────────────────────────────────


def _normalize(path: str) -> str:
    return path.replace("\\", "/")


def _pct_from_summary(entry: Any) -> float:
    statements = entry.get("statements") if isinstance(entry, dict) else None
    if not isinstance(statements, dict):
        raise CoverageParseError(f"Summary entry has no statements block: {entry!r}")
    pct = statements.get("pct")
    # Istanbul writes "Unknown" when a file has no statements
    if isinstance(pct, bool) or not isinstance(pct, (int, float)):
        return _FULL_COVERAGE
    return float(pct)


def _pct_from_hits(hits: Any) -> float:
    if not isinstance(hits, dict):
        raise CoverageParseError(f"Statement map is not an object: {hits!r}")
    total = len(hits)
    if total == 0:
        return _FULL_COVERAGE
    covered = sum(1 for count in hits.values() if isinstance(count, (int, float)) and count > 0)
    return covered * 100 / total


def parse_coverage(report: bytes | str, shape: ReportShape) -> CoverageRecord:
    """Parse an Istanbul JSON report into a :class:`CoverageRecord`.

    Args:
        report: Raw report contents.
        shape: Which reporter produced the report.

    Raises:
        CoverageParseError: If the report is not JSON or not the expected shape.
    """
    try:
        data = json.loads(report)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CoverageParseError(f"Invalid coverage JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise CoverageParseError("Coverage report must be a JSON object")

    record = CoverageRecord(shape=shape)
    for key, entry in data.items():
        if shape is ReportShape.SUMMARY:
            if key == _SUMMARY_TOTAL_KEY:
                continue
            record.files[_normalize(key)] = _pct_from_summary(entry)
        else:
            if not isinstance(entry, dict):
                raise CoverageParseError(f"File entry for {key!r} is not an object")
            path = entry.get("path", key)
            record.files[_normalize(str(path))] = _pct_from_hits(entry.get("s", {}))

    logger.debug("Parsed %s coverage for %d files", shape.value, len(record))
    return record


def load_coverage(project_root: Path, reader: CoverageReportReader) -> CoverageRecord:
    """Load the project's coverage report, preferring the summary shape.

    Raises:
        NoCoverageReportError: If neither report exists.
        CoverageParseError: If the report found is malformed.
    """
    for relative, shape in _REPORT_PATHS:
        raw = reader.read(project_root / relative)
        if raw is not None:
            logger.info("Reading coverage from %s", relative)
            return parse_coverage(raw, shape)
    raise NoCoverageReportError(f"No coverage report found under {project_root / 'coverage'}")


def select_undercovered(
    record: CoverageRecord,
    source_files: Iterable[str],
    threshold: float = DEFAULT_THRESHOLD,
    *,
    base: str | None = None,
) -> list[tuple[str, float]]:
    """Return ``(source_file, pct)`` for sources covered below *threshold*.

    Each source is looked up as given and, when *base* is set, joined onto
    *base* (Istanbul usually records absolute paths). Sources missing from
    the record are skipped rather than treated as uncovered.
    """
    selected: list[tuple[str, float]] = []
    for source in source_files:
        keys = [source]
        if base:
            keys.append(posixpath.join(_normalize(base), _normalize(source)))
        pct = next((p for p in map(record.percentage, keys) if p is not None), None)
        if pct is not None and pct < threshold:
            selected.append((source, pct))
    return selected
