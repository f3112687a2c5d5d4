"""Coverage report parsing."""

from autojest.adapters.coverage.istanbul import (
    CoverageError,
    CoverageParseError,
    CoverageRecord,
    NoCoverageReportError,
    ReportShape,
    load_coverage,
    parse_coverage,
    select_undercovered,
)

__all__ = [
    "CoverageError",
    "CoverageParseError",
    "CoverageRecord",
    "NoCoverageReportError",
    "ReportShape",
    "load_coverage",
    "parse_coverage",
    "select_undercovered",
]
