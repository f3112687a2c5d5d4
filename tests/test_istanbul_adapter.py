"""Tests for Istanbul coverage report parsing and threshold selection."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import MemoryReader

from autojest.adapters.coverage.istanbul import (
    CoverageError,
    CoverageParseError,
    CoverageRecord,
    FileCoverageReportReader,
    NoCoverageReportError,
    ReportShape,
    load_coverage,
    parse_coverage,
    select_undercovered,
)


def _summary(**files: float | str) -> bytes:
    data: dict[str, object] = {"total": {"statements": {"pct": 12.5}}}
    for name, pct in files.items():
        data[name.replace("__", ".")] = {"statements": {"total": 4, "covered": 2, "pct": pct}}
    return json.dumps(data).encode()


# ── Summary shape ────────────────────────────────────────────────


def test_summary_reads_statement_pct() -> None:
    record = parse_coverage(_summary(a__js=50), ReportShape.SUMMARY)
    assert record.files == {"a.js": 50.0}


def test_summary_ignores_total_entry() -> None:
    record = parse_coverage(_summary(a__js=90), ReportShape.SUMMARY)
    assert "total" not in record.files


def test_summary_unknown_pct_counts_as_full() -> None:
    record = parse_coverage(_summary(empty__js="Unknown"), ReportShape.SUMMARY)
    assert record.percentage("empty.js") == 100.0


def test_summary_entry_without_statements_is_malformed() -> None:
    with pytest.raises(CoverageParseError):
        parse_coverage(b'{"a.js": {"lines": {}}}', ReportShape.SUMMARY)


# ── Final shape ──────────────────────────────────────────────────


def test_final_computes_pct_from_hits() -> None:
    report = {"/p/a.js": {"path": "/p/a.js", "s": {"1": 1, "2": 0}}}
    record = parse_coverage(json.dumps(report), ReportShape.FINAL)
    assert record.percentage("/p/a.js") == 50.0


def test_final_empty_statement_map_is_full_coverage() -> None:
    report = {"/p/a.js": {"path": "/p/a.js", "s": {}}}
    record = parse_coverage(json.dumps(report), ReportShape.FINAL)
    assert record.percentage("/p/a.js") == 100.0


def test_final_uses_path_field_over_key() -> None:
    report = {"key": {"path": "C:\\proj\\a.js", "s": {"0": 3}}}
    record = parse_coverage(json.dumps(report), ReportShape.FINAL)
    assert record.files == {"C:/proj/a.js": 100.0}


# ── Malformed input ──────────────────────────────────────────────


@pytest.mark.parametrize("raw", [b"not json", b"[1, 2]", b'{"a.js": 3}'])
def test_malformed_reports_raise(raw: bytes) -> None:
    with pytest.raises(CoverageParseError):
        parse_coverage(raw, ReportShape.FINAL)


def test_parse_error_is_a_coverage_error() -> None:
    assert issubclass(CoverageParseError, CoverageError)
    assert issubclass(NoCoverageReportError, CoverageError)


# ── select_undercovered ──────────────────────────────────────────


def test_select_undercovered_below_threshold() -> None:
    record = CoverageRecord(files={"a.js": 50.0})
    assert select_undercovered(record, ["a.js"], 80) == [("a.js", 50.0)]


def test_select_undercovered_above_threshold() -> None:
    record = CoverageRecord(files={"a.js": 90.0})
    assert select_undercovered(record, ["a.js"], 80) == []


def test_select_undercovered_threshold_is_exclusive() -> None:
    record = CoverageRecord(files={"a.js": 80.0})
    assert select_undercovered(record, ["a.js"]) == []


def test_select_undercovered_skips_absent_files() -> None:
    record = CoverageRecord(files={"a.js": 10.0})
    assert select_undercovered(record, ["a.js", "b.js"]) == [("a.js", 10.0)]


def test_select_undercovered_joins_base() -> None:
    record = CoverageRecord(files={"/proj/src/lib/a.js": 20.0})
    result = select_undercovered(record, ["lib/a.js"], 80, base="/proj/src")
    assert result == [("lib/a.js", 20.0)]


def test_select_undercovered_preserves_source_order() -> None:
    record = CoverageRecord(files={"a.js": 1.0, "b.js": 2.0})
    assert [s for s, _ in select_undercovered(record, ["b.js", "a.js"])] == ["b.js", "a.js"]


# ── load_coverage ────────────────────────────────────────────────


def test_load_prefers_summary() -> None:
    reader = MemoryReader(
        {
            "coverage/coverage-summary.json": _summary(a__js=40),
            "coverage/coverage-final.json": b'{"a.js": {"path": "a.js", "s": {}}}',
        }
    )
    record = load_coverage(Path("/proj"), reader)

    assert record.shape is ReportShape.SUMMARY
    assert record.percentage("a.js") == 40.0


def test_load_falls_back_to_final() -> None:
    reader = MemoryReader({"coverage/coverage-final.json": b'{"a.js": {"path": "a.js", "s": {"1": 0}}}'})
    record = load_coverage(Path("/proj"), reader)

    assert record.shape is ReportShape.FINAL
    assert record.percentage("a.js") == 0.0


def test_load_without_reports_raises() -> None:
    with pytest.raises(NoCoverageReportError):
        load_coverage(Path("/proj"), MemoryReader())


def test_file_reader(tmp_path: Path) -> None:
    report = tmp_path / "coverage" / "coverage-summary.json"
    report.parent.mkdir()
    report.write_bytes(_summary(x__ts=75))

    reader = FileCoverageReportReader()

    assert reader.read(tmp_path / "coverage" / "missing.json") is None
    assert load_coverage(tmp_path, reader).percentage("x.ts") == 75.0
