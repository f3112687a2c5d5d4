"""Tests for the Jest adapter and package manager detection."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import pytest

from autojest.adapters.base import TestFrameworkAdapter
from autojest.adapters.unit.jest_adapter import JestAdapter
from autojest.utils.package_manager import (
    PackageManager,
    detect_package_manager,
    runner_command,
)
from autojest.utils.subprocess_runner import SubprocessError, SubprocessResult

if TYPE_CHECKING:
    from pathlib import Path

_RUN_SUBPROCESS = "autojest.adapters.unit.jest_adapter.run_subprocess"


def _result(
    returncode: int = 0, stdout: str = "", stderr: str = "", *, timed_out: bool = False
) -> SubprocessResult:
    return SubprocessResult(
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
        success=returncode == 0 and not timed_out,
        timed_out=timed_out,
    )


@pytest.fixture
def adapter(tmp_path: Path) -> JestAdapter:
    (tmp_path / "package.json").write_text("{}", encoding="utf-8")
    return JestAdapter(tmp_path, timeout=30.0)


# ── Package manager detection ────────────────────────────────────


@pytest.mark.parametrize(
    ("lockfile", "expected"),
    [
        ("pnpm-lock.yaml", PackageManager.PNPM),
        ("yarn.lock", PackageManager.YARN),
        ("bun.lockb", PackageManager.BUN),
        ("package-lock.json", PackageManager.NPM),
    ],
)
def test_detect_package_manager(tmp_path: Path, lockfile: str, expected: PackageManager) -> None:
    (tmp_path / lockfile).write_text("", encoding="utf-8")
    assert detect_package_manager(tmp_path) is expected


def test_detect_package_manager_defaults_to_npm(tmp_path: Path) -> None:
    assert detect_package_manager(tmp_path) is PackageManager.NPM


def test_runner_commands() -> None:
    assert runner_command(PackageManager.NPM) == ["npx"]
    assert runner_command(PackageManager.PNPM) == ["pnpm", "exec"]


# ── Identity and commands ────────────────────────────────────────


def test_adapter_is_test_framework_adapter(adapter: JestAdapter) -> None:
    assert isinstance(adapter, TestFrameworkAdapter)


def test_build_test_command_targets_one_file(adapter: JestAdapter, tmp_path: Path) -> None:
    cmd = adapter.build_test_command(tmp_path / "tests" / "a.test.js")

    assert cmd[:2] == ["npx", "jest"]
    assert "tests/a.test.js" in cmd
    assert "--runInBand" in cmd
    assert "--verbose" in cmd


def test_build_test_command_uses_yarn(tmp_path: Path) -> None:
    (tmp_path / "yarn.lock").write_text("", encoding="utf-8")
    cmd = JestAdapter(tmp_path).build_test_command(tmp_path / "a.test.js")
    assert cmd[:2] == ["yarn", "jest"]


def test_build_coverage_command(adapter: JestAdapter) -> None:
    cmd = adapter.build_coverage_command()
    assert "--coverage" in cmd
    assert "--coverageReporters=json-summary" in cmd
    assert "--coverageReporters=json" in cmd


# ── run_test ─────────────────────────────────────────────────────


async def test_run_test_writes_code_and_passes(adapter: JestAdapter, tmp_path: Path) -> None:
    test_file = tmp_path / "tests" / "a.test.js"
    with patch(_RUN_SUBPROCESS, new=AsyncMock(return_value=_result(0))) as mock_run:
        result = await adapter.run_test(test_file, "test('x', () => {});")

    assert result.passed
    assert result.error == ""
    assert test_file.read_text(encoding="utf-8") == "test('x', () => {});"
    assert mock_run.await_args.kwargs["cwd"] == tmp_path


async def test_run_test_failure_carries_runner_output(adapter: JestAdapter, tmp_path: Path) -> None:
    test_file = tmp_path / "a.test.js"
    failing = _result(1, stdout="FAIL a.test.js", stderr="Expected 2, received 3")
    with patch(_RUN_SUBPROCESS, new=AsyncMock(return_value=failing)):
        result = await adapter.run_test(test_file, "broken")

    assert not result.passed
    assert "FAIL a.test.js" in result.error
    assert "Expected 2, received 3" in result.error


async def test_run_test_none_keeps_existing_file(adapter: JestAdapter, tmp_path: Path) -> None:
    test_file = tmp_path / "a.test.js"
    test_file.write_text("original", encoding="utf-8")
    with patch(_RUN_SUBPROCESS, new=AsyncMock(return_value=_result(0))):
        await adapter.run_test(test_file, None)

    assert test_file.read_text(encoding="utf-8") == "original"


async def test_run_test_empty_code_is_written(adapter: JestAdapter, tmp_path: Path) -> None:
    test_file = tmp_path / "a.test.js"
    test_file.write_text("original", encoding="utf-8")
    with patch(_RUN_SUBPROCESS, new=AsyncMock(return_value=_result(1, stderr="no tests"))):
        result = await adapter.run_test(test_file, "")

    assert test_file.read_text(encoding="utf-8") == ""
    assert not result.passed


async def test_run_test_timeout(adapter: JestAdapter, tmp_path: Path) -> None:
    with patch(_RUN_SUBPROCESS, new=AsyncMock(return_value=_result(-1, timed_out=True))):
        result = await adapter.run_test(tmp_path / "a.test.js", "x")

    assert not result.passed
    assert "timed out" in result.error


async def test_run_test_missing_runner_propagates(adapter: JestAdapter, tmp_path: Path) -> None:
    error = SubprocessError("Command not found: npx", result=_result(-1))
    with (
        patch(_RUN_SUBPROCESS, new=AsyncMock(side_effect=error)),
        pytest.raises(SubprocessError),
    ):
        await adapter.run_test(tmp_path / "a.test.js", "x")


# ── run_coverage ─────────────────────────────────────────────────


async def test_run_coverage_tolerates_failing_suite(adapter: JestAdapter, tmp_path: Path) -> None:
    with patch(_RUN_SUBPROCESS, new=AsyncMock(return_value=_result(1, stdout="1 failed"))):
        result = await adapter.run_coverage(tmp_path)

    assert result.returncode == 1
