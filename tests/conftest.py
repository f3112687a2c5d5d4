"""Shared fakes for the engine, test adapter and other collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from autojest.adapters.base import ExecutionResult, TestFrameworkAdapter
from autojest.adapters.coverage.istanbul import CoverageReportReader
from autojest.cli_helpers import Confirmer
from autojest.llm.engine import GenerationRequest, LLMEngine, LLMResponse
from autojest.utils.file_listing import FileLister
from autojest.utils.subprocess_runner import SubprocessResult

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


class ScriptedEngine(LLMEngine):
    """Returns canned drafts in order, repeating the last one."""

    def __init__(self, *texts: str) -> None:
        self._texts = list(texts) or ["test('ok', () => {});"]
        self.requests: list[GenerationRequest] = []

    @property
    def model_name(self) -> str:
        return "scripted"

    async def generate(self, request: GenerationRequest) -> LLMResponse:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self._texts) - 1)
        return LLMResponse(text=self._texts[index], model="scripted")


class ScriptedAdapter(TestFrameworkAdapter):
    """Reports scripted outcomes per call; writes code like the real adapter."""

    def __init__(self, *outcomes: ExecutionResult, coverage_exit: int = 0) -> None:
        self._outcomes = list(outcomes) or [ExecutionResult(passed=True)]
        self.calls: list[tuple[Path, str | None]] = []
        self.coverage_runs = 0
        self._coverage_exit = coverage_exit

    async def run_test(self, test_path: Path, test_code: str | None) -> ExecutionResult:
        self.calls.append((test_path, test_code))
        if test_code is not None:
            test_path.write_text(test_code, encoding="utf-8")
        index = min(len(self.calls) - 1, len(self._outcomes) - 1)
        return self._outcomes[index]

    async def run_coverage(self, project_root: Path) -> SubprocessResult:
        self.coverage_runs += 1
        return SubprocessResult(
            returncode=self._coverage_exit,
            stdout="",
            stderr="",
            success=self._coverage_exit == 0,
        )


class StaticLister(FileLister):
    """Serves fixed listings keyed by whether the include is a test pattern."""

    def __init__(self, sources: Sequence[str], tests: Sequence[str]) -> None:
        self.sources = list(sources)
        self.tests = list(tests)
        self.calls: list[tuple[Path, tuple[str, ...]]] = []

    def list_files(
        self,
        root: Path,
        include: Sequence[str],
        exclude: Sequence[str] = (),
    ) -> list[str]:
        self.calls.append((root, tuple(include)))
        if any(".test." in pattern or ".spec." in pattern for pattern in include):
            return list(self.tests)
        return list(self.sources)


class RecordingConfirmer(Confirmer):
    def __init__(self, answer: bool = True) -> None:  # noqa: FBT001, FBT002
        self.answer = answer
        self.prompts: list[str] = []

    async def confirm(self, prompt: str, *, default: bool = True) -> bool:
        self.prompts.append(prompt)
        return self.answer


class MemoryReader(CoverageReportReader):
    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files = files or {}
        self.reads: list[str] = []

    def read(self, path: Path) -> bytes | None:
        key = path.as_posix()
        self.reads.append(key)
        for suffix, content in self.files.items():
            if key.endswith(suffix):
                return content
        return None


def fail(error: str) -> ExecutionResult:
    return ExecutionResult(passed=False, error=error)


PASS = ExecutionResult(passed=True)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small JS project with two source files."""
    (tmp_path / "package.json").write_text('{"name": "demo"}', encoding="utf-8")
    src = tmp_path / "src"
    (src / "utils").mkdir(parents=True)
    (src / "math.js").write_text(
        "function add(a, b) { return a + b; }\nmodule.exports = { add };\n",
        encoding="utf-8",
    )
    (src / "utils" / "strings.ts").write_text(
        "export const upper = (s: string): string => s.toUpperCase();\n",
        encoding="utf-8",
    )
    return tmp_path
