"""Tests for prompt rendering."""

from __future__ import annotations

import pytest

from autojest.llm.prompts.base import PromptContext
from autojest.llm.prompts.jest_prompt import SYSTEM_INSTRUCTION, JestTemplate


@pytest.fixture
def template() -> JestTemplate:
    return JestTemplate()


def _context(source: str = "src/utils/strings.js", test: str = "tests/utils/strings.test.js") -> PromptContext:
    return PromptContext(
        source_relative=source,
        test_relative=test,
        source_code="module.exports = { upper: (s) => s.toUpperCase() };",
    )


# ── PromptContext ────────────────────────────────────────────────


def test_source_name() -> None:
    assert _context().source_name == "strings.js"


@pytest.mark.parametrize(
    ("source", "test", "expected"),
    [
        ("src/utils/strings.js", "tests/utils/strings.test.js", "../../src/utils/strings"),
        ("lib/a.tsx", "lib/a.test.tsx", "./a"),
        ("a.ts", "a.test.ts", "./a"),
        ("src/a.js", "a.test.js", "./src/a"),
    ],
)
def test_import_path(source: str, test: str, expected: str) -> None:
    assert _context(source, test).import_path == expected


# ── JestTemplate ─────────────────────────────────────────────────


def test_system_instruction(template: JestTemplate) -> None:
    assert template.system_instruction() == SYSTEM_INSTRUCTION


def test_initial_message_carries_paths_and_source(template: JestTemplate) -> None:
    message = template.initial_message(_context())

    assert "The source file is located at (project-relative): src/utils/strings.js" in message
    assert "The test file will be created at (project-relative): tests/utils/strings.test.js" in message
    assert "'../../src/utils/strings'" in message
    assert "module.exports = { upper" in message
    assert "Only respond with valid JavaScript test code." in message


def test_initial_message_section_order(template: JestTemplate) -> None:
    message = template.initial_message(_context())
    positions = [message.index(f"## {label}") for label in ("Task", "Framework", "Output Rules", "Source File")]
    assert positions == sorted(positions)


def test_framework_note_depends_on_language(template: JestTemplate) -> None:
    ts = template.initial_message(_context("src/a.ts", "tests/a.test.ts"))
    js = template.initial_message(_context())

    assert "The source is TypeScript" in ts
    assert "The source is JavaScript" in js


def test_seed_messages(template: JestTemplate) -> None:
    first, second = template.seed_messages(_context(), "test('x', () => {});", "TypeError: boom")

    assert first.startswith("Here is the existing test file at (project-relative): tests/utils/strings.test.js")
    assert first.endswith("test('x', () => {});")
    assert second.startswith("This test failed with error:\n\nTypeError: boom")
    assert "Please revise the test to fix it." in second
    assert "code fences" in second


def test_repair_message_embeds_error(template: JestTemplate) -> None:
    message = template.repair_message("Expected 2, received 3")
    assert message == (
        "The previous test failed with this error:\n\nExpected 2, received 3\n\n"
        "Please revise the test to fix it."
    )
