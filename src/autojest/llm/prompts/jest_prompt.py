"""Jest prompt template for JavaScript/TypeScript unit tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from autojest.llm.prompts.base import PromptTemplate

if TYPE_CHECKING:
    from autojest.llm.prompts.base import PromptContext

SYSTEM_INSTRUCTION = "You write clean, idiomatic Jest tests."

_JEST_INSTRUCTIONS = """\
Jest rules:
- Use `describe()` blocks grouped by function/class \
and `it()` or `test()` blocks for individual cases.
- Use `expect(value).toBe()`, `toEqual()`, `toThrow()`, etc. for assertions.
- Mock modules with `jest.mock('./module')` and functions with `jest.fn()`.
- Use `beforeEach` / `afterEach` for shared setup and teardown.
- Prefer `async`/`await` for asynchronous code.\
"""

_TYPESCRIPT_NOTE = "- The source is TypeScript: use `import` syntax and keep the test type-correct."
_JAVASCRIPT_NOTE = (
    "- The source is JavaScript: match its module style (`require` for CommonJS, "
    "`import` for ES modules)."
)

_OUTPUT_RULES = """\
Only respond with valid JavaScript test code.
Do NOT include any explanations, markdown, code fences, or headings.
You may use /* inline comments */ inside the code if needed.
The goal is full branch coverage of all exported functions and classes, \
including edge cases and error paths.\
"""


class JestTemplate(PromptTemplate):
    """Prompts for drafting and repairing a single Jest test file."""

    def system_instruction(self) -> str:
        return SYSTEM_INSTRUCTION

    def _framework_instructions(self, context: PromptContext) -> str:
        is_typescript = context.source_relative.endswith((".ts", ".tsx"))
        note = _TYPESCRIPT_NOTE if is_typescript else _JAVASCRIPT_NOTE
        return f"{_JEST_INSTRUCTIONS}\n{note}"

    def _output_rules(self) -> str:
        return _OUTPUT_RULES
