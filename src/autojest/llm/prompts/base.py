"""Prompt template base: sections, context and the three message kinds.

A generation session needs three prompts:

- the *initial* instruction, carrying the source file and its test location;
- the *seed* pair used when an existing test is failing (existing code,
  then the failure with a repair request);
- the *repair* message appended after each failed verification.
"""

from __future__ import annotations

import posixpath
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

_EXT_RE = re.compile(r"\.(js|ts)x?$")


@dataclass
class PromptSection:
    """A labelled block of content within a rendered prompt."""

    label: str
    content: str


@dataclass
class PromptContext:
    """What the model needs to know about one source file."""

    source_relative: str
    """Source path relative to the project root, ``/``-separated."""

    test_relative: str
    """Test path relative to the project root, ``/``-separated."""

    source_code: str
    """Full text of the source file."""

    @property
    def source_name(self) -> str:
        """Base name of the source file."""
        return posixpath.basename(self.source_relative)

    @property
    def import_path(self) -> str:
        """Module specifier for the source, relative to the test file."""
        test_dir = posixpath.dirname(self.test_relative) or "."
        target = _EXT_RE.sub("", self.source_relative)
        relative = posixpath.relpath(target, test_dir)
        return relative if relative.startswith(".") else f"./{relative}"


class PromptTemplate(ABC):
    """Abstract base class for test generation prompts.

    Subclasses provide the system instruction, the framework rules and the
    output rules; the base class assembles them into message texts.
    """

    @abstractmethod
    def system_instruction(self) -> str:
        """Return the system message sent with every request."""

    @abstractmethod
    def _framework_instructions(self, context: PromptContext) -> str:
        """Return framework-specific rules for the initial prompt."""

    @abstractmethod
    def _output_rules(self) -> str:
        """Return the output-format rules repeated in every request for code."""

    # ── Rendering ────────────────────────────────────────────────

    def initial_message(self, context: PromptContext) -> str:
        """Render the opening instruction for a file without a usable test."""
        sections = [
            PromptSection(
                label="Task",
                content=(
                    "Generate a Jest unit test file for the source code below.\n"
                    f"The source file is located at (project-relative): {context.source_relative}\n"
                    f"The test file will be created at (project-relative): {context.test_relative}\n"
                    f"Import the module under test from '{context.import_path}'."
                ),
            ),
            PromptSection(label="Framework", content=self._framework_instructions(context)),
            PromptSection(label="Output Rules", content=self._output_rules()),
            PromptSection(
                label="Source File",
                content=f"File: {context.source_name}\n\n{context.source_code}",
            ),
        ]
        return _join_sections(sections)

    def seed_messages(self, context: PromptContext, test_code: str, error: str) -> list[str]:
        """Render the two opening messages for repairing an existing test."""
        return [
            f"Here is the existing test file at (project-relative): "
            f"{context.test_relative}\n\n{test_code}",
            f"This test failed with error:\n\n{error}\n\n"
            f"Please revise the test to fix it.\n\n{self._output_rules()}",
        ]

    def repair_message(self, error: str) -> str:
        """Render the feedback appended after a failed verification."""
        return (
            f"The previous test failed with this error:\n\n{error}\n\n"
            "Please revise the test to fix it."
        )


# ── Helpers ───────────────────────────────────────────────────────


def _join_sections(sections: list[PromptSection]) -> str:
    """Join prompt sections into a single user-message string."""
    blocks = [f"## {s.label}\n\n{s.content}" for s in sections if s.content]
    return "\n\n---\n\n".join(blocks)
