"""Reporters for outputting test generation results."""

from __future__ import annotations

from autojest.agents.reporters.terminal import CLIReporter, reporter

__all__ = [
    "CLIReporter",
    "reporter",
]
