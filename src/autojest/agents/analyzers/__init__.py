"""Analyzers that decide which files need tests."""

from autojest.agents.analyzers.scanner import ScanError, SourceScanner
from autojest.agents.analyzers.test_mapper import (
    InvalidPathError,
    has_matching_test,
    locate_test_file,
)

__all__ = [
    "InvalidPathError",
    "ScanError",
    "SourceScanner",
    "has_matching_test",
    "locate_test_file",
]
