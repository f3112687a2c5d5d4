"""SourceScanner — finds JS/TS source files and the ones without tests."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from autojest.agents.analyzers.test_mapper import SOURCE_EXTENSIONS, has_matching_test
from autojest.utils.file_listing import FileLister, GlobFileLister

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)

_EXT_GROUP = "{" + ",".join(SOURCE_EXTENSIONS) + "}"

SOURCE_PATTERNS = (f"**/*.{_EXT_GROUP}",)
"""Glob patterns selecting candidate source modules."""

SOURCE_EXCLUDES = (
    "**/*.test.*",
    "**/*.spec.*",
    "**/__tests__/**",
    "**/node_modules/**",
    "coverage/**",
    "dist/**",
    "build/**",
)
"""Test files, dependencies and build output never count as sources."""

TEST_PATTERNS = (f"**/*.test.{_EXT_GROUP}", f"**/*.spec.{_EXT_GROUP}")
"""Glob patterns selecting existing test files."""

TEST_EXCLUDES = ("**/node_modules/**",)


class ScanError(Exception):
    """Raised when the source tree cannot be listed."""


class SourceScanner:
    """Lists source files under a root and partitions them by test presence.

    Paths are returned relative to the scanned root, ``/``-separated, in the
    order the lister produced them.
    """

    def __init__(self, lister: FileLister | None = None) -> None:
        self._lister = lister or GlobFileLister()

    def all_source_files(self, root: Path, test_roots: Sequence[Path] = ()) -> list[str]:
        """Return every source file under *root*, test files excluded.

        Test roots nested inside *root* are skipped entirely so that test
        helpers and fixtures are not mistaken for sources.
        """
        excludes = list(SOURCE_EXCLUDES)
        for test_root in test_roots:
            nested = _relative_to(test_root, root)
            if nested and nested != ".":
                excludes.append(f"{nested}/**")
        return self._list(root, SOURCE_PATTERNS, excludes)

    def test_files(self, root: Path) -> list[str]:
        """Return every ``.test``/``.spec`` file under *root*."""
        return self._list(root, TEST_PATTERNS, TEST_EXCLUDES)

    def untested_files(self, root: Path, test_roots: Sequence[Path] = ()) -> list[str]:
        """Return the source files no discovered test file covers.

        Args:
            root: Source root; tests inside it are discovered too.
            test_roots: Additional directories holding tests. Candidates
                found there are taken relative to that directory, so a
                mirrored tree (``tests/lib/a.test.js`` for ``lib/a.js``)
                matches.
        """
        sources = self.all_source_files(root, test_roots)
        candidates = self.test_files(root)
        for test_root in test_roots:
            if test_root.is_dir() and _relative_to(test_root, root) != ".":
                candidates.extend(self.test_files(test_root))

        untested = [src for src in sources if not has_matching_test(src, candidates)]
        logger.info(
            "Scanned %s: %d sources, %d tests, %d untested",
            root,
            len(sources),
            len(candidates),
            len(untested),
        )
        return untested

    def _list(self, root: Path, include: Sequence[str], exclude: Sequence[str]) -> list[str]:
        try:
            return self._lister.list_files(root, include, exclude)
        except OSError as exc:
            raise ScanError(f"Failed to list files under {root}: {exc}") from exc


def _relative_to(path: Path, root: Path) -> str | None:
    """Return *path* relative to *root* as a posix string, or None if outside.

    ``root`` itself yields ``"."``.
    """
    try:
        relative = path.resolve().relative_to(root.resolve())
    except ValueError:
        return None
    return relative.as_posix()
