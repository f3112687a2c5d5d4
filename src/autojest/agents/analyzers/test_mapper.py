"""Path conventions linking JS/TS source files to their Jest test files.

Two directions are covered:

- :func:`locate_test_file` computes where the test for a source file lives:
  the source path mirrored under the test root with ``.test`` inserted
  before the extension (``lib/a.ts`` -> ``tests/lib/a.test.ts``).
- :func:`has_matching_test` decides whether any discovered test file
  already covers a source file, using a tail match over the normalised
  paths.

Both functions are pure; separators are normalised so that ``\\`` and ``/``
behave identically.
"""

from __future__ import annotations

import posixpath
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

# ── Patterns ──────────────────────────────────────────────────────

SOURCE_EXTENSIONS = ("js", "ts", "jsx", "tsx")
"""Extensions treated as source modules."""

_SOURCE_EXT_RE = re.compile(r"\.(js|ts)x?$")
_TEST_SUFFIX_RE = re.compile(r"\.test\.(js|ts)x?$")
_SEPARATORS_RE = re.compile(r"\\+")

_SOURCE_ROOT_SEGMENT = "src"
_TEST_DIR_SEGMENTS = frozenset({"test", "__tests__"})


class InvalidPathError(ValueError):
    """Raised when a path does not name a recognised source file."""


# ── Helpers ───────────────────────────────────────────────────────


def normalize_separators(path: str) -> str:
    """Replace runs of backslashes with a single ``/``."""
    return _SEPARATORS_RE.sub("/", path)


def _source_key(source_path: str) -> str:
    parts = _SOURCE_EXT_RE.sub("", normalize_separators(source_path)).split("/")
    if parts and parts[0] == _SOURCE_ROOT_SEGMENT:
        parts = parts[1:]
    return "/".join(parts)


def _test_key(test_path: str) -> str | None:
    normalized = normalize_separators(test_path)
    if _TEST_SUFFIX_RE.search(normalized) is None:
        # .spec files and anything else never count as a match
        return None
    parts = _TEST_SUFFIX_RE.sub("", normalized).split("/")
    return "/".join(p for p in parts if p not in _TEST_DIR_SEGMENTS)


# ── Public API ────────────────────────────────────────────────────


def locate_test_file(source_relative_path: str, test_root: str) -> str:
    """Return the test file location for a source file.

    Args:
        source_relative_path: Source path relative to the source root.
        test_root: Directory the test tree is mirrored into.

    Returns:
        ``test_root/<source path>`` with ``.<ext>`` rewritten to
        ``.test.<ext>``, always ``/``-separated.

    Raises:
        InvalidPathError: If the path has no recognised source extension.
    """
    source = normalize_separators(source_relative_path)
    match = _SOURCE_EXT_RE.search(source)
    if match is None:
        raise InvalidPathError(
            f"Not a source file (expected .js/.ts/.jsx/.tsx): {source_relative_path!r}"
        )
    stem, ext = source[: match.start()], match.group(0)
    joined = posixpath.join(normalize_separators(test_root), f"{stem}.test{ext}")
    return posixpath.normpath(joined)


def has_matching_test(source_path: str, candidate_test_paths: Iterable[str]) -> bool:
    """Return True if any candidate test file covers *source_path*.

    The source loses a leading ``src`` segment and its extension; each
    candidate loses every ``test``/``__tests__`` segment and its
    ``.test.<ext>`` suffix. A candidate matches when the source string
    ends with the candidate string, so ``__tests__/a/b.test.js`` covers
    ``src/x/a/b.js``. The comparison is on joined strings, not whole
    segments.
    """
    source_key = _source_key(source_path)
    for candidate in candidate_test_paths:
        test_key = _test_key(candidate)
        if test_key and source_key.endswith(test_key):
            return True
    return False
