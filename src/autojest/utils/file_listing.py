"""Recursive, glob-filtered file listing.

The scanner never touches the filesystem itself; it asks a
:class:`FileLister` for root-relative paths matching include patterns and
not matching exclude patterns. :class:`GlobFileLister` is the on-disk
implementation.

Pattern syntax is ``fnmatch`` with two additions:

- ``{a,b}`` brace groups expand into one pattern per alternative.
- a leading ``**/`` also matches at the root (``**/x.js`` matches ``x.js``).

Matching is case-sensitive on every platform.
"""

from __future__ import annotations

import logging
import os
import re
from abc import ABC, abstractmethod
from fnmatch import fnmatchcase
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


class FileLister(ABC):
    """Lists files beneath a root directory."""

    @abstractmethod
    def list_files(
        self,
        root: Path,
        include: Sequence[str],
        exclude: Sequence[str] = (),
    ) -> list[str]:
        """Return root-relative, ``/``-separated paths of matching files.

        Raises:
            OSError: If *root* cannot be read.
        """


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` groups: ``*.{js,ts}`` -> ``['*.js', '*.ts']``."""
    match = _BRACE_RE.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(f"{head}{option}{tail}"))
    return expanded


def _compile(patterns: Iterable[str]) -> list[str]:
    compiled: list[str] = []
    for pattern in patterns:
        for expanded in expand_braces(pattern):
            compiled.append(expanded)
            if expanded.startswith("**/"):
                compiled.append(expanded[3:])
    return compiled


def _matches(path: str, patterns: Sequence[str]) -> bool:
    return any(fnmatchcase(path, pattern) for pattern in patterns)


class GlobFileLister(FileLister):
    """Walks the real filesystem, pruning excluded directories early."""

    def list_files(
        self,
        root: Path,
        include: Sequence[str],
        exclude: Sequence[str] = (),
    ) -> list[str]:
        if not root.is_dir():
            raise NotADirectoryError(f"Not a directory: {root}")

        includes = _compile(include)
        excludes = _compile(exclude)
        results: list[str] = []

        def _raise(exc: OSError) -> None:
            raise exc

        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
            rel_dir = Path(dirpath).relative_to(root).as_posix()
            prefix = "" if rel_dir == "." else f"{rel_dir}/"

            # ``node_modules/**`` must prune ``node_modules`` itself
            dirnames[:] = sorted(
                d for d in dirnames if not _matches(f"{prefix}{d}/", excludes)
            )

            for filename in sorted(filenames):
                rel = f"{prefix}{filename}"
                if _matches(rel, includes) and not _matches(rel, excludes):
                    results.append(rel)

        logger.debug("Listed %d files under %s", len(results), root)
        return results
