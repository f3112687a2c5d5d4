"""Package manager detection for JavaScript projects.

Jest is launched through whatever the project uses to install it, so the
runner prefix follows the lockfile in the project root.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class PackageManager(Enum):
    """Supported JavaScript package managers."""

    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    BUN = "bun"


# Checked in order; the first lockfile present wins.
_LOCKFILES = (
    ("bun.lockb", PackageManager.BUN),
    ("bun.lock", PackageManager.BUN),
    ("pnpm-lock.yaml", PackageManager.PNPM),
    ("yarn.lock", PackageManager.YARN),
    ("package-lock.json", PackageManager.NPM),
)

_RUNNERS: dict[PackageManager, tuple[str, ...]] = {
    PackageManager.NPM: ("npx",),
    PackageManager.YARN: ("yarn",),
    PackageManager.PNPM: ("pnpm", "exec"),
    PackageManager.BUN: ("bunx",),
}


def detect_package_manager(project_root: Path) -> PackageManager:
    """Return the package manager owning *project_root* (npm by default)."""
    for lockfile, manager in _LOCKFILES:
        if (project_root / lockfile).exists():
            logger.debug("Detected %s via %s", manager.value, lockfile)
            return manager
    return PackageManager.NPM


def runner_command(manager: PackageManager) -> list[str]:
    """Return the prefix that executes a locally installed binary."""
    return list(_RUNNERS[manager])
