"""Async subprocess execution with timeout and output capture.

Every external command autojest launches (the Jest runner for a single test
file, the full-suite coverage run) goes through :func:`run_subprocess` so
that timeouts, decoding and "command not found" are handled in one place.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

_TIMEOUT_MESSAGE = "Process timed out and was killed"


@dataclass
class SubprocessResult:
    """Result of subprocess execution."""

    returncode: int
    """Exit code of the process (``-1`` when killed or never started)."""

    stdout: str
    """Standard output captured from the process."""

    stderr: str
    """Standard error captured from the process."""

    success: bool
    """True if returncode is 0 and the process did not time out."""

    timed_out: bool = False
    """True if the process was terminated due to timeout."""

    duration_ms: float = 0.0
    """Wall-clock duration of execution in milliseconds."""

    @property
    def output(self) -> str:
        """Combined stdout and stderr, in that order, skipping empty streams."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


async def run_subprocess(
    command: Sequence[str],
    *,
    cwd: Path | None = None,
    timeout: float = 120.0,
    env: dict[str, str] | None = None,
) -> SubprocessResult:
    """Execute *command* and capture its output.

    Args:
        command: Command and arguments (e.g. ``['npx', 'jest', 'a.test.js']``).
        cwd: Working directory. Defaults to the current directory.
        timeout: Seconds to wait before killing the process.
        env: Extra environment variables layered over ``os.environ``.

    Returns:
        SubprocessResult with exit code, output and timing.

    Raises:
        SubprocessError: If the command cannot be launched. A non-zero
            exit is reported through the result, never raised.
        ValueError: If command is empty, timeout is not positive or the
            working directory does not exist.
    """
    if not command:
        raise ValueError("Command cannot be empty")

    if timeout <= 0:
        raise ValueError(f"Timeout must be positive, got {timeout}")

    work_dir = cwd.resolve() if cwd else Path.cwd()
    if not work_dir.is_dir():
        raise ValueError(f"Working directory does not exist: {work_dir}")

    full_env = {**os.environ, **env} if env else None
    printable = " ".join(str(c) for c in command)

    logger.debug("Running subprocess: %s (cwd=%s, timeout=%s)", printable, work_dir, timeout)

    start_time = time.perf_counter()
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=work_dir,
            env=full_env,
        )
    except FileNotFoundError as exc:
        logger.error("Command not found: %s", command[0])
        raise SubprocessError(
            f"Command not found: {command[0]}",
            result=SubprocessResult(returncode=-1, stdout="", stderr=str(exc), success=False),
        ) from exc
    except OSError as exc:
        raise SubprocessError(
            f"Could not start {command[0]}: {exc}",
            result=SubprocessResult(returncode=-1, stdout="", stderr=str(exc), success=False),
        ) from exc

    timed_out = False
    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        logger.warning("Subprocess timed out after %s seconds: %s", timeout, printable)
        timed_out = True
        try:
            process.kill()
            await process.wait()
        except ProcessLookupError:
            pass  # already exited
        stdout_bytes = b""
        stderr_bytes = _TIMEOUT_MESSAGE.encode()

    duration_ms = (time.perf_counter() - start_time) * 1000
    returncode = -1 if timed_out else (process.returncode or 0)

    result = SubprocessResult(
        returncode=returncode,
        stdout=stdout_bytes.decode("utf-8", errors="replace"),
        stderr=stderr_bytes.decode("utf-8", errors="replace"),
        success=(returncode == 0 and not timed_out),
        timed_out=timed_out,
        duration_ms=duration_ms,
    )

    logger.debug(
        "Subprocess completed: returncode=%d, duration=%.2fms, success=%s",
        returncode,
        duration_ms,
        result.success,
    )

    return result


class SubprocessError(Exception):
    """Raised when a command cannot be launched at all."""

    def __init__(self, message: str, result: SubprocessResult) -> None:
        super().__init__(message)
        self.result = result
