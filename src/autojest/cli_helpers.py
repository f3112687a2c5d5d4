"""Interactive helpers for the CLI: confirmations, directory and config prompts."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import PurePosixPath, PureWindowsPath
from typing import Any

import click

from autojest.agents.reporters.terminal import reporter
from autojest.config import AutojestConfig, load_config, parse_config, save_config

logger = logging.getLogger(__name__)


# ── Confirmation ──────────────────────────────────────────────────


class Confirmer(ABC):
    """Asks the user a yes/no question."""

    @abstractmethod
    async def confirm(self, prompt: str, *, default: bool = True) -> bool:
        """Return the user's answer to *prompt*."""


class ClickConfirmer(Confirmer):
    """Prompts on the terminal through ``click.confirm``."""

    async def confirm(self, prompt: str, *, default: bool = True) -> bool:
        return click.confirm(prompt, default=default)


class StaticConfirmer(Confirmer):
    """Answers every question the same way (``--yes`` and non-interactive runs)."""

    def __init__(self, answer: bool) -> None:  # noqa: FBT001
        self._answer = answer

    async def confirm(self, prompt: str, *, default: bool = True) -> bool:
        logger.debug("Auto-answering %r with %s", prompt, self._answer)
        return self._answer


# ── Directories ───────────────────────────────────────────────────


def is_absolute_path(value: str) -> bool:
    """Return True for POSIX or Windows absolute paths, on any platform."""
    return PurePosixPath(value).is_absolute() or PureWindowsPath(value).is_absolute()


def prompt_relative_dir(label: str, *, default: str | None = None) -> str:
    """Prompt for a directory path until a relative one is entered."""
    while True:
        value = click.prompt(label, default=default, type=str).strip()
        if not value:
            continue
        if is_absolute_path(value):
            reporter.print_error(
                f"Absolute paths are not allowed. Please enter a relative path for {label.lower()}."
            )
            continue
        return value


def validate_relative_dir(
    _ctx: click.Context, _param: click.Parameter, value: str | None
) -> str | None:
    """Click callback rejecting absolute directory options."""
    if value is not None and is_absolute_path(value):
        raise click.BadParameter("must be a path relative to the project root")
    return value


# ── Configuration ─────────────────────────────────────────────────


def _parse_connection(value: str) -> dict[str, Any]:
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"connection must be JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise click.BadParameter("connection must be a JSON object")
    return parsed


def prompt_new_config() -> AutojestConfig:
    """Ask for connection, model and retry budget, then save them."""
    while True:
        raw_connection = click.prompt(
            "LLM connection (JSON, e.g. {\"api_key\": \"${OPENAI_API_KEY}\"})",
            type=str,
        )
        try:
            connection = _parse_connection(raw_connection)
        except click.BadParameter as exc:
            reporter.print_error(exc.format_message())
            continue
        break

    model = click.prompt("Model", type=str).strip()
    max_retries = click.prompt("Max retries per test", type=click.IntRange(min=0), default=3)

    config = AutojestConfig(connection=connection, model=model, max_retries=max_retries)
    target = save_config(config)
    reporter.print_success(f"Saved configuration to {target}")
    return parse_config(config.to_dict())


def resolve_config(*, assume_yes: bool = False) -> AutojestConfig:
    """Return the saved configuration, or prompt for a new one.

    With a saved config the user is asked whether to reuse it; *assume_yes*
    reuses it without asking.
    """
    saved = load_config()
    if saved is not None and (assume_yes or click.confirm("Use saved config?", default=True)):
        return saved
    if assume_yes:
        raise click.UsageError("No saved configuration; run once interactively to create one.")
    return prompt_new_config()
