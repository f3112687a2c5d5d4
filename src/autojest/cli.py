"""autojest CLI — top-level command group."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console

from autojest import __version__
from autojest.adapters.coverage.istanbul import (
    DEFAULT_THRESHOLD,
    CoverageError,
    FileCoverageReportReader,
    load_coverage,
    select_undercovered,
)
from autojest.adapters.unit.jest_adapter import JestAdapter
from autojest.agents.analyzers.scanner import ScanError, SourceScanner
from autojest.agents.builders.unit import UnitBuilder
from autojest.agents.reporters.terminal import reporter
from autojest.cli_helpers import (
    ClickConfirmer,
    StaticConfirmer,
    prompt_relative_dir,
    resolve_config,
    validate_relative_dir,
)
from autojest.config import ConfigError, config_path, load_config, validate_config
from autojest.llm.engine import LLMError
from autojest.llm.factory import create_engine
from autojest.orchestrator import Orchestrator, RunContext
from autojest.utils.subprocess_runner import SubprocessError

logger = logging.getLogger(__name__)
console = Console()

LOG_LEVEL_ENV_VAR = "AUTOJEST_LOG_LEVEL"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Masking thresholds
_MIN_MASKED_VALUE_LENGTH = 8
_SENSITIVE_KEYS = {"api_key", "apiKey", "token", "password", "secret"}


def _configure_logging(*, verbose: bool) -> None:
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, "").strip().upper()
    if verbose:
        level = logging.DEBUG
    elif level_name:
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            level = logging.WARNING
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logging.getLogger("autojest").setLevel(level)


def _mask_sensitive_values(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Recursively mask sensitive values in configuration dict."""
    result = copy.deepcopy(config_dict)

    def _mask_dict(data: dict[str, Any]) -> None:
        for key, value in data.items():
            if key in _SENSITIVE_KEYS and isinstance(value, str) and value:
                # Show first and last 4 chars, mask the rest
                if len(value) > _MIN_MASKED_VALUE_LENGTH:
                    data[key] = f"{value[:4]}...{value[-4:]}"
                else:
                    data[key] = "***"
            elif isinstance(value, dict):
                _mask_dict(value)

    _mask_dict(result)
    return result


_path_option = click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory (where package.json lives).",
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="autojest")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """autojest — write, run and repair Jest unit tests with an LLM."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose=verbose)


# ── run ───────────────────────────────────────────────────────────


@cli.command("run")
@_path_option
@click.option(
    "--source",
    "source_dir",
    default=None,
    callback=validate_relative_dir,
    help="Source directory relative to the project root (prompted when omitted).",
)
@click.option(
    "--tests",
    "test_dir",
    default=None,
    callback=validate_relative_dir,
    help="Test output directory relative to the project root (prompted when omitted).",
)
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Answer yes to every prompt.")
@click.option("--skip-coverage", is_flag=True, help="Skip the coverage regeneration step.")
def run_command(
    path: str,
    source_dir: str | None,
    test_dir: str | None,
    *,
    assume_yes: bool,
    skip_coverage: bool,
) -> None:
    """Generate missing tests, repair failing ones and top up coverage.

    Example:
      autojest run --source src --tests tests
    """
    project_root = Path(path)

    try:
        config = resolve_config(assume_yes=assume_yes)
    except ConfigError as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    errors = validate_config(config)
    if errors:
        for error in errors:
            reporter.print_error(error)
        raise click.Abort

    if source_dir is None:
        source_dir = prompt_relative_dir("Source directory", default="src")
    if test_dir is None:
        test_dir = prompt_relative_dir("Test directory", default="tests")

    if not (project_root / source_dir).is_dir():
        reporter.print_error(f"Source directory not found: {source_dir}")
        raise click.Abort

    context = RunContext(
        project_root=project_root,
        source_dir=source_dir,
        test_dir=test_dir,
        coverage_threshold=config.coverage_threshold,
        run_coverage=not skip_coverage,
    )

    try:
        engine = create_engine(config)
        adapter = JestAdapter(project_root, timeout=config.test_timeout)
        builder = UnitBuilder(
            engine,
            adapter,
            project_root,
            max_attempts=config.max_retries,
            max_exchanges=config.max_exchanges,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )
        orchestrator = Orchestrator(
            context,
            builder,
            adapter,
            SourceScanner(),
            StaticConfirmer(answer=True) if assume_yes else ClickConfirmer(),
        )
        summary = asyncio.run(orchestrator.run())
    except (LLMError, ScanError, SubprocessError) as e:
        logger.debug("Run aborted", exc_info=True)
        reporter.print_error(str(e))
        raise SystemExit(1) from e

    if not summary.succeeded:
        raise SystemExit(1)


# ── scan ──────────────────────────────────────────────────────────


@cli.command("scan")
@_path_option
@click.option("--source", "source_dir", default="src", callback=validate_relative_dir)
@click.option("--tests", "test_dir", default="tests", callback=validate_relative_dir)
@click.option("--json-output", "as_json", is_flag=True, help="Print the result as JSON.")
def scan_command(path: str, source_dir: str, test_dir: str, *, as_json: bool) -> None:
    """List source files that have no matching test file."""
    root = Path(path)
    scanner = SourceScanner()
    try:
        untested = scanner.untested_files(root / source_dir, [root / test_dir])
    except ScanError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    if as_json:
        click.echo(json.dumps({"untested": untested}, indent=2))
        return
    reporter.print_file_list("Untested files", untested)


# ── coverage ──────────────────────────────────────────────────────


@cli.command("coverage")
@_path_option
@click.option("--source", "source_dir", default="src", callback=validate_relative_dir)
@click.option(
    "--threshold",
    type=click.FloatRange(0, 100),
    default=None,
    help="Statement coverage percentage (defaults to the configured threshold).",
)
def coverage_command(path: str, source_dir: str, threshold: float | None) -> None:
    """Report files below the coverage threshold from an existing Jest report."""
    root = Path(path)
    try:
        if threshold is None:
            saved = load_config()
            threshold = saved.coverage_threshold if saved else DEFAULT_THRESHOLD
        record = load_coverage(root, FileCoverageReportReader())
        sources = SourceScanner().all_source_files(root / source_dir)
    except (ConfigError, CoverageError, ScanError) as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    under = select_undercovered(
        record, sources, threshold, base=(root / source_dir).resolve().as_posix()
    )
    if not under:
        reporter.print_success(f"Every file meets {threshold:.0f}% statement coverage")
        return
    reporter.print_undercovered(under, threshold)


# ── config ────────────────────────────────────────────────────────


@cli.group("config")
def config_group() -> None:
    """Inspect the saved autojest configuration."""


@config_group.command("show")
@click.option("--json-output", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--no-mask", is_flag=True, help="Show sensitive values unmasked.")
def config_show(*, as_json: bool, no_mask: bool) -> None:
    """Display the resolved configuration with masked sensitive values.

    Example:
      autojest config show
      autojest config show --no-mask
    """
    try:
        config = load_config()
    except ConfigError as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    if config is None:
        reporter.print_warning(f"No configuration saved at {config_path()}")
        return

    config_dict = config.to_dict()
    if not no_mask:
        config_dict = _mask_sensitive_values(config_dict)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
        return
    console.print()
    console.print(f"[bold cyan]Configuration[/bold cyan] [dim]({config_path()})[/dim]")
    console.print()
    click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
def config_validate() -> None:
    """Validate the saved configuration."""
    try:
        config = load_config()
    except ConfigError as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    if config is None:
        reporter.print_error(f"No configuration saved at {config_path()}")
        raise click.Abort

    errors = validate_config(config)
    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    console.print()
    raise click.Abort
