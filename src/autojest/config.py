"""User configuration: LLM connection, model and loop budgets.

The configuration lives in a single YAML file in the platform config
directory (``%APPDATA%/autojest/config.yml`` on Windows,
``~/.config/autojest/config.yml`` elsewhere). ``AUTOJEST_CONFIG`` points at
an alternative file. String values may reference environment variables as
``${VAR_NAME}``; they are expanded at load time and never written back.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "AUTOJEST_CONFIG"
CONFIG_FILENAME = "config.yml"
APP_DIRNAME = "autojest"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)}")

_MAX_TEMPERATURE = 2.0
_MAX_PERCENT = 100.0


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or parsed."""


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        else:
            result[key] = value
    return result


@dataclass
class AutojestConfig:
    """Persisted settings for a test generation run."""

    connection: dict[str, Any] = field(default_factory=dict)
    """Provider connection options (``api_key``, ``base_url``, ``organization``, ...)."""

    model: str = ""
    """LiteLLM model identifier (e.g. ``gpt-4o``)."""

    max_retries: int = 3
    """Repair cycles allowed per file after the first failing draft."""

    temperature: float = 1.0
    """Sampling temperature for test drafts."""

    max_tokens: int = 4096
    """Completion length cap per draft."""

    request_retries: int = 2
    """Transport retries per LLM request on rate limits and connection errors."""

    coverage_threshold: float = 80.0
    """Statement coverage percentage below which a file is regenerated."""

    max_exchanges: int = 0
    """Draft/feedback exchanges kept in each request; ``0`` keeps them all."""

    test_timeout: float = 300.0
    """Seconds allowed for a single Jest invocation."""

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as plain YAML-serialisable data."""
        return asdict(self)


# ── Location ──────────────────────────────────────────────────────


def config_dir() -> Path:
    """Return the platform config directory for autojest."""
    if sys.platform == "win32":
        base = os.environ.get("APPDATA") or str(Path.home())
        return Path(base) / APP_DIRNAME
    return Path.home() / ".config" / APP_DIRNAME


def config_path() -> Path:
    """Return the config file path, honouring ``AUTOJEST_CONFIG``."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return config_dir() / CONFIG_FILENAME


# ── Parsing ───────────────────────────────────────────────────────


def _as_int(raw: dict[str, Any], key: str, default: int) -> int:
    value = raw.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer %s=%r in config", key, value)
        return default


def _as_float(raw: dict[str, Any], key: str, default: float) -> float:
    value = raw.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric %s=%r in config", key, value)
        return default


def parse_config(raw: dict[str, Any]) -> AutojestConfig:
    """Build an :class:`AutojestConfig` from already-loaded mapping data.

    camelCase keys (``maxRetries``) are accepted alongside snake_case.
    """
    data = _resolve_dict(raw)
    if "maxRetries" in data and "max_retries" not in data:
        data["max_retries"] = data["maxRetries"]

    connection = data.get("connection", {})
    if not isinstance(connection, dict):
        connection = {}

    defaults = AutojestConfig()
    return AutojestConfig(
        connection=connection,
        model=str(data.get("model", "") or ""),
        max_retries=_as_int(data, "max_retries", defaults.max_retries),
        temperature=_as_float(data, "temperature", defaults.temperature),
        max_tokens=_as_int(data, "max_tokens", defaults.max_tokens),
        request_retries=_as_int(data, "request_retries", defaults.request_retries),
        coverage_threshold=_as_float(data, "coverage_threshold", defaults.coverage_threshold),
        max_exchanges=_as_int(data, "max_exchanges", defaults.max_exchanges),
        test_timeout=_as_float(data, "test_timeout", defaults.test_timeout),
    )


def load_config(path: Path | None = None) -> AutojestConfig | None:
    """Load the saved configuration.

    Returns:
        The parsed configuration, or ``None`` when no file has been saved.

    Raises:
        ConfigError: If the file exists but is not a YAML mapping.
    """
    target = path or config_path()
    if not target.is_file():
        return None

    try:
        parsed = yaml.safe_load(target.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {target}: {exc}") from exc

    if parsed is None:
        parsed = {}
    if not isinstance(parsed, dict):
        raise ConfigError(f"{target} must contain a mapping, got {type(parsed).__name__}")

    logger.debug("Loaded config from %s", target)
    return parse_config(parsed)


def save_config(config: AutojestConfig, path: Path | None = None) -> Path:
    """Write *config* as YAML, creating the directory if needed."""
    target = path or config_path()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    logger.debug("Saved config to %s", target)
    return target


# ── Validation ────────────────────────────────────────────────────


def validate_config(config: AutojestConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    if not config.model.strip():
        errors.append("model is required")
    if config.max_retries < 0:
        errors.append(f"max_retries must be >= 0, got {config.max_retries}")
    if not 0.0 <= config.temperature <= _MAX_TEMPERATURE:
        errors.append(
            f"temperature must be between 0.0 and {_MAX_TEMPERATURE}, got {config.temperature}"
        )
    if config.max_tokens <= 0:
        errors.append(f"max_tokens must be positive, got {config.max_tokens}")
    if config.request_retries < 0:
        errors.append(f"request_retries must be >= 0, got {config.request_retries}")
    if not 0.0 <= config.coverage_threshold <= _MAX_PERCENT:
        errors.append(
            f"coverage_threshold must be between 0 and 100, got {config.coverage_threshold}"
        )
    if config.max_exchanges < 0:
        errors.append(f"max_exchanges must be >= 0, got {config.max_exchanges}")
    if config.test_timeout <= 0:
        errors.append(f"test_timeout must be positive, got {config.test_timeout}")

    return errors
