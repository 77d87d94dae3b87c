from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from .config_schema import AppConfig
from .errors import ConfigError


def load_config(path: str | Path | None = None) -> AppConfig:
    """
    Load a YAML config file and validate it into a typed AppConfig.

    With no path the built-in defaults are returned.
    Raises ConfigError with a readable validation message on failure.
    """
    if path is None:
        return AppConfig()

    p = Path(path)

    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")

    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {p}") from e

    try:
        data = yaml.safe_load(raw_text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML in {p}: {e}") from e

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML in {p} must be a mapping/object")

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(format_validation_errors(e, f"configuration in {p}")) from e


def apply_origin_override(config: AppConfig, origin: str | None) -> AppConfig:
    try:
        return config.with_origin(origin)
    except ValidationError as e:
        raise ConfigError(format_validation_errors(e, "--origin")) from e


def format_validation_errors(err: ValidationError, what: str) -> str:
    lines: list[str] = [f"Invalid {what}:"]
    for item in err.errors():
        loc = ".".join(str(part) for part in item.get("loc", [])) or "<root>"
        msg = item.get("msg", "invalid value")
        lines.append(f"- {loc}: {msg}")
    return "\n".join(lines)
