"""
Configuration loader for YAML files.

Loads and validates configuration from YAML files into Pydantic models,
and reads target lists from plain text or YAML files.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import AppConfig

DEFAULT_CONFIG_PATH = Path("configs/app.yaml")

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(Exception):
    """Configuration loading or validation error."""

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        self.path = path
        self.details = details
        super().__init__(message)


def _load_yaml_file(path: Path) -> Any:
    """Load a YAML file and return its parsed contents.

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}", path=path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}",
            path=path,
            details=str(e),
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Cannot read {path}",
            path=path,
            details=str(e),
        ) from e


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand environment variables in string values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    def replacer(match: re.Match[str]) -> str:
        return os.environ.get(match.group(1), match.group(2) or "")

    if isinstance(data, str):
        return _ENV_PATTERN.sub(replacer, data)
    if isinstance(data, dict):
        return {k: _expand_env_vars(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    return data


def load_app_config(
    path: Path | str | None = None,
    expand_env: bool = True,
) -> AppConfig:
    """Load application configuration from YAML file.

    Args:
        path: Path to app.yaml (default: configs/app.yaml)
        expand_env: Whether to expand environment variables

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH
        # The default location is optional
        if not path.exists():
            return AppConfig()
    path = Path(path)

    data = _load_yaml_file(path)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top level of {path} must be a mapping", path=path)

    if expand_env:
        data = _expand_env_vars(data)

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid app configuration in {path}",
            path=path,
            details=str(e),
        ) from e


def load_targets(path: Path | str) -> list[str]:
    """Load an ordered target list.

    ``.yaml``/``.yml`` files may hold a list or a mapping with a
    ``targets`` key. Any other file is read as one target per line;
    blank lines and ``#`` comments are skipped. Duplicates are dropped,
    keeping the first position.

    Raises:
        ConfigError: If the file is missing or malformed
    """
    path = Path(path)

    if path.suffix.lower() in (".yaml", ".yml"):
        data = _load_yaml_file(path)
        if isinstance(data, dict):
            data = data.get("targets")
        if not isinstance(data, list):
            raise ConfigError(f"No target list found in {path}", path=path)
        raw = [str(item) for item in data if item is not None]
    else:
        if not path.exists():
            raise ConfigError(f"Targets file not found: {path}", path=path)
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise ConfigError(f"Cannot read {path}", path=path, details=str(e)) from e
        raw = [line.split("#", 1)[0] for line in lines]

    return normalize_targets(raw)


def normalize_targets(names: list[str]) -> list[str]:
    """Strip names, drop blanks and repeated names, keep order."""
    seen: set[str] = set()
    targets: list[str] = []
    for name in names:
        name = name.strip()
        if not name or name in seen:
            continue
        seen.add(name)
        targets.append(name)
    return targets


def validate_app_config_file(path: Path | str) -> list[str]:
    """Validate an app configuration file without loading.

    Returns:
        List of validation error messages (empty if valid)
    """
    path = Path(path)
    errors: list[str] = []

    try:
        data = _load_yaml_file(path)
    except ConfigError as e:
        errors.append(str(e))
        return errors

    try:
        AppConfig.model_validate(_expand_env_vars(data or {}))
    except ValidationError as e:
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

    return errors
