"""Configuration loading and validation."""

from .models import (
    AppConfig,
    BrowserConfig,
    LoggingConfig,
    MsRange,
    OutputConfig,
    PacingConfig,
    ServiceConfig,
)
from .loader import (
    ConfigError,
    load_app_config,
    load_targets,
    normalize_targets,
    validate_app_config_file,
)

__all__ = [
    # Config models
    "AppConfig",
    "BrowserConfig",
    "LoggingConfig",
    "MsRange",
    "OutputConfig",
    "PacingConfig",
    "ServiceConfig",
    # Loaders
    "ConfigError",
    "load_app_config",
    "load_targets",
    "normalize_targets",
    "validate_app_config_file",
]
