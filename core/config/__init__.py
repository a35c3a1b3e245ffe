"""Controller configuration."""

from core.config.exceptions import (
    ConfigError,
    ConfigNotFoundError,
    ConfigParseError,
    ConfigReferenceError,
    ConfigValidationError,
)
from core.config.loader import ConfigLoader
from core.config.settings import ControllerSettings, parse_duration

__all__ = [
    "ConfigLoader",
    "ControllerSettings",
    "parse_duration",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ConfigReferenceError",
    "ConfigValidationError",
]
