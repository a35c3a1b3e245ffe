"""Configuration-related exceptions."""


class ConfigError(Exception):
    """Base exception for config errors."""

    pass


class ConfigNotFoundError(ConfigError):
    """Raised when the base config file doesn't exist."""

    pass


class ConfigParseError(ConfigError):
    """Raised when a config file has invalid YAML."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when settings are missing or out of range."""

    pass


class ConfigReferenceError(ConfigError):
    """Raised when an ``${env:...}`` or ``${file:...}`` reference cannot be resolved."""

    pass
