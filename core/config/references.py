"""Resolves ``${env:NAME}`` and ``${file:/path}`` references in config values."""

import os
import re
from pathlib import Path
from typing import Any

from core.config.exceptions import ConfigReferenceError
from core.utils.logging import get_logger

logger = get_logger(__name__)

REFERENCE_PATTERN = re.compile(r"\$\{(env|file):([^}:]+)(?::-([^}]*))?\}")


class ReferenceResolver:
    """
    Substitutes credential references so tokens never live in YAML.

    Supported forms:
        ${env:VAULT_TOKEN}            environment variable
        ${env:VAULT_URL:-http://...}  environment variable with default
        ${file:/var/run/vault/token}  file contents, trailing newline stripped

    Usage:
        resolver = ReferenceResolver()
        config = resolver.resolve({"token": "${env:VAULT_TOKEN}"})
    """

    def __init__(self, environ: dict = None):
        self.environ = os.environ if environ is None else environ

    def _lookup(self, source: str, key: str, default: str = None) -> str:
        if source == "env":
            value = self.environ.get(key)
            if value is None:
                if default is not None:
                    return default
                raise ConfigReferenceError(
                    f"Environment variable '{key}' referenced in config is not set"
                )
            return value

        path = Path(key)
        if not path.is_file():
            if default is not None:
                return default
            raise ConfigReferenceError(f"Referenced file not found: {path}")
        logger.debug(f"Read config reference from {path}")
        return path.read_text().rstrip("\n")

    def resolve_value(self, value: str) -> str:
        """Resolve every reference inside a string."""

        def replace_match(match):
            return self._lookup(match.group(1), match.group(2), match.group(3))

        return REFERENCE_PATTERN.sub(replace_match, value)

    def resolve(self, config: Any) -> Any:
        """Recursively resolve references in a config structure."""
        if isinstance(config, dict):
            return {k: self.resolve(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [self.resolve(item) for item in config]
        elif isinstance(config, str):
            return self.resolve_value(config)
        else:
            return config
