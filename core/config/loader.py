"""Configuration loader - loads and merges controller config files."""

from pathlib import Path
from typing import Optional

import yaml

from core.config.exceptions import ConfigNotFoundError, ConfigParseError
from core.config.merger import deep_merge
from core.config.references import ReferenceResolver
from core.config.settings import ControllerSettings
from core.utils.logging import get_logger

logger = get_logger(__name__)

# Default paths relative to project root
CONFIG_DIR = Path(__file__).parent.parent.parent / "config"
BASE_CONFIG = "controller.yaml"


class ConfigLoader:
    """
    Loads controller configuration.

    Load order (later wins):
        1. controller.yaml (defaults)
        2. environments/{env}.yaml (optional environment overrides)
        3. Resolve ${env:...} / ${file:...} references

    Usage:
        loader = ConfigLoader()
        settings = loader.load_settings(environment="prod")
    """

    def __init__(self, config_dir: Optional[Path] = None, environ: dict = None):
        self.config_dir = Path(config_dir) if config_dir else CONFIG_DIR
        self.resolver = ReferenceResolver(environ)

    def _load_yaml(self, path: Path) -> dict:
        """Load and parse a YAML file."""
        if not path.exists():
            raise ConfigNotFoundError(f"Config file not found: {path}")

        try:
            with open(path) as f:
                content = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigParseError(f"Invalid YAML in {path}: {e}")

        if not isinstance(content, dict):
            raise ConfigParseError(f"Top level of {path} must be a mapping")
        logger.debug(f"Loaded config: {path}")
        return content

    def load(self, environment: Optional[str] = None) -> dict:
        """
        Load the merged, reference-resolved config dict.

        Args:
            environment: Optional environment name (e.g. "dev", "prod")
        """
        base_path = self.config_dir / BASE_CONFIG
        config = self._load_yaml(base_path)
        logger.info(f"Loaded base config: {base_path}")

        if environment:
            env_path = self.config_dir / "environments" / f"{environment}.yaml"
            if env_path.exists():
                config = deep_merge(config, self._load_yaml(env_path))
                logger.info(f"Merged environment config: {env_path}")
            else:
                logger.warning(f"No overrides for environment '{environment}' at {env_path}")

        return self.resolver.resolve(config)

    def load_settings(self, environment: Optional[str] = None) -> ControllerSettings:
        """Load and validate settings."""
        return ControllerSettings.from_dict(self.load(environment))
