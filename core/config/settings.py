"""Typed controller settings built from the merged config dict."""

import re
from dataclasses import asdict, dataclass, field
from typing import Optional, Union

from core.config.exceptions import ConfigValidationError

DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_duration(value: Union[int, float, str], name: str = "duration") -> float:
    """
    Convert a duration to seconds.

    Numbers are seconds; strings may carry an ``ms``, ``s``, ``m`` or ``h`` suffix.

    Example:
        parse_duration("5m") == 300.0
        parse_duration(30) == 30.0
    """
    if isinstance(value, bool):
        raise ConfigValidationError(f"Invalid {name}: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        match = DURATION_PATTERN.match(str(value))
        if not match:
            raise ConfigValidationError(f"Invalid {name}: {value!r}")
        seconds = float(match.group(1)) * DURATION_UNITS[match.group(2) or "s"]

    if seconds < 0:
        raise ConfigValidationError(f"{name} must not be negative: {value!r}")
    return seconds


@dataclass
class CustomResourceSettings:
    group: str = "secretsync.io"
    version: str = "v1"
    plural: str = "vaultsecrets"


@dataclass
class ControllerSettings:
    """
    Effective controller settings.

    Usage:
        settings = ControllerSettings.from_dict(ConfigLoader().load())
        settings.refresh_interval  # seconds
    """

    vault: dict
    annotation_prefix: str = "vaultsecret.secretsync.io"
    namespace: Optional[str] = None
    in_cluster: bool = False
    custom_resource: CustomResourceSettings = field(default_factory=CustomResourceSettings)
    refresh_interval: float = 300.0
    initial_delay: float = 60.0
    refresh_workers: int = 4
    watch_timeout: float = 300.0
    retry_attempts: int = 5
    retry_delay: float = 1.0
    retry_backoff: float = 2.0
    dispatch_workers: int = 4
    log_level: str = "INFO"
    log_format: str = "standard"
    metrics_enabled: bool = True
    metrics_port: int = 8000

    @classmethod
    def from_dict(cls, config: dict) -> "ControllerSettings":
        """
        Validate a merged config dict.

        Raises:
            ConfigValidationError: If a value is missing or invalid
        """
        vault = dict(config.get("vault") or {})
        if not vault.get("url"):
            raise ConfigValidationError("vault.url is required")
        vault["timeout"] = parse_duration(vault.get("timeout", 5), "vault.timeout")
        if vault["timeout"] <= 0:
            raise ConfigValidationError("vault.timeout must be positive")

        kube = config.get("kubernetes") or {}
        crd = kube.get("custom_resource") or {}
        unknown = set(crd) - {"group", "version", "plural"}
        if unknown:
            raise ConfigValidationError(
                f"Unknown kubernetes.custom_resource keys: {sorted(unknown)}"
            )
        refresh = config.get("refresh") or {}
        watch = config.get("watch") or {}
        logging_cfg = config.get("logging") or {}
        metrics = config.get("metrics") or {}

        settings = cls(
            vault=vault,
            annotation_prefix=kube.get("annotation_prefix", cls.annotation_prefix),
            namespace=kube.get("namespace") or None,
            in_cluster=bool(kube.get("in_cluster", False)),
            custom_resource=CustomResourceSettings(**crd),
            refresh_interval=parse_duration(
                refresh.get("interval", 300), "refresh.interval"
            ),
            initial_delay=parse_duration(
                refresh.get("initial_delay", 60), "refresh.initial_delay"
            ),
            refresh_workers=int(refresh.get("workers", 4)),
            watch_timeout=parse_duration(watch.get("timeout", 300), "watch.timeout"),
            retry_attempts=int(watch.get("retry_attempts", 5)),
            retry_delay=parse_duration(watch.get("retry_delay", 1), "watch.retry_delay"),
            retry_backoff=float(watch.get("retry_backoff", 2.0)),
            dispatch_workers=int(watch.get("workers", 4)),
            log_level=str(logging_cfg.get("level", "INFO")).upper(),
            log_format=logging_cfg.get("format", "standard"),
            metrics_enabled=bool(metrics.get("enabled", True)),
            metrics_port=int(metrics.get("port", 8000)),
        )
        settings._validate()
        return settings

    def _validate(self) -> None:
        if self.refresh_interval <= 0:
            raise ConfigValidationError("refresh.interval must be positive")
        if self.refresh_workers < 1 or self.dispatch_workers < 1:
            raise ConfigValidationError("worker counts must be at least 1")
        if self.retry_attempts < 1:
            raise ConfigValidationError("watch.retry_attempts must be at least 1")
        if self.log_format not in ("standard", "json"):
            raise ConfigValidationError(
                f"logging.format must be 'standard' or 'json', got '{self.log_format}'"
            )
        if not self.annotation_prefix or "/" in self.annotation_prefix:
            raise ConfigValidationError(
                f"Invalid kubernetes.annotation_prefix: '{self.annotation_prefix}'"
            )

    def masked(self) -> dict:
        """Settings as a dict with the backend token hidden."""
        result = asdict(self)
        if result["vault"].get("token"):
            result["vault"]["token"] = "****"
        return result
