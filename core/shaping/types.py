"""Secret types and the shaped result handed to the store."""

from dataclasses import dataclass
from enum import Enum

from core.shaping.exceptions import UnsupportedTypeError


class SecretType(str, Enum):
    """Value of ``spec.type`` on a VaultSecret."""

    KEYVALUE = "KEYVALUE"
    CERT = "CERT"
    DOCKERCFG = "DOCKERCFG"

    @classmethod
    def parse(cls, value) -> "SecretType":
        """
        Resolve a declared type, case-insensitively.

        Raises:
            UnsupportedTypeError: If the value names no known type
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            available = ", ".join(t.value for t in cls)
            raise UnsupportedTypeError(
                f"Unsupported secret type: '{value}'. Available: {available}"
            ) from None


class SecretClass(str, Enum):
    """Kubernetes ``Secret.type`` of the materialized object."""

    OPAQUE = "Opaque"
    TLS = "kubernetes.io/tls"
    DOCKERCONFIG = "kubernetes.io/dockerconfigjson"


@dataclass(frozen=True)
class ShapedSecret:
    """Key/value layout and classification of a materialized secret."""

    data: dict[str, bytes]
    secret_class: SecretClass = SecretClass.OPAQUE

    def keys(self) -> list[str]:
        return sorted(self.data)
