"""SecretSource (the custom resource) and MaterializedSecret (the Kubernetes Secret)."""

from dataclasses import dataclass, field
from typing import Optional

from controller.exceptions import InvalidSourceError
from core.shaping.types import SecretType

RESERVED_SPEC_FIELDS = ("path", "type")


def annotation_keys(prefix: str) -> tuple[str, str]:
    """Return the (compare, last-update) annotation names for a prefix."""
    return f"{prefix}/compare", f"{prefix}/last-update"


@dataclass(frozen=True)
class SecretSource:
    """
    A VaultSecret custom resource, read-only to the controller.

    Usage:
        source = SecretSource.from_object(custom_object)
        source.key  # ("default", "certificate")
    """

    namespace: str
    name: str
    path: str
    secret_type: SecretType
    params: dict = field(default_factory=dict, compare=False, hash=False)
    uid: Optional[str] = None
    api_version: str = "secretsync.io/v1"
    kind: str = "VaultSecret"

    @property
    def key(self) -> tuple[str, str]:
        return self.namespace, self.name

    @classmethod
    def from_object(cls, obj: dict) -> "SecretSource":
        """
        Parse a custom object dict as returned by the Kubernetes API.

        Raises:
            InvalidSourceError: If name, namespace or spec.path is missing
            UnsupportedTypeError: If spec.type is not a known type
        """
        metadata = obj.get("metadata") or {}
        spec = obj.get("spec") or {}
        name = metadata.get("name")
        namespace = metadata.get("namespace")

        if not name or not namespace:
            raise InvalidSourceError("VaultSecret is missing metadata.name or namespace")

        path = spec.get("path")
        if not isinstance(path, str) or not path.strip("/"):
            raise InvalidSourceError(f"VaultSecret {namespace}/{name} has no spec.path")

        if "type" not in spec:
            raise InvalidSourceError(f"VaultSecret {namespace}/{name} has no spec.type")

        return cls(
            namespace=namespace,
            name=name,
            path=path,
            secret_type=SecretType.parse(spec["type"]),
            params={k: v for k, v in spec.items() if k not in RESERVED_SPEC_FIELDS},
            uid=metadata.get("uid"),
            api_version=obj.get("apiVersion", cls.api_version),
            kind=obj.get("kind", cls.kind),
        )

    def owner_reference(self) -> Optional[dict]:
        """Owner reference so the Secret is garbage collected with its source."""
        if not self.uid:
            return None
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.name,
            "uid": self.uid,
            "controller": True,
        }


@dataclass
class MaterializedSecret:
    """
    The Kubernetes Secret managed by the controller.

    ``compare`` is the fingerprint of ``data`` and is always written together
    with it. ``annotations`` and ``labels`` hold metadata owned by others.
    """

    namespace: str
    name: str
    data: dict[str, bytes]
    secret_type: str = "Opaque"
    compare: Optional[str] = None
    last_update: Optional[str] = None
    annotations: dict = field(default_factory=dict)
    labels: dict = field(default_factory=dict)
    owner_references: list = field(default_factory=list)
    resource_version: Optional[str] = None

    @property
    def key(self) -> tuple[str, str]:
        return self.namespace, self.name
