"""Raw secret payload as returned by the backend."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class BackendSecretPayload:
    """
    Fields of a backend secret plus store-assigned metadata.

    Only ``fields`` is shaped and fingerprinted. ``lease_duration``,
    ``request_id`` and ``renewable`` are informational.
    """

    fields: dict[str, Any]
    lease_duration: int = 0
    request_id: Optional[str] = None
    renewable: bool = False
    path: str = ""

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    @classmethod
    def from_response(cls, body: dict, path: str = "") -> "BackendSecretPayload":
        """
        Build a payload from a decoded response envelope.

        Raises:
            KeyError: If the envelope has no ``data.data`` object
            TypeError: If ``data.data`` is not an object
        """
        inner = body["data"]["data"]
        if not isinstance(inner, dict):
            raise TypeError(f"data.data must be an object, got {type(inner).__name__}")

        return cls(
            fields=dict(inner),
            lease_duration=int(body.get("lease_duration") or 0),
            request_id=body.get("request_id"),
            renewable=bool(body.get("renewable", False)),
            path=path,
        )


__all__ = ["BackendSecretPayload"]
