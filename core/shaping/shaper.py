"""Entry point that dispatches a payload to its type's shaping strategy."""

from typing import Optional

# Import strategies to trigger registration
from core.shaping import cert, dockercfg, keyvalue  # noqa: F401
from core.shaping.registry import get_shaper, missing_shapers
from core.shaping.types import SecretType, ShapedSecret
from core.vault.payload import BackendSecretPayload

_unregistered = missing_shapers()
if _unregistered:
    raise ImportError(
        "Secret types without a shaper: " + ", ".join(t.value for t in _unregistered)
    )


def shape(
    payload: BackendSecretPayload, secret_type, params: Optional[dict] = None
) -> ShapedSecret:
    """
    Transform a backend payload into the layout of the materialized secret.

    Pure and deterministic: equal payloads give byte-identical data.

    Args:
        payload: Raw backend payload
        secret_type: ``SecretType`` or its string value
        params: Type-specific parameters from the custom resource spec

    Raises:
        UnsupportedTypeError: Unknown type
        ShapeMissingFieldError: Required field absent
    """
    resolved = SecretType.parse(secret_type)
    return get_shaper(resolved)(payload, params or {})
