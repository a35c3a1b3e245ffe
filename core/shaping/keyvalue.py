"""Generic key/value secrets: every backend field becomes one secret key."""

import json
from typing import Any

from core.shaping.exceptions import ShapingError
from core.shaping.registry import register_shaper
from core.shaping.types import SecretClass, SecretType, ShapedSecret
from core.vault.payload import BackendSecretPayload


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    # Nested values keep a stable text form so the fingerprint stays stable
    return json.dumps(value, sort_keys=True, separators=(",", ":")).encode("utf-8")


@register_shaper(SecretType.KEYVALUE)
def shape_keyvalue(payload: BackendSecretPayload, params: dict) -> ShapedSecret:
    """
    Pass backend fields through as secret keys.

    Args:
        payload: Backend payload
        params: Optional ``keyMapping`` of backend field -> secret key

    Example:
        fields = {"user": "app", "pass": "s3cret"}
        params = {"keyMapping": {"pass": "password"}}
        data = {"user": b"app", "password": b"s3cret"}
    """
    mapping = params.get("keyMapping") or {}
    data = {}

    for field_name, value in payload.fields.items():
        key = mapping.get(field_name, field_name)
        if key in data:
            raise ShapingError(f"keyMapping maps two fields onto secret key '{key}'")
        data[key] = _to_bytes(value)

    return ShapedSecret(data=data, secret_class=SecretClass.OPAQUE)
