"""Shaping strategy registry with decorator pattern."""

from typing import Callable

from core.shaping.exceptions import UnsupportedTypeError
from core.shaping.types import SecretType

SHAPERS: dict[SecretType, Callable] = {}


def register_shaper(secret_type: SecretType):
    """
    Decorator to register the shaping function for a secret type.

    Usage:
        @register_shaper(SecretType.CERT)
        def shape_certificate(payload, params):
            ...
    """

    def decorator(func):
        if secret_type in SHAPERS:
            raise ValueError(f"Shaper already registered for {secret_type.value}")
        SHAPERS[secret_type] = func
        return func

    return decorator


def get_shaper(secret_type: SecretType) -> Callable:
    """
    Get the shaping function for a type.

    Raises:
        UnsupportedTypeError: If nothing is registered for the type
    """
    if secret_type not in SHAPERS:
        available = ", ".join(t.value for t in SHAPERS) or "none"
        raise UnsupportedTypeError(
            f"No shaper for type '{secret_type}'. Available: {available}"
        )
    return SHAPERS[secret_type]


def missing_shapers() -> list[SecretType]:
    """Secret types declared in the enum without a registered shaper."""
    return [t for t in SecretType if t not in SHAPERS]
