"""Shaping of backend payloads into Kubernetes secret layouts."""

from core.shaping.exceptions import (
    ShapeMissingFieldError,
    ShapingError,
    UnsupportedTypeError,
)
from core.shaping.shaper import shape
from core.shaping.types import SecretClass, SecretType, ShapedSecret

__all__ = [
    "shape",
    "SecretType",
    "SecretClass",
    "ShapedSecret",
    "ShapingError",
    "ShapeMissingFieldError",
    "UnsupportedTypeError",
]
