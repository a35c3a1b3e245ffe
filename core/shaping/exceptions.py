"""Exceptions raised while shaping backend payloads."""


class ShapingError(Exception):
    """Base exception for shaping failures."""

    pass


class ShapeMissingFieldError(ShapingError):
    """Raised when a field required by the declared type is absent."""

    def __init__(self, secret_type: str, field_name: str):
        super().__init__(f"{secret_type} secret requires field '{field_name}'")
        self.secret_type = secret_type
        self.field_name = field_name


class UnsupportedTypeError(ShapingError):
    """Raised for a secret type with no shaping strategy."""

    pass
