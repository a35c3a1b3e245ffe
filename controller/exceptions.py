"""Exceptions raised by the controller layer."""


class InvalidSourceError(Exception):
    """Raised when a VaultSecret object lacks required fields."""

    pass
