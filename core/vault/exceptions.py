"""Exceptions raised when the secret backend cannot serve a path."""


class SecretNotAccessibleError(Exception):
    """Raised when a secret cannot be retrieved from the backend."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class BackendUnreachableError(SecretNotAccessibleError):
    """Raised on connection failures and timeouts."""

    pass


class BackendUnauthorizedError(SecretNotAccessibleError):
    """Raised when the backend rejects the token (401/403)."""

    pass


class BackendNotFoundError(SecretNotAccessibleError):
    """Raised when the path holds no data (404)."""

    pass
