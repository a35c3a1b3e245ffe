"""Backend client for path-addressed secret stores."""

from core.vault.base import SecretBackend
from core.vault.client import VaultClient
from core.vault.exceptions import (
    BackendNotFoundError,
    BackendUnauthorizedError,
    BackendUnreachableError,
    SecretNotAccessibleError,
)
from core.vault.payload import BackendSecretPayload

__all__ = [
    "SecretBackend",
    "VaultClient",
    "BackendSecretPayload",
    "SecretNotAccessibleError",
    "BackendUnreachableError",
    "BackendUnauthorizedError",
    "BackendNotFoundError",
]
