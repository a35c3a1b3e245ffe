"""Abstract base class for secret backends."""

from abc import ABC, abstractmethod

from core.vault.payload import BackendSecretPayload


class SecretBackend(ABC):
    """
    Read-only interface the controller uses to talk to a secret store.

    Implementations must not retry; retry policy belongs to the caller.
    """

    @abstractmethod
    def fetch(self, path: str) -> BackendSecretPayload:
        """
        Read the secret stored at ``path``.

        Args:
            path: Backend location as declared on the custom resource

        Returns:
            The raw payload

        Raises:
            SecretNotAccessibleError: If the secret cannot be retrieved
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """
        Check if backend is accessible.

        Returns:
            True if healthy, False otherwise
        """
        pass

    def close(self) -> None:
        """Release any held connections."""
        pass
