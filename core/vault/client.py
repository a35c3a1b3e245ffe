"""HTTP client for Vault-style secret backends."""

from typing import Optional

import httpx

from core.utils.logging import get_logger
from core.vault.base import SecretBackend
from core.vault.exceptions import (
    BackendNotFoundError,
    BackendUnauthorizedError,
    BackendUnreachableError,
    SecretNotAccessibleError,
)
from core.vault.payload import BackendSecretPayload
from monitoring import Metrics, track_time

logger = get_logger(__name__)


class VaultClient(SecretBackend):
    """
    Reads secrets with ``GET {url}/{path}``.

    The connection pool is shared by every caller; it holds no per-secret state.

    Usage:
        client = VaultClient({"url": "http://localhost:8200/v1/", "token": "s.xxx"})
        payload = client.fetch("secret/data/myapp")
        payload.fields["password"]
    """

    def __init__(self, config: dict, transport: Optional[httpx.BaseTransport] = None):
        """
        Args:
            config: The ``vault`` section of the controller settings
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.url = config.get("url", "http://localhost:8200/v1/")
        self.token = config.get("token", "")
        self.namespace = config.get("namespace")
        self.timeout = float(config.get("timeout", 5.0))
        self.verify = config.get("verify", True)
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def _get_client(self) -> httpx.Client:
        """Lazy initialization of the HTTP client."""
        if self._client is None:
            headers = {"X-Vault-Token": self.token}
            if self.namespace:
                headers["X-Vault-Namespace"] = self.namespace

            logger.info(f"Connecting to secret backend at {self.url}")
            self._client = httpx.Client(
                base_url=self.url,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify,
                transport=self._transport,
            )
        return self._client

    def fetch(self, path: str) -> BackendSecretPayload:
        """
        Read the secret at ``path``.

        Args:
            path: Backend path, e.g. ``pki/issue/web`` or ``secret/data/app``

        Returns:
            Parsed payload

        Raises:
            ValueError: If path is empty
            BackendUnreachableError: On timeout or connection failure
            BackendUnauthorizedError: On 401/403
            BackendNotFoundError: On 404
            SecretNotAccessibleError: On any other failure
        """
        if not path or not path.strip("/"):
            raise ValueError("Backend path must not be empty")

        path = path.strip("/")

        try:
            with track_time() as t:
                response = self._get_client().get(path)
        except httpx.TimeoutException as e:
            Metrics.backend_request("timeout", latency=t["duration"])
            raise BackendUnreachableError(
                f"Timed out reading '{path}': {e}", path=path
            ) from e
        except httpx.TransportError as e:
            Metrics.backend_request("unreachable", latency=t["duration"])
            raise BackendUnreachableError(
                f"Cannot reach backend for '{path}': {e}", path=path
            ) from e

        Metrics.backend_request(str(response.status_code), latency=t["duration"])
        self._raise_for_status(response, path)

        try:
            payload = BackendSecretPayload.from_response(response.json(), path=path)
        except ValueError as e:
            raise SecretNotAccessibleError(
                f"Invalid JSON returned for '{path}': {e}", path=path
            ) from e
        except (KeyError, TypeError) as e:
            raise SecretNotAccessibleError(
                f"Unexpected response shape for '{path}': {e}", path=path
            ) from e

        logger.debug(
            f"Fetched '{path}' ({len(payload.fields)} fields, request_id={payload.request_id})"
        )
        return payload

    @staticmethod
    def _raise_for_status(response: httpx.Response, path: str) -> None:
        """Map non-200 responses onto the failure hierarchy."""
        status = response.status_code
        if status == 200:
            return
        if status in (401, 403):
            raise BackendUnauthorizedError(
                f"Access to '{path}' denied (HTTP {status})", path=path
            )
        if status == 404:
            raise BackendNotFoundError(f"No secret at '{path}'", path=path)
        raise SecretNotAccessibleError(
            f"Cannot read '{path}': HTTP {status}", path=path
        )

    def health_check(self) -> bool:
        """Check if the backend answers ``sys/health``."""
        try:
            response = self._get_client().get("sys/health")
        except httpx.HTTPError as e:
            logger.error(f"Backend health check failed: {e}")
            return False

        # 429/473 are standby nodes, still able to serve reads
        healthy = response.status_code in (200, 429, 473)
        if not healthy:
            logger.warning(f"Backend unhealthy: HTTP {response.status_code}")
        return healthy

    def close(self) -> None:
        """Close the underlying connection pool."""
        if self._client is not None:
            self._client.close()
            self._client = None
