"""Change detection: fingerprints shaped data and compares it to the stored one."""

import base64
import hashlib
from dataclasses import dataclass
from typing import Optional

from controller.models import MaterializedSecret, SecretSource
from controller.store import SecretStore
from core.shaping import ShapedSecret, shape
from core.utils.logging import get_logger
from core.vault.base import SecretBackend

logger = get_logger(__name__)


def fingerprint(data: dict[str, bytes]) -> str:
    """
    SHA-256 over the canonical form of a secret's data, base64-encoded.

    Entries are sorted by key and written as ``key=<len>:<value>\\n``, so the
    result ignores map ordering but changes with any key or value.
    """
    digest = hashlib.sha256()
    for key in sorted(data):
        value = data[key]
        digest.update(key.encode("utf-8"))
        digest.update(f"={len(value)}:".encode("ascii"))
        digest.update(value)
        digest.update(b"\n")
    return base64.b64encode(digest.digest()).decode("ascii")


@dataclass(frozen=True)
class RefreshCheck:
    """Outcome of a refresh check, carrying the value that was fetched."""

    needed: bool
    shaped: ShapedSecret
    fingerprint: str
    existing: Optional[MaterializedSecret] = None


class ChangeDetector:
    """
    Decides whether a source's materialized secret is stale. Never writes.

    Usage:
        detector = ChangeDetector(backend, store)
        if detector.refresh_is_needed(source):
            ...
    """

    def __init__(self, backend: SecretBackend, store: SecretStore):
        self.backend = backend
        self.store = store

    def fetch_shaped(self, source: SecretSource) -> ShapedSecret:
        """
        Fetch the backend value for a source and shape it.

        Raises:
            SecretNotAccessibleError: Backend failure
            ShapingError: Payload does not fit the declared type
        """
        payload = self.backend.fetch(source.path)
        return shape(payload, source.secret_type, source.params)

    def check(self, source: SecretSource) -> RefreshCheck:
        """Fetch, shape and compare against the stored compare annotation."""
        return self._compare(source, self.store.get(source.namespace, source.name))

    def _compare(
        self, source: SecretSource, existing: Optional[MaterializedSecret]
    ) -> RefreshCheck:
        shaped = self.fetch_shaped(source)
        current = fingerprint(shaped.data)
        needed = existing is None or existing.compare != current

        logger.debug(
            f"Refresh check {source.namespace}/{source.name}: "
            f"stored={existing.compare if existing else None} current={current} "
            f"needed={needed}"
        )
        return RefreshCheck(
            needed=needed, shaped=shaped, fingerprint=current, existing=existing
        )

    def refresh_is_needed(self, source: SecretSource) -> bool:
        """True if no secret exists yet or the backend value changed."""
        existing = self.store.get(source.namespace, source.name)
        if existing is None:
            return True
        return self._compare(source, existing).needed
