"""Reconciles a VaultSecret into its materialized Kubernetes Secret."""

from datetime import datetime, timezone
from typing import Callable, Optional

from controller.detector import ChangeDetector, fingerprint
from controller.locks import KeyedLock
from controller.models import MaterializedSecret, SecretSource
from controller.store import SecretStore
from core.shaping import ShapedSecret
from core.utils.logging import get_logger
from monitoring import Metrics

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventHandler:
    """
    Entry point for VaultSecret add and update events.

    Both events run the same idempotent path: fetch, shape, fingerprint, and
    write only when the fingerprint differs from the stored compare annotation.
    Failures propagate to the caller before anything is written.

    Usage:
        handler = EventHandler(detector, store, locks)
        handler.add_handler(source)
    """

    def __init__(
        self,
        detector: ChangeDetector,
        store: SecretStore,
        locks: Optional[KeyedLock] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.detector = detector
        self.store = store
        self.locks = locks or KeyedLock()
        self.clock = clock

    def add_handler(self, source: SecretSource, trigger: str = "event") -> bool:
        """
        Reconcile a source.

        Returns:
            True if the secret was written, False if it was already up to date

        Raises:
            SecretNotAccessibleError: Backend failure, nothing written
            ShapingError: Payload does not fit the declared type, nothing written
        """
        with self.locks.hold(source.key):
            try:
                shaped = self.detector.fetch_shaped(source)
            except Exception:
                Metrics.reconciled(trigger, "error")
                raise
            return self._apply(source, shaped, trigger)

    modify_handler = add_handler

    def apply_shaped(
        self, source: SecretSource, shaped: ShapedSecret, trigger: str = "refresh"
    ) -> bool:
        """Materialize an already fetched and shaped value."""
        with self.locks.hold(source.key):
            return self._apply(source, shaped, trigger)

    def _apply(self, source: SecretSource, shaped: ShapedSecret, trigger: str) -> bool:
        try:
            existing = self.store.get(source.namespace, source.name)
            new_fingerprint = fingerprint(shaped.data)

            if existing is not None and existing.compare == new_fingerprint:
                logger.debug(f"Secret {source.namespace}/{source.name} is up to date")
                Metrics.reconciled(trigger, "skipped")
                return False

            owner = source.owner_reference()
            secret = MaterializedSecret(
                namespace=source.namespace,
                name=source.name,
                data=dict(shaped.data),
                secret_type=shaped.secret_class.value,
                compare=new_fingerprint,
                last_update=self.clock().isoformat(),
                annotations=dict(existing.annotations) if existing else {},
                labels=dict(existing.labels) if existing else {},
                owner_references=[owner] if owner else [],
            )
            operation = self.store.upsert(secret, existing)
        except Exception:
            Metrics.reconciled(trigger, "error")
            raise

        Metrics.secret_written(operation)
        Metrics.reconciled(trigger, "written")
        logger.info(
            f"Materialized {source.secret_type.value} secret "
            f"{source.namespace}/{source.name} from '{source.path}' ({operation})"
        )
        return True
