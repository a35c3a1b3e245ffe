"""Watches VaultSecret objects and dispatches add/update events to the handler."""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from kubernetes import watch
from kubernetes.client.rest import ApiException

from controller.exceptions import InvalidSourceError
from controller.handler import EventHandler
from controller.models import SecretSource
from controller.sources import KubernetesSourceLister
from core.shaping.exceptions import ShapingError, UnsupportedTypeError
from core.utils.decorators import retry
from core.utils.logging import get_logger
from core.vault.exceptions import SecretNotAccessibleError
from monitoring import Metrics

logger = get_logger(__name__)

RETRYABLE = (SecretNotAccessibleError, ShapingError, ApiException)


class SourceWatcher:
    """
    Streams VaultSecret events and reconciles each source on a worker pool.

    A failed reconciliation is retried with exponential backoff; once the
    attempts are exhausted the event is dropped and the next scheduled sweep
    picks the source up again.

    Usage:
        watcher = SourceWatcher(lister, handler, timeout=300)
        watcher.run()  # blocks until stop()
    """

    def __init__(
        self,
        lister: KubernetesSourceLister,
        handler: EventHandler,
        timeout: float = 300.0,
        retry_attempts: int = 5,
        retry_delay: float = 1.0,
        retry_backoff: float = 2.0,
        workers: int = 4,
        watch_factory: Callable[[], watch.Watch] = watch.Watch,
    ):
        self.lister = lister
        self.handler = handler
        self.timeout = timeout
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.retry_backoff = retry_backoff
        self.watch_factory = watch_factory

        self.resource_version: Optional[str] = None
        self._stop = threading.Event()
        self._watch: Optional[watch.Watch] = None
        self._executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="reconcile"
        )
        self._stats = {"events": 0, "reconciled": 0, "failed": 0, "invalid": 0}
        self._stats_lock = threading.Lock()

    def run(self) -> None:
        """Watch until ``stop()``; the stream restarts after each timeout."""
        func, kwargs = self.lister.list_call()
        logger.info(f"Watching {self.lister.resource.plural}")

        try:
            while not self._stop.is_set():
                self._watch = self.watch_factory()
                try:
                    for event in self._watch.stream(
                        func,
                        resource_version=self.resource_version,
                        timeout_seconds=int(self.timeout),
                        **kwargs,
                    ):
                        if self._stop.is_set():
                            break
                        self.handle_event(event)
                except ApiException as e:
                    if e.status == 410:
                        logger.info("Watch resource version expired, relisting")
                        self.resource_version = None
                    else:
                        logger.error(f"Watch failed: {e.status} {e.reason}")
                        self._stop.wait(self.retry_delay)
                except Exception:
                    logger.exception("Watch stream broken, restarting")
                    self._stop.wait(self.retry_delay)
        finally:
            self._executor.shutdown(wait=True)
            logger.info(f"Watcher stopped. Stats: {self.get_stats()}")

    def handle_event(self, event: dict) -> Optional[Future]:
        """
        Dispatch one watch event.

        Returns:
            The future of the submitted reconciliation, None if nothing was submitted
        """
        event_type = event.get("type")
        obj = event.get("object") or {}
        metadata = obj.get("metadata") or {}

        if event_type == "ERROR":
            if obj.get("code") == 410:
                logger.info("Watch resource version expired, relisting")
                self.resource_version = None
            else:
                logger.error(f"Watch error event: {obj.get('message')}")
            return None

        if metadata.get("resourceVersion"):
            self.resource_version = metadata["resourceVersion"]

        if event_type == "DELETED":
            # The Secret goes with its owner through garbage collection
            logger.info(
                f"VaultSecret {metadata.get('namespace')}/{metadata.get('name')} deleted"
            )
            return None

        if event_type not in ("ADDED", "MODIFIED"):
            return None

        self._count("events")
        try:
            source = SecretSource.from_object(obj)
        except (InvalidSourceError, UnsupportedTypeError) as e:
            self._count("invalid")
            Metrics.reconciled("event", "invalid")
            logger.error(f"Ignoring invalid VaultSecret: {e}")
            return None

        return self._executor.submit(self.dispatch, source)

    def dispatch(self, source: SecretSource) -> bool:
        """Reconcile with retry; returns False when every attempt failed."""
        reconcile = retry(
            max_attempts=self.retry_attempts,
            delay=self.retry_delay,
            backoff=self.retry_backoff,
            exceptions=RETRYABLE,
            sleep=self._stop.wait,
        )(self.handler.add_handler)

        try:
            reconcile(source)
        except RETRYABLE as e:
            self._count("failed")
            logger.error(
                f"Giving up on {source.namespace}/{source.name} "
                f"after {self.retry_attempts} attempts: {e}"
            )
            return False
        except Exception:
            self._count("failed")
            logger.exception(
                f"Unexpected error reconciling {source.namespace}/{source.name}"
            )
            return False

        self._count("reconciled")
        return True

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1

    def stop(self) -> None:
        self._stop.set()
        if self._watch is not None:
            self._watch.stop()

    def get_stats(self) -> dict:
        with self._stats_lock:
            return self._stats.copy()
