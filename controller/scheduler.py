"""Periodic refresh of every known VaultSecret, independent of watch events."""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from kubernetes.client.rest import ApiException

from controller.detector import ChangeDetector
from controller.handler import EventHandler
from controller.locks import KeyedLock
from controller.models import SecretSource
from controller.sources import SourceLister
from core.shaping.exceptions import ShapingError
from core.utils.decorators import log_time
from core.utils.logging import get_logger
from core.vault.exceptions import SecretNotAccessibleError
from monitoring import Metrics, track_time

logger = get_logger(__name__)

REFRESHED = "refreshed"
UNCHANGED = "unchanged"
FAILED = "failed"
SKIPPED = "skipped"


class RefreshScheduler:
    """
    Polls the backend for every source and rewrites secrets whose value changed.

    The first sweep waits ``initial_delay`` so the event-driven reconciliation
    at startup goes first. A failing source is logged and never stops the sweep.

    Usage:
        scheduler = RefreshScheduler(lister, detector, handler, locks, interval=300)
        scheduler.start()
        ...
        scheduler.stop()
    """

    def __init__(
        self,
        lister: SourceLister,
        detector: ChangeDetector,
        handler: EventHandler,
        locks: KeyedLock,
        interval: float,
        initial_delay: float = 0.0,
        workers: int = 4,
    ):
        self.lister = lister
        self.detector = detector
        self.handler = handler
        self.locks = locks
        self.interval = interval
        self.initial_delay = initial_delay
        self.workers = workers

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._stats = {"sweeps": 0, REFRESHED: 0, UNCHANGED: 0, FAILED: 0}

    def start(self) -> None:
        """Start the background sweep thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="refresh-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(
            f"Refresh scheduler started (interval={self.interval}s, "
            f"initial_delay={self.initial_delay}s)"
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop sweeping; waits for in-flight refreshes to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info(f"Refresh scheduler stopped. Stats: {self._stats}")

    def _run(self) -> None:
        if self._stop.wait(self.initial_delay):
            return
        while not self._stop.is_set():
            try:
                self.sweep()
            except ApiException as e:
                logger.error(f"Cannot list sources for refresh: {e.status} {e.reason}")
            except Exception:
                logger.exception("Refresh sweep failed")
            if self._stop.wait(self.interval):
                break

    @log_time
    def sweep(self) -> dict:
        """
        Refresh all sources once.

        Returns:
            Count of sources per outcome (refreshed, unchanged, failed, skipped)
        """
        sources = self.lister.list_sources()
        summary = {REFRESHED: 0, UNCHANGED: 0, FAILED: 0, SKIPPED: 0}

        with track_time() as t:
            with ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="refresh"
            ) as pool:
                for outcome in pool.map(self.refresh_source, sources):
                    summary[outcome] += 1

        self._stats["sweeps"] += 1
        for outcome in (REFRESHED, UNCHANGED, FAILED):
            self._stats[outcome] += summary[outcome]

        Metrics.sweep_finished(summary, t["duration"])
        logger.info(f"Sweep over {len(sources)} sources: {summary}")
        return summary

    def refresh_source(self, source: SecretSource) -> str:
        """Check one source and rewrite it if needed. Never raises."""
        if self._stop.is_set():
            return SKIPPED

        name = f"{source.namespace}/{source.name}"
        try:
            with self.locks.hold(source.key):
                check = self.detector.check(source)
                if not check.needed:
                    Metrics.reconciled("refresh", "unchanged")
                    return UNCHANGED
                written = self.handler.apply_shaped(source, check.shaped, "refresh")
        except SecretNotAccessibleError as e:
            Metrics.reconciled("refresh", "error")
            logger.warning(f"Refresh of {name} skipped, backend not accessible: {e}")
            return FAILED
        except ShapingError as e:
            Metrics.reconciled("refresh", "error")
            logger.warning(f"Refresh of {name} skipped: {e}")
            return FAILED
        except ApiException as e:
            logger.error(f"Refresh of {name} failed writing secret: {e.status} {e.reason}")
            return FAILED
        except Exception:
            Metrics.reconciled("refresh", "error")
            logger.exception(f"Unexpected error refreshing {name}")
            return FAILED

        return REFRESHED if written else UNCHANGED

    def get_stats(self) -> dict:
        return self._stats.copy()
