"""Metrics recorder - stateless functions to record metrics."""

import time
from contextlib import contextmanager
from typing import Generator

from monitoring.definitions import (
    BACKEND_LATENCY,
    BACKEND_REQUESTS,
    RECONCILIATIONS,
    SECRET_WRITES,
    SWEEP_DURATION,
    SWEEP_SOURCES,
)


@contextmanager
def track_time() -> Generator[dict, None, None]:
    """
    Context manager to track execution time.

    Usage:
        with track_time() as t:
            do_work()
        print(t["duration"])  # seconds
    """
    result = {"duration": 0.0}
    start = time.perf_counter()
    try:
        yield result
    finally:
        result["duration"] = time.perf_counter() - start


class Metrics:
    """
    Stateless metrics recorder.

    Usage:
        from monitoring import Metrics

        Metrics.reconciled("event", "written")
    """

    @staticmethod
    def reconciled(trigger: str, result: str) -> None:
        """Record a reconciliation outcome (written, skipped, error)."""
        RECONCILIATIONS.labels(trigger=trigger, result=result).inc()

    @staticmethod
    def secret_written(operation: str) -> None:
        """Record a create, replace or recreate of a materialized secret."""
        SECRET_WRITES.labels(operation=operation).inc()

    @staticmethod
    def backend_request(status: str, latency: float = None) -> None:
        """Record a backend request by HTTP status or failure kind."""
        BACKEND_REQUESTS.labels(status=status).inc()
        if latency:
            BACKEND_LATENCY.observe(latency)

    @staticmethod
    def sweep_finished(summary: dict, duration: float) -> None:
        """Record sweep duration and per-outcome source counts."""
        SWEEP_DURATION.observe(duration)
        for outcome, count in summary.items():
            SWEEP_SOURCES.labels(outcome=outcome).set(count)
