"""Prometheus metric definitions."""

from prometheus_client import Counter, Histogram, Gauge

# ============================================================
# RECONCILIATION METRICS
# ============================================================

RECONCILIATIONS = Counter(
    "vault_sync_reconciliations_total",
    "Reconciliations by trigger and result",
    ["trigger", "result"],
)

SECRET_WRITES = Counter(
    "vault_sync_secret_writes_total",
    "Materialized secrets created or replaced",
    ["operation"],
)

# ============================================================
# BACKEND METRICS
# ============================================================

BACKEND_REQUESTS = Counter(
    "vault_sync_backend_requests_total", "Requests to the secret backend", ["status"]
)

BACKEND_LATENCY = Histogram(
    "vault_sync_backend_latency_seconds",
    "Secret backend request latency",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# ============================================================
# SCHEDULER METRICS
# ============================================================

SWEEP_DURATION = Histogram(
    "vault_sync_sweep_duration_seconds",
    "Duration of a scheduled refresh sweep",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
)

SWEEP_SOURCES = Gauge(
    "vault_sync_sweep_sources", "Sources seen by the last sweep by outcome", ["outcome"]
)
