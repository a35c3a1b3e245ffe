"""Prometheus HTTP server."""

from prometheus_client import start_http_server

from core.utils.logging import get_logger

logger = get_logger(__name__)

_started = False


def start_metrics_server(port: int = 8000, addr: str = "0.0.0.0") -> bool:
    """
    Expose ``/metrics`` on a background thread.

    Safe to call more than once; only the first call binds the port.

    Returns:
        True if this call started the server
    """
    global _started
    if _started:
        return False

    start_http_server(port, addr=addr)
    _started = True
    logger.info(f"Metrics server listening on {addr}:{port}/metrics")
    return True
