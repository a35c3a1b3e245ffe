"""Reusable decorators for the controller."""

import functools
import time
from typing import Callable, Type

from core.utils.logging import get_logger

logger = get_logger(__name__)


def log_time(func: Callable) -> Callable:
    """
    Log execution time of a function.

    Usage:
        @log_time
        def sweep():
            ...
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.info(f"{func.__name__} completed in {elapsed:.3f}s")

    return wrapper


def retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 1.0,
    exceptions: tuple[Type[Exception], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> Callable:
    """
    Retry function on failure.

    Args:
        max_attempts: Number of attempts before giving up
        delay: Seconds before the first retry
        backoff: Multiplier applied to the delay after each retry
        exceptions: Tuple of exceptions to catch
        sleep: Sleep function (tests pass a no-op)

    Usage:
        @retry(max_attempts=5, delay=1.0, backoff=2.0)
        def reconcile(source):
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            wait = delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        logger.error(
                            f"{func.__name__} failed after {max_attempts} attempts: {e}"
                        )
                        raise
                    logger.warning(
                        f"{func.__name__} failed (attempt {attempt}/{max_attempts}): {e}. "
                        f"Retrying in {wait:.1f}s..."
                    )
                    sleep(wait)
                    wait *= backoff

        return wrapper

    return decorator
