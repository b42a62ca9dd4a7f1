"""
Error Handling Decorators

Retry and timing helpers shared by the network-facing code.
"""

from __future__ import annotations

import functools
import logging
import time
from typing import Type, Tuple, Callable, Optional

logger = logging.getLogger(__name__)


def retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[Exception, int], None]] = None,
):
    """
    Decorator to retry failed operations with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts
        delay: Initial delay between retries (seconds)
        backoff: Multiplier for delay after each retry
        exceptions: Exception types to catch and retry
        on_retry: Callback called on each retry with (exception, attempt)

    Example:
        @retry(max_attempts=3, delay=0.5, exceptions=(httpx.TransportError,))
        def head(url):
            ...
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            last_exception = None
            current_delay = delay

            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt < max_attempts - 1:
                        logger.warning(
                            f"{func.__name__} failed (attempt {attempt + 1}/{max_attempts}): {e}"
                        )
                        if on_retry:
                            on_retry(e, attempt + 1)
                        time.sleep(current_delay)
                        current_delay *= backoff

            logger.error(
                f"{func.__name__} failed after {max_attempts} attempts: {last_exception}"
            )
            raise last_exception

        return wrapper
    return decorator


def timed(func: Callable) -> Callable:
    """Log how long the wrapped call took, at DEBUG."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__name__} completed in {elapsed:.3f}s")
    return wrapper
