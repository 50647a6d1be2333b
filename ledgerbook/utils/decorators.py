"""
Decorators Module
Retry and timing decorators
"""

import asyncio
import functools
import time
from typing import Callable, Iterator, Optional, Tuple, Type
from .logger import logger


def _delays(initial_delay: float, backoff_multiplier: float, max_delay: float) -> Iterator[float]:
    delay = initial_delay
    while True:
        yield delay
        delay = min(delay * backoff_multiplier, max_delay)


def retry(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff_multiplier: float = 2.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,)
):
    """
    Retry decorator with exponential backoff for coroutine functions

    Only exceptions listed in ``exceptions`` are retried; anything else
    propagates on the first attempt. The last failure is re-raised once the
    attempts are exhausted.
    """
    def decorator(func: Callable):
        def _log_failure(attempt: int, error: Exception, delay: Optional[float]) -> None:
            if delay is None:
                logger.error(f"All {max_attempts} attempts failed for {func.__name__}: {error}")
            else:
                logger.warning(
                    f"Attempt {attempt}/{max_attempts} failed for {func.__name__}: {error}. "
                    f"Retrying in {delay:.1f}s..."
                )

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            delays = _delays(initial_delay, backoff_multiplier, max_delay)
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        _log_failure(attempt, e, None)
                        raise
                    delay = next(delays)
                    _log_failure(attempt, e, delay)
                    await asyncio.sleep(delay)

        return async_wrapper

    return decorator


def timed(func: Callable):
    """
    Decorator to log execution time of a function
    """
    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            logger.debug(f"{func.__qualname__} executed in {time.perf_counter() - start_time:.3f}s")

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            logger.debug(f"{func.__qualname__} executed in {time.perf_counter() - start_time:.3f}s")

    if asyncio.iscoroutinefunction(func):
        return async_wrapper
    return sync_wrapper
