from __future__ import annotations

import time
from typing import Callable, Tuple, Type, Any, TypeVar

from .logger import get_logger, log_event

T = TypeVar("T")


def call_with_retry(
    func: Callable[..., T],
    *args: Any,
    exceptions: Tuple[Type[BaseException], ...],
    max_attempts: int = 3,
    backoff_factor: float = 2.0,
    base_delay: float = 0.5,
    **kwargs: Any,
) -> T:
    """Call ``func`` and retry on ``exceptions`` with exponential backoff.

    The last exception is re-raised once ``max_attempts`` calls have failed.

    Args:
        func: Callable to invoke.
        exceptions: Tuple of exception types that should trigger a retry.
        max_attempts: Maximum number of attempts (including the first).
        backoff_factor: Multiplier for the delay after each failure.
        base_delay: Initial delay in seconds.
    """

    logger = get_logger(f"retry.{getattr(func, '__name__', 'call')}")
    delay = base_delay
    attempt = 1
    while True:
        try:
            return func(*args, **kwargs)
        except exceptions as exc:
            if attempt >= max(max_attempts, 1):
                raise
            log_event(
                logger,
                level=30,
                message="Retryable error, will retry",
                extra={"attempt": attempt, "delay": delay, "error": str(exc)},
            )
            time.sleep(delay)
            delay *= backoff_factor
            attempt += 1
