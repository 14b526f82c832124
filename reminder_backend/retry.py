"""
Bounded exponential-backoff retry for calls against the spreadsheet.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from reminder_backend.errors import NON_RETRYABLE

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3


def backoff_seconds(attempt: int) -> float:
    """Delay after the given failed attempt (1-based): 2s, 4s, 8s..."""
    return float(2**attempt)


def retry_operation(
    operation: Callable[[], T],
    max_retries: int = DEFAULT_MAX_RETRIES,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run `operation` up to `max_retries` times and return its first success.

    The operation is retried wholesale, so it should be safe to repeat. Reads
    are; appends may duplicate a row if the first attempt landed but its
    response was lost. The last failure is re-raised unchanged.
    """
    attempts = max(1, max_retries)
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except NON_RETRYABLE:
            raise
        except Exception as exc:
            logger.warning("Attempt %d/%d failed: %s", attempt, attempts, exc)
            if attempt == attempts:
                raise
            sleep(backoff_seconds(attempt))
    raise AssertionError("unreachable")
