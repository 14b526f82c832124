"""
Read-through cache holding the last full read of one sheet.
"""

from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Callable, Optional

from reminder_backend.retry import DEFAULT_MAX_RETRIES, retry_operation

logger = logging.getLogger(__name__)

Rows = list[list[str]]


class SheetCache:
    """
    TTL cache of one sheet's data rows.

    The cached value is either None or a complete snapshot as of `last_fetch`;
    it is never patched in place. Writers must call `invalidate()` before
    reporting success so the next read observes their change.
    """

    def __init__(
        self,
        loader: Callable[[], Rows],
        *,
        ttl_seconds: float = 30.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        name: str = "sheet",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._loader = loader
        self.ttl_seconds = float(ttl_seconds)
        self._max_retries = max_retries
        self.name = name
        self._clock = clock
        self._sleep = sleep
        self._data: Optional[Rows] = None
        self._last_fetch = 0.0
        # Bumped by every invalidate(); a load started under an older
        # generation must not be stored.
        self._generation = 0
        self._lock = Lock()

    @property
    def last_fetch(self) -> float:
        return self._last_fetch

    def _valid_locked(self) -> bool:
        if self._data is None:
            return False
        return self._clock() - self._last_fetch < self.ttl_seconds

    def is_valid(self) -> bool:
        with self._lock:
            return self._valid_locked()

    def get(self, *, force_refresh: bool = False) -> Rows:
        with self._lock:
            if not force_refresh and self._valid_locked():
                return self._data
            generation = self._generation

        rows = retry_operation(self._loader, self._max_retries, sleep=self._sleep)
        with self._lock:
            if generation != self._generation:
                logger.debug("Cache %s invalidated during load, not storing", self.name)
                return rows
            self._data = rows
            self._last_fetch = self._clock()
        logger.debug("Cache %s refreshed with %d rows", self.name, len(rows))
        return rows

    def invalidate(self) -> None:
        with self._lock:
            self._data = None
            self._last_fetch = 0.0
            self._generation += 1
