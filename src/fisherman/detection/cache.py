"""Time-bounded memo of URL analysis results.

Entries live for ``ttl_seconds``.  An expired entry is treated as absent
by :meth:`AnalysisCache.get` but stays in memory until
:meth:`AnalysisCache.purge_expired` sweeps it.  When the cache is full,
inserting a new key first evicts the oldest inserted entry (FIFO, not
LRU: reads do not refresh an entry's position).

Thread-safe: every operation runs under a single lock, so the capacity
check, eviction and insert happen as one step.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from fisherman.core.errors import CacheCapacityError
from fisherman.core.models import AnalysisResult

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAX_SIZE = 1000
NO_CONTEXT = "no-context"


def make_cache_key(url: str, context_id: str | int | None = None) -> str:
    """Composite key of URL and optional tab/context identifier."""
    context = NO_CONTEXT if context_id is None else str(context_id)
    return f"{url}:{context}"


@dataclass(frozen=True)
class CacheEntry:
    """A cached result and the time it was stored."""

    result: AnalysisResult
    stored_at: float


class AnalysisCache:
    """Bounded FIFO cache with per-entry time-to-live.

    Args:
        ttl_seconds: Age at which an entry stops being served.
        max_size: Maximum number of entries held at once.
        clock: Source of the current time, injectable for tests.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be a positive integer")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = float(ttl_seconds)
        self._max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get(self, key: str) -> AnalysisResult | None:
        """Return the live result for *key*, or ``None`` if absent/expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self._ttl:
                return None
            return entry.result

    def put(self, key: str, result: AnalysisResult) -> None:
        """Store *result*, evicting the oldest entry if the cache is full."""
        with self._lock:
            if key in self._entries:
                # Re-inserting counts as a fresh insert
                del self._entries[key]
            elif len(self._entries) >= self._max_size:
                evicted_key, _ = self._entries.popitem(last=False)
                logger.debug("Analysis cache full, evicted %s", evicted_key)

            self._entries[key] = CacheEntry(result=result, stored_at=self._clock())

            if len(self._entries) > self._max_size:
                raise CacheCapacityError(
                    f"Analysis cache holds {len(self._entries)} entries, "
                    f"capacity is {self._max_size}"
                )

    def purge_expired(self) -> int:
        """Remove every expired entry.  Returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [
                key for key, entry in self._entries.items()
                if now - entry.stored_at >= self._ttl
            ]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.info("Purged %d expired analysis cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
