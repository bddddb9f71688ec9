# File: src/api_integration/provider_cache.py

"""
Short-lived, single-slot cache for the upstream station record batch.

One ProviderCache instance is owned by the air quality service (and can be
injected in tests). It keeps the last non-empty batch for `ttl_seconds` in a
`cachetools.TTLCache` holding a single entry. Refreshes are single-flight:
when the entry expires and several requests arrive together, only the first
calls the provider and the rest reuse its result. A failed fetch propagates to
the caller; an expired entry is never served as a fallback.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import List

from cachetools import TTLCache

log = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60

# TTLCache expires an entry once timer() reaches its deadline; the batch must
# still be served at exactly ttl_seconds of age, so the deadline is nudged past it.
TTL_BOUNDARY_SLACK = 1e-6

_RECORDS_KEY = "records"


@dataclass(frozen=True)
class CacheEntry:
    records: List[dict]
    fetched_at: float


class ProviderCache:

    def __init__(self, ttl_seconds=DEFAULT_TTL_SECONDS, clock=time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._slot = TTLCache(maxsize=1, ttl=ttl_seconds + TTL_BOUNDARY_SLACK, timer=clock)
        self._lock = threading.Lock()

    def get_fresh_records(self, fetch_fn):
        """
        Returns the cached batch, or the result of `fetch_fn()` if the entry is
        missing or older than the TTL.

        Args:
            fetch_fn (Callable[[], list[dict]]): Performs the upstream call.

        Raises:
            Whatever `fetch_fn` raises; the cache is left unchanged.
        """
        # TTLCache is not thread-safe; holding the lock across the fetch also
        # keeps refreshes single-flight.
        with self._lock:
            entry = self._slot.get(_RECORDS_KEY)
            if entry is not None:
                log.debug(f"Provider cache hit ({len(entry.records)} records).")
                return entry.records

            log.info("Provider cache empty or expired; fetching upstream records.")
            records = list(fetch_fn() or [])
            if records:
                self._slot[_RECORDS_KEY] = CacheEntry(records=records, fetched_at=self._clock())
                log.info(f"Provider cache stored {len(records)} records.")
            else:
                log.warning("Upstream returned no records; nothing cached.")
            return records

    def invalidate(self):
        with self._lock:
            self._slot.clear()

    def snapshot(self):
        """Diagnostic view of the cache state. Expired entries count as not cached."""
        with self._lock:
            entry = self._slot.get(_RECORDS_KEY)
        if entry is None:
            return {"cached": False, "records": 0, "age_seconds": None, "ttl_seconds": self.ttl_seconds}
        return {
            "cached": True,
            "records": len(entry.records),
            "age_seconds": round(self._clock() - entry.fetched_at, 3),
            "ttl_seconds": self.ttl_seconds,
        }
