from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

""" Lock-striped TTL store where each entry has its own TTL.

Brief:
  Thread-safe in-memory mapping where every entry carries an absolute expiry.
  Keys are spread over a fixed number of shards, each with its own lock, so
  writers touching different keys rarely contend.

Notes:
  - Expired entries are removed lazily on get() and via purge_expired().
  - The clock is injectable so expiry can be tested without sleeping.
"""


_logger = logging.getLogger(__name__)


class _Shard:
    """Brief: One lock plus the entries hashed to it."""

    __slots__ = ("lock", "entries")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: Dict[Hashable, Tuple[float, Any]] = {}


class TTLStore:
    """Thread-safe in-memory store with per-entry TTL.

    Brief:
        Entries are (expiry, value) pairs. A lookup that finds an expired
        entry removes it and reports a miss. Values are stored and returned
        by reference; callers store immutable values.

    Inputs:
        - shards: Number of independently locked shards (>= 1).
        - now: Optional callable returning the current time in seconds.

    Outputs:
        TTLStore instance

    Example use:
        >>> store = TTLStore()
        >>> _ = store.set(("rdap", "example.com"), 60, "value")
        >>> store.get(("rdap", "example.com"))
        'value'
    """

    def __init__(
        self,
        shards: int = 16,
        *,
        now: Optional[Callable[[], float]] = None,
    ) -> None:
        """Initializes the TTLStore.

        Inputs:
            shards: Number of shards; values below 1 are clamped to 1.
            now: Optional time source in epoch seconds (default time.time).

        Outputs:
            None
        """
        self._now: Callable[[], float] = now or time.time
        self._shards: List[_Shard] = [_Shard() for _ in range(max(1, int(shards)))]

        # Best-effort access counters; they do not affect cache semantics.
        self.calls_total: int = 0
        self.cache_hits: int = 0
        self.cache_misses: int = 0
        self._counter_lock = threading.Lock()

    def _shard_for(self, key: Hashable) -> _Shard:
        return self._shards[hash(key) % len(self._shards)]

    def _count(self, hit: bool) -> None:
        with self._counter_lock:
            self.calls_total += 1
            if hit:
                self.cache_hits += 1
            else:
                self.cache_misses += 1

    def get(self, key: Hashable) -> Any | None:
        """
        Retrieves an item from the store.

        Inputs:
            key: The key to retrieve.

        Outputs:
            The stored value, or None if the key is not found or has expired.
        """
        value, _ = self.get_with_expiry(key)
        return value

    def get_with_expiry(self, key: Hashable) -> Tuple[Any | None, Optional[float]]:
        """Brief: Return the stored value and its absolute expiry.

        Inputs:
            key: The key to retrieve.

        Outputs:
            (value, expires_at) or (None, None) on a miss.
        """
        now = self._now()
        shard = self._shard_for(key)
        with shard.lock:
            entry = shard.entries.get(key)
            if entry is not None and now >= entry[0]:
                # Expired; drop it so the next writer starts clean.
                del shard.entries[key]
                entry = None
        self._count(entry is not None)
        if entry is None:
            return None, None
        expiry, data = entry
        return data, expiry

    def set(self, key: Hashable, ttl: float, data: Any) -> Optional[float]:
        """
        Adds an item to the store with a specified TTL.

        Inputs:
            key: The key to store the value under.
            ttl: Time-To-Live in seconds. Non-positive TTLs remove the key.
            data: The value to store.

        Outputs:
            The absolute expiry that was recorded, or None when nothing was kept.
        """
        if ttl <= 0:
            self.delete(key)
            return None
        expiry = self._now() + float(ttl)
        self.set_until(key, expiry, data)
        return expiry

    def set_until(self, key: Hashable, expires_at: float, data: Any) -> None:
        """Brief: Store data under key until the absolute time expires_at."""

        shard = self._shard_for(key)
        with shard.lock:
            shard.entries[key] = (float(expires_at), data)

    def now(self) -> float:
        return self._now()

    def delete(self, key: Hashable) -> bool:
        shard = self._shard_for(key)
        with shard.lock:
            return shard.entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Remove all expired entries.

        Inputs:
            None
        Outputs:
            Number of entries removed.
        """
        now = self._now()
        removed = 0
        for shard in self._shards:
            with shard.lock:
                # Iterate on a list of items to avoid runtime dict size change issues
                for k, (exp, _) in list(shard.entries.items()):
                    if exp <= now:
                        del shard.entries[k]
                        removed += 1
        if removed:
            _logger.debug("purged %d expired entries", removed)
        return removed

    def clear(self) -> None:
        for shard in self._shards:
            with shard.lock:
                shard.entries.clear()

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.entries)
        return total
