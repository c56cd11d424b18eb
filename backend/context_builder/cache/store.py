"""In-process expiring key/value store."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")

Clock = Callable[[], float]

DEFAULT_SWEEP_INTERVAL = 60.0


@dataclass(slots=True)
class CacheEntry:
    value: Any
    stored_at: float
    expires_at: float


@dataclass(slots=True)
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class ExpiringCache:
    """Thread-safe map whose entries expire a fixed time after being written.

    Expired entries are dropped when read, and ``set`` sweeps the whole map at
    most once every ``sweep_interval`` seconds so keys that are never read
    again do not accumulate. ``get_or_create`` holds a per-key lock while the
    factory runs, so concurrent misses on the same key compute the value once.
    A per-key lock is released from the registry only when no other caller is
    holding or waiting on it.
    """

    def __init__(self, clock: Clock = time.monotonic, sweep_interval: float = DEFAULT_SWEEP_INTERVAL) -> None:
        if sweep_interval < 0:
            raise ValueError("sweep_interval must not be negative")
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._entries: dict[Hashable, CacheEntry] = {}
        self._lock = threading.RLock()
        self._key_locks: dict[Hashable, _KeyLock] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(1 for entry in self._entries.values() if entry.expires_at > now)

    def get(self, key: Hashable) -> Any | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= now:
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: Hashable, value: Any, ttl: float) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self._sweep_interval:
                purged = self._purge_expired(now)
                if purged:
                    logger.debug("Cache sweep removed %s expired entries", purged)
            self._entries[key] = CacheEntry(value=value, stored_at=now, expires_at=now + ttl)

    def get_or_create(self, key: Hashable, factory: Callable[[], V], ttl: float) -> tuple[V, bool]:
        """Return ``(value, hit)``, computing and storing the value on a miss."""
        cached = self.get(key)
        if cached is not None:
            return cached, True
        key_lock = self._acquire_key_lock(key)
        try:
            with key_lock.lock:
                cached = self.get(key)
                if cached is not None:
                    return cached, True
                value = factory()
                self.set(key, value, ttl)
        finally:
            self._release_key_lock(key, key_lock)
        return value, False

    def compact(self, fraction: float = 1.0) -> int:
        """Drop expired entries, then the oldest ``fraction`` of the rest.

        Returns the number of entries removed.
        """
        if not 0.0 <= fraction <= 1.0:
            raise ValueError("fraction must be within [0, 1]")
        now = self._clock()
        with self._lock:
            expired = self._purge_expired(now)
            survivors = sorted(self._entries.items(), key=lambda item: item[1].stored_at)
            evict_count = math.ceil(len(survivors) * fraction)
            for key, _ in survivors[:evict_count]:
                del self._entries[key]
        removed = expired + evict_count
        logger.info("Cache compacted: removed %s entries", removed)
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _purge_expired(self, now: float) -> int:
        # caller holds self._lock
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now
        return len(expired)

    def _acquire_key_lock(self, key: Hashable) -> _KeyLock:
        with self._lock:
            key_lock = self._key_locks.get(key)
            if key_lock is None:
                key_lock = _KeyLock()
                self._key_locks[key] = key_lock
            key_lock.users += 1
            return key_lock

    def _release_key_lock(self, key: Hashable, key_lock: _KeyLock) -> None:
        with self._lock:
            key_lock.users -= 1
            if key_lock.users == 0 and self._key_locks.get(key) is key_lock:
                del self._key_locks[key]


__all__ = ["CacheEntry", "Clock", "ExpiringCache"]
