"""
Thread-safe DNS response cache with lazy TTL expiry.

Entries hold the raw upstream reply. Nothing is swept in the background:
callers check `is_expired` after a lookup and invalidate stale entries
themselves.
"""

import time
from typing import Optional

from .rwlock import RWLock


class CacheEntry:
    __slots__ = ("message", "inserted_at", "ttl")

    def __init__(self, message: bytes, ttl: int, inserted_at: Optional[float] = None):
        self.message = bytes(message)
        self.ttl = ttl
        self.inserted_at = time.monotonic() if inserted_at is None else inserted_at

    @property
    def age(self) -> float:
        return time.monotonic() - self.inserted_at

    @property
    def is_expired(self) -> bool:
        return self.age >= self.ttl

    def __repr__(self):
        return f"CacheEntry(len={len(self.message)}, ttl={self.ttl}, age={self.age:.1f})"


def make_key(name: str, qtype: int) -> str:
    return f"{name}:{qtype}"


class DNSCache:
    def __init__(self):
        self._cache: dict[str, CacheEntry] = {}
        self._lock = RWLock()

    def lookup(self, key: str) -> tuple[Optional[CacheEntry], bool]:
        """Return (entry, found). Stale entries are returned as-is."""
        with self._lock.read_locked():
            entry = self._cache.get(key)
        return entry, entry is not None

    def insert(self, key: str, message: bytes, ttl: int):
        """Store a copy of `message`, replacing any existing entry for `key`."""
        entry = CacheEntry(message, ttl)
        with self._lock.write_locked():
            self._cache[key] = entry

    def invalidate(self, key: str):
        with self._lock.write_locked():
            self._cache.pop(key, None)

    def __len__(self):
        with self._lock.read_locked():
            return len(self._cache)

    def __contains__(self, key: str):
        with self._lock.read_locked():
            return key in self._cache
