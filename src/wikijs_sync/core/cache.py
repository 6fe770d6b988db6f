"""Time-bounded memo of content checksums.

The sync engine stores the checksum of every successfully pushed note
here so a later push of byte-identical content can be skipped.  Entries
expire after a fixed TTL; expiry is lazy (checked on ``get`` and
compacted on ``size``), there is no background eviction.

Not thread-safe: all access happens on the event loop thread.
"""

from __future__ import annotations

import hashlib
import time
from typing import Callable, Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")

DEFAULT_TTL_SECONDS = 30 * 60


def content_checksum(content: str) -> str:
    """Return the SHA-256 hex digest of *content* encoded as UTF-8."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class TTLCache(Generic[K, V]):
    """Unbounded key/value cache whose entries expire after ``ttl`` seconds.

    Args:
        ttl: Lifetime of an entry in seconds.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[K, tuple[V, float]] = {}

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: K) -> V | None:
        """Return the cached value, or ``None`` if absent or expired."""
        item = self._entries.get(key)
        if item is None:
            return None
        value, expiry = item
        if self._clock() > expiry:
            del self._entries[key]
            return None
        return value

    def set(self, key: K, value: V) -> None:
        self._entries[key] = (value, self._clock() + self._ttl)

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        """Drop expired entries and return the number of live ones."""
        now = self._clock()
        expired = [
            key
            for key, (_, expiry) in self._entries.items()
            if now > expiry
        ]
        for key in expired:
            del self._entries[key]
        return len(self._entries)
