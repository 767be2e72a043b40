"""In-memory cache of rendered single-page PDFs.

Keys are ``(flipbook_key, page_number)``. Inserts are admission-controlled:
once the cache is full new pages are simply not cached. Staleness and size are
bounded by :meth:`PageCache.sweep`, which the application runs periodically.

Sync route handlers run in a thread pool, so the map is guarded by a lock.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

PageKey = Tuple[str, int]


@dataclass(frozen=True)
class CachedPage:
    data: bytes
    inserted_at: float


class PageCache:
    def __init__(
        self,
        max_entries: int = 50,
        ttl_seconds: float = 600,
        trim_fraction: float = 0.3,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if not 0 < trim_fraction <= 1:
            raise ValueError("trim_fraction must be in (0, 1]")

        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self.trim_fraction = trim_fraction
        self._clock = clock
        self._entries: Dict[PageKey, CachedPage] = {}
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: PageKey) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: PageKey) -> Optional[bytes]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            self.hits += 1
            return entry.data

    def generation(self, flipbook_key: str) -> int:
        """Bumped by every :meth:`invalidate_all` of ``flipbook_key``."""
        with self._lock:
            return self._generations.get(flipbook_key, 0)

    def put(self, key: PageKey, data: bytes, generation: Optional[int] = None) -> bool:
        """Store ``data`` unless the cache is already full.

        Replacing an existing key is always allowed. When ``generation`` is
        given and the flipbook was invalidated since it was read, nothing is
        stored. Returns whether the page was stored.
        """
        with self._lock:
            if generation is not None and generation != self._generations.get(key[0], 0):
                logger.debug("Dropping page %s rendered before invalidation", key)
                return False
            if key not in self._entries and len(self._entries) >= self.max_entries:
                logger.debug("Page cache full (%d), not caching %s", self.max_entries, key)
                return False
            self._entries[key] = CachedPage(data=data, inserted_at=self._clock())
            return True

    def invalidate_all(self, flipbook_key: str) -> int:
        """Drop every page cached for ``flipbook_key``."""
        with self._lock:
            self._generations[flipbook_key] = self._generations.get(flipbook_key, 0) + 1
            doomed = [key for key in self._entries if key[0] == flipbook_key]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.info("Invalidated %d cached pages for flipbook %s", len(doomed), flipbook_key)
        return len(doomed)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        logger.info("Page cache cleared (%d entries)", removed)
        return removed

    def sweep(self) -> int:
        """Expire entries older than the TTL, then trim the oldest if still over capacity.

        The trim removes at least ``floor(max_entries * trim_fraction)``
        entries, and never leaves more than ``max_entries``.
        """
        now = self._clock()
        with self._lock:
            snapshot = list(self._entries.items())
            expired = [key for key, entry in snapshot if now - entry.inserted_at > self.ttl_seconds]
            for key in expired:
                del self._entries[key]

            trimmed = 0
            overflow = len(self._entries) - self.max_entries
            if overflow > 0:
                trim = max(overflow, math.floor(self.max_entries * self.trim_fraction))
                oldest = sorted(self._entries.items(), key=lambda item: item[1].inserted_at)
                for key, _ in oldest[:trim]:
                    del self._entries[key]
                trimmed = min(trim, len(oldest))
            remaining = len(self._entries)

        if expired or trimmed:
            logger.info(
                "Page cache sweep: %d expired, %d trimmed, %d remaining",
                len(expired), trimmed, remaining,
            )
        return len(expired) + trimmed

    def stats(self) -> dict:
        with self._lock:
            size = len(self._entries)
            total_bytes = sum(len(entry.data) for entry in self._entries.values())
        return {
            "size": size,
            "max_entries": self.max_entries,
            "ttl_seconds": self.ttl_seconds,
            "bytes": total_bytes,
            "hits": self.hits,
            "misses": self.misses,
        }
