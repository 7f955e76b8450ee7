"""
Time-bounded cache of generated recommendation lists.

Entries hold the ordered track ids produced for one (listener, request kind)
pair. An entry older than the TTL is treated as absent.
"""

from __future__ import annotations
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from loguru import logger

from sgrec.errors import InvalidConfigError
from sgrec.structures import HashIndex

DEFAULT_TTL_SECONDS = 30 * 60

WEEKLY_DISCOVERY = "weekly_discovery"
SEEDED_RADIO = "seeded_radio"

CacheKey = Tuple[str, str]


@dataclass(frozen=True)
class CacheEntry:
    track_ids: Tuple[str, ...]
    created_at: float

    def age(self, now: float) -> float:
        return now - self.created_at


class RecommendationCache:
    """
    Per-listener cache with a fixed time-to-live.

    Writes replace whole entries (last write wins); entries are never
    partially updated.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS,
                 clock: Optional[Callable[[], float]] = None):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Maximum entry age before it is considered stale
            clock: Callable returning the current time in seconds
        """
        if ttl_seconds <= 0:
            raise InvalidConfigError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock or time.time
        self._entries: HashIndex[CacheKey, CacheEntry] = HashIndex()
        self._lock = threading.Lock()

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return entry.age(now) >= self.ttl_seconds

    def get(self, listener_id: str, kind: str, limit: Optional[int] = None) -> Optional[List[str]]:
        """
        Return the cached track ids, or None when missing or stale.

        Args:
            listener_id: Listener the list was generated for
            kind: Request kind (weekly discovery, radio for a seed)
            limit: Slice the cached list to this many ids
        """
        key = (listener_id, kind)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry, self._clock()):
                self._entries.remove(key)
                logger.debug(f"Cache entry {key} expired")
                return None
        ids = list(entry.track_ids)
        return ids if limit is None else ids[:limit]

    def put(self, listener_id: str, kind: str, track_ids: Sequence[str]):
        """Store a freshly generated list, replacing any previous entry."""
        entry = CacheEntry(tuple(track_ids), self._clock())
        with self._lock:
            self._entries.put((listener_id, kind), entry)

    def invalidate(self, listener_id: str, kind: str) -> bool:
        with self._lock:
            return self._entries.remove((listener_id, kind)) is not None

    def prune_expired(self) -> int:
        """
        Remove stale entries without regenerating anything.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            stale = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
            for key in stale:
                self._entries.remove(key)
        if stale:
            logger.debug(f"Pruned {len(stale)} expired cache entries")
        return len(stale)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        return self._entries.size()

    def __len__(self) -> int:
        return self.size()
