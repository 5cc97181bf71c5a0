"""
In-process response cache with tag-based invalidation.
Cached listing aggregates are dropped whenever a listing changes.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple
import hashlib
import json
import logging

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
DEFAULT_MAX_ENTRIES = 1000
PROPERTIES_TAG = "properties"


@dataclass
class CacheEntry:
    value: Any
    expires_at: datetime


class ResponseCache:
    """
    TTL cache keyed by (tag, key).

    Expired entries are purged on every write, and once `max_entries` is
    reached the oldest entry is evicted.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        enabled: bool = True,
        max_entries: int = DEFAULT_MAX_ENTRIES
    ):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.enabled = enabled
        self.max_entries = max_entries
        self._entries: Dict[Tuple[str, str], CacheEntry] = {}

    @staticmethod
    def make_key(*parts: Any) -> str:
        """Stable key from arbitrary JSON-serializable parts."""
        raw = json.dumps(parts, sort_keys=True, default=str)
        return hashlib.sha256(raw.encode()).hexdigest()

    def get(self, tag: str, key: str) -> Optional[Any]:
        if not self.enabled:
            return None

        entry = self._entries.get((tag, key))
        if entry is None:
            return None

        if datetime.now(timezone.utc) >= entry.expires_at:
            del self._entries[(tag, key)]
            logger.debug(f"Cache expired for {tag}:{key[:8]}")
            return None

        logger.debug(f"Cache hit for {tag}:{key[:8]}")
        return entry.value

    def set(self, tag: str, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        if not self.enabled:
            return
        now = datetime.now(timezone.utc)
        ttl = timedelta(seconds=ttl_seconds) if ttl_seconds is not None else self.ttl

        self._purge_expired(now)
        # Re-inserting moves the key to the end of the eviction order
        self._entries.pop((tag, key), None)
        while self._entries and len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug(f"Evicted cache entry {oldest[0]}:{oldest[1][:8]}")

        self._entries[(tag, key)] = CacheEntry(value=value, expires_at=now + ttl)

    def _purge_expired(self, now: datetime) -> None:
        expired = [k for k, entry in self._entries.items() if now >= entry.expires_at]
        for k in expired:
            del self._entries[k]

    def invalidate(self, tag: str) -> int:
        """Drop every entry under a tag and return how many were removed."""
        keys = [k for k in self._entries if k[0] == tag]
        for k in keys:
            del self._entries[k]
        if keys:
            logger.info(f"Invalidated {len(keys)} cached entries for tag '{tag}'")
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


response_cache = ResponseCache()


def invalidate_property_pages() -> None:
    """Called after any listing, image or admin listing mutation."""
    response_cache.invalidate(PROPERTIES_TAG)
