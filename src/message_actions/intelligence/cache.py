"""In-memory analysis cache with TTL and LRU bounds."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from message_actions.core.models import MessageAnalysisResult

LOGGER = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
DEFAULT_MAX_ENTRIES = 1000
KEY_MESSAGE_CHARS = 100
KEY_SEPARATOR = "\x1f"


@dataclass(slots=True, frozen=True)
class CacheEntry:
    """Cached analysis together with the clock reading at insertion."""

    result: MessageAnalysisResult
    inserted_at: float

    def age(self, now: float) -> float:
        return now - self.inserted_at


class AnalysisCache:
    """Analysis results keyed by contact, message prefix and vendor category.

    Entries older than ``ttl_seconds`` are never returned by :meth:`get`.
    Once ``max_entries`` is exceeded the least recently used entry is dropped.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache."""
        self.ttl_seconds = ttl_seconds
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` if it is still fresh."""
        entry = self._entries.get(key)
        if entry is None:
            LOGGER.debug("Cache miss for key: %r", key)
            return None
        if entry.age(self._clock()) >= self.ttl_seconds:
            LOGGER.debug("Cache expired for key: %r", key)
            return None
        self._entries.move_to_end(key)
        LOGGER.debug("Cache hit for key: %r", key)
        return entry

    def get_stale(self, key: str, max_age_seconds: float) -> CacheEntry | None:
        """Return the entry for ``key`` when younger than ``max_age_seconds``.

        Used to serve an expired analysis when re-deriving it failed.
        """
        entry = self._entries.get(key)
        if entry is None or entry.age(self._clock()) >= max_age_seconds:
            return None
        return entry

    def set(self, key: str, result: MessageAnalysisResult) -> CacheEntry:
        """Store ``result`` under ``key``, evicting the oldest entries if full."""
        entry = CacheEntry(result=result, inserted_at=self._clock())
        self._entries[key] = entry
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            LOGGER.debug("Evicted least recently used key: %r", evicted)
        LOGGER.debug("Cache set for key: %r (TTL: %ds)", key, self.ttl_seconds)
        return entry

    def invalidate_by_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with ``prefix``."""
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        LOGGER.info("Invalidated %d cache entries for prefix %r", len(keys), prefix)
        return len(keys)

    def clear_all(self) -> int:
        """Remove every entry."""
        count = len(self._entries)
        self._entries.clear()
        LOGGER.info("Invalidated all %d cache entries", count)
        return count

    def cleanup_expired(self) -> int:
        """Remove all entries past the TTL."""
        now = self._clock()
        expired_keys = [
            key
            for key, entry in self._entries.items()
            if entry.age(now) >= self.ttl_seconds
        ]
        for key in expired_keys:
            del self._entries[key]

        if expired_keys:
            LOGGER.debug("Cleaned up %d expired cache entries", len(expired_keys))

        return len(expired_keys)

    def size(self) -> int:
        """Get current cache size."""
        return len(self._entries)

    @staticmethod
    def make_key(contact_id: str, message_content: str, vendor_category: str) -> str:
        """
        Create the cache key for an analysis request.

        Args:
            contact_id: Vendor contact the message belongs to
            message_content: Message text; only the first 100 characters count
            vendor_category: Category of the vendor

        Returns:
            Composite key that starts with :meth:`contact_prefix`
        """
        return KEY_SEPARATOR.join(
            (contact_id, message_content[:KEY_MESSAGE_CHARS], vendor_category)
        )

    @staticmethod
    def contact_prefix(contact_id: str) -> str:
        """Return the key prefix shared by every entry of ``contact_id``."""
        return f"{contact_id}{KEY_SEPARATOR}"


__all__ = ["AnalysisCache", "CacheEntry", "DEFAULT_TTL_SECONDS"]
