"""In-process TTL cache shared by all requests"""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from src.models.cache import MemoryCacheEntry

logger = logging.getLogger(__name__)


class MemoryCache:
    """Key/value cache with lazy TTL expiry

    Entries are never swept; an entry older than the TTL is treated as absent
    when read and replaced on the next write. Writes carry the time the
    producing operation started so that a slow, earlier-issued operation cannot
    replace the result of a later-issued one.
    """

    def __init__(self, ttl_seconds: float = 1800.0, clock: Callable[[], float] = time.monotonic):
        """
        Initialize cache

        Args:
            ttl_seconds: Age after which entries are treated as expired
            clock: Monotonic time source (injectable for tests)
        """
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[str, MemoryCacheEntry] = {}

    def now(self) -> float:
        """Current time on the cache clock, used as an operation's issue time"""
        return self.clock()

    def _is_live(self, entry: MemoryCacheEntry) -> bool:
        return self.clock() - entry.timestamp <= self.ttl_seconds

    def get_entry(self, key: str) -> MemoryCacheEntry | None:
        """Return the live entry for key, or None on miss/expiry"""
        entry = self._entries.get(key)
        if entry is None or not self._is_live(entry):
            return None
        return entry

    def get(self, key: str) -> Any | None:
        """Return the live value for key, or None on miss/expiry"""
        entry = self.get_entry(key)
        if entry is None:
            return None
        logger.debug(f"Memory cache hit: {key}")
        return entry.value

    def set(self, key: str, value: Any, issued_at: float | None = None) -> bool:
        """
        Store value under key

        Args:
            key: Cache key
            value: Value to store
            issued_at: When the operation producing value started (default: now)

        Returns:
            True if stored, False if a live entry from a later-issued operation won
        """
        now = self.clock()
        issued_at = now if issued_at is None else issued_at

        existing = self._entries.get(key)
        if existing is not None and self._is_live(existing) and existing.issued_at > issued_at:
            logger.debug(f"Skipping stale write for {key}")
            return False

        self._entries[key] = MemoryCacheEntry(
            key=key,
            value=value,
            timestamp=now,
            issued_at=issued_at,
            written_at=datetime.now(timezone.utc),
        )
        return True

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get_entry(key) is not None
