"""Process-local cache service with per-entry TTL.

Entries live in a dict owned by the service and guarded by a lock, so the
same instance can be shared by every request thread. Expired entries are
never returned; they are dropped on access or reclaimed in bulk by
``delete_expired`` (driven by the cleanup service).

The cache is not shared between processes. Flushing it only affects the
process that receives the call.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from core.logging import get_logger, log_cache_operation

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    inserted_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class CacheService:
    """Thread-safe in-memory key/value store with TTL expiry."""

    def __init__(self, default_ttl: int = 300, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Get a live value, or None when absent or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_expired(now):
                del self._entries[key]
                entry = None
            if entry is None:
                self._misses += 1
            else:
                self._hits += 1

        log_cache_operation(logger, "get", key, hit=entry is not None)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Set value with TTL in seconds (default TTL when omitted)."""
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        entry = CacheEntry(key=key, value=value, inserted_at=now, expires_at=now + ttl)
        with self._lock:
            self._entries[key] = entry
        log_cache_operation(logger, "set", key, ttl=ttl)

    def delete(self, key: str) -> bool:
        """Delete value from cache."""
        with self._lock:
            deleted = self._entries.pop(key, None) is not None
        log_cache_operation(logger, "delete", key, deleted=deleted)
        return deleted

    def flush_all(self) -> int:
        """Drop every entry. Returns the number removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        log_cache_operation(logger, "flush_all", "*", deleted=count)
        return count

    def delete_expired(self) -> int:
        """Remove all expired entries. Returns count deleted."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            log_cache_operation(logger, "delete_expired", "*", deleted=len(expired))
        return len(expired)

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
