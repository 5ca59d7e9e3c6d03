"""
Scan result cache.

Reports are cached by (target URL, depth) for a fixed freshness window.
Expired entries are evicted lazily on access and by `purge()`.
"""

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class ScanCache:
    """Thread-safe TTL cache for serialized scan reports."""

    def __init__(self, ttl_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            ttl_seconds: Freshness window; entries older than this are dropped
            clock: Monotonic time source
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Tuple[str, int], Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(target_url: str, depth: int) -> Tuple[str, int]:
        return target_url, int(depth)

    def get(self, target_url: str, depth: int) -> Optional[Any]:
        """Return the cached report, or None if absent or stale."""
        key = self._key(target_url, depth)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, report = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return report

    def set(self, target_url: str, depth: int, report: Any):
        with self._lock:
            self._entries[self._key(target_url, depth)] = (self._clock(), report)

    def purge(self) -> int:
        """Drop every stale entry; returns how many were removed."""
        now = self._clock()
        with self._lock:
            stale = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_seconds]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Purged {len(stale)} stale scan reports")
        return len(stale)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
