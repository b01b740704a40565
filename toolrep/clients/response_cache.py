"""In-process response cache for API calls made within one run.

Several analyzers read the same repository payload while scoring one tool;
the cache keeps those reads to one request per TTL window.
"""

import hashlib
import json
import logging
import time
from typing import Any

logger = logging.getLogger(__name__)


class ResponseCache:
    """API response cache with TTL support."""

    def __init__(self, ttl_seconds: float = 600, max_entries: int = 2048):
        """Initialize ResponseCache.

        Args:
            ttl_seconds: Time-to-live for cached responses. 0 disables caching.
            max_entries: Oldest entries are evicted past this size.
        """
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: dict[str, tuple[float, Any]] = {}

    def _cache_key(self, endpoint: str, params: dict[str, Any] | None) -> str:
        key_data = f"{endpoint}:{json.dumps(params or {}, sort_keys=True)}"
        return hashlib.sha256(key_data.encode()).hexdigest()[:16]

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any | None:
        """Get cached response data if present and not expired."""
        if self.ttl_seconds <= 0:
            return None
        key = self._cache_key(endpoint, params)
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, data = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return data

    def set(self, endpoint: str, params: dict[str, Any] | None, data: Any) -> None:
        """Cache response data."""
        if self.ttl_seconds <= 0:
            return
        if len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
            logger.debug(f"Response cache full, evicted {oldest}")
        key = self._cache_key(endpoint, params)
        self._entries[key] = (time.monotonic() + self.ttl_seconds, data)

    def clear(self) -> int:
        """Drop all entries and return how many were removed."""
        count = len(self._entries)
        self._entries.clear()
        return count
