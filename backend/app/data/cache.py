"""
In-memory TTL cache for decoded Finnhub responses.

Only consulted when a caller asks for a revalidate window; a fetch without
one always goes to the network and never writes here. Expired entries are
swept on every write and the store is capped at max_entries.
"""

import time
from typing import Any, Optional


DEFAULT_MAX_ENTRIES = 512


class ResponseCache:
    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._store: dict[str, tuple[Any, float]] = {}
        self._max_entries = max_entries

    @staticmethod
    def key_for(url: str, params: Optional[dict] = None) -> str:
        """Stable key from the URL and its query params, minus the API token."""
        items = sorted((k, str(v)) for k, v in (params or {}).items() if k != "token")
        query = "&".join(f"{k}={v}" for k, v in items)
        return f"{url}?{query}" if query else url

    def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() > expires_at:
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl: int) -> None:
        now = time.monotonic()
        self._evict_expired(now)
        if key not in self._store and len(self._store) >= self._max_entries:
            # Full of live entries: drop the one closest to expiry.
            oldest = min(self._store, key=lambda k: self._store[k][1])
            del self._store[oldest]
        self._store[key] = (value, now + ttl)

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, (_, expires_at) in self._store.items() if now > expires_at]
        for k in expired:
            del self._store[k]

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


# Process-wide; safe because every entry carries its own expiry.
response_cache = ResponseCache()
