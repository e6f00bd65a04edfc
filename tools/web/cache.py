"""Thread-safe TTL cache in front of a search provider."""

import hashlib
import threading
from datetime import datetime, timedelta, timezone

from utils.logger import get_logger

from .contracts import SearchProvider, SearchResult

logger = get_logger(__name__)


class CachingSearchProvider(SearchProvider):
    """
    Wraps a SearchProvider and memoizes successful result lists for `ttl_seconds`.

    Keys are the sha256 of the normalized query (first 16 hex chars). Only
    successful lookups are cached; failures always reach the inner provider
    again on the next call. A lock guards the map because concurrent
    requests share one provider instance.
    """

    def __init__(self, inner: SearchProvider, ttl_seconds: int, max_entries: int = 256):
        self.inner = inner
        self.name = inner.name
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_entries = max_entries
        self._cache: dict[str, tuple[tuple[SearchResult, ...], datetime]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _make_key(query: str) -> str:
        normalized = " ".join(query.lower().split())
        return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:16]

    def search(self, query: str) -> list[SearchResult]:
        key = self._make_key(query)
        now = datetime.now(timezone.utc)
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None:
                results, expiry = entry
                if now < expiry:
                    logger.info(f"Search cache hit for query: '{query[:50]}'")
                    return list(results)
                del self._cache[key]

        results = self.inner.search(query)

        with self._lock:
            if len(self._cache) >= self._max_entries:
                oldest = min(self._cache, key=lambda k: self._cache[k][1])
                del self._cache[oldest]
            self._cache[key] = (tuple(results), now + self._ttl)
        return results

    def clear(self):
        with self._lock:
            self._cache.clear()
