"""Google Programmable Search (Custom Search JSON API) provider."""

from typing import Any

import httpx

from models.errors import ConfigMissing, TransportFailure
from utils.logger import get_logger

from .contracts import SearchProvider, SearchResult

logger = get_logger(__name__)

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
GOOGLE_MAX_NUM = 10


class GoogleSearchProvider(SearchProvider):
    """
    Google Custom Search over httpx.

    Returns at most `max_results` hits as (title, link, snippet).
    """

    name = "google"

    def __init__(
        self,
        api_key: str | None,
        engine_id: str | None,
        *,
        max_results: int = 5,
        timeout_s: float = 10.0,
        http_client: httpx.Client | None = None,
    ):
        self.api_key = (api_key or "").strip()
        self.engine_id = (engine_id or "").strip()
        self.max_results = max(1, min(int(max_results), GOOGLE_MAX_NUM))
        self._http = http_client or httpx.Client(timeout=timeout_s)

    def search(self, query: str) -> list[SearchResult]:
        if not self.api_key or not self.engine_id:
            raise ConfigMissing(
                "Web search is not configured (set GOOGLE_SEARCH_API_KEY and GOOGLE_SEARCH_ENGINE_ID)",
                provider=self.name,
            )

        params = {"key": self.api_key, "cx": self.engine_id, "q": query, "num": self.max_results}
        logger.info(f"Google search: '{query}' (max_results={self.max_results})")

        try:
            response = self._http.get(GOOGLE_SEARCH_URL, params=params)
            response.raise_for_status()
            payload = response.json() if response.content else {}
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise TransportFailure(
                f"Search request failed with HTTP {status}",
                provider=self.name,
                status_code=status,
                retryable=status >= 500 or status == 429,
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise TransportFailure(f"Search request failed: {exc}", provider=self.name, retryable=True) from exc

        results = self._normalize(payload if isinstance(payload, dict) else {})
        logger.info(f"Google returned {len(results)} results")
        return results

    def _normalize(self, payload: dict[str, Any]) -> list[SearchResult]:
        results: list[SearchResult] = []
        for item in (payload.get("items") or [])[: self.max_results]:
            link = str(item.get("link") or "").strip()
            if not link:
                continue
            results.append(
                SearchResult(
                    title=str(item.get("title") or "").strip() or link,
                    link=link,
                    snippet=" ".join(str(item.get("snippet") or "").split()),
                )
            )
        return results
