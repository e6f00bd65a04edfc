"""Tavily search provider, backed by the official tavily-python client."""

from typing import Any

from tavily import TavilyClient
from tavily.errors import InvalidAPIKeyError, UsageLimitExceededError

from models.errors import ConfigMissing, TransportFailure
from utils.logger import get_logger

from .contracts import SearchProvider, SearchResult

logger = get_logger(__name__)

MAX_SNIPPET_CHARS = 320


def _trim_text(text: Any, limit: int = MAX_SNIPPET_CHARS) -> str:
    raw = " ".join(str(text or "").split())
    if len(raw) <= limit:
        return raw
    return raw[: limit - 3].rstrip() + "..."


class TavilySearchProvider(SearchProvider):
    """
    Tavily-backed search.

    Tavily ranks and cleans page content itself; we keep only the short
    excerpt as the snippet. The SDK client is only built when a key is set,
    since TavilyClient refuses to start without one.
    """

    name = "tavily"

    def __init__(
        self,
        api_key: str | None,
        *,
        max_results: int = 5,
        search_depth: str = "basic",
        timeout_s: float = 10.0,
        client: Any = None,
    ):
        self.api_key = (api_key or "").strip()
        self.max_results = max(1, min(int(max_results), 10))
        self.search_depth = search_depth
        self.timeout_s = timeout_s
        if client is None and self.api_key:
            client = TavilyClient(api_key=self.api_key)
        self.client = client

    def search(self, query: str) -> list[SearchResult]:
        if not self.api_key or self.client is None:
            raise ConfigMissing("Web search is not configured (set TAVILY_API_KEY)", provider=self.name)

        logger.info(f"Tavily search: '{query}' (max_results={self.max_results}, depth={self.search_depth})")

        try:
            response = self.client.search(
                query=query,
                max_results=self.max_results,
                search_depth=self.search_depth,
                include_raw_content=False,
                include_answer=False,
                timeout=self.timeout_s,
            )
        except InvalidAPIKeyError as exc:
            raise TransportFailure(
                "Search request was rejected: invalid Tavily API key",
                provider=self.name,
                status_code=401,
                retryable=False,
            ) from exc
        except UsageLimitExceededError as exc:
            raise TransportFailure(
                "Search usage limit exceeded", provider=self.name, status_code=429, retryable=True
            ) from exc
        except Exception as exc:
            raise TransportFailure(f"Search request failed: {exc}", provider=self.name, retryable=True) from exc

        response = response if isinstance(response, dict) else {}
        results = []
        for item in (response.get("results") or [])[: self.max_results]:
            url = str(item.get("url") or "").strip()
            if not url:
                continue
            results.append(
                SearchResult(
                    title=str(item.get("title") or "").strip() or url,
                    link=url,
                    snippet=_trim_text(item.get("content")),
                )
            )

        logger.info(f"Tavily returned {len(results)} results")
        return results
