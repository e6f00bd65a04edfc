"""Data contracts for the web search tool."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SearchResult:
    """One hit from a search provider, in relevance order."""

    title: str
    link: str
    snippet: str = ""


class SearchProvider(ABC):
    """
    Keyworded web search returning a short ordered result list.

    Zero hits is an empty list. Missing credentials raise ConfigMissing;
    network, quota or auth problems raise TransportFailure.
    """

    name = "search"

    @abstractmethod
    def search(self, query: str) -> list[SearchResult]:
        pass
