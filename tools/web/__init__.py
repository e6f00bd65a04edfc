"""Web search tools."""

from .contracts import SearchProvider, SearchResult
from .factory import create_search_provider

__all__ = ["SearchProvider", "SearchResult", "create_search_provider"]
