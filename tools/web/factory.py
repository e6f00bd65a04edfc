"""Factory for creating the configured search provider."""

from config.config import Config, SearchBackend
from utils.logger import get_logger

from .cache import CachingSearchProvider
from .contracts import SearchProvider
from .google_search import GoogleSearchProvider
from .tavily_client import TavilySearchProvider

logger = get_logger(__name__)


def create_search_provider(config: Config) -> SearchProvider:
    """
    Build the search provider selected by SEARCH_PROVIDER.

    Missing credentials are not an error here: the provider fails closed
    with ConfigMissing on each search, and the orchestrator answers without
    evidence.
    """
    if config.search_backend == SearchBackend.TAVILY:
        provider: SearchProvider = TavilySearchProvider(
            config.tavily_api_key,
            max_results=config.search_max_results,
            timeout_s=config.search_timeout_s,
        )
    else:
        provider = GoogleSearchProvider(
            config.google_api_key,
            config.google_engine_id,
            max_results=config.search_max_results,
            timeout_s=config.search_timeout_s,
        )

    if not config.search_configured:
        logger.warning(f"Search provider '{provider.name}' has no credentials; searches will be skipped")

    if config.search_cache_ttl_seconds > 0:
        provider = CachingSearchProvider(provider, ttl_seconds=config.search_cache_ttl_seconds)

    logger.info(f"Using {provider.name} for web search")
    return provider
