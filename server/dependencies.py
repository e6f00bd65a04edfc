"""FastAPI dependencies: configuration, upstream clients and the orchestrator (process singletons)."""

from api.base_client import BaseCompletionClient
from config.config import Config
from orchestrator.core import OrchestratorPolicy, SearchOrchestrator
from tools.web import SearchProvider, create_search_provider
from utils.logger import get_logger

logger = get_logger(__name__)


def get_config() -> Config:
    """Configuration resolved once from the environment."""
    if not hasattr(get_config, "_instance"):
        get_config._instance = Config.from_env()
    return get_config._instance


def get_completion_client() -> BaseCompletionClient:
    if not hasattr(get_completion_client, "_instance"):
        from api.ollama_client import OllamaClient

        get_completion_client._instance = OllamaClient(get_config())
    return get_completion_client._instance


def get_search_provider() -> SearchProvider:
    if not hasattr(get_search_provider, "_instance"):
        get_search_provider._instance = create_search_provider(get_config())
    return get_search_provider._instance


def get_orchestrator() -> SearchOrchestrator:
    """Dependency to get the orchestrator instance (singleton pattern)."""
    if not hasattr(get_orchestrator, "_instance"):
        config = get_config()
        get_orchestrator._instance = SearchOrchestrator(
            completion_client=get_completion_client(),
            search_provider=get_search_provider(),
            policy=OrchestratorPolicy(
                draft_chunk_size=config.draft_chunk_size,
                max_retries=config.max_adequacy_retries,
            ),
        )
        logger.info("Orchestrator initialized")
    return get_orchestrator._instance


def reset_singletons() -> None:
    """Forget cached instances (tests, config reloads)."""
    for factory in (get_config, get_completion_client, get_search_provider, get_orchestrator):
        if hasattr(factory, "_instance"):
            delattr(factory, "_instance")
