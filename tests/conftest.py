import json
from datetime import datetime

import pytest

from api.base_client import BaseCompletionClient, CompletionResult, ModelDescriptor
from orchestrator.core import OrchestratorPolicy, SearchOrchestrator
from tools.web.contracts import SearchProvider, SearchResult

FIXED_NOW = datetime(2025, 3, 14, 9, 30)


def verdict(needs_search: bool, query: str = "", reasoning: str = "test") -> str:
    """Classifier reply in the JSON shape the advisors expect."""
    return json.dumps({"needsSearch": needs_search, "searchQuery": query, "reasoning": reasoning})


class ScriptedStream:
    """Incremental completion stub: yields fragments, optionally fails after them, records close()."""

    def __init__(self, fragments, error: Exception | None = None):
        self._fragments = list(fragments)
        self._error = error
        self.closed = False
        self.yielded = 0

    def __iter__(self):
        return self

    def __next__(self):
        if self.closed:
            raise StopIteration
        if self.yielded < len(self._fragments):
            fragment = self._fragments[self.yielded]
            self.yielded += 1
            return fragment
        if self._error is not None:
            raise self._error
        raise StopIteration

    def close(self):
        self.closed = True


class FakeCompletionClient(BaseCompletionClient):
    """
    Deterministic completion backend.

    `buffered` is consumed in call order (advisor and draft calls share it);
    each entry is a reply string or an exception to raise. `streams` works the
    same way for incremental calls: a list of fragments, a ScriptedStream, or
    an exception raised when the stream is requested.
    """

    provider = "fake"

    def __init__(self, buffered=None, streams=None, models=None):
        self.buffered = list(buffered or [])
        self.streams = list(streams or [])
        self.models = models if models is not None else [ModelDescriptor(name="llama3.2")]
        self.buffered_calls: list[tuple[str, list]] = []
        self.incremental_calls: list[tuple[str, list]] = []
        self.opened_streams: list[ScriptedStream] = []

    def complete_buffered(self, model, messages):
        self.buffered_calls.append((model, messages))
        if not self.buffered:
            raise AssertionError("unexpected complete_buffered call")
        reply = self.buffered.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return CompletionResult(text=reply, model=model)

    def complete_incremental(self, model, messages):
        self.incremental_calls.append((model, messages))
        if not self.streams:
            raise AssertionError("unexpected complete_incremental call")
        script = self.streams.pop(0)
        if isinstance(script, Exception):
            raise script
        stream = script if isinstance(script, ScriptedStream) else ScriptedStream(script)
        self.opened_streams.append(stream)
        return stream

    def list_models(self):
        if isinstance(self.models, Exception):
            raise self.models
        return list(self.models)


class FakeSearchProvider(SearchProvider):
    name = "fake-search"

    def __init__(self, results=None, error: Exception | None = None):
        self.results = list(results or [])
        self.error = error
        self.queries: list[str] = []

    def search(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.results)


@pytest.fixture
def sample_results():
    return [
        SearchResult(title="Ecuador election results", link="https://news.example.com/ecuador", snippet="Noboa wins."),
        SearchResult(title="Runoff recap", link="https://example.org/runoff", snippet="Final count released."),
    ]


@pytest.fixture
def make_orchestrator():
    def _make(client, search, **policy_kwargs):
        return SearchOrchestrator(
            completion_client=client,
            search_provider=search,
            policy=OrchestratorPolicy(**policy_kwargs),
            clock=lambda: FIXED_NOW,
        )

    return _make


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable Config.from_env reads so tests start from defaults."""
    for name in (
        "OLLAMA_HOST",
        "OLLAMA_API_KEY",
        "OLLAMA_TIMEOUT_S",
        "CLOUD_DEFAULT_MODEL",
        "SEARCH_PROVIDER",
        "GOOGLE_SEARCH_API_KEY",
        "GOOGLE_SEARCH_ENGINE_ID",
        "TAVILY_API_KEY",
        "SEARCH_MAX_RESULTS",
        "SEARCH_TIMEOUT_S",
        "SEARCH_CACHE_TTL_SECONDS",
        "DRAFT_CHUNK_SIZE",
        "MAX_ADEQUACY_RETRIES",
        "HOST",
        "PORT",
    ):
        # setenv first so teardown also removes values a dotenv file loaded
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return monkeypatch
