"""
Test Suite: FastAPI contract for the chat service

Runs the real application with its collaborators swapped through FastAPI
dependency overrides, so no Ollama daemon, search API or network access is
needed.

Covers:
- request validation (400 JSON errors before any orchestration)
- the SSE wire format of /api/chat, including progress and error events
- failures before any answer content (JSON error with status, even after
  progress) versus after content (in-band error event followed by done)
- /api/config and /api/models, including their failure statuses
- /health and request id propagation
"""

import json

import pytest
from fastapi.testclient import TestClient

from config.config import Config
from conftest import FakeCompletionClient, FakeSearchProvider, ScriptedStream, verdict
from models.errors import AuthFailure, TransportFailure, UpstreamUnavailable
from models.stream_events import ContentEvent, DoneEvent
from orchestrator.core import SearchOrchestrator
from server.app import create_app
from server.dependencies import get_completion_client, get_config, get_orchestrator
from server.utils import MAX_HISTORY_TURNS

pytestmark = pytest.mark.integration


def parse_sse(body: str) -> list[dict]:
    events = []
    for block in body.split("\n\n"):
        block = block.strip()
        if not block:
            continue
        assert block.startswith("data: ")
        events.append(json.loads(block[len("data: ") :]))
    return events


class RaisingOrchestrator:
    """Fails before writing a single event."""

    def __init__(self, error: Exception):
        self.error = error

    def handle(self, message, model, history, sink):
        raise self.error


class RecordingOrchestrator:
    def __init__(self):
        self.calls = []

    def handle(self, message, model, history, sink):
        self.calls.append((message, model, list(history)))
        sink.push(ContentEvent(text="ok"))
        sink.push(DoneEvent())
        sink.close()


@pytest.fixture
def app():
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


def use_orchestrator(app, orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator


# ---------- validation ----------


@pytest.mark.parametrize(
    "payload,error",
    [
        ({"model": "llama3.2"}, "Message is required"),
        ({"message": "", "model": "llama3.2"}, "Message is required"),
        ({"message": "hi"}, "Model is required. Please select a model."),
        ({"message": "hi", "model": ""}, "Model is required. Please select a model."),
    ],
)
def test_chat_rejects_missing_fields(app, client, payload, error):
    orchestrator = RecordingOrchestrator()
    use_orchestrator(app, orchestrator)

    response = client.post("/api/chat", json=payload)

    assert response.status_code == 400
    assert response.json() == {"error": error}
    assert orchestrator.calls == []


def test_history_is_passed_and_trimmed(app, client):
    orchestrator = RecordingOrchestrator()
    use_orchestrator(app, orchestrator)
    history = [
        {"role": "user" if i % 2 == 0 else "assistant", "content": f"turn {i}"} for i in range(MAX_HISTORY_TURNS + 4)
    ]

    response = client.post("/api/chat", json={"message": "next", "model": "m", "conversationHistory": history})

    assert response.status_code == 200
    _, _, passed = orchestrator.calls[0]
    assert len(passed) == MAX_HISTORY_TURNS
    assert passed[-1].content == f"turn {MAX_HISTORY_TURNS + 3}"


# ---------- streaming ----------


def test_chat_streams_progress_content_and_done(app, client, sample_results):
    completion = FakeCompletionClient(buffered=[verdict(True, "ecuador election")], streams=[["Noboa ", "won."]])
    use_orchestrator(app, SearchOrchestrator(completion, FakeSearchProvider(results=sample_results)))

    response = client.post("/api/chat", json={"message": "Who won in Ecuador?", "model": "llama3.2"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"
    events = parse_sse(response.text)
    assert events[0] == {"content": "", "type": "reasoning", "message": "Analyzing..."}
    assert events[1] == {"content": "", "type": "search", "message": "Searching for: ecuador election"}
    assert events[2] == {"content": "", "type": "search", "message": "Found 2 result(s)"}
    assert events[3:5] == [{"content": "Noboa ", "done": False}, {"content": "won.", "done": False}]
    assert events[-1] == {"content": "", "done": True}


def test_search_failure_shows_as_error_progress(app, client):
    completion = FakeCompletionClient(buffered=[verdict(True, "q")], streams=[["fine"]])
    use_orchestrator(
        app, SearchOrchestrator(completion, FakeSearchProvider(error=TransportFailure("HTTP 500")))
    )

    events = parse_sse(client.post("/api/chat", json={"message": "q?", "model": "m"}).text)

    assert {"content": "", "type": "error", "message": "Search failed: HTTP 500"} in events
    assert events[-1] == {"content": "", "done": True}


def test_failure_before_stream_is_json_401(app, client):
    use_orchestrator(app, RaisingOrchestrator(AuthFailure("Authentication failed. Please check your OLLAMA_API_KEY in the .env file.")))

    response = client.post("/api/chat", json={"message": "hi", "model": "m"})

    assert response.status_code == 401
    assert response.json()["error"].startswith("Authentication failed.")


def test_transport_failure_before_stream_is_json_500(app, client):
    use_orchestrator(app, RaisingOrchestrator(TransportFailure("connection refused")))

    response = client.post("/api/chat", json={"message": "hi", "model": "m"})

    assert response.status_code == 500
    assert response.json() == {"error": "connection refused"}


def test_failure_after_stream_opened_is_in_band(app, client):
    completion = FakeCompletionClient(
        buffered=[verdict(True, "q")], streams=[ScriptedStream(["half "], error=TransportFailure("reset"))]
    )
    use_orchestrator(app, SearchOrchestrator(completion, FakeSearchProvider()))

    response = client.post("/api/chat", json={"message": "q?", "model": "m"})

    assert response.status_code == 200
    events = parse_sse(response.text)
    assert events[-2] == {"content": "", "type": "error", "message": "reset", "done": False}
    assert events[-1] == {"content": "", "done": True}


def test_auth_failure_after_progress_is_json_401(app, client):
    completion = FakeCompletionClient(buffered=[verdict(True, "q")], streams=[AuthFailure("Authentication failed.")])
    use_orchestrator(app, SearchOrchestrator(completion, FakeSearchProvider()))

    response = client.post("/api/chat", json={"message": "q?", "model": "m"})

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication failed."}


def test_draft_auth_failure_is_json_401(app, client):
    completion = FakeCompletionClient(buffered=[verdict(False), AuthFailure("Authentication failed.")])
    use_orchestrator(app, SearchOrchestrator(completion, FakeSearchProvider()))

    response = client.post("/api/chat", json={"message": "hello", "model": "m"})

    assert response.status_code == 401
    assert response.headers["content-type"].startswith("application/json")


def test_stream_open_failure_after_search_is_json_500(app, client):
    completion = FakeCompletionClient(buffered=[verdict(True, "q")], streams=[TransportFailure("connection refused")])
    search = FakeSearchProvider(error=TransportFailure("HTTP 502"))
    use_orchestrator(app, SearchOrchestrator(completion, search))

    response = client.post("/api/chat", json={"message": "q?", "model": "m"})

    assert response.status_code == 500
    assert response.json() == {"error": "connection refused"}


def test_held_progress_is_replayed_before_content(app, client):
    completion = FakeCompletionClient(buffered=[verdict(True, "q")], streams=[["answer"]])
    use_orchestrator(app, SearchOrchestrator(completion, FakeSearchProvider()))

    events = parse_sse(client.post("/api/chat", json={"message": "q?", "model": "m"}).text)

    assert [e.get("type") for e in events[:2]] == ["reasoning", "search"]
    assert {"content": "answer", "done": False} in events
    assert events[-1] == {"content": "", "done": True}


# ---------- config & models ----------


def test_config_cloud_reports_default_model(app, client):
    app.dependency_overrides[get_config] = lambda: Config(ollama_host="https://ollama.com", ollama_api_key="sk-0123456789")
    app.dependency_overrides[get_completion_client] = lambda: FakeCompletionClient()

    assert client.get("/api/config").json() == {
        "mode": "cloud",
        "host": "https://ollama.com",
        "defaultModel": "gpt-oss:120b-cloud",
    }


def test_config_local_uses_first_model(app, client):
    app.dependency_overrides[get_config] = lambda: Config()
    app.dependency_overrides[get_completion_client] = lambda: FakeCompletionClient()

    body = client.get("/api/config").json()

    assert body["mode"] == "local"
    assert body["defaultModel"] == "llama3.2"


def test_config_local_unreachable_has_no_default(app, client):
    app.dependency_overrides[get_config] = lambda: Config()
    app.dependency_overrides[get_completion_client] = lambda: FakeCompletionClient(
        models=UpstreamUnavailable("down")
    )

    response = client.get("/api/config")

    assert response.status_code == 200
    assert response.json()["defaultModel"] is None


def test_models_lists_backend_models(app, client):
    app.dependency_overrides[get_completion_client] = lambda: FakeCompletionClient()

    response = client.get("/api/models")

    assert response.status_code == 200
    assert response.json()["models"][0]["name"] == "llama3.2"


@pytest.mark.parametrize("error,status", [(UpstreamUnavailable("Could not reach Ollama"), 503), (AuthFailure("bad key"), 401)])
def test_models_failures(app, client, error, status):
    app.dependency_overrides[get_completion_client] = lambda: FakeCompletionClient(models=error)

    response = client.get("/api/models")

    assert response.status_code == status
    assert "error" in response.json()


# ---------- health & correlation ----------


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["timestamp"].endswith("Z")


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    assert client.get("/health").headers.get("X-Request-ID")
