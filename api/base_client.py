from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from models.errors import AuthFailure, OrchestrationError, TransportFailure

Messages = list[dict[str, str]]


@dataclass(frozen=True)
class CompletionResult:
    """A fully buffered completion."""

    text: str
    model: str
    latency_ms: int = 0
    usage: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ModelDescriptor:
    name: str
    owned_by: str | None = None
    created: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "model": self.name, "owned_by": self.owned_by, "created": self.created}


class BaseCompletionClient(ABC):
    """
    Abstract base class for chat-completion backends.

    The orchestrator depends only on this contract. Implementations raise
    AuthFailure or TransportFailure (never raw SDK exceptions).
    """

    provider = "unknown"

    @abstractmethod
    def complete_buffered(self, model: str, messages: Messages) -> CompletionResult:
        """
        Run one completion and return the whole text.

        Args:
            model: Backend model identifier
            messages: Chat messages with 'role' and 'content' keys
        """

    @abstractmethod
    def complete_incremental(self, model: str, messages: Messages) -> Iterator[str]:
        """
        Start a streamed completion.

        Connection and authentication failures are raised by this call itself;
        the returned iterator yields non-empty text fragments in arrival order,
        is finite and not restartable, and releases the upstream stream when
        closed early.
        """

    @abstractmethod
    def list_models(self) -> list[ModelDescriptor]:
        """List the models the backend can serve."""

    def _auth_failure_message(self) -> str:
        return "Authentication failed. Please check your API credentials."

    def _normalize_error(self, exc: Exception) -> OrchestrationError:
        """
        Map an arbitrary client exception onto the error taxonomy.

        Uses the HTTP status when the exception carries one, otherwise the
        exception type and message.
        """
        if isinstance(exc, OrchestrationError):
            return exc

        message = str(exc) or type(exc).__name__
        lowered = message.lower()
        status = getattr(exc, "status_code", None)
        if status is None:
            status = getattr(getattr(exc, "response", None), "status_code", None)

        if status in (401, 403) or (status is None and "unauthorized" in lowered):
            return AuthFailure(self._auth_failure_message(), provider=self.provider)

        if isinstance(exc, TimeoutError) or "timeout" in type(exc).__name__.lower() or "timed out" in lowered:
            return TransportFailure(
                f"{self.provider} request timed out", provider=self.provider, retryable=True
            )

        if status == 429 or (status is None and ("rate limit" in lowered or "too many requests" in lowered)):
            return TransportFailure(
                f"{self.provider} rate limit exceeded: {message}",
                provider=self.provider,
                status_code=429,
                retryable=True,
            )

        if status is not None:
            return TransportFailure(
                f"{self.provider} returned HTTP {status}: {message}",
                provider=self.provider,
                status_code=status,
                retryable=status >= 500,
            )

        return TransportFailure(
            f"{self.provider} request failed: {message}", provider=self.provider, retryable=True
        )
