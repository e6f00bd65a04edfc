"""
Error taxonomy shared by the orchestrator, the upstream clients and the HTTP layer.

Classifier parse failures are not errors here: advisors convert them into
a safe Decision and never raise.
"""


class OrchestrationError(Exception):
    """Base class for every error the chat pipeline raises on purpose."""

    code = "unknown"

    def __init__(self, message: str, *, provider: str | None = None):
        super().__init__(message)
        self.message = message
        self.provider = provider


class InvalidRequest(OrchestrationError):
    """Message or model missing; rejected before any upstream call."""

    code = "invalid_request"


class ConfigMissing(OrchestrationError):
    """A collaborator was invoked without the credentials it needs."""

    code = "config_missing"


class AuthFailure(OrchestrationError):
    """The completion backend rejected (or never received) the credential."""

    code = "auth"


class TransportFailure(OrchestrationError):
    """Network or backend failure talking to an upstream service."""

    code = "transport"

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status_code: int | None = None,
        retryable: bool = False,
    ):
        super().__init__(message, provider=provider)
        self.status_code = status_code
        self.retryable = retryable


class UpstreamUnavailable(TransportFailure):
    """Model listing could not reach the backend."""

    code = "upstream_unavailable"


def user_message(exc: BaseException) -> str:
    """Human-readable text for a fatal error; auth failures keep their remediation hint."""
    if isinstance(exc, OrchestrationError):
        return exc.message
    return f"An error occurred: {exc}" if str(exc) else "An error occurred"
