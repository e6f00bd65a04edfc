"""
Models package: value types shared by the orchestrator, clients and transports.
"""

from .conversation import ConversationTurn, turns_from_dicts
from .date_context import DateContext
from .decision import Decision
from .errors import (
    AuthFailure,
    ConfigMissing,
    InvalidRequest,
    OrchestrationError,
    TransportFailure,
    UpstreamUnavailable,
)
from .stream_events import (
    ContentEvent,
    DoneEvent,
    ErrorEvent,
    Phase,
    ProgressEvent,
    StreamEvent,
    encode_sse,
)

__all__ = [
    "AuthFailure",
    "ConfigMissing",
    "ContentEvent",
    "ConversationTurn",
    "DateContext",
    "Decision",
    "DoneEvent",
    "ErrorEvent",
    "InvalidRequest",
    "OrchestrationError",
    "Phase",
    "ProgressEvent",
    "StreamEvent",
    "TransportFailure",
    "UpstreamUnavailable",
    "encode_sse",
    "turns_from_dicts",
]
