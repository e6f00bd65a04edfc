"""
Typed events emitted by the orchestrator to an EventSink.

The wire mapping (`to_wire`) is the payload the browser client reads from each
`data: <JSON>` line of the chat stream.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class Phase(str, Enum):
    REASONING = "reasoning"
    SEARCH = "search"
    THINKING = "thinking"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressEvent:
    phase: Phase
    message: str

    def to_wire(self) -> dict[str, Any]:
        return {"content": "", "type": Phase(self.phase).value, "message": self.message}


@dataclass(frozen=True)
class ContentEvent:
    text: str

    def to_wire(self) -> dict[str, Any]:
        return {"content": self.text, "done": False}


@dataclass(frozen=True)
class ErrorEvent:
    message: str

    def to_wire(self) -> dict[str, Any]:
        return {"content": "", "type": Phase.ERROR.value, "message": self.message, "done": False}


@dataclass(frozen=True)
class DoneEvent:
    def to_wire(self) -> dict[str, Any]:
        return {"content": "", "done": True}


StreamEvent = Union[ProgressEvent, ContentEvent, ErrorEvent, DoneEvent]


def encode_sse(event: StreamEvent) -> str:
    """Serialize one event as a server-sent-events data line."""
    return f"data: {json.dumps(event.to_wire())}\n\n"
