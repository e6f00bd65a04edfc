"""Event sinks: where the orchestrator writes its stream of events."""

from abc import ABC, abstractmethod

from models.stream_events import ContentEvent, DoneEvent, StreamEvent


class SinkClosed(Exception):
    """Raised by push() once the channel is closed or the consumer went away."""


class EventSink(ABC):
    """
    Ordered, write-only event channel.

    push() may raise SinkClosed at any time (e.g. the client disconnected);
    the producer must stop writing when it does.
    """

    @abstractmethod
    def push(self, event: StreamEvent) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class CollectingSink(EventSink):
    """In-memory sink that records every event; used by tests and the CLI replay."""

    def __init__(self, fail_after: int | None = None):
        """
        Args:
            fail_after: Simulate a disconnect by raising SinkClosed on push number fail_after + 1
        """
        self.events: list[StreamEvent] = []
        self.closed = False
        self._fail_after = fail_after

    def push(self, event: StreamEvent) -> None:
        if self.closed:
            raise SinkClosed("sink already closed")
        if self._fail_after is not None and len(self.events) >= self._fail_after:
            self.closed = True
            raise SinkClosed("consumer disconnected")
        self.events.append(event)

    def close(self) -> None:
        self.closed = True

    @property
    def text(self) -> str:
        return "".join(e.text for e in self.events if isinstance(e, ContentEvent))

    def of_type(self, event_type: type) -> list[StreamEvent]:
        return [e for e in self.events if isinstance(e, event_type)]

    @property
    def done_count(self) -> int:
        return len(self.of_type(DoneEvent))
