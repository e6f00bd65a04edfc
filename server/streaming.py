"""
Bridge between the synchronous orchestrator and a streaming HTTP response.

The orchestrator runs in a worker thread and pushes events into a
QueueEventSink; the response body drains the queue and encodes each event
as an SSE line. Progress events are held back until the first answer
content (or the done event) arrives, so a failure before any content
becomes a plain JSON error response with a status code. A failure after
content started is sent in-band as an error event followed by the
terminal done event.
"""

import asyncio
import contextvars
import queue
import threading
from collections.abc import Awaitable, Callable, Iterable, Iterator, Sequence

from models.conversation import ConversationTurn
from models.errors import user_message
from models.stream_events import DoneEvent, ErrorEvent, ProgressEvent, StreamEvent, encode_sse
from orchestrator.core import SearchOrchestrator
from orchestrator.sinks import EventSink, SinkClosed
from utils.logger import get_logger

logger = get_logger(__name__)

END_OF_STREAM = object()
COMMIT_POLL_S = 0.5


class QueueEventSink(EventSink):
    """Thread-safe sink; the consumer reads with next_item() and cancels on disconnect."""

    def __init__(self):
        self._queue: queue.Queue = queue.Queue()
        self._closed = threading.Event()

    def push(self, event: StreamEvent) -> None:
        if self._closed.is_set():
            raise SinkClosed("stream closed")
        self._queue.put(event)

    def close(self) -> None:
        if not self._closed.is_set():
            self._closed.set()
            self._queue.put(END_OF_STREAM)

    def fail(self, exc: BaseException) -> None:
        """Hand a producer-side exception to the consumer, then end the stream."""
        if not self._closed.is_set():
            self._queue.put(exc)
            self.close()

    def cancel(self) -> None:
        """Consumer went away: the producer's next push raises SinkClosed."""
        self._closed.set()

    @property
    def cancelled(self) -> bool:
        return self._closed.is_set()

    def next_item(self, timeout: float | None = None):
        return self._queue.get(timeout=timeout)


def start_orchestration(
    orchestrator: SearchOrchestrator,
    sink: QueueEventSink,
    *,
    message: str,
    model: str,
    history: Sequence[ConversationTurn],
) -> threading.Thread:
    """Run orchestrator.handle in a daemon thread that inherits the caller's context (request id)."""
    ctx = contextvars.copy_context()

    def _worker():
        try:
            orchestrator.handle(message, model, history, sink)
        except Exception as exc:
            sink.fail(exc)
        else:
            sink.close()

    thread = threading.Thread(target=ctx.run, args=(_worker,), name="orchestration", daemon=True)
    thread.start()
    return thread


async def wait_for_commit(
    sink: QueueEventSink,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    poll_s: float = COMMIT_POLL_S,
) -> tuple[list[ProgressEvent], object | None]:
    """
    Read progress events until the item that decides the response shape.

    Returns (held, item). item is the first content or done event, an
    exception raised by the producer, END_OF_STREAM, or None when the client
    disconnected while waiting. The sink is cancelled whenever the wait ends
    without an item to stream.
    """
    held: list[ProgressEvent] = []
    try:
        while True:
            try:
                item = await asyncio.to_thread(sink.next_item, poll_s)
            except queue.Empty:
                if is_disconnected is not None and await is_disconnected():
                    sink.cancel()
                    return held, None
                continue
            if isinstance(item, ProgressEvent):
                held.append(item)
                continue
            return held, item
    except asyncio.CancelledError:
        sink.cancel()
        raise


def iter_sse(first, sink: QueueEventSink, held: Iterable[StreamEvent] = ()) -> Iterator[str]:
    """Yield SSE lines: the held progress events, then `first`, then the rest of the queue."""
    try:
        for event in held:
            yield encode_sse(event)
        item = first
        while item is not END_OF_STREAM:
            if isinstance(item, BaseException):
                logger.warning(f"Stream failed after it was opened: {type(item).__name__}")
                yield encode_sse(ErrorEvent(message=user_message(item)))
                yield encode_sse(DoneEvent())
                return
            yield encode_sse(item)
            if isinstance(item, DoneEvent):
                return
            item = sink.next_item()
    finally:
        sink.cancel()
