"""Chat endpoint: one message in, a server-sent event stream out."""

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import StreamingResponse

from models.errors import InvalidRequest
from orchestrator.core import SearchOrchestrator
from server.dependencies import get_orchestrator
from server.schemas.requests import ChatRequest
from server.streaming import QueueEventSink, iter_sse, start_orchestration, wait_for_commit
from server.utils import error_response, validate_chat_request
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("/chat")
async def chat(
    request: ChatRequest,
    http_request: Request,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
):
    """
    Answer a chat message, searching the web first when the model needs it.

    Progress events are held until the first answer content. Errors raised
    before any content are returned as JSON with a status code; once content
    has been sent they are delivered as an error event followed by the done
    event.
    """
    try:
        message, model, history = validate_chat_request(request)
    except InvalidRequest as e:
        logger.info(f"Rejected chat request: {e.message}")
        return error_response(e)

    request_id = getattr(http_request.state, "request_id", "unknown")
    logger.info(
        "Chat request received",
        extra={
            "extra_fields": {
                "request_id": request_id,
                "model": model,
                "history_turns": len(history),
                "message_chars": len(message),
            }
        },
    )

    sink = QueueEventSink()
    start_orchestration(orchestrator, sink, message=message, model=model, history=history)

    held, first = await wait_for_commit(sink, http_request.is_disconnected)
    if first is None:
        logger.info(
            "Client disconnected before the answer started",
            extra={"extra_fields": {"request_id": request_id, "model": model}},
        )
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    if isinstance(first, BaseException):
        logger.warning(
            f"Chat request failed before streaming: {type(first).__name__}",
            extra={"extra_fields": {"request_id": request_id, "model": model, "held_events": len(held)}},
        )
        return error_response(first)

    return StreamingResponse(iter_sse(first, sink, held), media_type="text/event-stream", headers=SSE_HEADERS)
