"""Shared utilities for FastAPI routes."""

from fastapi import status
from fastapi.responses import JSONResponse

from models.conversation import ConversationTurn, turns_from_dicts
from models.errors import AuthFailure, InvalidRequest, UpstreamUnavailable, user_message
from server.schemas.requests import ChatRequest

MAX_HISTORY_TURNS = 20
MAX_HISTORY_CHARS = 32000


def validate_chat_request(request: ChatRequest) -> tuple[str, str, list[ConversationTurn]]:
    """
    Check required fields and trim history before any orchestration starts.

    Returns:
        (message, model, history)

    Raises:
        InvalidRequest: message or model missing, or history too large
    """
    if not request.message or not request.message.strip():
        raise InvalidRequest("Message is required")
    if not request.model or not request.model.strip():
        raise InvalidRequest("Model is required. Please select a model.")

    history = turns_from_dicts(item.model_dump() for item in request.conversation_history or [])
    if len(history) > MAX_HISTORY_TURNS:
        history = history[-MAX_HISTORY_TURNS:]

    total_chars = sum(len(turn.content) for turn in history)
    if total_chars > MAX_HISTORY_CHARS:
        raise InvalidRequest(f"Conversation history exceeds {MAX_HISTORY_CHARS} characters")

    return request.message, request.model.strip(), history


def error_status(exc: BaseException) -> int:
    if isinstance(exc, InvalidRequest):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, AuthFailure):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, UpstreamUnavailable):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(exc: BaseException) -> JSONResponse:
    """Single JSON error body, `{"error": "..."}`, with a status matching the failure."""
    return JSONResponse(status_code=error_status(exc), content={"error": user_message(exc)})
