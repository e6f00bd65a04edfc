"""Pydantic request models for FastAPI endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class ConversationHistoryItem(BaseModel):
    role: str = Field(..., pattern="^(user|assistant|system)$")
    content: str = ""


class ChatRequest(BaseModel):
    """
    Body of POST /api/chat.

    message and model are optional at the schema level so that missing values
    surface as the service's own 400 InvalidRequest rather than a 422.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str | None = None
    model: str | None = None
    conversation_history: list[ConversationHistoryItem] | None = Field(
        default_factory=list, alias="conversationHistory"
    )
