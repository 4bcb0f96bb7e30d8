"""API-specific request and response models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chat_models import Message, Sender

MAX_MESSAGE_LENGTH = 1000


class ChatRequest(BaseModel):
    """Request model for sending a message."""

    model_config = ConfigDict(populate_by_name=True)

    # Validated by the endpoint so bad input gets a friendly 400, not a 422
    message: Any = Field(None, description="User message")
    session_id: Any = Field(None, alias="sessionId", description="Existing session ID")


class ChatResponse(BaseModel):
    """Response model for chat interaction."""

    model_config = ConfigDict(populate_by_name=True)

    reply: str
    session_id: str = Field(..., alias="sessionId")


class ErrorResponse(BaseModel):
    """Hard rejection of a request."""

    error: str


class HistoryMessage(BaseModel):
    """A stored message as exposed to the chat UI."""

    id: str
    sender: Sender
    text: str
    timestamp: int = Field(..., description="Epoch milliseconds")

    @classmethod
    def from_message(cls, message: Message) -> "HistoryMessage":
        return cls(
            id=message.id,
            sender=message.sender,
            text=message.text,
            timestamp=to_epoch_ms(message.timestamp),
        )


class HistoryResponse(BaseModel):
    """Ordered message history of a session."""

    messages: list[HistoryMessage] = Field(default_factory=list)


def to_epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)
