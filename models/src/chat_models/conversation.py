"""Conversation and message models."""

from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field

Sender = Literal["user", "ai"]
ContextRole = Literal["system", "user", "assistant"]


class Message(BaseModel):
    """A single stored turn in a conversation."""

    id: str = Field(..., description="Unique message ID")
    conversation_id: str = Field(..., description="Parent conversation ID")
    sender: Sender = Field(..., description="Who wrote the message")
    text: str = Field(..., description="Message body")
    timestamp: datetime = Field(default_factory=datetime.now, description="Creation timestamp")


class Conversation(BaseModel):
    """A support chat session."""

    id: str = Field(..., description="Unique conversation ID")
    created_at: datetime = Field(default_factory=datetime.now, description="Creation timestamp")
    summary: str | None = Field(None, description="Compressed summary of older messages")


class ContextEntry(BaseModel):
    """One entry of the context handed to the LLM. Never persisted."""

    role: ContextRole
    content: str

    @classmethod
    def from_message(cls, message: Message) -> "ContextEntry":
        return cls(
            role="user" if message.sender == "user" else "assistant",
            content=message.text,
        )
