"""Shared Pydantic models for spurchat."""

from chat_models.conversation import (
    Conversation,
    ContextEntry,
    ContextRole,
    Message,
    Sender,
)

__all__ = [
    "Conversation",
    "ContextEntry",
    "ContextRole",
    "Message",
    "Sender",
]
