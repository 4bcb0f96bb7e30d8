"""Conversation store backends."""

from typing import Protocol

from chat_models import Conversation, Message, Sender
from spurchat.config import settings
from spurchat.db.memory import InMemoryDatabase
from spurchat.db.postgres import Database


class ConversationStore(Protocol):
    """Durable keyed storage of conversations and their ordered messages."""

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    async def ensure_tables_exist(self) -> None: ...

    async def create(self) -> str: ...

    async def get(self, conversation_id: str) -> Conversation | None: ...

    async def append_message(
        self, conversation_id: str, sender: Sender, text: str
    ) -> Message: ...

    async def list_messages(self, conversation_id: str) -> list[Message]: ...

    async def set_summary(self, conversation_id: str, summary: str) -> None: ...

    async def set_summary_if_absent(self, conversation_id: str, summary: str) -> bool: ...


def get_store() -> ConversationStore:
    """Build the store selected by ``settings.store_backend``."""
    if settings.store_backend == "memory":
        return InMemoryDatabase()
    return Database()


__all__ = ["ConversationStore", "Database", "InMemoryDatabase", "get_store"]
