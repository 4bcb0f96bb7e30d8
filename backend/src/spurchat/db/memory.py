"""In-process conversation store for local development and tests.

Same interface as the PostgreSQL store. State lives for the lifetime of the
instance only.
"""

import logging
import uuid
from datetime import datetime, timezone

from chat_models import Conversation, Message, Sender

logger = logging.getLogger(__name__)


class InMemoryDatabase:
    """Dict-backed conversation store."""

    def __init__(self):
        self._conversations: dict[str, Conversation] = {}
        self._messages: dict[str, list[Message]] = {}

    async def connect(self):
        logger.info("Using in-memory conversation store")

    async def disconnect(self):
        pass

    async def ensure_tables_exist(self):
        pass

    async def create(self) -> str:
        conversation = Conversation(
            id=str(uuid.uuid4()),
            created_at=datetime.now(timezone.utc),
        )
        self._conversations[conversation.id] = conversation
        self._messages[conversation.id] = []
        return conversation.id

    async def get(self, conversation_id: str) -> Conversation | None:
        conversation = self._conversations.get(conversation_id)
        # Hand out copies so callers can't mutate stored state
        return conversation.model_copy() if conversation else None

    async def set_summary(self, conversation_id: str, summary: str) -> None:
        conversation = self._conversations.get(conversation_id)
        if conversation:
            conversation.summary = summary

    async def set_summary_if_absent(self, conversation_id: str, summary: str) -> bool:
        conversation = self._conversations.get(conversation_id)
        if not conversation or conversation.summary is not None:
            return False
        conversation.summary = summary
        return True

    async def append_message(
        self, conversation_id: str, sender: Sender, text: str
    ) -> Message:
        if conversation_id not in self._conversations:
            raise KeyError(f"Conversation {conversation_id} not found")
        message = Message(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            sender=sender,
            text=text,
            timestamp=datetime.now(timezone.utc),
        )
        self._messages[conversation_id].append(message)
        return message

    async def list_messages(self, conversation_id: str) -> list[Message]:
        # Stable sort keeps insertion order for equal timestamps
        ordered = sorted(
            self._messages.get(conversation_id, []), key=lambda m: m.timestamp
        )
        return [message.model_copy() for message in ordered]
