"""PostgreSQL conversation store."""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import asyncpg

from chat_models import Conversation, Message, Sender
from spurchat.config import settings

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
-- Conversations (one per chat session)
CREATE TABLE IF NOT EXISTS conversations (
    id TEXT PRIMARY KEY,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    summary TEXT
);

-- Messages; seq breaks timestamp ties in insertion order
CREATE TABLE IF NOT EXISTS messages (
    seq BIGSERIAL,
    id TEXT PRIMARY KEY,
    conversation_id TEXT NOT NULL REFERENCES conversations(id),
    sender TEXT NOT NULL CHECK (sender IN ('user', 'ai')),
    text TEXT NOT NULL,
    timestamp TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_messages_conversation ON messages(conversation_id, timestamp);
"""


class Database:
    """PostgreSQL-backed conversation store."""

    def __init__(self, database_url: str | None = None):
        self._database_url = database_url or settings.database_url
        self._pool: asyncpg.Pool | None = None

    async def connect(self):
        """Create connection pool."""
        self._pool = await asyncpg.create_pool(
            self._database_url,
            min_size=2,
            max_size=10,
        )
        logger.info(f"Connected to PostgreSQL at {settings.db_host}:{settings.db_port}")

    async def disconnect(self):
        """Close connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self):
        """Get a connection from the pool."""
        if not self._pool:
            raise RuntimeError("Database not connected")
        async with self._pool.acquire() as conn:
            yield conn

    async def ensure_tables_exist(self):
        """Create tables if they don't exist."""
        async with self.connection() as conn:
            await conn.execute(SCHEMA_SQL)

    # ============= Conversation Operations =============

    async def create(self) -> str:
        """Create a new conversation and return its ID."""
        conversation_id = str(uuid.uuid4())
        async with self.connection() as conn:
            await conn.execute(
                "INSERT INTO conversations (id, created_at, summary) VALUES ($1, $2, NULL)",
                conversation_id,
                datetime.now(timezone.utc),
            )
        return conversation_id

    async def get(self, conversation_id: str) -> Conversation | None:
        """Get a conversation by ID."""
        async with self.connection() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM conversations WHERE id = $1", conversation_id
            )
        if not row:
            return None
        return Conversation(
            id=row["id"],
            created_at=row["created_at"],
            summary=row["summary"],
        )

    async def set_summary(self, conversation_id: str, summary: str) -> None:
        """Replace the conversation summary."""
        async with self.connection() as conn:
            await conn.execute(
                "UPDATE conversations SET summary = $1 WHERE id = $2",
                summary,
                conversation_id,
            )

    async def set_summary_if_absent(self, conversation_id: str, summary: str) -> bool:
        """Set the summary only if it is still NULL. Returns True if written."""
        async with self.connection() as conn:
            status = await conn.execute(
                "UPDATE conversations SET summary = $1 WHERE id = $2 AND summary IS NULL",
                summary,
                conversation_id,
            )
        # asyncpg returns the command tag, e.g. "UPDATE 1"
        return status.split()[-1] != "0"

    # ============= Message Operations =============

    async def append_message(
        self, conversation_id: str, sender: Sender, text: str
    ) -> Message:
        """Append a message to a conversation."""
        message = Message(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            sender=sender,
            text=text,
            timestamp=datetime.now(timezone.utc),
        )
        async with self.connection() as conn:
            await conn.execute(
                """
                INSERT INTO messages (id, conversation_id, sender, text, timestamp)
                VALUES ($1, $2, $3, $4, $5)
                """,
                message.id,
                message.conversation_id,
                message.sender,
                message.text,
                message.timestamp,
            )
        return message

    async def list_messages(self, conversation_id: str) -> list[Message]:
        """Get all messages for a conversation, oldest first."""
        async with self.connection() as conn:
            rows = await conn.fetch(
                """
                SELECT * FROM messages
                WHERE conversation_id = $1
                ORDER BY timestamp ASC, seq ASC
                """,
                conversation_id,
            )
        return [self._row_to_message(row) for row in rows]

    def _row_to_message(self, row: asyncpg.Record) -> Message:
        return Message(
            id=row["id"],
            conversation_id=row["conversation_id"],
            sender=row["sender"],
            text=row["text"],
            timestamp=row["timestamp"],
        )
