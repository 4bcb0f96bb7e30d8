"""Chat handler - assembles the LLM context window and produces replies."""

import logging
from dataclasses import dataclass
from typing import Protocol

from chat_models import ContextEntry, Message
from spurchat.db import ConversationStore
from spurchat.errors import GenerationError
from spurchat.services.compaction import KEEP_RECENT, SummaryLocks, ensure_summary
from spurchat.services.faq import match_faq
from spurchat.services.query_rewriter import rewrite_query

logger = logging.getLogger(__name__)

SUMMARY_PREFIX = "Previous conversation summary: "


class ChatGateway(Protocol):
    """The LLM operations the chat handler depends on."""

    async def complete(self, history: list[ContextEntry], user_message: str) -> str: ...

    async def summarize(self, lines: list[str]) -> str: ...

    async def rewrite(self, message: str) -> str: ...


@dataclass
class ChatResult:
    """Result of processing a chat message."""

    reply: str
    conversation_id: str
    from_faq: bool = False


def build_context(summary: str | None, messages: list[Message]) -> list[ContextEntry]:
    """Build the context window sent ahead of the current query.

    Structure:
    1. Summary of earlier conversation (if exists), as a system entry
    2. The last ``KEEP_RECENT`` stored messages, oldest first
    """
    context: list[ContextEntry] = []

    if summary:
        context.append(ContextEntry(role="system", content=f"{SUMMARY_PREFIX}{summary}"))

    context.extend(ContextEntry.from_message(msg) for msg in messages[-KEEP_RECENT:])
    return context


class ChatHandler:
    """Turns one user message into one persisted reply.

    The store and gateway are created once per process and injected here;
    the handler itself keeps no per-conversation state besides the
    summarization locks.
    """

    def __init__(
        self,
        store: ConversationStore,
        gateway: ChatGateway,
        locks: SummaryLocks | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.locks = locks or SummaryLocks()

    async def resolve_conversation(self, conversation_id: str | None) -> str:
        """Reuse an existing conversation or start a new one."""
        if conversation_id and await self.store.get(conversation_id):
            return conversation_id

        new_id = await self.store.create()
        if conversation_id:
            logger.info(f"Unknown conversation {conversation_id}, started {new_id}")
        else:
            logger.info(f"Started conversation {new_id}")
        return new_id

    async def respond(self, conversation_id: str | None, text: str) -> ChatResult:
        """Process a user message and return the assistant reply.

        Generation errors propagate as ``GenerationError``; the user turn is
        already stored at that point and no assistant turn is written.
        """
        message = text.strip()
        conversation_id = await self.resolve_conversation(conversation_id)

        # Stored first so the question survives a failed generation
        await self.store.append_message(conversation_id, "user", message)

        faq_answer = match_faq(message)
        if faq_answer:
            logger.info(f"FAQ answer for conversation {conversation_id}")
            await self.store.append_message(conversation_id, "ai", faq_answer)
            return ChatResult(reply=faq_answer, conversation_id=conversation_id, from_faq=True)

        query = await rewrite_query(message, self.gateway)

        history = await self.store.list_messages(conversation_id)
        summary = await ensure_summary(
            conversation_id, history, self.store, self.gateway, self.locks
        )
        context = build_context(summary, history)

        try:
            reply = await self.gateway.complete(context, query)
        except GenerationError as e:
            e.conversation_id = conversation_id
            raise

        await self.store.append_message(conversation_id, "ai", reply)
        return ChatResult(reply=reply, conversation_id=conversation_id)
