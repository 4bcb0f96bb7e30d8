"""Conversation compaction service.

Compresses older messages into a one-time summary so the context sent to the
LLM stays bounded. The summary is created at most once per conversation; the
read-check-write sequence is serialized per conversation so concurrent
requests cannot both summarize.
"""

import asyncio
import logging
import weakref
from typing import Protocol

from chat_models import Message
from spurchat.db import ConversationStore
from spurchat.services.llm_gateway import FALLBACK_SUMMARY

logger = logging.getLogger(__name__)

# Compaction thresholds
SUMMARIZE_THRESHOLD = 10  # Summarize once stored messages exceed this
KEEP_RECENT = 8  # Most recent messages always sent verbatim


class Summarizer(Protocol):
    async def summarize(self, lines: list[str]) -> str: ...


class SummaryLocks:
    """Per-conversation locks; entries vanish once no request holds them."""

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock


def format_transcript(messages: list[Message]) -> list[str]:
    """Format messages as ``sender: text`` lines for the summarizer."""
    return [f"{msg.sender}: {msg.text}" for msg in messages]


def needs_summary(summary: str | None, message_count: int) -> bool:
    """A conversation is summarized once, when it first exceeds the threshold."""
    return not summary and message_count > SUMMARIZE_THRESHOLD


async def summarize_messages(messages: list[Message], gateway: Summarizer) -> str:
    """Summarize messages, falling back to a generic summary on any failure."""
    if not messages:
        return FALLBACK_SUMMARY

    try:
        summary = await gateway.summarize(format_transcript(messages))
    except Exception as e:
        logger.error(f"Failed to summarize messages: {e}")
        return FALLBACK_SUMMARY

    return summary.strip() or FALLBACK_SUMMARY


async def ensure_summary(
    conversation_id: str,
    messages: list[Message],
    store: ConversationStore,
    gateway: Summarizer,
    locks: SummaryLocks,
) -> str | None:
    """Return the conversation summary, creating it if the history calls for one.

    ``messages`` is the full ordered history. Everything but the last
    ``KEEP_RECENT`` messages is summarized. Returns None while the
    conversation is still below the threshold.
    """
    conversation = await store.get(conversation_id)
    summary = conversation.summary if conversation else None
    if not needs_summary(summary, len(messages)):
        return summary

    async with locks.lock_for(conversation_id):
        # Another request may have summarized while we waited
        conversation = await store.get(conversation_id)
        if conversation and conversation.summary:
            return conversation.summary

        to_summarize = messages[:-KEEP_RECENT]
        logger.info(
            f"Summarizing conversation {conversation_id}: "
            f"{len(to_summarize)} of {len(messages)} messages"
        )
        summary = await summarize_messages(to_summarize, gateway)

        if not await store.set_summary_if_absent(conversation_id, summary):
            conversation = await store.get(conversation_id)
            if conversation and conversation.summary:
                return conversation.summary
        return summary
