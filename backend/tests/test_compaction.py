"""Unit tests for the compaction service."""

import asyncio

import pytest

from conftest import StubGateway
from spurchat.db.memory import InMemoryDatabase
from spurchat.services.compaction import (
    KEEP_RECENT,
    SUMMARIZE_THRESHOLD,
    SummaryLocks,
    ensure_summary,
    format_transcript,
    needs_summary,
    summarize_messages,
)
from spurchat.services.llm_gateway import FALLBACK_SUMMARY


async def seed(store: InMemoryDatabase, count: int) -> str:
    conversation_id = await store.create()
    for i in range(count):
        await store.append_message(conversation_id, "user" if i % 2 == 0 else "ai", f"m{i}")
    return conversation_id


class TestNeedsSummary:
    """Test the trigger condition."""

    def test_below_threshold(self):
        """Test nothing happens at or under the threshold."""
        assert not needs_summary(None, SUMMARIZE_THRESHOLD)

    def test_above_threshold(self):
        """Test the first message past the threshold triggers."""
        assert needs_summary(None, SUMMARIZE_THRESHOLD + 1)

    def test_existing_summary_never_triggers(self):
        """Test summaries are created once only."""
        assert not needs_summary("already", 500)


class TestSummarizeMessages:
    """Test summarization and its fallback."""

    @pytest.mark.asyncio
    async def test_transcript_uses_sender_prefix(self, store: InMemoryDatabase):
        """Test messages are formatted as sender: text lines."""
        conversation_id = await seed(store, 2)
        messages = await store.list_messages(conversation_id)
        assert format_transcript(messages) == ["user: m0", "ai: m1"]

    @pytest.mark.asyncio
    async def test_failure_uses_fallback(self, store: InMemoryDatabase):
        """Test summarizer errors are absorbed."""
        conversation_id = await seed(store, 3)
        gateway = StubGateway(summarize_error=RuntimeError("boom"))

        summary = await summarize_messages(await store.list_messages(conversation_id), gateway)
        assert summary == FALLBACK_SUMMARY

    @pytest.mark.asyncio
    async def test_blank_summary_uses_fallback(self, store: InMemoryDatabase):
        """Test blank output is replaced by the fallback."""
        conversation_id = await seed(store, 3)
        gateway = StubGateway(summary="  ")

        summary = await summarize_messages(await store.list_messages(conversation_id), gateway)
        assert summary == FALLBACK_SUMMARY


class TestEnsureSummary:
    """Test summary creation, reuse and concurrency."""

    @pytest.mark.asyncio
    async def test_below_threshold_returns_none(self, store: InMemoryDatabase, gateway: StubGateway):
        """Test short conversations get no summary."""
        conversation_id = await seed(store, SUMMARIZE_THRESHOLD)
        messages = await store.list_messages(conversation_id)

        assert await ensure_summary(conversation_id, messages, store, gateway, SummaryLocks()) is None
        assert gateway.count("summarize") == 0

    @pytest.mark.asyncio
    async def test_summarizes_all_but_recent(self, store: InMemoryDatabase, gateway: StubGateway):
        """Test everything except the last KEEP_RECENT messages is summarized and stored."""
        conversation_id = await seed(store, SUMMARIZE_THRESHOLD + 1)
        messages = await store.list_messages(conversation_id)

        summary = await ensure_summary(conversation_id, messages, store, gateway, SummaryLocks())

        assert summary == "Stub summary"
        assert gateway.summarized == [
            [f"{'user' if i % 2 == 0 else 'ai'}: m{i}" for i in range(len(messages) - KEEP_RECENT)]
        ]
        assert (await store.get(conversation_id)).summary == "Stub summary"

    @pytest.mark.asyncio
    async def test_existing_summary_is_reused(self, store: InMemoryDatabase, gateway: StubGateway):
        """Test no second summarization happens."""
        conversation_id = await seed(store, 30)
        await store.set_summary(conversation_id, "kept")
        messages = await store.list_messages(conversation_id)

        summary = await ensure_summary(conversation_id, messages, store, gateway, SummaryLocks())

        assert summary == "kept"
        assert gateway.count("summarize") == 0

    @pytest.mark.asyncio
    async def test_fallback_summary_is_persisted(self, store: InMemoryDatabase):
        """Test a failed summarization still stores the fallback text."""
        conversation_id = await seed(store, SUMMARIZE_THRESHOLD + 1)
        messages = await store.list_messages(conversation_id)
        gateway = StubGateway(summarize_error=RuntimeError("provider down"))

        summary = await ensure_summary(conversation_id, messages, store, gateway, SummaryLocks())

        assert summary == FALLBACK_SUMMARY
        assert (await store.get(conversation_id)).summary == FALLBACK_SUMMARY

    @pytest.mark.asyncio
    async def test_concurrent_requests_summarize_once(self, store: InMemoryDatabase):
        """Test two racing requests for one conversation share a single summary."""
        conversation_id = await seed(store, SUMMARIZE_THRESHOLD + 1)
        messages = await store.list_messages(conversation_id)

        class SlowGateway(StubGateway):
            async def summarize(self, lines):
                await asyncio.sleep(0.01)
                return await super().summarize(lines)

        gateway = SlowGateway()
        locks = SummaryLocks()

        first, second = await asyncio.gather(
            ensure_summary(conversation_id, messages, store, gateway, locks),
            ensure_summary(conversation_id, messages, store, gateway, locks),
        )

        assert first == second == "Stub summary"
        assert gateway.count("summarize") == 1


class TestSummaryLocks:
    """Test the per-conversation lock registry."""

    def test_same_conversation_same_lock(self):
        """Test a live lock is shared by ID."""
        locks = SummaryLocks()
        lock = locks.lock_for("a")
        assert locks.lock_for("a") is lock

    def test_different_conversations_different_locks(self):
        """Test conversations don't block each other."""
        locks = SummaryLocks()
        assert locks.lock_for("a") is not locks.lock_for("b")
