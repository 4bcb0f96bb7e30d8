"""Shared fixtures for the spurchat test suite."""

import pytest

from chat_models import ContextEntry
from spurchat.db.memory import InMemoryDatabase
from spurchat.errors import GenerationError


class StubGateway:
    """Records every gateway call, in order, and returns canned text."""

    def __init__(
        self,
        reply: str = "Stub reply",
        summary: str = "Stub summary",
        complete_error: GenerationError | None = None,
        summarize_error: Exception | None = None,
        rewrite_error: Exception | None = None,
    ):
        self.reply = reply
        self.summary = summary
        self.complete_error = complete_error
        self.summarize_error = summarize_error
        self.rewrite_error = rewrite_error
        self.calls: list[str] = []
        self.contexts: list[list[ContextEntry]] = []
        self.queries: list[str] = []
        self.summarized: list[list[str]] = []
        self.closed = False

    def count(self, name: str) -> int:
        return self.calls.count(name)

    async def complete(self, history: list[ContextEntry], user_message: str) -> str:
        self.calls.append("complete")
        self.contexts.append(list(history))
        self.queries.append(user_message)
        if self.complete_error:
            raise self.complete_error
        return self.reply

    async def summarize(self, lines: list[str]) -> str:
        self.calls.append("summarize")
        self.summarized.append(list(lines))
        if self.summarize_error:
            raise self.summarize_error
        return self.summary

    async def rewrite(self, message: str) -> str:
        self.calls.append("rewrite")
        if self.rewrite_error:
            raise self.rewrite_error
        return f"{message} (rewritten)"

    async def close(self):
        self.closed = True


@pytest.fixture
def store():
    return InMemoryDatabase()


@pytest.fixture
def gateway():
    return StubGateway()
