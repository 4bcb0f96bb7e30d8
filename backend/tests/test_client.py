"""Tests for the terminal chat client."""

import asyncio
import json

import httpx
import pytest

from spurchat.client import (
    ChatClient,
    clear_session,
    load_session,
    reveal_text,
    save_session,
)


def make_client(handler) -> ChatClient:
    return ChatClient(base_url="http://test", transport=httpx.MockTransport(handler))


class TestRevealText:
    """Test the cosmetic timed reveal."""

    @pytest.mark.asyncio
    async def test_reveals_whole_text_in_chunks(self):
        """Test every character is written, two at a time."""
        written: list[str] = []
        await reveal_text("Hello!", written.append, tick=0)

        assert written == ["He", "ll", "o!"]

    @pytest.mark.asyncio
    async def test_empty_text_writes_nothing(self):
        """Test an empty reply is a no-op."""
        written: list[str] = []
        await reveal_text("", written.append, tick=0)
        assert written == []

    @pytest.mark.asyncio
    async def test_cancel_stops_reveal(self):
        """Test cancelling leaves the text partially revealed."""
        written: list[str] = []
        task = asyncio.create_task(reveal_text("x" * 100, written.append, tick=0.01))
        await asyncio.sleep(0.035)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert 0 < len(written) < 50


class TestChatClient:
    """Test the HTTP calls against a mock transport."""

    @pytest.mark.asyncio
    async def test_send_message_with_session(self):
        """Test the payload uses the API's field names."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"reply": "Hi!", "sessionId": "s1"})

        client = make_client(handler)
        try:
            result = await client.send_message("hello", "s1")
        finally:
            await client.close()

        assert seen == {"path": "/chat/message", "body": {"message": "hello", "sessionId": "s1"}}
        assert result.reply == "Hi!"
        assert result.session_id == "s1"

    @pytest.mark.asyncio
    async def test_send_message_without_session_omits_field(self):
        """Test a new chat sends no sessionId."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"reply": "Hi!", "sessionId": "new"})

        client = make_client(handler)
        try:
            await client.send_message("hello")
        finally:
            await client.close()

        assert seen["body"] == {"message": "hello"}

    @pytest.mark.asyncio
    async def test_error_reply_is_returned(self):
        """Test categorized errors carrying a reply are shown like replies."""
        client = make_client(
            lambda request: httpx.Response(
                429, json={"reply": "High demand. Please try again in a moment.", "sessionId": "s1"}
            )
        )
        try:
            result = await client.send_message("hello", "s1")
        finally:
            await client.close()

        assert result.reply == "High demand. Please try again in a moment."

    @pytest.mark.asyncio
    async def test_hard_rejection_raises(self):
        """Test errors without a reply raise."""
        client = make_client(
            lambda request: httpx.Response(400, json={"error": "Message cannot be empty"})
        )
        try:
            with pytest.raises(httpx.HTTPStatusError):
                await client.send_message(" ")
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_non_json_error_page_raises_http_error(self):
        """Test an HTML gateway page surfaces as an HTTP error."""
        client = make_client(
            lambda request: httpx.Response(502, text="<html>Bad Gateway</html>")
        )
        try:
            with pytest.raises(httpx.HTTPError):
                await client.send_message("hello", "s1")
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_get_history(self):
        """Test history messages are parsed in order."""
        payload = {
            "messages": [
                {"id": "1", "sender": "user", "text": "hi", "timestamp": 1000},
                {"id": "2", "sender": "ai", "text": "hello", "timestamp": 2000},
            ]
        }
        client = make_client(lambda request: httpx.Response(200, json=payload))
        try:
            history = await client.get_history("s1")
        finally:
            await client.close()

        assert [(m.sender, m.text) for m in history] == [("user", "hi"), ("ai", "hello")]

    @pytest.mark.asyncio
    async def test_get_history_failure_is_empty(self):
        """Test a failed history load doesn't break the client."""
        client = make_client(lambda request: httpx.Response(500, json={"error": "x"}))
        try:
            assert await client.get_history("s1") == []
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_get_history_non_json_is_empty(self):
        """Test an HTML body with a 200 status yields no history."""
        client = make_client(lambda request: httpx.Response(200, text="<html>ok</html>"))
        try:
            assert await client.get_history("s1") == []
        finally:
            await client.close()

    @pytest.mark.asyncio
    async def test_get_history_malformed_entries_is_empty(self):
        """Test entries missing fields yield no history."""
        client = make_client(
            lambda request: httpx.Response(200, json={"messages": [{"id": "1"}]})
        )
        try:
            assert await client.get_history("s1") == []
        finally:
            await client.close()


class TestSessionFile:
    """Test session persistence between runs."""

    def test_round_trip(self, tmp_path):
        """Test save, load and clear."""
        path = tmp_path / "session"
        assert load_session(path) is None

        save_session("abc", path)
        assert load_session(path) == "abc"

        clear_session(path)
        assert load_session(path) is None
        clear_session(path)
