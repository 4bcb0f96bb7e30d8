"""Terminal chat client for the Spur support API.

Keeps the session ID between runs, reloads history on start, and reveals
each reply a few characters at a time. The reveal is purely cosmetic: the
full reply has already been received when it starts.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable

import httpx
from pydantic import BaseModel

from spurchat.config import settings
from spurchat.models import HistoryMessage

logger = logging.getLogger(__name__)

SESSION_FILE = Path.home() / ".spurchat_session"
REVEAL_CHUNK = 2  # characters per tick
REVEAL_TICK_SECONDS = 0.025
CONNECTION_ERROR_REPLY = (
    "Sorry, I couldn't process your message. "
    "Please check your connection and try again."
)


class ChatReply(BaseModel):
    """Reply payload from ``POST /chat/message``."""

    reply: str
    session_id: str = ""


async def reveal_text(
    text: str,
    write: Callable[[str], None],
    chunk: int = REVEAL_CHUNK,
    tick: float = REVEAL_TICK_SECONDS,
) -> None:
    """Write ``text`` ``chunk`` characters per ``tick`` seconds.

    Cancelling the task stops the reveal where it is.
    """
    for start in range(0, len(text), chunk):
        await asyncio.sleep(tick)
        write(text[start:start + chunk])


class ChatClient:
    """HTTP client for the chat API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.api_url
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def close(self):
        await self._client.aclose()

    async def send_message(self, message: str, session_id: str | None = None) -> ChatReply:
        """Send a message.

        Error payloads that carry a ``reply`` (too long, provider errors) are
        returned like normal replies; anything else raises.
        """
        payload: dict[str, str] = {"message": message}
        if session_id:
            payload["sessionId"] = session_id

        response = await self._client.post("/chat/message", json=payload)
        try:
            data = response.json()
            if isinstance(data, dict) and "reply" in data:
                return ChatReply(reply=data["reply"], session_id=data.get("sessionId") or "")
        except ValueError as e:
            # Non-JSON body (e.g. a proxy error page) or malformed payload
            raise httpx.HTTPStatusError(
                f"Invalid response ({response.status_code}): {e}",
                request=response.request,
                response=response,
            ) from e
        response.raise_for_status()
        raise httpx.HTTPStatusError(
            f"Unexpected response: {data}", request=response.request, response=response
        )

    async def get_history(self, session_id: str) -> list[HistoryMessage]:
        """Load the stored history of a session; empty on any failure."""
        try:
            response = await self._client.get(f"/chat/history/{session_id}")
            response.raise_for_status()
            return [HistoryMessage(**m) for m in response.json().get("messages", [])]
        except (httpx.HTTPError, ValueError, AttributeError, TypeError) as e:
            logger.warning(f"Failed to load history for {session_id}: {e}")
            return []


def load_session(path: Path = SESSION_FILE) -> str | None:
    if path.exists():
        return path.read_text().strip() or None
    return None


def save_session(session_id: str, path: Path = SESSION_FILE) -> None:
    path.write_text(session_id)


def clear_session(path: Path = SESSION_FILE) -> None:
    path.unlink(missing_ok=True)


def _write(chunk: str) -> None:
    sys.stdout.write(chunk)
    sys.stdout.flush()


async def chat_loop(client: ChatClient, session_file: Path = SESSION_FILE) -> None:
    """Interactive read-send-reveal loop. ``/new`` starts over, ``/quit`` exits."""
    session_id = load_session(session_file)
    if session_id:
        for msg in await client.get_history(session_id):
            prefix = "you" if msg.sender == "user" else "spur"
            print(f"{prefix}> {msg.text}")

    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, input, "you> ")
        text = line.strip()
        if not text:
            continue
        if text == "/quit":
            return
        if text == "/new":
            clear_session(session_file)
            session_id = None
            print("-- new chat --")
            continue

        try:
            result = await client.send_message(text, session_id)
        except httpx.HTTPError as e:
            logger.error(f"Chat request failed: {e}")
            print(f"spur> {CONNECTION_ERROR_REPLY}")
            continue

        if result.session_id and result.session_id != session_id:
            session_id = result.session_id
            save_session(session_id, session_file)

        _write("spur> ")
        try:
            await reveal_text(result.reply, _write)
        finally:
            _write("\n")


async def _main() -> None:
    client = ChatClient()
    try:
        await chat_loop(client)
    finally:
        await client.close()


def main():
    """Console entry point."""
    logging.basicConfig(level=settings.log_level.upper())
    try:
        asyncio.run(_main())
    except (KeyboardInterrupt, EOFError):
        pass


if __name__ == "__main__":
    main()
