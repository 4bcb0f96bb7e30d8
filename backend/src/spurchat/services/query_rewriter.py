"""Best-effort query normalization before generation."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

# Shorter messages are passed through untouched
MIN_REWRITE_LENGTH = 10


class Rewriter(Protocol):
    async def rewrite(self, message: str) -> str: ...


async def rewrite_query(message: str, gateway: Rewriter) -> str:
    """Return a spelling/clarity-fixed version of ``message``.

    Never raises: any failure, or an empty rewrite, yields the original text.
    """
    if len(message) < MIN_REWRITE_LENGTH:
        return message

    try:
        rewritten = await gateway.rewrite(message)
    except Exception as e:
        logger.warning(f"Query rewrite failed, using original message: {e}")
        return message

    rewritten = (rewritten or "").strip()
    return rewritten or message
