"""Mock LLM gateway for running without an OpenAI key.

Returns canned, deterministic text so the full chat flow (normalization,
summarization, generation) can be exercised locally without API costs.
"""

import logging
import re

from chat_models import ContextEntry
from spurchat.services.llm_gateway import FALLBACK_SUMMARY

logger = logging.getLogger(__name__)

GREETING_PATTERNS = [
    r"^(hi|hello|hey|greetings|good\s+(morning|afternoon|evening))[\s!.,]*$",
]

ORDER_PATTERNS = [
    r"\border\b",
    r"\btrack(ing)?\b",
    r"\b(product|item|stock|available)\b",
]


class MockLLMGateway:
    """Drop-in replacement for ``LLMGateway`` with canned responses."""

    model = "mock"

    @staticmethod
    def _detect_intent(message: str) -> str:
        """Detect user intent from the message."""
        lower = message.lower()

        for pattern in GREETING_PATTERNS:
            if re.search(pattern, lower):
                return "greeting"

        for pattern in ORDER_PATTERNS:
            if re.search(pattern, lower):
                return "order"

        return "general"

    async def close(self):
        pass

    async def complete(self, history: list[ContextEntry], user_message: str) -> str:
        intent = self._detect_intent(user_message)
        logger.info(f"Mock LLM: detected intent '{intent}' ({len(history)} context entries)")

        if intent == "greeting":
            return "Hello! I'm Spur's support assistant. How can I help you with your order today?"
        if intent == "order":
            return (
                "Could you share your order ID? Once I have it I can help you with the "
                "next steps. Is there anything else I can help you with?"
            )

        truncated = user_message[:100] + "..." if len(user_message) > 100 else user_message
        return f"Thanks for reaching out to Spur. You asked: {truncated}"

    async def summarize(self, lines: list[str]) -> str:
        if not lines:
            return FALLBACK_SUMMARY
        user_lines = [line for line in lines if line.startswith("user:")]
        return f"Customer sent {len(user_lines)} earlier messages about Spur store inquiries."

    async def rewrite(self, message: str) -> str:
        return " ".join(message.split())
