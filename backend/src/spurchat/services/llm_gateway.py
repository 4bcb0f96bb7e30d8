"""OpenAI chat completions gateway.

Stateless request/response wrapper. One client is created at startup and
shared by every request; provider errors are translated into the
categories in ``spurchat.errors``.
"""

import logging

import openai
from openai import AsyncOpenAI

from chat_models import ContextEntry
from spurchat.config import settings
from spurchat.errors import (
    ContextTooLong,
    GenerationError,
    GenerationFailure,
    InvalidCredentials,
    RateLimited,
)

logger = logging.getLogger(__name__)

REPLY_MAX_TOKENS = 350
REPLY_TEMPERATURE = 0.7
SUMMARY_MAX_TOKENS = 200
SUMMARY_TEMPERATURE = 0.4
REWRITE_MAX_TOKENS = 100
REWRITE_TEMPERATURE = 0.3

FALLBACK_SUMMARY = "Previous conversation about Spur store inquiries."

SYSTEM_PROMPT = """You are Spur AI, the official customer support assistant for Spur (Spur Commerce Pvt Ltd), an Indian e-commerce company. You are trained only on Spur's data and policies. You must be helpful, polite, and professional.

=== STRICT BOUNDARY ===
- You ONLY help with: orders, shipping, returns, refunds, payments, products, account, and anything related to Spur store.
- For ANYTHING else (math, general knowledge, coding, advice, other companies, politics, etc.): politely decline. Say you are only for Spur-related help, trained on Spur's data, and cannot answer that. Do not attempt to answer off-topic questions.

=== COMPANY PROFILE ===
- Legal name: Spur Commerce Pvt Ltd, founded 2019
- Founder: Rajesh Mehta (CEO); Co-founder: Priya Sharma (COO)
- HQ: 4th Floor, Tower B, Cyber City, Gurugram, Haryana 122002, India
- Online store for electronics, gadgets, mobile accessories, and lifestyle products
- Website: www.spurstore.com
- Support: support@spurstore.com, +91-98765-43210 (toll-free from India: 1800-419-SPUR)
- Support hours: Monday–Friday, 10:00 AM–6:00 PM IST. Email replies within 24 hours.

=== SHIPPING POLICY ===
- India: 5–7 business days (metro), 7–10 business days (rest of India). Free shipping on orders above ₹499.
- International: 7–14 business days; shipping charges apply at checkout.
- Dispatch within 24–48 hours of order confirmation. Tracking link via SMS and email.
- No same-day or express delivery.

=== RETURN POLICY ===
- Return window: 7 days from delivery. Item unused, in original packaging, with tags and invoice.
- Start a return from Account → Order history → Select order → Initiate return, or email support with the order ID.
- Pickup arranged for eligible returns; no return shipping cost for defective or wrong items.

=== REFUND POLICY ===
- Refund within 3–5 business days after the returned item is received and inspected.
- Credited to the original payment method. Cards may take 7–10 business days to reflect.

=== PAYMENT ===
- Credit/Debit cards, UPI, Net Banking, wallets, EMI (select products), Cash on Delivery for eligible pin codes.

=== STYLE ===
- Be concise, friendly, and clear.
- End helpful answers with: "Is there anything else I can help you with?"
- If the question is unclear, ask one short clarifying question.
- Never make up policies. If unsure, suggest they call or email support."""

SUMMARIZE_SYSTEM_PROMPT = """You summarize customer support conversations for Spur (e-commerce). Your summary will be used so the next agent can continue the conversation without losing context.

Rules:
- Keep it SHORT (3–5 sentences max) but COMPLETE.
- Do NOT miss: order IDs, product names, issue type (return/refund/shipping/complaint), what was promised or decided, and any number/date the customer gave.
- Preserve: what the customer wants, what was already explained, and what is still pending.
- Write in clear, neutral language. No greetings or sign-offs."""

REWRITE_SYSTEM_PROMPT = (
    "Fix spelling and make the question clearer. "
    "Return ONLY the rewritten question. Do NOT change meaning."
)


def map_provider_error(exc: Exception) -> GenerationError:
    """Translate an OpenAI SDK or transport error into a generation error."""
    if isinstance(exc, GenerationError):
        return exc

    code = getattr(exc, "code", None)
    if isinstance(exc, openai.AuthenticationError) or code == "invalid_api_key":
        return InvalidCredentials(str(exc))
    if isinstance(exc, openai.RateLimitError) or code == "rate_limit_exceeded":
        return RateLimited(str(exc))
    if code == "context_length_exceeded":
        return ContextTooLong(str(exc))
    return GenerationFailure(str(exc))


class LLMGateway:
    """Completion, summarization and rewrite calls against one model."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self.model = model or settings.openai_model
        self.client = client or AsyncOpenAI(
            api_key=api_key or settings.openai_api_key,
            timeout=settings.llm_timeout_seconds,
            max_retries=0,
        )

    async def close(self):
        """Release the underlying HTTP client."""
        await self.client.close()

    async def _create(
        self, messages: list[dict[str, str]], max_tokens: int, temperature: float
    ) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as e:
            error = map_provider_error(e)
            logger.error(f"LLM error ({error.code}): {e}")
            raise error from e
        if not response.choices:
            logger.error("LLM returned no choices")
            raise GenerationFailure("Empty choices from LLM")
        return (response.choices[0].message.content or "").strip()

    async def complete(self, history: list[ContextEntry], user_message: str) -> str:
        """Generate the assistant reply for ``user_message`` given ``history``."""
        messages = [{"role": "system", "content": SYSTEM_PROMPT}]
        messages.extend(entry.model_dump() for entry in history)
        messages.append({"role": "user", "content": user_message})

        reply = await self._create(messages, REPLY_MAX_TOKENS, REPLY_TEMPERATURE)
        if not reply:
            logger.error("LLM error: empty response")
            raise GenerationFailure("Empty response from LLM")
        return reply

    async def summarize(self, lines: list[str]) -> str:
        """Compress ``sender: text`` transcript lines into a short summary."""
        transcript = "\n".join(lines)
        messages = [
            {"role": "system", "content": SUMMARIZE_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    "Summarize this support conversation. Do not miss any important "
                    f"detail (order ID, issue, dates, decisions).\n\n{transcript}"
                ),
            },
        ]
        summary = await self._create(messages, SUMMARY_MAX_TOKENS, SUMMARY_TEMPERATURE)
        return summary or FALLBACK_SUMMARY

    async def rewrite(self, message: str) -> str:
        """Fix spelling and clarity of a user question."""
        messages = [
            {"role": "system", "content": REWRITE_SYSTEM_PROMPT},
            {"role": "user", "content": message},
        ]
        return await self._create(messages, REWRITE_MAX_TOKENS, REWRITE_TEMPERATURE)
