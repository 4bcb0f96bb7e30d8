"""Generation error taxonomy.

Raised by the LLM gateway, propagated unchanged through the chat handler and
mapped to a friendly reply plus a stable HTTP status at the API boundary.
The technical cause is kept on ``__cause__`` for logging only.
"""


class GenerationError(Exception):
    """Base class for failures of the final reply generation."""

    code: str = "LLM_ERROR"
    user_message: str = "Something went wrong. Please try again."
    status_code: int = 500
    # Set by the chat handler once the conversation is resolved
    conversation_id: str | None = None


class InvalidCredentials(GenerationError):
    """The provider rejected the configured API key."""

    code = "INVALID_API_KEY"
    user_message = "Configuration error. Please contact support."
    status_code = 500


class RateLimited(GenerationError):
    """The provider is throttling requests."""

    code = "RATE_LIMIT"
    user_message = "High demand. Please try again in a moment."
    status_code = 429


class ContextTooLong(GenerationError):
    """The assembled context exceeded the model's limit."""

    code = "CONTEXT_TOO_LONG"
    user_message = "Conversation too long. Please start a new chat."
    status_code = 413


class GenerationFailure(GenerationError):
    """Catch-all provider or network failure."""

    code = "LLM_ERROR"
    user_message = "Sorry, I'm having trouble. Please try again."
    status_code = 502
