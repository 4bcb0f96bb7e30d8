"""FastAPI application for the Spur support chat."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from spurchat.config import settings
from spurchat.db import ConversationStore, get_store
from spurchat.errors import GenerationError
from spurchat.models import (
    MAX_MESSAGE_LENGTH,
    ChatRequest,
    ChatResponse,
    HistoryMessage,
    HistoryResponse,
)
from spurchat.services.chat_handler import ChatGateway, ChatHandler
from spurchat.services.llm_gateway import LLMGateway
from spurchat.services.llm_mock import MockLLMGateway

logger = logging.getLogger(__name__)

TOO_LONG_REPLY = (
    f"Your message is too long. Please keep it under {MAX_MESSAGE_LENGTH} characters."
)


def configure_logging():
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_gateway() -> ChatGateway:
    """Pick the real OpenAI gateway, or the mock when no key is configured."""
    if settings.llm_mock or not settings.openai_api_key:
        logger.warning("No OpenAI key configured (or LLM_MOCK set), using mock LLM gateway")
        return MockLLMGateway()
    return LLMGateway()


def create_app(
    store: ConversationStore | None = None,
    gateway: ChatGateway | None = None,
) -> FastAPI:
    """Create the application.

    ``store`` and ``gateway`` default to the ones selected by settings; they
    are created once at startup and shared by every request.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        app.state.store = store if store is not None else get_store()
        app.state.gateway = gateway if gateway is not None else build_gateway()

        await app.state.store.connect()
        await app.state.store.ensure_tables_exist()
        app.state.chat_handler = ChatHandler(app.state.store, app.state.gateway)
        logger.info("Spur chat API started")
        try:
            yield
        finally:
            await app.state.gateway.close()
            await app.state.store.disconnect()

    app = FastAPI(
        title="Spur AI Chat API",
        description="Customer support chat backend",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS middleware
    if settings.environment == "production":
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[settings.frontend_url],
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_error_handlers(app)
    register_routes(app)
    return app


def register_error_handlers(app: FastAPI):
    @app.exception_handler(404)
    async def not_found(request: Request, exc: Exception):
        return JSONResponse(status_code=404, content={"error": "Route not found"})

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_routes(app: FastAPI):
    # ============= Health & Info =============

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": "Spur AI Chat API", "status": "running"}

    @app.get("/chat/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok", "timestamp": int(time.time() * 1000)}

    # ============= Chat Endpoints =============

    @app.post("/chat/message", response_model=ChatResponse)
    async def chat(request: ChatRequest, http_request: Request):
        """Send a message and get the assistant reply."""
        if not request.message or not isinstance(request.message, str):
            return JSONResponse(
                status_code=400,
                content={"error": "Message is required and must be a string"},
            )

        # A non-string session ID is treated like a missing one
        session_id = request.session_id if isinstance(request.session_id, str) else None
        trimmed = request.message.strip()
        if not trimmed:
            return JSONResponse(status_code=400, content={"error": "Message cannot be empty"})

        if len(trimmed) > MAX_MESSAGE_LENGTH:
            # Soft redirect: shown to the user as a normal reply
            return JSONResponse(
                status_code=400,
                content={"reply": TOO_LONG_REPLY, "sessionId": session_id or ""},
            )

        handler: ChatHandler = http_request.app.state.chat_handler
        try:
            result = await handler.respond(session_id, trimmed)
        except GenerationError as e:
            logger.error(f"Chat error ({e.code}): {e.__cause__ or e}")
            return JSONResponse(
                status_code=e.status_code,
                content={
                    "reply": e.user_message,
                    "sessionId": e.conversation_id or session_id or "",
                },
            )

        return ChatResponse(reply=result.reply, session_id=result.conversation_id)

    @app.get("/chat/history/{session_id}", response_model=HistoryResponse)
    async def history(session_id: str, http_request: Request):
        """Get the ordered message history of a session."""
        store: ConversationStore = http_request.app.state.store
        messages = await store.list_messages(session_id)
        return HistoryResponse(
            messages=[HistoryMessage.from_message(msg) for msg in messages]
        )


app = create_app()


# ============= Run =============


def run():
    """Run the application."""
    import uvicorn

    uvicorn.run(
        "spurchat.api:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
