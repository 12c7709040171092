import inspect
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from openai import AsyncOpenAI
from starlette.exceptions import HTTPException as StarletteHTTPException

from exceptions.exceptions import ProxyError
from routes.chat_route import router as chat_router
from routes.gemini_route import router as gemini_router
from routes.image_route import router as image_router
from routes.search_route import router as search_router
from services.conversation.proxy import ConversationalProxy
from services.conversation.session_store import InMemorySessionStore
from services.gemini.client import GeminiClient
from services.relay.chat_relay import ChatRelay
from services.relay.image_relay import ImageRelay
from services.relay.search_relay import SearchRelay
from utils.settings import Settings

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the shared httpx client used for every upstream call
      - the OpenAI async client pointed at the chat-completions provider
      - the session store, the conversational proxy and the relays
    and attach them to `app.state`.

    Missing provider keys do not stop startup; the affected operations
    answer with a configuration error instead.
    """
    settings: Settings = app.state.settings

    http = httpx.AsyncClient(timeout=settings.http_timeout)
    app.state.http = http

    openai_client: Optional[AsyncOpenAI] = None
    if settings.cerebras_api_key:
        try:
            openai_client = AsyncOpenAI(
                api_key=settings.cerebras_api_key,
                base_url=settings.cerebras_base_url,
                timeout=settings.http_timeout,
            )
        except Exception as exc:
            raise RuntimeError("Failed to initialize OpenAI Async client") from exc
    else:
        LOGGER.warning("CEREBRAS_API_KEY is not set; /api/chat will answer with a configuration error.")
    app.state.openai_client = openai_client

    if not settings.gemini_api_key:
        LOGGER.warning("GEMINI_API_KEY is not set; /api/gemini will answer with a configuration error.")

    app.state.session_store = InMemorySessionStore()
    app.state.conversational_proxy = ConversationalProxy(
        GeminiClient(http, settings), app.state.session_store, settings
    )
    app.state.chat_relay = ChatRelay(http, settings, openai_client)
    app.state.image_relay = ImageRelay(http, settings)
    app.state.search_relay = SearchRelay(http, settings)

    try:
        yield
    finally:
        # Gracefully close the OpenAI client if it exposes a close/aclose method.
        client = getattr(app.state, "openai_client", None)
        if client is not None:
            aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
            if aclose is not None:
                try:
                    result = aclose()
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    LOGGER.warning("Failed to close the OpenAI client", exc_info=True)
        await http.aclose()


def _error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    """Render every error as `{"error": "<message>"}`."""

    @app.exception_handler(ProxyError)
    async def handle_proxy_error(request: Request, exc: ProxyError):
        if exc.status_code >= 500:
            LOGGER.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        fields = sorted({".".join(str(part) for part in err.get("loc", ())[1:]) or "body" for err in exc.errors()})
        return _error_response(400, f"Invalid request body: {', '.join(fields)}")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(title="D'Ai Proxy", lifespan=lifespan)
    app.state.settings = settings or Settings()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app.state.settings.cors_allow_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_error_handlers(app)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check reporting which providers have keys configured.
        """
        current: Settings = request.app.state.settings
        store = getattr(request.app.state, "session_store", None)
        return {
            "ok": True,
            "gemini_configured": bool(current.gemini_api_key),
            "chat_configured": bool(current.cerebras_api_key),
            "image_configured": bool(current.pollinations_api_key),
            "search_configured": bool(current.web_search_api_key),
            "active_sessions": len(store) if store is not None else 0,
        }

    @app.options("/api/{path:path}")
    async def options(path: str):
        """Answer OPTIONS that is not a CORS preflight (no Origin headers)."""
        return Response(status_code=200)

    # Register application routers
    app.include_router(gemini_router)
    app.include_router(chat_router)
    app.include_router(image_router)
    app.include_router(search_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "3000")))
