from typing import Any, Dict

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.types import Receive, Scope, Send

from models.api_models import ImageRelayRequest
from services.relay.chat_relay import ChatRelay
from services.relay.image_relay import CACHE_CONTROL, ImageRelay
from services.relay.search_relay import SearchRelay
from services.relay.streaming import UpstreamBody

EVENT_STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
}


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=500, detail=f"{name} is not initialized.")
    return value


class UpstreamStreamingResponse(StreamingResponse):
    """StreamingResponse that always releases the upstream body.

    Runs even when the client disconnects before the first chunk is pulled
    or sending the response start fails.
    """

    body_iterator: UpstreamBody

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.body_iterator.aclose()


async def relay_chat(request: Request, body: Dict[str, Any]):
    """Forward a chat-completions body, streaming or buffering per request.

    Args:
        request: FastAPI Request (to access app.state.chat_relay).
        body: The JSON body sent by the browser, forwarded unchanged.

    Returns:
        A `StreamingResponse` of upstream bytes, or a `JSONResponse` when
        the buffered mode is selected.
    """
    relay: ChatRelay = _state(request, "chat_relay")
    if relay.resolve_mode(body) == "buffered":
        return JSONResponse(await relay.complete(body))

    chunks = await relay.open_stream(body)
    return UpstreamStreamingResponse(chunks, media_type="text/event-stream", headers=EVENT_STREAM_HEADERS)


def chat_health(request: Request) -> Dict[str, Any]:
    relay: ChatRelay = _state(request, "chat_relay")
    return {"status": "Online", "env_check": bool(relay.settings.cerebras_api_key)}


async def relay_image(request: Request, payload: ImageRelayRequest) -> UpstreamStreamingResponse:
    """Stream a generated image with long-lived cache headers."""
    relay: ImageRelay = _state(request, "image_relay")
    chunks, content_type = await relay.open_image(
        payload.prompt,
        width=payload.width,
        height=payload.height,
        seed=payload.seed,
        model=payload.model,
    )
    return UpstreamStreamingResponse(chunks, media_type=content_type, headers={"Cache-Control": CACHE_CONTROL})


async def relay_search(request: Request, query: str) -> Dict[str, Any]:
    relay: SearchRelay = _state(request, "search_relay")
    return await relay.search(query)
