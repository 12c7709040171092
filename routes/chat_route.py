from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException, Request

from controllers.relay_controller import chat_health, relay_chat
from exceptions.exceptions import ProxyError

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.get("")
async def get_chat_health(request: Request):
    """Report whether the chat provider key is configured."""
    return chat_health(request)


@router.post("")
async def post_chat(request: Request, body: Dict[str, Any] = Body(...)):
    """Forward a chat-completions request to the provider."""
    try:
        return await relay_chat(request, body)
    except (HTTPException, ProxyError):
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
