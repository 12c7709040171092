"""FastAPI route for the conversational proxy actions."""

import logging

from fastapi import APIRouter, HTTPException, Request

from controllers.gemini_controller import dispatch_action
from exceptions.exceptions import ProxyError
from models.api_models import GeminiRequest

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api/gemini", tags=["gemini"])


@router.post("")
async def gemini_action(request: Request, payload: GeminiRequest):
	"""Run `sendMessage`, `generateImage`, `multimodalEdit` or `clearSession`."""
	try:
		return await dispatch_action(request, payload.action, payload.payload)
	except (HTTPException, ProxyError):
		raise
	except Exception as exc:
		LOGGER.exception("Unexpected error handling action %r", payload.action)
		raise HTTPException(status_code=500, detail=str(exc) or "An internal server error occurred.")
