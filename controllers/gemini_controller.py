"""Dispatch /api/gemini actions to the conversational proxy."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

from fastapi import HTTPException, Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from exceptions.exceptions import ValidationError
from models.api_models import (
	ClearSessionPayload,
	GenerateImagePayload,
	MultimodalEditPayload,
	SendMessagePayload,
)
from services.conversation.proxy import ConversationalProxy

PayloadT = TypeVar("PayloadT", bound=BaseModel)

ACTION_ALIASES = {
	"nanoBanana": "multimodalEdit",
	"clearChat": "clearSession",
}


def _get_proxy(request: Request) -> ConversationalProxy:
	proxy = getattr(request.app.state, "conversational_proxy", None)
	if proxy is None:
		raise HTTPException(status_code=500, detail="AI service is not initialized. Check server logs for details.")
	return proxy


def _parse(model: Type[PayloadT], payload: Dict[str, Any]) -> PayloadT:
	"""Validate an action payload, naming the offending fields on failure."""
	try:
		return model.model_validate(payload)
	except PydanticValidationError as exc:
		fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
		raise ValidationError(f"Missing or invalid field(s): {', '.join(fields)}") from exc


async def _send_message(proxy: ConversationalProxy, payload: Dict[str, Any]) -> Dict[str, Any]:
	data = _parse(SendMessagePayload, payload)
	parts = await proxy.send_message(data.session_id, data.message)
	return {"parts": [part.as_dict() for part in parts]}


async def _generate_image(proxy: ConversationalProxy, payload: Dict[str, Any]) -> Dict[str, Any]:
	data = _parse(GenerateImagePayload, payload)
	return {"imageUrl": await proxy.generate_image(data.prompt)}


async def _multimodal_edit(proxy: ConversationalProxy, payload: Dict[str, Any]) -> Dict[str, Any]:
	data = _parse(MultimodalEditPayload, payload)
	image = data.image
	parts = await proxy.multimodal_edit(
		prompt=data.prompt,
		image_data=image.data if image else None,
		mime_type=image.mime_type if image else None,
	)
	return {"parts": [part.as_dict() for part in parts]}


async def _clear_session(proxy: ConversationalProxy, payload: Dict[str, Any]) -> Dict[str, Any]:
	data = _parse(ClearSessionPayload, payload)
	return {"message": await proxy.clear_session(data.session_id)}


ACTIONS: Dict[str, Callable[[ConversationalProxy, Dict[str, Any]], Awaitable[Dict[str, Any]]]] = {
	"sendMessage": _send_message,
	"generateImage": _generate_image,
	"multimodalEdit": _multimodal_edit,
	"clearSession": _clear_session,
}


async def dispatch_action(request: Request, action: Optional[str], payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
	"""Run one proxy action and return its response envelope."""
	proxy = _get_proxy(request)
	if not action or payload is None:
		raise ValidationError("Missing action or payload")

	handler = ACTIONS.get(ACTION_ALIASES.get(action, action))
	if handler is None:
		raise ValidationError("Invalid action")
	return await handler(proxy, payload)
