"""Conversational proxy: session-scoped chat plus stateless image operations."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from exceptions.exceptions import GenerationFailed, ValidationError
from models.message_parts import Part
from models.session_models import ChatSession
from services.conversation.prompts import assistant_system_instruction
from services.conversation.session_store import SessionStore
from services.gemini.media_inputs import MessageInput, build_edit_parts, user_content
from services.gemini.response_parser import (
	candidate_segments,
	explain_empty_reply,
	generated_images,
	normalize_parts,
)
from utils.settings import Settings

LOGGER = logging.getLogger(__name__)

CLEARED_MESSAGE = "Chat history cleared"
SAFETY_FILTER_MESSAGE = "Image generation failed. The prompt may have been blocked by safety filters."


class ConversationalProxy:
	"""Forward user turns to the generative provider and normalize its replies.

	Turns for one session id are serialized with a per-session lock, so two
	concurrent sends can neither open two handles nor interleave their
	history updates. Different sessions run concurrently.
	"""

	def __init__(self, client: Any, store: SessionStore, settings: Settings) -> None:
		if client is None:
			raise ValueError("A generative client is required.")
		self.client = client
		self.store = store
		self.settings = settings
		self.system_instruction = assistant_system_instruction(settings.assistant_name)
		self._locks: Dict[str, asyncio.Lock] = {}

	def _lock_for(self, session_id: str) -> asyncio.Lock:
		lock = self._locks.get(session_id)
		if lock is None:
			lock = self._locks[session_id] = asyncio.Lock()
		return lock

	def _open_session(self, session_id: str) -> ChatSession:
		handle = self.client.create_chat(
			model=self.settings.gemini_chat_model,
			system_instruction=self.system_instruction,
		)
		return ChatSession(session_id=session_id, handle=handle, system_instruction=self.system_instruction)

	async def send_message(self, session_id: str, message: MessageInput) -> List[Part]:
		"""Send one user turn within the session's conversation."""
		if not session_id:
			raise ValidationError("Missing required field: sessionId")
		if not message:
			raise ValidationError("Missing required field: message")
		self.client.ensure_configured()

		async with self._lock_for(session_id):
			session = self.store.get_or_create(session_id, self._open_session)
			response = await session.handle.send_message(message)

		parts = normalize_parts(candidate_segments(response))
		if not parts:
			LOGGER.warning("Session %s received an empty reply", session_id)
			return explain_empty_reply(
				response,
				stopped="The response was stopped prematurely.",
				empty="I received a response, but it was empty.",
			)
		return parts

	async def generate_image(self, prompt: str) -> str:
		"""Generate one square PNG and return it as a data URI."""
		if not prompt or not prompt.strip():
			raise ValidationError("Missing required field: prompt")
		self.client.ensure_configured()

		response = await self.client.generate_images(
			model=self.settings.gemini_image_model,
			prompt=prompt,
			number_of_images=1,
			aspect_ratio="1:1",
			mime_type="image/png",
		)
		images = generated_images(response)
		if not images:
			raise GenerationFailed(SAFETY_FILTER_MESSAGE)
		image = images[0]
		mime_type = image.get("mimeType") or "image/png"
		return f"data:{mime_type};base64,{image['bytesBase64Encoded']}"

	async def multimodal_edit(
		self,
		prompt: Optional[str] = None,
		image_data: Optional[str] = None,
		mime_type: Optional[str] = None,
	) -> List[Part]:
		"""Ask the image-capable model to answer with mixed text and image parts."""
		self.client.ensure_configured()

		parts = build_edit_parts(prompt, image_data, mime_type)
		response = await self.client.generate_content(
			model=self.settings.gemini_edit_model,
			contents=[user_content(parts)],
			generation_config={"responseModalities": ["IMAGE", "TEXT"]},
		)
		reply = normalize_parts(candidate_segments(response))
		if not reply:
			return explain_empty_reply(
				response,
				stopped="Image editing stopped prematurely.",
				empty="The image model returned an empty response.",
			)
		return reply

	async def clear_session(self, session_id: str) -> str:
		"""Forget a session. Clearing an unknown id is not an error."""
		if not session_id:
			raise ValidationError("Missing required field: sessionId")
		self.client.ensure_configured()
		# The lock stays: a turn may be queued on it for the same id.
		self.store.delete(session_id)
		return CLEARED_MESSAGE
