"""Conversation handle that keeps turn history for one chat."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

from services.gemini.media_inputs import MessageInput, build_user_parts, user_content
from services.gemini.response_parser import candidate_content

if TYPE_CHECKING:
	from services.gemini.client import GeminiClient


class GeminiChat:
	"""Multi-turn chat bound to one model and one system instruction.

	Every turn resends the accumulated history. A turn is recorded only when
	the provider returned candidate content, so a blocked prompt does not
	poison later turns.
	"""

	def __init__(self, client: "GeminiClient", *, model: str, system_instruction: str) -> None:
		self.client = client
		self.model = model
		self.system_instruction = system_instruction
		self.history: List[Dict[str, Any]] = []

	async def send_message(self, message: MessageInput) -> Dict[str, Any]:
		"""Send one user turn and return the raw generateContent reply."""
		turn = user_content(build_user_parts(message))
		response = await self.client.generate_content(
			model=self.model,
			contents=[*self.history, turn],
			system_instruction=self.system_instruction,
		)
		content = candidate_content(response)
		if content and content.get("parts"):
			self.history.append(turn)
			self.history.append({"role": content.get("role") or "model", "parts": content["parts"]})
		return response
