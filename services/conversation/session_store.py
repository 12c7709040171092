"""Session stores mapping client session ids to conversation handles."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

from models.session_models import ChatSession

LOGGER = logging.getLogger(__name__)

SessionFactory = Callable[[str], ChatSession]


class SessionStore(ABC):
	"""Owns every conversation handle; the proxy is its only client."""

	@abstractmethod
	def get(self, session_id: str) -> Optional[ChatSession]:
		"""Return the session for `session_id`, or None."""

	@abstractmethod
	def get_or_create(self, session_id: str, factory: SessionFactory) -> ChatSession:
		"""Return the existing session, creating it with `factory` only when absent."""

	@abstractmethod
	def delete(self, session_id: str) -> bool:
		"""Remove a session. Returns False when nothing was stored."""

	@abstractmethod
	def __len__(self) -> int:
		...

	def __contains__(self, session_id: object) -> bool:
		return isinstance(session_id, str) and self.get(session_id) is not None


class InMemorySessionStore(SessionStore):
	"""Process-local store. Sessions vanish when the process is recycled."""

	def __init__(self) -> None:
		self._sessions: Dict[str, ChatSession] = {}

	def get(self, session_id: str) -> Optional[ChatSession]:
		return self._sessions.get(session_id)

	def get_or_create(self, session_id: str, factory: SessionFactory) -> ChatSession:
		session = self._sessions.get(session_id)
		if session is None:
			session = factory(session_id)
			self._sessions[session_id] = session
			LOGGER.info("Created chat session %s (%d active)", session_id, len(self._sessions))
		return session

	def delete(self, session_id: str) -> bool:
		removed = self._sessions.pop(session_id, None) is not None
		if removed:
			LOGGER.info("Cleared chat session %s (%d active)", session_id, len(self._sessions))
		return removed

	def __len__(self) -> int:
		return len(self._sessions)
