"""Session domain models for the conversational proxy."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ChatSession:
	"""Association between a client session id and its upstream conversation."""

	session_id: str
	handle: Any
	system_instruction: str
	created_at: float = field(default_factory=lambda: time.time())
