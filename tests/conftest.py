from typing import Any, Dict, List

import pytest

from exceptions.exceptions import ConfigurationError
from services.conversation.proxy import ConversationalProxy
from services.conversation.session_store import InMemorySessionStore
from utils.settings import Settings

PROVIDER_ENV = (
    "GEMINI_API_KEY",
    "API_KEY",
    "CEREBRAS_API_KEY",
    "POLLINATIONS_API",
    "WEB_SEARCH_API",
    "CHAT_RESPONSE_MODE",
    "CORS_ALLOW_ORIGINS",
)


def text_reply(text: str, finish_reason: str = "STOP") -> Dict[str, Any]:
    return {
        "candidates": [
            {"content": {"role": "model", "parts": [{"text": text}]}, "finishReason": finish_reason}
        ]
    }


class FakeChat:
    def __init__(self, replies: List[Dict[str, Any]]):
        self.replies = replies
        self.history: List[Dict[str, Any]] = []
        self.sent: List[Any] = []

    async def send_message(self, message):
        self.sent.append(message)
        self.history.append({"role": "user", "parts": [{"text": str(message)}]})
        if self.replies:
            return self.replies.pop(0)
        return text_reply(f"echo: {message}")


class FakeGeminiClient:
    """Stands in for GeminiClient and counts conversation handles it opens."""

    def __init__(self, configured: bool = True):
        self.configured = configured
        self.chats_created = 0
        self.chats: List[FakeChat] = []
        self.chat_replies: List[Dict[str, Any]] = []
        self.content_reply: Dict[str, Any] = text_reply("edited")
        self.images_reply: Dict[str, Any] = {
            "predictions": [{"bytesBase64Encoded": "iVBORw0KGgo=", "mimeType": "image/png"}]
        }
        self.calls: List[Dict[str, Any]] = []

    def ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigurationError("GEMINI_API_KEY")

    def create_chat(self, *, model: str, system_instruction: str) -> FakeChat:
        self.chats_created += 1
        chat = FakeChat(self.chat_replies)
        self.chats.append(chat)
        return chat

    async def generate_content(self, **kwargs) -> Dict[str, Any]:
        self.calls.append({"op": "generate_content", **kwargs})
        return self.content_reply

    async def generate_images(self, **kwargs) -> Dict[str, Any]:
        self.calls.append({"op": "generate_images", **kwargs})
        return self.images_reply


@pytest.fixture
def provider_env(monkeypatch):
    for name in PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-test-key")
    monkeypatch.setenv("CEREBRAS_API_KEY", "cerebras-test-key")
    monkeypatch.setenv("POLLINATIONS_API", "pollinations-test-key")
    monkeypatch.setenv("WEB_SEARCH_API", "tavily-test-key")
    return monkeypatch


@pytest.fixture
def settings(provider_env) -> Settings:
    return Settings()


@pytest.fixture
def bare_settings(monkeypatch) -> Settings:
    """Settings with no provider secrets at all."""
    for name in PROVIDER_ENV:
        monkeypatch.delenv(name, raising=False)
    return Settings()


@pytest.fixture
def fake_client() -> FakeGeminiClient:
    return FakeGeminiClient()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def proxy(fake_client, session_store, settings) -> ConversationalProxy:
    return ConversationalProxy(fake_client, session_store, settings)

