"""Environment-backed configuration for the proxy service."""

from __future__ import annotations

import os
from typing import List, Optional

import httpx

from exceptions.exceptions import ConfigurationError

CHAT_RESPONSE_MODES = ("stream", "buffered")


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


class Settings:
    """
    Central configuration, read once from environment variables.

    Provider secrets are optional at startup. Each operation asks for the
    secret it needs through one of the `require_*` helpers, which raise a
    ConfigurationError naming the missing variable.
    """

    def __init__(self) -> None:
        # Generative provider
        self._gemini_api_key = _env("GEMINI_API_KEY") or _env("API_KEY")
        self._gemini_base_url = _env(
            "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
        )
        self._gemini_chat_model = _env("GEMINI_CHAT_MODEL", "gemini-2.5-flash")
        self._gemini_image_model = _env("GEMINI_IMAGE_MODEL", "imagen-4.0-generate-001")
        self._gemini_edit_model = _env("GEMINI_EDIT_MODEL", "gemini-2.5-flash-image-preview")
        self._assistant_name = _env("ASSISTANT_NAME", "D'Ai")

        # Chat-completion provider
        self._cerebras_api_key = _env("CEREBRAS_API_KEY")
        self._cerebras_base_url = _env("CEREBRAS_BASE_URL", "https://api.cerebras.ai/v1")
        self._chat_response_mode = (_env("CHAT_RESPONSE_MODE", "stream") or "stream").lower()
        if self._chat_response_mode not in CHAT_RESPONSE_MODES:
            raise RuntimeError(
                f"CHAT_RESPONSE_MODE must be one of: {', '.join(CHAT_RESPONSE_MODES)}"
            )

        # Image and search providers
        self._pollinations_api_key = _env("POLLINATIONS_API")
        self._pollinations_base_url = _env("POLLINATIONS_BASE_URL", "https://gen.pollinations.ai")
        self._web_search_api_key = _env("WEB_SEARCH_API")
        self._tavily_search_url = _env("TAVILY_SEARCH_URL", "https://api.tavily.com/search")

        # Transport
        self._connect_timeout = float(_env("UPSTREAM_CONNECT_TIMEOUT", "10"))
        self._read_timeout = float(_env("UPSTREAM_READ_TIMEOUT", "300"))
        self._cors_allow_origins = _env("CORS_ALLOW_ORIGINS", "*")

    # ------------------------------------------------------------------
    # Generative provider
    # ------------------------------------------------------------------

    @property
    def gemini_api_key(self) -> Optional[str]:
        return self._gemini_api_key

    def require_gemini_api_key(self) -> str:
        if not self._gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY")
        return self._gemini_api_key

    @property
    def gemini_base_url(self) -> str:
        return self._gemini_base_url.rstrip("/")

    @property
    def gemini_chat_model(self) -> str:
        return self._gemini_chat_model

    @property
    def gemini_image_model(self) -> str:
        return self._gemini_image_model

    @property
    def gemini_edit_model(self) -> str:
        return self._gemini_edit_model

    @property
    def assistant_name(self) -> str:
        return self._assistant_name

    # ------------------------------------------------------------------
    # Chat-completion provider
    # ------------------------------------------------------------------

    @property
    def cerebras_api_key(self) -> Optional[str]:
        return self._cerebras_api_key

    def require_cerebras_api_key(self) -> str:
        if not self._cerebras_api_key:
            raise ConfigurationError("CEREBRAS_API_KEY")
        return self._cerebras_api_key

    @property
    def cerebras_base_url(self) -> str:
        return self._cerebras_base_url.rstrip("/")

    @property
    def chat_response_mode(self) -> str:
        return self._chat_response_mode

    # ------------------------------------------------------------------
    # Image and search providers
    # ------------------------------------------------------------------

    @property
    def pollinations_api_key(self) -> Optional[str]:
        return self._pollinations_api_key

    def require_pollinations_api_key(self) -> str:
        if not self._pollinations_api_key:
            raise ConfigurationError("POLLINATIONS_API")
        return self._pollinations_api_key

    @property
    def pollinations_base_url(self) -> str:
        return self._pollinations_base_url.rstrip("/")

    @property
    def web_search_api_key(self) -> Optional[str]:
        return self._web_search_api_key

    def require_web_search_api_key(self) -> str:
        if not self._web_search_api_key:
            raise ConfigurationError("WEB_SEARCH_API")
        return self._web_search_api_key

    @property
    def tavily_search_url(self) -> str:
        return self._tavily_search_url

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    @property
    def http_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self._connect_timeout,
            read=self._read_timeout,
            write=self._read_timeout,
            pool=self._connect_timeout,
        )

    @property
    def cors_allow_origins(self) -> List[str]:
        return [origin.strip() for origin in self._cors_allow_origins.split(",") if origin.strip()]
