"""Async REST client for the Gemini generative-language API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from exceptions.exceptions import UpstreamError
from services.gemini.chat import GeminiChat
from services.gemini.response_parser import error_message
from utils.settings import Settings

LOGGER = logging.getLogger(__name__)


class GeminiClient:
    """Thin wrapper over `models/<model>:generateContent` and `:predict`.

    The API key is resolved from settings on every call, so a missing key
    surfaces as a ConfigurationError before any request is built.
    """

    def __init__(self, http: httpx.AsyncClient, settings: Settings) -> None:
        if http is None:
            raise ValueError("An httpx.AsyncClient is required.")
        self.http = http
        self.settings = settings

    def ensure_configured(self) -> None:
        """Raise ConfigurationError when the API key is not set."""
        self.settings.require_gemini_api_key()

    def create_chat(self, *, model: str, system_instruction: str) -> GeminiChat:
        """Open a new conversation handle with an empty history."""
        return GeminiChat(self, model=model, system_instruction=system_instruction)

    async def generate_content(
        self,
        *,
        model: str,
        contents: List[Dict[str, Any]],
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Call generateContent and return the decoded JSON reply."""
        body: Dict[str, Any] = {"contents": contents}
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if generation_config:
            body["generationConfig"] = generation_config
        return await self._post(f"models/{model}:generateContent", body)

    async def generate_images(
        self,
        *,
        model: str,
        prompt: str,
        number_of_images: int = 1,
        aspect_ratio: str = "1:1",
        mime_type: str = "image/png",
    ) -> Dict[str, Any]:
        """Call the Imagen predict endpoint and return the decoded JSON reply."""
        body = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": number_of_images,
                "aspectRatio": aspect_ratio,
                "outputOptions": {"mimeType": mime_type},
            },
        }
        return await self._post(f"models/{model}:predict", body)

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.settings.require_gemini_api_key(),
        }
        url = f"{self.settings.gemini_base_url}/{path}"

        try:
            response = await self.http.post(url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            LOGGER.error("Gemini request to %s failed: %s", path, exc)
            raise UpstreamError(f"Gemini request failed: {exc}") from exc

        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = error_message(payload, response.text or response.reason_phrase)
            LOGGER.error("Gemini returned %s for %s: %s", response.status_code, path, message)
            raise UpstreamError(message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError("Gemini returned a malformed JSON payload.") from exc
        if not isinstance(data, dict):
            raise UpstreamError("Gemini returned an unexpected payload.")
        return data
