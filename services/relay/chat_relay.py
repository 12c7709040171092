"""Relay for the OpenAI-compatible chat-completions provider."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from exceptions.exceptions import ConfigurationError, UpstreamError, ValidationError
from services.openai.response_utils import serialize_response
from services.relay.streaming import UpstreamBody, open_upstream_stream, relay_bytes
from utils.settings import Settings

LOGGER = logging.getLogger(__name__)


class ChatRelay:
    """Forward chat-completion bodies upstream in `stream` or `buffered` mode.

    `stream` passes the provider's bytes through untouched. `buffered`
    goes through the OpenAI SDK and returns one JSON completion.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        settings: Settings,
        openai_client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self.http = http
        self.settings = settings
        self.openai_client = openai_client

    def resolve_mode(self, body: Dict[str, Any]) -> str:
        """Pick the response mode for one request body."""
        if body.get("stream") is False:
            return "buffered"
        return self.settings.chat_response_mode

    async def open_stream(self, body: Dict[str, Any]) -> UpstreamBody:
        """Start the upstream request and return an iterator over its bytes.

        Raises before returning when the key is missing or the provider
        answers with an error status.
        """
        api_key = self.settings.require_cerebras_api_key()
        request = self.http.build_request(
            "POST",
            f"{self.settings.cerebras_base_url}/chat/completions",
            json=body,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
                "Accept-Encoding": "identity",
            },
        )
        response = await open_upstream_stream(self.http, request)
        return relay_bytes(response)

    async def complete(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Run one non-streaming completion and return it as a dict."""
        self.settings.require_cerebras_api_key()
        if self.openai_client is None:
            raise ConfigurationError("CEREBRAS_API_KEY")

        params = dict(body)
        model = params.pop("model", None)
        messages = params.pop("messages", None)
        params.pop("stream", None)
        if not model or not messages:
            raise ValidationError("Chat requests require 'model' and 'messages'.")

        try:
            completion = await self.openai_client.chat.completions.create(
                model=model,
                messages=messages,
                stream=False,
                extra_body=params or None,
            )
        except APIStatusError as exc:
            LOGGER.error("Chat provider returned %s: %s", exc.status_code, exc.message)
            raise UpstreamError(exc.response.text or exc.message, status_code=exc.status_code) from exc
        except APIConnectionError as exc:
            LOGGER.error("Chat provider unreachable: %s", exc)
            raise UpstreamError(f"Chat provider unreachable: {exc}") from exc

        return serialize_response(completion)
