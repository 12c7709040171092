"""Relay for the Pollinations image-generation provider."""

from __future__ import annotations

import json
from typing import Dict, Optional, Tuple
from urllib.parse import quote

import httpx

from services.relay.streaming import UpstreamBody, open_upstream_stream, relay_bytes
from utils.settings import Settings

DEFAULT_MODEL = "nanobanana"
DEFAULT_CONTENT_TYPE = "image/jpeg"
CACHE_CONTROL = "public, max-age=31536000, immutable"
USER_AGENT = "DAi-Server/1.0"


def format_pollinations_error(response: httpx.Response) -> str:
    """Render a provider error as `Pollinations Error (<status>): <message>`."""
    message = response.reason_phrase
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("error"):
        error = payload["error"]
        message = json.dumps(error) if isinstance(error, (dict, list)) else str(error)
    return f"Pollinations Error ({response.status_code}): {message}"


class ImageRelay:
    """Stream generated images from the provider back to the caller."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings) -> None:
        self.http = http
        self.settings = settings

    def build_url(
        self,
        prompt: str,
        *,
        width: Optional[int] = None,
        height: Optional[int] = None,
        seed: Optional[int] = None,
        model: Optional[str] = None,
    ) -> Tuple[str, Dict[str, str]]:
        params: Dict[str, str] = {}
        for key, value in (("width", width), ("height", height), ("seed", seed)):
            if value is not None:
                params[key] = str(value)
        params["model"] = model or DEFAULT_MODEL
        params["nologo"] = "true"
        url = f"{self.settings.pollinations_base_url}/image/{quote(prompt, safe='')}"
        return url, params

    async def open_image(
        self,
        prompt: str,
        *,
        width: Optional[int] = None,
        height: Optional[int] = None,
        seed: Optional[int] = None,
        model: Optional[str] = None,
    ) -> Tuple[UpstreamBody, str]:
        """Return the image byte stream and its content type."""
        api_key = self.settings.require_pollinations_api_key()
        url, params = self.build_url(prompt, width=width, height=height, seed=seed, model=model)
        request = self.http.build_request(
            "GET",
            url,
            params=params,
            headers={"Authorization": f"Bearer {api_key}", "User-Agent": USER_AGENT},
        )
        response = await open_upstream_stream(self.http, request, format_error=format_pollinations_error)
        content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
        return relay_bytes(response), content_type
