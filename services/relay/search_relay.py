"""Relay for the Tavily web-search provider."""

from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from exceptions.exceptions import UpstreamError
from utils.settings import Settings

LOGGER = logging.getLogger(__name__)

SEARCH_OPTIONS: Dict[str, Any] = {
    "search_depth": "basic",
    "max_results": 5,
    "include_answer": False,
    "include_images": False,
}


class SearchRelay:
    """Run a web search with the server-held key and return the provider JSON."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings) -> None:
        self.http = http
        self.settings = settings

    async def search(self, query: str) -> Dict[str, Any]:
        api_key = self.settings.require_web_search_api_key()
        body = {"api_key": api_key, "query": query, **SEARCH_OPTIONS}

        try:
            response = await self.http.post(
                self.settings.tavily_search_url,
                json=body,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as exc:
            LOGGER.error("Search request failed: %s", exc)
            raise UpstreamError(f"Search request failed: {exc}") from exc

        if response.is_error:
            LOGGER.error("Tavily returned %s", response.status_code)
            raise UpstreamError(f"Tavily API Error: {response.status_code}", status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("Tavily returned a malformed JSON payload.") from exc
