"""Byte-for-byte streaming of upstream HTTP responses."""

from __future__ import annotations

import logging
from typing import AsyncGenerator, Callable, Optional

import httpx

from exceptions.exceptions import UpstreamError

LOGGER = logging.getLogger(__name__)

ErrorFormatter = Callable[[httpx.Response], str]


def _default_error(response: httpx.Response) -> str:
	return response.text or response.reason_phrase


async def open_upstream_stream(
	http: httpx.AsyncClient,
	request: httpx.Request,
	*,
	format_error: Optional[ErrorFormatter] = None,
) -> httpx.Response:
	"""Send `request` in streaming mode and return the open response.

	A non-success status is read in full, the response is closed and an
	UpstreamError carrying the provider status is raised, so nothing has
	been forwarded to the caller yet.
	"""
	try:
		response = await http.send(request, stream=True)
	except httpx.HTTPError as exc:
		LOGGER.error("Upstream request to %s failed: %s", request.url.host, exc)
		raise UpstreamError(f"Upstream request failed: {exc}") from exc

	if response.is_error:
		try:
			await response.aread()
			message = (format_error or _default_error)(response)
		finally:
			await response.aclose()
		LOGGER.error("Upstream %s returned %s: %s", request.url.host, response.status_code, message)
		raise UpstreamError(message, status_code=response.status_code)
	return response


class UpstreamBody:
	"""Async iterator over upstream chunks that owns the upstream response.

	Chunks are pulled one at a time, so a slow consumer slows the reads.
	`aclose()` closes the upstream whether or not iteration ever started,
	and the upstream is also closed once the body is exhausted or fails.
	"""

	def __init__(self, response: httpx.Response) -> None:
		self.response = response
		self._chunks: Optional[AsyncGenerator[bytes, None]] = None

	def __aiter__(self) -> "UpstreamBody":
		return self

	async def __anext__(self) -> bytes:
		if self.response.is_closed:
			raise StopAsyncIteration
		if self._chunks is None:
			self._chunks = self.response.aiter_bytes()
		try:
			while True:
				chunk = await self._chunks.__anext__()
				if chunk:
					return chunk
		except StopAsyncIteration:
			await self.aclose()
			raise
		except httpx.HTTPError as exc:
			# Headers are already sent; end the body instead of raising.
			LOGGER.error("Stream error from %s: %s", self.response.request.url.host, exc)
			await self.aclose()
			raise StopAsyncIteration from exc

	async def aclose(self) -> None:
		chunks, self._chunks = self._chunks, None
		try:
			if chunks is not None:
				await chunks.aclose()
		finally:
			await self.response.aclose()


def relay_bytes(response: httpx.Response) -> UpstreamBody:
	return UpstreamBody(response)
