"""
Remote reply audio fetcher.

Streams reply audio referenced by URL so the session can pass it through
to the device unchanged.

Role in the system:
- Opens one streaming GET per reply.
- Failures before the first byte (connect error, error status) raise
  ReplyFetchError so the session can still report them to the device.
- Failures after the first byte surface as httpx errors from the chunk
  iterator; the session treats them as a broken stream and closes.

No retries, no transcoding, no size limits live here.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from constants import REPLY_STREAM_CHUNK_BYTES


class ReplyFetchError(Exception):
    """Raised when remote reply audio cannot be opened."""


class RemoteAudioFetcher:
    """Streaming GET over the shared httpx client."""

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        timeout_s: float | None = None,
        chunk_size: int = REPLY_STREAM_CHUNK_BYTES,
    ) -> None:
        self._client = client
        self._timeout_s = timeout_s
        self._chunk_size = chunk_size

    @asynccontextmanager
    async def stream(self, url: str) -> AsyncIterator[AsyncIterator[bytes]]:
        """
        Open the remote stream and yield its chunk iterator.

        The response is always closed on exit, including when the consumer
        stops early (device disconnect).

        Raises:
            ReplyFetchError if the request fails before any body byte.
        """
        kwargs: dict[str, Any] = {}
        if self._timeout_s is not None:
            kwargs["timeout"] = self._timeout_s

        try:
            request = self._client.build_request("GET", url, **kwargs)
            response = await self._client.send(request, stream=True)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise ReplyFetchError(f"cannot fetch reply audio: {type(e).__name__}: {e}") from e

        try:
            if response.is_error:
                raise ReplyFetchError(f"reply audio status {response.status_code}")
            yield response.aiter_bytes(self._chunk_size)
        finally:
            await response.aclose()
