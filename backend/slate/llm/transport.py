"""
Byte-stream transport for streaming generation.

WHAT: Open an HTTP request and hand back its body as raw byte chunks
WHY: Decoders own framing; the transport only delivers bytes in order
HOW: httpx.AsyncClient.stream with provider exceptions for every transport failure
"""

from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Protocol

import httpx

from .types import (
    TransportRequest,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ProviderResponseError,
)
from ..core.config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TransportSource(Protocol):
    """Protocol for anything that can turn a request into ordered byte chunks."""

    def open(self, request: TransportRequest) -> AsyncContextManager[AsyncIterator[bytes]]:
        """
        Open a byte stream.

        Raises (on enter or during iteration):
            ProviderTimeoutError, ProviderUnavailableError, ProviderResponseError
        """
        ...


class HttpxTransport:
    """Transport backed by a shared httpx.AsyncClient."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        """Initialize with an existing client or a new one built from settings."""
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.LLM_CONNECT_TIMEOUT, read=settings.LLM_READ_TIMEOUT),
            limits=httpx.Limits(
                max_keepalive_connections=10,
                max_connections=20
            ),
        )

    @asynccontextmanager
    async def open(self, request: TransportRequest) -> AsyncIterator[AsyncIterator[bytes]]:
        """
        Issue the request and yield an async iterator over body chunks.

        Args:
            request: URL, method, headers and JSON body

        Yields:
            Async iterator of byte chunks, in delivery order

        Raises:
            ProviderTimeoutError: Connect or read timed out
            ProviderUnavailableError: Server not reachable
            ProviderResponseError: Non-success status or broken body
        """
        logger.debug(f"Opening stream {request.method} {request.url}")
        try:
            async with self.client.stream(
                request.method,
                request.url,
                headers=request.headers,
                json=request.body
            ) as response:
                if not response.is_success:
                    reason = response.reason_phrase or ""
                    logger.error(f"Stream request failed: HTTP {response.status_code} {reason}")
                    raise ProviderResponseError(f"HTTP {response.status_code} {reason}".strip())

                yield self._iter_chunks(response)

        except httpx.TimeoutException as e:
            logger.error(f"Streaming timeout for {request.url}")
            raise ProviderTimeoutError("Streaming request timed out") from e

        except httpx.ConnectError as e:
            logger.error(f"Connection refused for {request.url}")
            raise ProviderUnavailableError(f"LLM server is not reachable at {request.url}") from e

        except httpx.HTTPError as e:
            logger.error(f"Transport error for {request.url}: {e}")
            raise ProviderResponseError(f"Transport error: {e}") from e

    @staticmethod
    async def _iter_chunks(response: httpx.Response) -> AsyncIterator[bytes]:
        # Chunk boundaries are arbitrary; text decoding belongs to the decoders
        async for chunk in response.aiter_bytes():
            if chunk:
                yield chunk

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
