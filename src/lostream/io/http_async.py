"""Asynchronous HTTP function executor using httpx."""

import logging
from typing import Any, Optional

import httpx

from ..core.util import decode_value, encode_value
from .base import (
    DEFAULT_MAX_TRANSFER_BLOCK_SIZE,
    DEFAULT_SERVER_VERSION,
    HTTP_TIMEOUT,
    RemoteCallError,
    supports_64bit_offsets,
)

logger = logging.getLogger(__name__)


def _error_detail(response: httpx.Response) -> str:
    try:
        return str(response.json().get("error", response.text))
    except ValueError:
        return response.text


class AsyncHTTPFunctionExecutor:
    """Asynchronous executor posting one JSON request per remote call.

    Owns its ``httpx.AsyncClient`` unless one is passed in; use ``async with``
    or :meth:`aclose` to release an owned client.
    """

    def __init__(self, url: str, *, server_version=DEFAULT_SERVER_VERSION,
                 max_transfer_block_size: int = DEFAULT_MAX_TRANSFER_BLOCK_SIZE,
                 timeout: float = HTTP_TIMEOUT, client: Optional[httpx.AsyncClient] = None):
        self.url = url.rstrip("/")
        self.server_version = tuple(server_version)
        self.max_transfer_block_size = max_transfer_block_size
        self.timeout = timeout
        self.requests_made = 0
        self._client = client
        self._owns_client = client is None

    @property
    def supports_64bit_offsets(self) -> bool:
        return supports_64bit_offsets(self.server_version)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def execute_function(self, name: str, *args: Any) -> Any:
        payload = {"function": name, "args": [encode_value(a) for a in args]}
        client = self._get_client()
        try:
            self.requests_made += 1
            response = await client.post(f"{self.url}/call", json=payload)
        except httpx.HTTPError as e:
            raise RemoteCallError(f"{name} request failed: {e}") from e

        if response.status_code >= 400:
            raise RemoteCallError(
                f"{name} failed with status {response.status_code}: {_error_detail(response)}")

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteCallError(f"{name} returned an invalid response body") from e
        if not isinstance(body, dict) or "result" not in body:
            raise RemoteCallError(f"{name} returned no result")
        logger.debug("%s -> HTTP %s", name, response.status_code)
        return decode_value(body["result"])

    async def aclose(self):
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


async def open_http_executor_async(url: str, **options) -> AsyncHTTPFunctionExecutor:
    """Create an asynchronous HTTP function executor."""
    return AsyncHTTPFunctionExecutor(url, **options)
