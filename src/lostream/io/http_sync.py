"""Synchronous HTTP function executor using requests."""

import logging
from typing import Any

import requests

from ..core.util import decode_value, encode_value
from .base import (
    DEFAULT_MAX_TRANSFER_BLOCK_SIZE,
    DEFAULT_SERVER_VERSION,
    HTTP_TIMEOUT,
    RemoteCallError,
    supports_64bit_offsets,
)

logger = logging.getLogger(__name__)

# Module-level session for connection pooling
_session = None


def _get_session():
    """Get or create the global requests session."""
    global _session
    if _session is None:
        _session = requests.Session()
    return _session


def _error_detail(response) -> str:
    try:
        return str(response.json().get("error", response.text))
    except ValueError:
        return response.text


class HTTPFunctionExecutor:
    """Synchronous executor posting one JSON request per remote call.

    The backend endpoint is ``POST {url}/call`` with body
    ``{"function": name, "args": [...]}`` and answers ``{"result": ...}``.
    Calls are never retried: a failed write or seek may already have been
    applied on the server.
    """

    def __init__(self, url: str, *, server_version=DEFAULT_SERVER_VERSION,
                 max_transfer_block_size: int = DEFAULT_MAX_TRANSFER_BLOCK_SIZE,
                 timeout: float = HTTP_TIMEOUT, session=None):
        self.url = url.rstrip("/")
        self.server_version = tuple(server_version)
        self.max_transfer_block_size = max_transfer_block_size
        self.timeout = timeout
        self.requests_made = 0
        self._session = session if session is not None else _get_session()

    @property
    def supports_64bit_offsets(self) -> bool:
        return supports_64bit_offsets(self.server_version)

    def execute_function(self, name: str, *args: Any) -> Any:
        payload = {"function": name, "args": [encode_value(a) for a in args]}
        try:
            self.requests_made += 1
            response = self._session.post(f"{self.url}/call", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
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

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Session is shared, don't close it here
        pass


def open_http_executor(url: str, **options) -> HTTPFunctionExecutor:
    """Create a synchronous HTTP function executor."""
    return HTTPFunctionExecutor(url, **options)
