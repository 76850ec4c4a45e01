"""Base protocols and shared constants for function executors."""

from typing import Any, Protocol, runtime_checkable

from ..core.model import RemoteCallError  # re-exported for executors

DEFAULT_MAX_TRANSFER_BLOCK_SIZE = 4 * 1024 * 1024  # 4 MB
DEFAULT_SERVER_VERSION = (9, 3)
LO_64BIT_MIN_VERSION = (9, 3)  # first server version with lo_lseek64/lo_truncate64
HTTP_TIMEOUT = 30


def supports_64bit_offsets(server_version) -> bool:
    """Large objects past 2 GB are handled by servers since 9.3."""
    return tuple(server_version) >= LO_64BIT_MIN_VERSION


@runtime_checkable
class FunctionExecutor(Protocol):
    """Protocol for synchronous remote function executors."""

    max_transfer_block_size: int
    supports_64bit_offsets: bool

    def execute_function(self, name: str, *args: Any) -> Any:
        """Invoke the remote function `name` and return its result.
        If the call fails or yields an invalid result → raise RemoteCallError.
        """
        ...


@runtime_checkable
class AsyncFunctionExecutor(Protocol):
    """Protocol for asynchronous remote function executors."""

    max_transfer_block_size: int
    supports_64bit_offsets: bool

    async def execute_function(self, name: str, *args: Any) -> Any:
        """Invoke the remote function `name` and return its result.
        If the call fails or yields an invalid result → raise RemoteCallError.
        """
        ...


__all__ = [
    "FunctionExecutor", "AsyncFunctionExecutor", "RemoteCallError",
    "DEFAULT_MAX_TRANSFER_BLOCK_SIZE", "DEFAULT_SERVER_VERSION", "HTTP_TIMEOUT",
    "LO_64BIT_MIN_VERSION", "supports_64bit_offsets",
]
