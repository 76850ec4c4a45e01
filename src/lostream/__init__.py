"""lostream - seekable streams over remote large objects."""

from .core.model import (                                             # re-export
    LargeObjectHandle, TransferCapability, SeekOrigin, INV_READ, INV_WRITE,
    LargeObjectError, OffsetRangeError, NotWritableError, DisposedError,
    ProtocolViolationError, RemoteCallError,
)
from .io import open_executor, open_executor_async
from .manager import LargeObjectManager, AsyncLargeObjectManager
from .stream_sync import LargeObjectStream
from .stream_async import AsyncLargeObjectStream


def open_large_object(source, oid: int, *, writable: bool = False, **executor_options) -> LargeObjectStream:
    """Open large object `oid` through an executor or backend URL."""
    manager = LargeObjectManager(open_executor(source, **executor_options))
    if writable:
        return manager.open_read_write(oid)
    return manager.open_read(oid)


async def open_large_object_async(source, oid: int, *, writable: bool = False,
                                  **executor_options) -> AsyncLargeObjectStream:
    """Open large object `oid` asynchronously through an executor or backend URL."""
    manager = AsyncLargeObjectManager(await open_executor_async(source, **executor_options))
    if writable:
        return await manager.open_read_write(oid)
    return await manager.open_read(oid)


__all__ = [
    "open_large_object", "open_large_object_async",
    "open_executor", "open_executor_async",
    "LargeObjectManager", "AsyncLargeObjectManager",
    "LargeObjectStream", "AsyncLargeObjectStream",
    "LargeObjectHandle", "TransferCapability", "SeekOrigin", "INV_READ", "INV_WRITE",
    "LargeObjectError", "OffsetRangeError", "NotWritableError", "DisposedError",
    "ProtocolViolationError", "RemoteCallError",
]
