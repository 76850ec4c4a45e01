"""Object-level large object operations: create, open, unlink, import, export."""

import logging
from typing import Any

from .core.model import INV_READ, INV_WRITE, LargeObjectHandle, ProtocolViolationError
from .io.base import AsyncFunctionExecutor, FunctionExecutor
from .stream_async import AsyncLargeObjectStream
from .stream_sync import LargeObjectStream

logger = logging.getLogger(__name__)


def _expect_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ProtocolViolationError(f"{name} returned {value!r}, expected an integer")
    return value


def _handle(oid: int, fd: Any, writable: bool) -> LargeObjectHandle:
    return LargeObjectHandle(object_id=oid, fd=_expect_int("lo_open", fd), writable=writable)


class LargeObjectManager:
    """Manages large objects through a synchronous executor.

    Every method, and every operation on the streams it opens, must run
    inside one server-side transaction; this class does not start one.
    """

    def __init__(self, executor: FunctionExecutor):
        self.executor = executor

    @property
    def max_transfer_block_size(self) -> int:
        return self.executor.max_transfer_block_size

    @property
    def has_64bit_support(self) -> bool:
        return self.executor.supports_64bit_offsets

    def create(self, preferred_oid: int = 0) -> int:
        """Create an empty large object; 0 lets the server pick the oid."""
        oid = _expect_int("lo_create", self.executor.execute_function("lo_create", preferred_oid))
        logger.debug("Created large object %s", oid)
        return oid

    def open_read(self, oid: int) -> LargeObjectStream:
        fd = self.executor.execute_function("lo_open", oid, INV_READ)
        return LargeObjectStream(self.executor, _handle(oid, fd, writable=False))

    def open_read_write(self, oid: int) -> LargeObjectStream:
        fd = self.executor.execute_function("lo_open", oid, INV_READ | INV_WRITE)
        return LargeObjectStream(self.executor, _handle(oid, fd, writable=True))

    def unlink(self, oid: int) -> None:
        self.executor.execute_function("lo_unlink", oid)
        logger.debug("Unlinked large object %s", oid)

    def export_remote(self, oid: int, path: str) -> None:
        """Export the object to a file on the server's filesystem."""
        self.executor.execute_function("lo_export", oid, path)

    def import_remote(self, path: str, oid: int = 0) -> int:
        """Import a file from the server's filesystem into a new large object."""
        if oid:
            result = self.executor.execute_function("lo_import", path, oid)
        else:
            result = self.executor.execute_function("lo_import", path)
        return _expect_int("lo_import", result)


class AsyncLargeObjectManager:
    """Awaitable twin of :class:`LargeObjectManager`."""

    def __init__(self, executor: AsyncFunctionExecutor):
        self.executor = executor

    @property
    def max_transfer_block_size(self) -> int:
        return self.executor.max_transfer_block_size

    @property
    def has_64bit_support(self) -> bool:
        return self.executor.supports_64bit_offsets

    async def create(self, preferred_oid: int = 0) -> int:
        oid = _expect_int("lo_create", await self.executor.execute_function("lo_create", preferred_oid))
        logger.debug("Created large object %s", oid)
        return oid

    async def open_read(self, oid: int) -> AsyncLargeObjectStream:
        fd = await self.executor.execute_function("lo_open", oid, INV_READ)
        return AsyncLargeObjectStream(self.executor, _handle(oid, fd, writable=False))

    async def open_read_write(self, oid: int) -> AsyncLargeObjectStream:
        fd = await self.executor.execute_function("lo_open", oid, INV_READ | INV_WRITE)
        return AsyncLargeObjectStream(self.executor, _handle(oid, fd, writable=True))

    async def unlink(self, oid: int) -> None:
        await self.executor.execute_function("lo_unlink", oid)
        logger.debug("Unlinked large object %s", oid)

    async def export_remote(self, oid: int, path: str) -> None:
        await self.executor.execute_function("lo_export", oid, path)

    async def import_remote(self, path: str, oid: int = 0) -> int:
        if oid:
            result = await self.executor.execute_function("lo_import", path, oid)
        else:
            result = await self.executor.execute_function("lo_import", path)
        return _expect_int("lo_import", result)
