"""Asynchronous seekable stream over a remote large object."""

import asyncio
import io
import logging
import warnings

from .core.model import LargeObjectHandle, SeekOrigin
from .core.stream_base import LargeObjectStreamBase
from .io.base import AsyncFunctionExecutor

logger = logging.getLogger(__name__)


class AsyncLargeObjectStream(LargeObjectStreamBase):
    """Awaitable twin of :class:`~lostream.stream_sync.LargeObjectStream`.

    Each operation holds the stream's lock for its whole sequence of remote
    calls, so concurrent tasks sharing a stream still see their operations
    applied one after another.  Use ``async with`` so the descriptor is
    released on every exit path.
    """

    def __init__(self, executor: AsyncFunctionExecutor, handle: LargeObjectHandle):
        super().__init__(executor, handle)
        self._lock = asyncio.Lock()

    async def _call(self, name: str, *args):
        return await self._executor.execute_function(name, *args)

    async def readinto(self, b, count: int | None = None) -> int:
        """Read up to `count` bytes (default ``len(b)``) into `b`."""
        view = memoryview(b).cast("B")
        count = self._check_count(len(view), count)
        async with self._lock:
            self._check_open()
            fd = self._handle.fd
            total = 0
            while total < count:
                chunk = self._chunk_size(count - total)
                data = self._accept_chunk(await self._call("loread", fd, chunk), chunk)
                n = len(data)
                view[total:total + n] = data
                self._handle.cursor += n
                total += n
                if n < chunk:
                    break
            return total

    async def read(self, size: int | None = -1) -> bytes:
        if size is None or size < 0:
            return await self.readall()
        return await self._read_chunks(size)

    async def readall(self) -> bytes:
        return await self._read_chunks(None)

    async def _read_chunks(self, limit: int | None) -> bytes:
        async with self._lock:
            self._check_open()
            fd = self._handle.fd
            result = bytearray()
            while limit is None or len(result) < limit:
                if limit is None:
                    chunk = self._capability.max_transfer_block_size
                else:
                    chunk = self._chunk_size(limit - len(result))
                data = self._accept_chunk(await self._call("loread", fd, chunk), chunk)
                result += data
                self._handle.cursor += len(data)
                if len(data) < chunk:
                    break
            return bytes(result)

    async def write(self, b) -> int:
        view = memoryview(b).cast("B")
        count = len(view)
        async with self._lock:
            self._check_open()
            self._check_writable("write")
            fd = self._handle.fd
            written = 0
            while written < count:
                size = self._chunk_size(count - written)
                accepted = await self._call("lowrite", fd, bytes(view[written:written + size]))
                self._accept_written(accepted, size)
                self._handle.cursor += size
                written += size
            return written

    async def flush(self) -> None:
        self._check_open()

    async def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        async with self._lock:
            return await self._seek(offset, whence)

    async def _seek(self, offset, whence):
        offset, origin = self._prepare_seek(offset, whence)
        logger.debug("seek fd=%s offset=%s origin=%s", self._handle.fd, offset, origin.name)
        position = await self._call(self._seek_function(), self._handle.fd, offset, int(origin))
        return self._accept_position(position)

    def tell(self) -> int:
        self._check_open()
        return self._handle.cursor

    async def get_length(self) -> int:
        """Object length, found by seeking to the end and back."""
        async with self._lock:
            self._check_open()
            old = self._handle.cursor
            end = await self._seek(0, SeekOrigin.END)
            if end != old:
                await self._seek(old, SeekOrigin.BEGIN)
            return end

    async def truncate(self, size: int | None = None) -> int:
        async with self._lock:
            size = self._prepare_truncate(size)
            await self._call(self._truncate_function(), self._handle.fd, size)
            return size

    async def close(self) -> None:
        """Release the server-side descriptor. Calling this again does nothing."""
        async with self._lock:
            if self._handle.closed:
                return
            await self._call("lo_close", self._handle.fd)
            self._handle.closed = True
            logger.debug("Closed large object %s (fd %s)", self._handle.object_id, self._handle.fd)

    aclose = close

    async def __aenter__(self):
        self._check_open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __del__(self):
        handle = getattr(self, "_handle", None)
        if handle is not None and not handle.closed:
            warnings.warn(f"Unclosed {self!r}; its server-side descriptor was not released",
                          ResourceWarning, source=self)
