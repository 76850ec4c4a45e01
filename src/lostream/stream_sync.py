"""Synchronous seekable stream over a remote large object."""

import io
import logging
import threading

from .core.model import LargeObjectHandle, SeekOrigin
from .core.stream_base import LargeObjectStreamBase
from .io.base import FunctionExecutor

logger = logging.getLogger(__name__)


class LargeObjectStream(LargeObjectStreamBase, io.RawIOBase):
    """Remotely controlled stream over one opened large object.

    Every read, write, seek, truncate and close is a round trip through the
    executor. Reads and writes are split into chunks of at most
    ``max_transfer_block_size`` bytes. ``tell()`` is answered from the cached
    cursor without a round trip.

    All operations must run inside one server-side transaction, and a handle
    must be driven by only one stream.
    """

    def __init__(self, executor: FunctionExecutor, handle: LargeObjectHandle):
        super().__init__(executor, handle)
        self._lock = threading.RLock()

    def _call(self, name: str, *args):
        return self._executor.execute_function(name, *args)

    # --- reading ---
    def readinto(self, b, count: int | None = None) -> int:
        """Read up to `count` bytes (default ``len(b)``) into `b`.

        Fewer bytes are returned only when the end of the object is reached.
        """
        view = memoryview(b).cast("B")
        count = self._check_count(len(view), count)
        with self._lock:
            self._check_open()
            fd = self._handle.fd
            total = 0
            while total < count:
                chunk = self._chunk_size(count - total)
                data = self._accept_chunk(self._call("loread", fd, chunk), chunk)
                n = len(data)
                view[total:total + n] = data
                self._handle.cursor += n
                total += n
                if n < chunk:
                    break
            return total

    def read(self, size: int | None = -1) -> bytes:
        """Read up to `size` bytes, or to the end of the object if `size` is negative."""
        if size is None or size < 0:
            return self.readall()
        return self._read_chunks(size)

    def readall(self) -> bytes:
        """Read from the cursor to the end of the object."""
        return self._read_chunks(None)

    def _read_chunks(self, limit: int | None) -> bytes:
        # The result grows with the data received, never with `limit`.
        with self._lock:
            self._check_open()
            fd = self._handle.fd
            result = bytearray()
            while limit is None or len(result) < limit:
                if limit is None:
                    chunk = self._capability.max_transfer_block_size
                else:
                    chunk = self._chunk_size(limit - len(result))
                data = self._accept_chunk(self._call("loread", fd, chunk), chunk)
                result += data
                self._handle.cursor += len(data)
                if len(data) < chunk:
                    break
            return bytes(result)

    # --- writing ---
    def write(self, b) -> int:
        """Write all of `b`; there is no partial success."""
        view = memoryview(b).cast("B")
        count = len(view)
        with self._lock:
            self._check_open()
            self._check_writable("write")
            fd = self._handle.fd
            written = 0
            while written < count:
                size = self._chunk_size(count - written)
                accepted = self._call("lowrite", fd, bytes(view[written:written + size]))
                self._accept_written(accepted, size)
                self._handle.cursor += size
                written += size
            return written

    def flush(self) -> None:
        # nothing is buffered locally
        self._check_open()

    # --- positioning ---
    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move the server-side position; always one round trip."""
        with self._lock:
            return self._seek(offset, whence)

    def _seek(self, offset, whence):
        offset, origin = self._prepare_seek(offset, whence)
        logger.debug("seek fd=%s offset=%s origin=%s", self._handle.fd, offset, origin.name)
        position = self._call(self._seek_function(), self._handle.fd, offset, int(origin))
        return self._accept_position(position)

    def tell(self) -> int:
        self._check_open()
        return self._handle.cursor

    @property
    def position(self) -> int:
        return self.tell()

    @position.setter
    def position(self, value: int) -> None:
        self.seek(value, io.SEEK_SET)

    @property
    def length(self) -> int:
        """Object length, found by seeking to the end and back."""
        with self._lock:
            self._check_open()
            old = self._handle.cursor
            end = self._seek(0, SeekOrigin.END)
            if end != old:
                self._seek(old, SeekOrigin.BEGIN)
            return end

    def truncate(self, size: int | None = None) -> int:
        """Truncate or zero-extend the object to `size` bytes (default: the cursor).

        The cursor is left where it was.
        """
        with self._lock:
            size = self._prepare_truncate(size)
            self._call(self._truncate_function(), self._handle.fd, size)
            return size

    # --- lifecycle ---
    def close(self) -> None:
        """Release the server-side descriptor. Calling this again does nothing."""
        with self._lock:
            if self._handle.closed:
                return
            self._call("lo_close", self._handle.fd)
            self._handle.closed = True
            logger.debug("Closed large object %s (fd %s)", self._handle.object_id, self._handle.fd)

    def __enter__(self):
        self._check_open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        # Replaces io.IOBase's finalizer, which would otherwise close silently.
        handle = getattr(self, "_handle", None)
        if handle is None or handle.closed:
            return
        logger.warning("Releasing unclosed large object %s (fd %s) on finalization",
                       handle.object_id, handle.fd)
        self.close()
