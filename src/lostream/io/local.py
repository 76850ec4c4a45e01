"""In-process large object store speaking the remote function protocol."""

import asyncio
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.model import INV_READ, INV_WRITE, SeekOrigin
from ..core.util import INT64_MAX, fits_int32
from .base import (
    DEFAULT_MAX_TRANSFER_BLOCK_SIZE,
    DEFAULT_SERVER_VERSION,
    FunctionExecutor,
    RemoteCallError,
    supports_64bit_offsets,
)

logger = logging.getLogger(__name__)

FIRST_OID = 16384


@dataclass
class _Descriptor:
    oid: int
    mode: int
    pos: int = 0


class LocalFunctionExecutor:
    """Synchronous executor backed by an in-memory object store.

    Mirrors the server's large object functions closely enough to stand in
    for a real backend: writes past the end zero-fill the gap, 32-bit seeks
    refuse results above 2 GB, and writes require a descriptor opened with
    ``INV_WRITE``.  ``requests_made`` counts every call; pass
    ``record_calls=True`` to also keep each ``(name, args)`` pair in ``calls``.
    """

    def __init__(self, *, server_version=DEFAULT_SERVER_VERSION,
                 max_transfer_block_size: int = DEFAULT_MAX_TRANSFER_BLOCK_SIZE,
                 record_calls: bool = False):
        self.server_version = tuple(server_version)
        self.max_transfer_block_size = max_transfer_block_size
        self.objects: Dict[int, bytearray] = {}
        self.record_calls = record_calls
        self.calls: List[Tuple[str, tuple]] = []
        self.requests_made = 0
        self._descriptors: Dict[int, _Descriptor] = {}
        self._next_oid = FIRST_OID
        self._next_fd = 0
        self._lock = threading.Lock()
        self._functions: Dict[str, Callable[..., Any]] = {
            "lo_create": self._lo_create,
            "lo_open": self._lo_open,
            "loread": self._loread,
            "lowrite": self._lowrite,
            "lo_lseek": self._lo_lseek,
            "lo_lseek64": self._lo_lseek64,
            "lo_tell": self._lo_tell,
            "lo_tell64": self._lo_tell64,
            "lo_truncate": self._lo_truncate,
            "lo_truncate64": self._lo_truncate64,
            "lo_close": self._lo_close,
            "lo_unlink": self._lo_unlink,
            "lo_import": self._lo_import,
            "lo_export": self._lo_export,
        }

    @property
    def supports_64bit_offsets(self) -> bool:
        return supports_64bit_offsets(self.server_version)

    @property
    def open_descriptors(self) -> int:
        return len(self._descriptors)

    def execute_function(self, name: str, *args: Any) -> Any:
        """Run `name` against the store; failures raise RemoteCallError."""
        with self._lock:
            self.requests_made += 1
            if self.record_calls:
                self.calls.append((name, args))
            func = self._functions.get(name)
            if func is None:
                raise RemoteCallError(f"function {name} does not exist")
            if name.endswith("64") and not self.supports_64bit_offsets:
                raise RemoteCallError(f"function {name} does not exist")
            try:
                return func(*args)
            except TypeError as e:
                raise RemoteCallError(f"{name}: invalid arguments: {e}") from e

    # --- object level ---
    def _lo_create(self, oid: int = 0) -> int:
        if oid == 0:
            while self._next_oid in self.objects:
                self._next_oid += 1
            oid = self._next_oid
            self._next_oid += 1
        elif oid in self.objects:
            raise RemoteCallError(f"large object {oid} already exists")
        self.objects[oid] = bytearray()
        return oid

    def _lo_open(self, oid: int, mode: int) -> int:
        if oid not in self.objects:
            raise RemoteCallError(f"large object {oid} does not exist")
        if not mode & (INV_READ | INV_WRITE):
            raise RemoteCallError(f"invalid large-object descriptor mode: {mode:#x}")
        fd = self._next_fd
        self._next_fd += 1
        self._descriptors[fd] = _Descriptor(oid=oid, mode=mode)
        logger.debug("lo_open oid=%s mode=%#x -> fd %s", oid, mode, fd)
        return fd

    def _lo_unlink(self, oid: int) -> int:
        if oid not in self.objects:
            raise RemoteCallError(f"large object {oid} does not exist")
        del self.objects[oid]
        return 1

    def _lo_import(self, path: str, oid: int = 0) -> int:
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise RemoteCallError(f"could not open server file \"{path}\": {e}") from e
        oid = self._lo_create(oid)
        self.objects[oid][:] = data
        return oid

    def _lo_export(self, oid: int, path: str) -> int:
        if oid not in self.objects:
            raise RemoteCallError(f"large object {oid} does not exist")
        try:
            Path(path).write_bytes(bytes(self.objects[oid]))
        except OSError as e:
            raise RemoteCallError(f"could not create server file \"{path}\": {e}") from e
        return 1

    # --- descriptor level ---
    def _descriptor(self, fd: int) -> Tuple[_Descriptor, bytearray]:
        desc = self._descriptors.get(fd)
        if desc is None:
            raise RemoteCallError(f"invalid large-object descriptor: {fd}")
        data = self.objects.get(desc.oid)
        if data is None:
            raise RemoteCallError(f"large object {desc.oid} was removed")
        return desc, data

    def _writable_descriptor(self, fd: int) -> Tuple[_Descriptor, bytearray]:
        desc, data = self._descriptor(fd)
        if not desc.mode & INV_WRITE:
            raise RemoteCallError(f"permission denied for large object {desc.oid}")
        return desc, data

    def _loread(self, fd: int, length: int) -> bytes:
        desc, data = self._descriptor(fd)
        if length < 0:
            raise RemoteCallError("requested length cannot be negative")
        chunk = bytes(data[desc.pos:desc.pos + length])
        desc.pos += len(chunk)
        return chunk

    def _lowrite(self, fd: int, buf: bytes) -> int:
        desc, data = self._writable_descriptor(fd)
        end = desc.pos + len(buf)
        if end > len(data):
            data.extend(bytes(end - len(data)))
        data[desc.pos:end] = buf
        desc.pos = end
        return len(buf)

    def _seek(self, fd: int, offset: int, whence: int, limit: int) -> int:
        desc, data = self._descriptor(fd)
        try:
            origin = SeekOrigin(whence)
        except ValueError:
            raise RemoteCallError(f"invalid whence setting: {whence}") from None
        if origin is SeekOrigin.BEGIN:
            position = offset
        elif origin is SeekOrigin.CURRENT:
            position = desc.pos + offset
        else:
            position = len(data) + offset
        if position < 0 or position > limit:
            raise RemoteCallError(f"invalid seek offset: {offset}")
        desc.pos = position
        return position

    def _lo_lseek(self, fd: int, offset: int, whence: int) -> int:
        if not fits_int32(offset):
            raise RemoteCallError("integer out of range")
        return self._seek(fd, offset, whence, 2 ** 31 - 1)

    def _lo_lseek64(self, fd: int, offset: int, whence: int) -> int:
        return self._seek(fd, offset, whence, INT64_MAX)

    def _lo_tell(self, fd: int) -> int:
        desc, _ = self._descriptor(fd)
        if not fits_int32(desc.pos):
            raise RemoteCallError(f"lo_tell result out of range for large-object descriptor {fd}")
        return desc.pos

    def _lo_tell64(self, fd: int) -> int:
        desc, _ = self._descriptor(fd)
        return desc.pos

    def _truncate(self, fd: int, length: int) -> int:
        _, data = self._writable_descriptor(fd)
        if length < 0:
            raise RemoteCallError(f"invalid large object truncation target: {length}")
        if length < len(data):
            del data[length:]
        else:
            data.extend(bytes(length - len(data)))
        return 0

    def _lo_truncate(self, fd: int, length: int) -> int:
        if not fits_int32(length):
            raise RemoteCallError("integer out of range")
        return self._truncate(fd, length)

    def _lo_truncate64(self, fd: int, length: int) -> int:
        return self._truncate(fd, length)

    def _lo_close(self, fd: int) -> int:
        if self._descriptors.pop(fd, None) is None:
            raise RemoteCallError(f"invalid large-object descriptor: {fd}")
        logger.debug("lo_close fd %s", fd)
        return 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass


class LocalAsyncFunctionExecutor:
    """Asynchronous executor - thin wrapper around a sync executor."""

    def __init__(self, executor: Optional[FunctionExecutor] = None):
        self._sync_executor = executor if executor is not None else LocalFunctionExecutor()

    @property
    def sync_executor(self) -> FunctionExecutor:
        return self._sync_executor

    @property
    def max_transfer_block_size(self) -> int:
        return self._sync_executor.max_transfer_block_size

    @property
    def supports_64bit_offsets(self) -> bool:
        return self._sync_executor.supports_64bit_offsets

    @property
    def requests_made(self) -> int:
        return getattr(self._sync_executor, "requests_made", 0)

    async def execute_function(self, name: str, *args: Any) -> Any:
        return await asyncio.to_thread(self._sync_executor.execute_function, name, *args)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass
