from __future__ import annotations
import logging
import operator
from typing import Any

from .model import (
    DisposedError,
    LargeObjectHandle,
    NotWritableError,
    OffsetRangeError,
    ProtocolViolationError,
    SeekOrigin,
    TransferCapability,
)
from .util import fits_int32

logger = logging.getLogger(__name__)


class LargeObjectStreamBase:
    """State, validation and capability logic shared by the sync and async streams.

    Subclasses supply the actual remote calls; everything here is local and
    never performs a round trip.
    """

    def __init__(self, executor: Any, handle: LargeObjectHandle) -> None:
        # captured once, a stream never observes a capability change
        capability = TransferCapability(
            max_transfer_block_size=int(executor.max_transfer_block_size),
            supports_64bit_offsets=bool(executor.supports_64bit_offsets),
        )
        if capability.max_transfer_block_size <= 0:
            raise ValueError("max_transfer_block_size must be positive")
        self._executor = executor
        self._capability = capability
        self._faulted = False
        self._handle = handle

    # --- state ---
    @property
    def handle(self) -> LargeObjectHandle:
        return self._handle

    @property
    def capability(self) -> TransferCapability:
        return self._capability

    @property
    def has_64bit_support(self) -> bool:
        return self._capability.supports_64bit_offsets

    @property
    def closed(self) -> bool:
        return self._handle.closed

    @property
    def faulted(self) -> bool:
        return self._faulted

    @property
    def can_read(self) -> bool:
        return not self._handle.closed

    @property
    def can_write(self) -> bool:
        return self._handle.writable and not self._handle.closed

    @property
    def can_seek(self) -> bool:
        return not self._handle.closed

    def readable(self) -> bool:
        return self.can_read

    def writable(self) -> bool:
        return self.can_write

    def seekable(self) -> bool:
        return self.can_seek

    # --- checks, all raised before any remote call ---
    def _check_open(self) -> None:
        if self._handle.closed:
            raise DisposedError("I/O operation on closed large object stream")
        if self._faulted:
            raise ProtocolViolationError(
                "Stream is faulted after a protocol violation; only close() is allowed")

    def _check_writable(self, operation: str) -> None:
        if not self._handle.writable:
            raise NotWritableError(
                f"{operation} cannot be called on a stream opened without write permission")

    def _check_offset(self, value: int, name: str) -> None:
        if not self._capability.supports_64bit_offsets and not fits_int32(value):
            raise OffsetRangeError(
                f"{name} must fit in 32 bits when the server lacks 64-bit large object support")

    def _check_count(self, buffer_len: int, count: int | None) -> int:
        if count is None:
            return buffer_len
        count = operator.index(count)
        if count < 0:
            raise ValueError("count cannot be negative")
        if count > buffer_len:
            raise ValueError("Invalid count for this buffer")
        return count

    def _prepare_seek(self, offset: int, whence: int) -> tuple[int, SeekOrigin]:
        offset = operator.index(offset)
        try:
            origin = SeekOrigin(whence)
        except ValueError:
            raise ValueError(f"Invalid whence ({whence!r})") from None
        self._check_offset(offset, "offset")
        if origin is SeekOrigin.CURRENT:
            self._check_offset(self._handle.cursor + offset, "resulting offset")
        self._check_open()
        return offset, origin

    def _prepare_truncate(self, size: int | None) -> int:
        if size is None:
            size = self._handle.cursor
        size = operator.index(size)
        if size < 0:
            raise ValueError("size cannot be negative")
        self._check_offset(size, "size")
        self._check_open()
        self._check_writable("truncate")
        return size

    # --- remote call selection ---
    def _seek_function(self) -> str:
        return "lo_lseek64" if self._capability.supports_64bit_offsets else "lo_lseek"

    def _truncate_function(self) -> str:
        return "lo_truncate64" if self._capability.supports_64bit_offsets else "lo_truncate"

    def _chunk_size(self, remaining: int) -> int:
        return min(remaining, self._capability.max_transfer_block_size)

    # --- result validation ---
    def _fault(self, message: str) -> ProtocolViolationError:
        self._faulted = True
        logger.warning("Large object %s (fd %s): %s",
                       self._handle.object_id, self._handle.fd, message)
        return ProtocolViolationError(message)

    def _accept_chunk(self, data: Any, requested: int) -> bytes:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise self._fault(f"loread returned {type(data).__name__}, expected bytes")
        if len(data) > requested:
            raise self._fault(f"loread returned {len(data)} bytes, requested {requested}")
        return data

    def _accept_written(self, accepted: Any, sent: int) -> None:
        if accepted != sent:
            raise self._fault(f"lowrite accepted {accepted!r} bytes, sent {sent}")

    def _accept_position(self, position: Any) -> int:
        if isinstance(position, bool) or not isinstance(position, int) or position < 0:
            raise self._fault(f"seek returned invalid position {position!r}")
        self._handle.cursor = position
        return position

    def __repr__(self) -> str:
        state = "closed" if self._handle.closed else ("faulted" if self._faulted else "open")
        mode = "rw" if self._handle.writable else "r"
        return (f"<{type(self).__name__} oid={self._handle.object_id} fd={self._handle.fd} "
                f"mode={mode} pos={self._handle.cursor} {state}>")
