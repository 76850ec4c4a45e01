from __future__ import annotations
import io
from dataclasses import dataclass
from enum import IntEnum


# lo_open mode flags, as defined by the server's large object interface
INV_WRITE = 0x20000
INV_READ = 0x40000


class SeekOrigin(IntEnum):
    BEGIN = io.SEEK_SET
    CURRENT = io.SEEK_CUR
    END = io.SEEK_END


@dataclass(slots=True)
class LargeObjectHandle:
    object_id: int
    fd: int                    # session-scoped, meaningless once closed
    writable: bool
    cursor: int = 0            # last offset confirmed by the server
    closed: bool = False


@dataclass(frozen=True, slots=True)
class TransferCapability:
    max_transfer_block_size: int
    supports_64bit_offsets: bool


class LargeObjectError(Exception):
    """Base class for every error raised by lostream."""
    pass


class OffsetRangeError(LargeObjectError, ValueError):
    """Raised when an offset or length cannot be represented in 32 bits
    and the server lacks 64-bit large object support."""
    pass


class NotWritableError(LargeObjectError, io.UnsupportedOperation):
    """Raised when writing to or resizing a stream opened read-only."""
    pass


class DisposedError(LargeObjectError, ValueError):
    """Raised when a closed stream is used."""
    pass


class ProtocolViolationError(LargeObjectError, RuntimeError):
    """Raised when a remote call returns a result inconsistent with its contract.

    The stream that raised it is left faulted: no further transfer is attempted
    and the server-side position must be treated as unknown.
    """
    pass


class RemoteCallError(LargeObjectError, IOError):
    """Raised by function executors when a remote call fails."""
    pass
