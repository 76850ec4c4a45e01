from __future__ import annotations
import base64
from typing import Any, Dict

from .model import LargeObjectHandle

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_BYTES_KEY = "$bytes"


def fits_int32(value: int) -> bool:
    return INT32_MIN <= value <= INT32_MAX


def fits_int64(value: int) -> bool:
    return INT64_MIN <= value <= INT64_MAX


def parse_server_version(text: str) -> tuple[int, ...]:
    """Turn '9.3' or '16.2' into a comparable tuple."""
    try:
        return tuple(int(part) for part in text.strip().split("."))
    except ValueError:
        raise ValueError(f"Invalid server version: {text!r}") from None


def encode_value(value: Any) -> Any:
    """Return a JSON-serialisable form of a remote call argument or result."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {_BYTES_KEY: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


def decode_value(value: Any) -> Any:
    if isinstance(value, dict) and _BYTES_KEY in value:
        return base64.b64decode(value[_BYTES_KEY])
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def handle_asdict(handle: LargeObjectHandle, **extra: Any) -> Dict[str, Any]:
    """Return a JSON-serialisable dict describing a handle, merged with `extra`."""
    payload = {
        "object_id": handle.object_id,
        "writable": handle.writable,
        "position": handle.cursor,
        "closed": handle.closed,
    }
    payload.update({k: v for k, v in extra.items() if v is not None})
    return payload
