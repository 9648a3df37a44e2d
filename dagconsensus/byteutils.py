"""Fixed-width unsigned integer encoding in big- and little-endian byte order."""

from __future__ import annotations

from typing import Literal

_Order = Literal["big", "little"]


def _encode(n: int, width: int, order: _Order) -> bytes:
    # int.to_bytes raises OverflowError for negative or too-large values.
    return n.to_bytes(width, order, signed=False)


def _decode(data: bytes, width: int, order: _Order) -> int:
    if len(data) < width:
        raise ValueError(f"need at least {width} bytes, got {len(data)}")
    return int.from_bytes(data[:width], order, signed=False)


def uint64_to_big_endian(n: int) -> bytes:
    """Encode an unsigned 64-bit integer as 8 big-endian bytes."""
    return _encode(n, 8, "big")


def big_endian_to_uint64(data: bytes) -> int:
    """Decode the first 8 bytes of ``data`` as a big-endian unsigned integer."""
    return _decode(data, 8, "big")


def uint32_to_big_endian(n: int) -> bytes:
    """Encode an unsigned 32-bit integer as 4 big-endian bytes."""
    return _encode(n, 4, "big")


def big_endian_to_uint32(data: bytes) -> int:
    """Decode the first 4 bytes of ``data`` as a big-endian unsigned integer."""
    return _decode(data, 4, "big")


def uint16_to_big_endian(n: int) -> bytes:
    """Encode an unsigned 16-bit integer as 2 big-endian bytes."""
    return _encode(n, 2, "big")


def big_endian_to_uint16(data: bytes) -> int:
    """Decode the first 2 bytes of ``data`` as a big-endian unsigned integer."""
    return _decode(data, 2, "big")


def uint64_to_little_endian(n: int) -> bytes:
    """Encode an unsigned 64-bit integer as 8 little-endian bytes."""
    return _encode(n, 8, "little")


def little_endian_to_uint64(data: bytes) -> int:
    """Decode the first 8 bytes of ``data`` as a little-endian unsigned integer."""
    return _decode(data, 8, "little")


def uint32_to_little_endian(n: int) -> bytes:
    """Encode an unsigned 32-bit integer as 4 little-endian bytes."""
    return _encode(n, 4, "little")


def little_endian_to_uint32(data: bytes) -> int:
    """Decode the first 4 bytes of ``data`` as a little-endian unsigned integer."""
    return _decode(data, 4, "little")


def uint16_to_little_endian(n: int) -> bytes:
    """Encode an unsigned 16-bit integer as 2 little-endian bytes."""
    return _encode(n, 2, "little")


def little_endian_to_uint16(data: bytes) -> int:
    """Decode the first 2 bytes of ``data`` as a little-endian unsigned integer."""
    return _decode(data, 2, "little")