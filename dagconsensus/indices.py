"""Numeric index kinds of the DAG and their big-endian byte form."""

from __future__ import annotations

from enum import Enum

from . import byteutils

FIRST_FRAME = 1
FIRST_EPOCH = 1


class IndexKind(Enum):
    """A kind of numeric index, with the byte width of its encoding."""

    EPOCH = ("epoch", 4)
    SEQ = ("seq", 4)
    BLOCK = ("block", 8)
    LAMPORT = ("lamport", 4)
    FRAME = ("frame", 4)
    PACK = ("pack", 4)
    VALIDATOR_ID = ("validator_id", 4)
    VALIDATOR_INDEX = ("validator_index", 4)

    def __init__(self, label: str, width: int) -> None:
        self.label = label
        self.width = width

    def to_bytes(self, value: int) -> bytes:
        """Encode an index value as big-endian bytes."""
        if self.width == 8:
            return byteutils.uint64_to_big_endian(value)
        return byteutils.uint32_to_big_endian(value)

    def from_bytes(self, data: bytes) -> int:
        """Decode an index value from big-endian bytes."""
        if self.width == 8:
            return byteutils.big_endian_to_uint64(data)
        return byteutils.big_endian_to_uint32(data)


def max_lamport(x: int, y: int) -> int:
    """Return the larger of two Lamport times."""
    return x if x > y else y