"""Fixed-size 32-byte hashes and helpers to build and print them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

HASH_LENGTH = 32


@dataclass(frozen=True, order=True)
class Hash:
    """The 32-byte hash of arbitrary data."""

    raw: bytes = bytes(HASH_LENGTH)

    def __post_init__(self) -> None:
        if not isinstance(self.raw, (bytes, bytearray)):
            raise TypeError("hash data must be bytes")
        if len(self.raw) != HASH_LENGTH:
            raise ValueError(f"hash must be {HASH_LENGTH} bytes, got {len(self.raw)}")
        object.__setattr__(self, "raw", bytes(self.raw))

    def __bytes__(self) -> bytes:
        return self.raw

    def hex(self) -> str:
        """Return the 0x-prefixed hex form."""
        return "0x" + self.raw.hex()

    def big(self) -> int:
        """Return the hash as a big-endian unsigned integer."""
        return int.from_bytes(self.raw, "big")

    def terminal_string(self) -> str:
        """Return a short form for console output."""
        return f"{self.raw[:3].hex()}\u2026{self.raw[29:].hex()}"

    def __str__(self) -> str:
        return self.hex()

    def __format__(self, spec: str) -> str:
        if spec == "x":
            return self.raw.hex()
        if spec == "X":
            return self.raw.hex().upper()
        return format(str(self), spec)


ZERO = Hash()


def bytes_to_hash(data: bytes) -> Hash:
    """Build a hash from bytes, cropping from the left or zero-padding on the left."""
    data = bytes(data)[-HASH_LENGTH:] if len(data) > HASH_LENGTH else bytes(data)
    return Hash(bytes(HASH_LENGTH - len(data)) + data)


def big_to_hash(value: int) -> Hash:
    """Build a hash from the big-endian bytes of an integer's magnitude."""
    value = abs(value)
    return bytes_to_hash(value.to_bytes((value.bit_length() + 7) // 8, "big"))


def hex_to_hash(text: str) -> Hash:
    """Build a hash from 0x-prefixed hex text."""
    if not text:
        raise ValueError("empty hex string")
    if not (text.startswith("0x") or text.startswith("0X")):
        raise ValueError("hex string without 0x prefix")
    digits = text[2:]
    if len(digits) % 2:
        raise ValueError("hex string of odd length")
    try:
        data = bytes.fromhex(digits)
    except ValueError as exc:
        raise ValueError(f"invalid hex string: {text!r}") from exc
    return bytes_to_hash(data)


def hashes_to_string(hashes: Iterable[Hash]) -> str:
    """Render a collection of hashes as a bracketed, comma-separated list."""
    return "[" + ", ".join(str(h) for h in hashes) + "]"