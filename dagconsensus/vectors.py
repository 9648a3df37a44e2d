"""Byte-encoded vector clocks: lowest-after and highest-before sequences."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterable, Protocol

_U32 = struct.Struct("<I")
_PAIR = struct.Struct("<II")
_MAX_UINT32 = 0xFFFFFFFF
_MAX_INT32 = 0x7FFFFFFF


class SeqEvent(Protocol):
    """An event exposing its sequence number."""

    @property
    def seq(self) -> int: ...


def _check_index(index: int) -> int:
    if index < 0:
        raise ValueError(f"negative index: {index}")
    return index


def _check_seq(seq: int) -> int:
    if not 0 <= seq <= _MAX_UINT32:
        raise ValueError(f"sequence number out of range: {seq}")
    return seq


@dataclass(frozen=True)
class BranchSeq:
    """The highest and lowest observed sequence numbers in a branch."""

    seq: int = 0
    min_seq: int = 0

    def is_fork_detected(self) -> bool:
        """Return True if this entry is the marker of an observed fork."""
        return self == FORK_DETECTED_SEQ


FORK_DETECTED_SEQ = BranchSeq(seq=0, min_seq=_MAX_INT32)


class _ByteVector:
    _width = 4

    def __init__(self, size: int = 0) -> None:
        self._data = bytearray(_check_index(size) * self._width)

    @classmethod
    def from_bytes(cls, data: bytes):
        """Build a vector from its byte form."""
        vector = cls()
        vector._data = bytearray(data)
        return vector

    def __bytes__(self) -> bytes:
        return bytes(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data.hex()})"

    def _entries(self) -> int:
        return len(self._data) // self._width

    def copy(self):
        """Return an independent copy."""
        return type(self).from_bytes(self._data)

    def _grow_to(self, index: int) -> None:
        missing = index + 1 - self._entries()
        if missing > 0:
            self._data.extend(bytes(missing * self._width))


class LowestAfterSeq(_ByteVector):
    """Per branch, the lowest sequence number of an event observing the source event."""

    _width = 4

    def size(self) -> int:
        """Return the number of entries."""
        return self._entries()

    def get(self, index: int) -> int:
        """Return the entry at index, or 0 past the end."""
        if _check_index(index) >= self.size():
            return 0
        return _U32.unpack_from(self._data, index * 4)[0]

    def set(self, index: int, seq: int) -> None:
        """Set the entry at index, growing the vector with zeros if needed."""
        _check_seq(seq)
        self._grow_to(_check_index(index))
        _U32.pack_into(self._data, index * 4, seq)

    def init_with_event(self, index: int, event: SeqEvent) -> None:
        """Record the event itself at its branch."""
        self.set(index, event.seq)

    def visit(self, index: int, event: SeqEvent) -> bool:
        """Record the event if the branch has no entry yet; return True if recorded."""
        if self.get(index) != 0:
            return False
        self.set(index, event.seq)
        return True


class HighestBeforeSeq(_ByteVector):
    """Per branch, the highest (and lowest) sequence numbers observed by the source event."""

    _width = 8

    def size(self) -> int:
        """Return the number of entries."""
        return self._entries()

    def get(self, index: int) -> BranchSeq:
        """Return the entry at index, or an empty entry past the end."""
        if _check_index(index) >= self.size():
            return BranchSeq()
        seq, min_seq = _PAIR.unpack_from(self._data, index * 8)
        return BranchSeq(seq=seq, min_seq=min_seq)

    def set(self, index: int, branch_seq: BranchSeq) -> None:
        """Set the entry at index, growing the vector with zeros if needed."""
        _check_seq(branch_seq.seq)
        _check_seq(branch_seq.min_seq)
        self._grow_to(_check_index(index))
        _PAIR.pack_into(self._data, index * 8, branch_seq.seq, branch_seq.min_seq)

    def init_with_event(self, index: int, event: SeqEvent) -> None:
        """Record the event itself at its branch."""
        self.set(index, BranchSeq(seq=event.seq, min_seq=event.seq))

    def is_empty(self, index: int) -> bool:
        """Return True if nothing is observed on the branch."""
        entry = self.get(index)
        return not entry.is_fork_detected() and entry.seq == 0

    def is_fork_detected(self, index: int) -> bool:
        """Return True if a fork is observed on the branch."""
        return self.get(index).is_fork_detected()

    def seq(self, index: int) -> int:
        """Return the highest observed sequence number on the branch."""
        return self.get(index).seq

    def min_seq(self, index: int) -> int:
        """Return the lowest observed sequence number on the branch."""
        return self.get(index).min_seq

    def set_fork_detected(self, index: int) -> None:
        """Mark the branch as observing a fork."""
        self.set(index, FORK_DETECTED_SEQ)

    def collect_from(self, other: HighestBeforeSeq, count: int) -> None:
        """Merge the first ``count`` branches of another vector into this one."""
        for branch in range(count):
            his = other.get(branch)
            if his.seq == 0 and not his.is_fork_detected():
                continue
            mine = self.get(branch)
            if mine.is_fork_detected():
                continue
            if his.is_fork_detected():
                self.set_fork_detected(branch)
                continue
            if mine.seq == 0 or mine.min_seq > his.min_seq:
                mine = BranchSeq(seq=mine.seq, min_seq=his.min_seq)
                self.set(branch, mine)
            if mine.seq < his.seq:
                mine = BranchSeq(seq=his.seq, min_seq=mine.min_seq)
                self.set(branch, mine)

    def gather_from(self, to: int, other: HighestBeforeSeq, branches: Iterable[int]) -> None:
        """Store at ``to`` the highest entry among the given branches of another vector."""
        highest = BranchSeq()
        for branch in branches:
            entry = other.get(branch)
            if entry.is_fork_detected():
                highest = entry
                break
            if entry.seq > highest.seq:
                highest = entry
        self.set(to, highest)