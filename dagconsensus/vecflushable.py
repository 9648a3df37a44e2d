"""An append-mostly flushable key-value layer that spills to a backing store."""

from __future__ import annotations

from typing import Optional, Protocol

MAP_CONST = 100
"""Approximate per-entry overhead, in bytes, of an in-memory mapping."""

IDEAL_BATCH_SIZE = 100 * 1024
"""Default number of bytes written to the backing store per unload batch."""

TEST_SIZE_LIMIT = 100000
"""A small size limit suitable for tests of code built on VecFlushable."""


def _map_mem_est(key_size: int, value_size: int) -> int:
    return MAP_CONST + key_size + value_size


class StoreClosedError(RuntimeError):
    """Raised when a closed store is used."""


class Batch(Protocol):
    def put(self, key: bytes, value: bytes) -> None: ...

    def value_size(self) -> int: ...

    def write(self) -> None: ...

    def reset(self) -> None: ...


class Store(Protocol):
    def get(self, key: bytes) -> Optional[bytes]: ...

    def put(self, key: bytes, value: bytes) -> None: ...

    def close(self) -> None: ...

    def new_batch(self) -> Batch: ...


class StoreBatch:
    """A write batch collecting puts until written to its store."""

    def __init__(self, store: "MemoryStore") -> None:
        self._store = store
        self._writes: list[tuple[bytes, bytes]] = []
        self._size = 0

    def put(self, key: bytes, value: bytes) -> None:
        """Queue a key-value pair."""
        self._writes.append((bytes(key), bytes(value)))
        self._size += len(key) + len(value)

    def value_size(self) -> int:
        """Return the number of key and value bytes queued."""
        return self._size

    def write(self) -> None:
        """Apply the queued writes to the store."""
        for key, value in self._writes:
            self._store.put(key, value)

    def reset(self) -> None:
        """Discard the queued writes."""
        self._writes.clear()
        self._size = 0


class MemoryStore:
    """A simple in-memory key-value store."""

    def __init__(self) -> None:
        self._data: Optional[dict[bytes, bytes]] = {}

    def _live(self) -> dict[bytes, bytes]:
        if self._data is None:
            raise StoreClosedError("memory store closed")
        return self._data

    def get(self, key: bytes) -> Optional[bytes]:
        """Return the value stored under key, or None."""
        return self._live().get(bytes(key))

    def put(self, key: bytes, value: bytes) -> None:
        """Store a value under key."""
        self._live()[bytes(key)] = bytes(value)

    def has(self, key: bytes) -> bool:
        """Return True if key is stored."""
        return bytes(key) in self._live()

    def close(self) -> None:
        """Close the store; later use raises StoreClosedError."""
        self._data = None

    def new_batch(self) -> StoreBatch:
        """Return a new write batch for this store."""
        self._live()
        return StoreBatch(self)

    def __len__(self) -> int:
        return len(self._live())


class _BackedMap:
    """An in-memory map that unloads batches to a backup store when too large."""

    def __init__(self, backup: Store, max_mem_size: int, batch_size: int) -> None:
        self.cache: Optional[dict[bytes, bytes]] = {}
        self.backup = backup
        self.mem_size = 0
        self.max_mem_size = max_mem_size
        self.batch_size = batch_size

    def has(self, key: bytes) -> bool:
        if bytes(key) in self.cache:
            return True
        return self.backup.get(key) is not None

    def get(self, key: bytes) -> Optional[bytes]:
        value = self.cache.get(bytes(key))
        if value is not None:
            return bytes(value)
        return self.backup.get(key)

    def close(self) -> None:
        self.cache = None
        self.backup.close()

    def add(self, key: bytes, value: bytes) -> None:
        # Size accounting assumes a replaced value keeps its size.
        is_new = key not in self.cache
        self.cache[key] = value
        if is_new:
            self.mem_size += _map_mem_est(len(key), len(value))

    def may_unload(self) -> None:
        while self.mem_size > self.max_mem_size:
            if not self.cache:
                self.mem_size = 0
                break
            self._unload(self.batch_size)

    def _unload(self, to_unload: int) -> None:
        batch = self.backup.new_batch()
        try:
            for key, value in list(self.cache.items()):
                batch.put(key, value)
                del self.cache[key]
                removed = _map_mem_est(len(key), len(value))
                self.mem_size = self.mem_size - removed if removed <= self.mem_size else 0
                if batch.value_size() >= to_unload:
                    break
            batch.write()
        finally:
            batch.reset()


class VecFlushable:
    """A fast flushable store for vector clocks.

    Writes are kept apart until flushed; flushed data lives in memory until
    its estimated size exceeds the limit, then is unloaded in batches to the
    parent store.
    """

    def __init__(self, parent: Store, size_limit: int, batch_size: int = IDEAL_BATCH_SIZE) -> None:
        if parent is None:
            raise ValueError("nil parent")
        self._modified: Optional[dict[bytes, bytes]] = {}
        self._underlying = _BackedMap(parent, size_limit, batch_size)
        self._mem_size = 0

    def _live(self) -> dict[bytes, bytes]:
        if self._modified is None:
            raise StoreClosedError("vecflushable - database closed")
        return self._modified

    def _clear_modified(self) -> None:
        self._modified = {}
        self._mem_size = 0

    def has(self, key: bytes) -> bool:
        """Return True if key is present, flushed or not."""
        if bytes(key) in self._live():
            return True
        return self._underlying.has(key)

    def get(self, key: bytes) -> Optional[bytes]:
        """Return the value under key, or None."""
        value = self._live().get(bytes(key))
        if value is not None:
            return bytes(value)
        return self._underlying.get(key)

    def put(self, key: bytes, value: bytes) -> None:
        """Record a not-yet-flushed write."""
        if key is None or value is None:
            raise ValueError("vecflushable: key or value is nil")
        self._live()[bytes(key)] = bytes(value)
        self._mem_size += _map_mem_est(len(key), len(value))

    def not_flushed_pairs(self) -> int:
        """Return the number of pending writes."""
        return len(self._modified or {})

    def not_flushed_size_est(self) -> int:
        """Return the estimated memory used by pending writes."""
        return self._mem_size

    def backed_pairs(self) -> int:
        """Return the number of flushed pairs still held in memory."""
        return len(self._underlying.cache or {})

    def backed_size_est(self) -> int:
        """Return the estimated memory used by flushed pairs held in memory."""
        return self._underlying.mem_size

    def flush(self) -> None:
        """Move pending writes into the backed map, unloading if over the limit."""
        modified = self._live()
        for key, value in modified.items():
            self._underlying.add(key, value)
        self._underlying.may_unload()
        self._clear_modified()

    def drop_not_flushed(self) -> None:
        """Discard pending writes."""
        self._clear_modified()

    def close(self) -> None:
        """Discard pending writes and close the parent store."""
        self._live()
        self.drop_not_flushed()
        self._modified = None
        self._underlying.close()


def wrap(parent: Store, size_limit: int, batch_size: int = IDEAL_BATCH_SIZE) -> VecFlushable:
    """Wrap a parent store with a VecFlushable layer."""
    return VecFlushable(parent, size_limit, batch_size)