import pytest

from dagconsensus.byteutils import uint64_to_big_endian
from dagconsensus.vecflushable import (
    MemoryStore,
    StoreClosedError,
    VecFlushable,
    wrap,
)


def _items(count):
    for op in range(count):
        step = op & 0xFF
        yield uint64_to_big_endian(step << 48), uint64_to_big_endian(step)


def test_no_backup():
    store = MemoryStore()
    flushable = wrap(store, 100000)
    total = 10
    for key, value in _items(total):
        flushable.put(key, value)

    assert flushable.not_flushed_pairs() == total
    assert flushable.not_flushed_size_est() == total * 116
    assert flushable.backed_size_est() == 0

    for key, value in _items(total):
        assert flushable.get(key) == value

    flushable.flush()

    assert flushable.not_flushed_pairs() == 0
    assert flushable.not_flushed_size_est() == 0
    assert flushable.backed_size_est() == total * 116
    assert len(store) == 0

    for key, value in _items(total):
        assert flushable.get(key) == value


def test_backup():
    store = MemoryStore()
    flushable = wrap(store, 696 - 1, 48)
    total = 10
    for key, value in _items(total):
        flushable.put(key, value)
        flushable.flush()

    assert flushable.not_flushed_pairs() == 0
    assert flushable.not_flushed_size_est() == 0
    assert flushable.backed_pairs() == 4
    assert flushable.backed_size_est() == 4 * 116
    assert len(store) == total - 4

    for key, value in _items(total):
        assert flushable.get(key) == value
        assert flushable.has(key)


def test_update_value():
    flushable = wrap(MemoryStore(), 1000)
    key0 = uint64_to_big_endian(0)
    big_val = b"\xff" * 70

    for _ in range(2):
        flushable.put(key0, big_val)
        flushable.flush()

    assert flushable.not_flushed_pairs() == 0
    assert flushable.not_flushed_size_est() == 0
    assert flushable.backed_pairs() == 1
    assert flushable.backed_size_est() == 178

    key1 = uint64_to_big_endian(1)
    for _ in range(2):
        flushable.put(key1, big_val)
    flushable.flush()

    assert flushable.not_flushed_pairs() == 0
    assert flushable.not_flushed_size_est() == 0
    assert flushable.backed_pairs() == 2
    assert flushable.backed_size_est() == 356


def test_drop_not_flushed_discards_pending():
    flushable = wrap(MemoryStore(), 100000)
    flushable.put(b"k", b"v")
    assert flushable.has(b"k")
    flushable.drop_not_flushed()
    assert flushable.get(b"k") is None
    assert not flushable.has(b"k")
    assert flushable.not_flushed_pairs() == 0


def test_get_returns_copy_of_input():
    flushable = wrap(MemoryStore(), 100000)
    value = bytearray(b"abc")
    flushable.put(b"k", value)
    value[0] = ord("z")
    assert flushable.get(b"k") == b"abc"


def test_put_none_rejected():
    flushable = wrap(MemoryStore(), 100000)
    with pytest.raises(ValueError):
        flushable.put(None, b"v")
    with pytest.raises(ValueError):
        flushable.put(b"k", None)


def test_closed_store_raises():
    store = MemoryStore()
    flushable = wrap(store, 100000)
    flushable.close()
    with pytest.raises(StoreClosedError):
        flushable.get(b"k")
    with pytest.raises(StoreClosedError):
        flushable.has(b"k")
    with pytest.raises(StoreClosedError):
        flushable.flush()
    with pytest.raises(StoreClosedError):
        flushable.close()
    with pytest.raises(StoreClosedError):
        store.get(b"k")


def test_nil_parent_rejected():
    with pytest.raises(ValueError):
        VecFlushable(None, 10)


def test_memory_store_batch():
    store = MemoryStore()
    batch = store.new_batch()
    batch.put(b"ab", b"cde")
    assert batch.value_size() == 5
    assert store.get(b"ab") is None
    batch.write()
    assert store.get(b"ab") == b"cde"
    batch.reset()
    assert batch.value_size() == 0