import pytest

from dagconsensus.validators import (
    Validators,
    ValidatorsBigBuilder,
    ValidatorsBuilder,
    WeightOverflowError,
    array_to_validators,
    equal_weight_validators,
)

MAX_UINT32 = 0xFFFFFFFF


def max_big(n):
    return (1 << n) - 1


def test_new_validators_empty():
    b = ValidatorsBuilder()
    v = b.build()
    assert len(v) == 0
    assert v.total_weight() == 0


def test_set():
    b = ValidatorsBuilder()
    for i in range(1, 6):
        b.set(i, i)
    v = b.build()
    assert len(v) == 5
    assert v.total_weight() == 15

    b.set(1, 10)
    b.set(3, 30)
    v = b.build()
    assert len(v) == 5
    assert v.total_weight() == 51

    b.set(2, 0)
    b.set(5, 0)
    v = b.build()
    assert len(v) == 3
    assert v.total_weight() == 44

    b.set(4, 0)
    b.set(3, 0)
    b.set(1, 0)
    v = b.build()
    assert len(v) == 0
    assert v.total_weight() == 0


def test_get():
    b = ValidatorsBuilder()
    b.set(0, 1)
    b.set(2, 2)
    b.set(3, 3)
    b.set(4, 4)
    b.set(7, 5)
    v = b.build()
    expected = {0: 1, 1: 0, 2: 2, 3: 3, 4: 4, 5: 0, 6: 0, 7: 5}
    for vid, weight in expected.items():
        assert v.get(vid) == weight


def test_iterate():
    b = ValidatorsBuilder()
    for i in range(1, 6):
        b.set(i, i)
    v = b.build()
    ids = v.ids()
    assert len(ids) == 5
    assert sum(v.get(vid) for vid in ids) == 15


def test_copy():
    b = ValidatorsBuilder()
    for i in range(1, 6):
        b.set(i, i)
    v = b.build()
    vv = v.copy()
    assert vv == v
    assert vv is not v
    assert vv.builder() == v.builder()
    assert vv.sorted_ids() == v.sorted_ids()
    assert vv.sorted_weights() == v.sorted_weights()


def test_builder_is_independent():
    v = array_to_validators([1, 2], [3, 4])
    builder = v.builder()
    builder.set(1, 0)
    assert v.get(1) == 3
    assert builder.build().get(1) == 0


def test_big():
    max_w = MAX_UINT32 >> 1
    b = ValidatorsBigBuilder()

    b.set(1, 1)
    v = b.build()
    assert v.total_weight() == 1
    assert v.get(1) == 1

    b.set(2, max_w - 1)
    v = b.build()
    assert v.total_weight() == max_w
    assert v.get(1) == 1
    assert v.get(2) == max_w - 1

    b.set(3, 1)
    v = b.build()
    assert v.total_weight() == max_w // 2
    assert v.get(1) == 0
    assert v.get(2) == max_w // 2
    assert v.get(3) == 0

    b.set(4, 2)
    v = b.build()
    assert v.total_weight() == max_w // 2 + 1
    assert v.get(1) == 0
    assert v.get(2) == max_w // 2
    assert v.get(3) == 0
    assert v.get(4) == 1

    b.set(5, max_big(60))
    v = b.build()
    assert v.total_weight() == 0x40000000
    assert v.get(1) == 0
    assert v.get(2) == 0x1
    assert v.get(3) == 0
    assert v.get(4) == 0
    assert v.get(5) == max_w // 2

    b.set(1, max_big(501))
    b.set(2, max_big(502))
    b.set(3, max_big(503))
    b.set(4, max_big(504))
    b.set(5, max_big(515))
    v = b.build()
    assert v.total_weight() == 0x400EFFFB
    assert v.get(1) == 0xFFFF
    assert v.get(2) == 0x1FFFF
    assert v.get(3) == 0x3FFFF
    assert v.get(4) == 0x7FFFF
    assert v.get(5) == 0x3FFFFFFF

    for vid in range(1, 5001):
        b.set(vid, vid * max_big(400))
    v = b.build()
    assert v.total_weight() == 0x5F62DE78
    assert v.get(1) == 0x7F
    assert v.get(2) == 0xFF
    assert v.get(3) == 0x17F
    assert v.get(2500) == 0x4E1FF
    assert v.get(4999) == 0x9C37F
    assert v.get(5000) == 0x9C3FF


def test_big_builder_removes_zero_and_none():
    b = ValidatorsBigBuilder()
    b.set(1, 5)
    b.set(2, 7)
    b.set(1, None)
    b.set(2, 0)
    assert b.total_weight() == 0
    assert len(b.build()) == 0


def test_sorted_order_weight_desc_then_id():
    v = array_to_validators([1, 2, 3, 4], [2, 5, 2, 1])
    assert v.sorted_ids() == (2, 1, 3, 4)
    assert v.sorted_weights() == (5, 2, 2, 1)
    for idx, vid in enumerate(v.sorted_ids()):
        assert v.get_idx(vid) == idx
        assert v.get_id(idx) == vid
        assert v.get_weight_by_idx(idx) == v.get(vid)
    assert v.idxs() == {2: 0, 1: 1, 3: 2, 4: 3}


def test_str():
    v = array_to_validators([1, 2], [1, 2])
    assert str(v) == "[2:2],[1:1]"


def test_exists_and_unknown_idx():
    v = equal_weight_validators([10, 20], 1)
    assert v.exists(10)
    assert not v.exists(30)
    with pytest.raises(KeyError):
        v.get_idx(30)


def test_quorum():
    v = array_to_validators([1, 2, 3, 4, 5], [1, 2, 3, 4, 5])
    assert v.quorum() == 11
    assert equal_weight_validators([1, 2, 3], 1).quorum() == 3


def test_overflow():
    b = ValidatorsBuilder()
    b.set(1, MAX_UINT32 // 2)
    assert b.build().total_weight() == MAX_UINT32 // 2
    b.set(2, 1)
    with pytest.raises(WeightOverflowError):
        b.build()


def test_weight_out_of_range():
    with pytest.raises(ValueError):
        ValidatorsBuilder().set(1, -1)
    with pytest.raises(ValueError):
        ValidatorsBuilder().set(1, MAX_UINT32 + 1)


def test_array_to_validators_short_weights():
    with pytest.raises(ValueError):
        array_to_validators([1, 2], [1])


def test_validators_constructor_drops_zero():
    v = Validators({1: 0, 2: 3})
    assert len(v) == 1
    assert not v.exists(1)


def test_weight_counter():
    v = equal_weight_validators([1, 2, 3, 4], 1)
    counter = v.new_counter()
    assert counter.count(1)
    assert not counter.count(1)
    assert counter.count(2)
    assert not counter.has_quorum()
    assert counter.count_by_idx(v.get_idx(3))
    assert counter.has_quorum()
    assert counter.total() == 3
    assert counter.num_counted() == 3


def test_weight_counter_weighted():
    v = array_to_validators([1, 2, 3], [5, 1, 1])
    counter = v.new_counter()
    assert counter.count(1)
    assert counter.total() == 5
    assert counter.has_quorum() == (5 >= v.quorum())
    assert counter.num_counted() == 1