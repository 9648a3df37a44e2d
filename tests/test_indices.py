import pytest

from dagconsensus.indices import FIRST_EPOCH, FIRST_FRAME, IndexKind, max_lamport


@pytest.mark.parametrize("kind", list(IndexKind))
@pytest.mark.parametrize("value", [0, 1, 9, 0xFFFFFFFF])
def test_round_trip(kind, value):
    data = IndexKind.to_bytes(kind, value)
    assert len(data) == kind.width
    assert IndexKind.from_bytes(kind, data) == value


def test_block_is_eight_bytes():
    assert IndexKind.BLOCK.to_bytes(1) == b"\x00" * 7 + b"\x01"
    assert IndexKind.BLOCK.from_bytes(IndexKind.BLOCK.to_bytes(2**40)) == 2**40


def test_seq_is_big_endian():
    assert IndexKind.SEQ.to_bytes(1) == b"\x00\x00\x00\x01"


def test_big_endian_order_matches_numeric_order():
    kind = IndexKind.EPOCH
    assert kind.to_bytes(255) < kind.to_bytes(256)


def test_out_of_range_rejected():
    with pytest.raises(OverflowError):
        IndexKind.FRAME.to_bytes(2**32)


def test_short_input_rejected():
    with pytest.raises(ValueError):
        IndexKind.VALIDATOR_INDEX.from_bytes(b"\x00\x01")


def test_max_lamport():
    assert max_lamport(3, 7) == 7
    assert max_lamport(7, 3) == 7
    assert max_lamport(5, 5) == 5


def test_first_indices():
    assert IndexKind.FRAME.from_bytes(IndexKind.FRAME.to_bytes(FIRST_FRAME)) == 1
    assert IndexKind.EPOCH.to_bytes(FIRST_EPOCH) == IndexKind.EPOCH.to_bytes(1)