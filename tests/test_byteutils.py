import pytest

from dagconsensus import byteutils as bu

UINT64_CASES = [
    0,
    9,
    0xF000000000000000,
    0x000000000000000F,
    0xFFFFFFFFFFFFFFFF,
    47528346792,
]
UINT32_CASES = [0, 9, 0xFFFFFFFF, 475283467]
UINT16_CASES = [0, 9, 0xFFFF, 47528]


@pytest.mark.parametrize("n", UINT64_CASES)
def test_uint64_round_trip(n):
    b = bu.uint64_to_big_endian(n)
    assert len(b) == 8
    assert bu.big_endian_to_uint64(b) == n
    b = bu.uint64_to_little_endian(n)
    assert len(b) == 8
    assert bu.little_endian_to_uint64(b) == n


@pytest.mark.parametrize("n", UINT32_CASES)
def test_uint32_round_trip(n):
    b = bu.uint32_to_big_endian(n)
    assert len(b) == 4
    assert bu.big_endian_to_uint32(b) == n
    b = bu.uint32_to_little_endian(n)
    assert len(b) == 4
    assert bu.little_endian_to_uint32(b) == n


@pytest.mark.parametrize("n", UINT16_CASES)
def test_uint16_round_trip(n):
    b = bu.uint16_to_big_endian(n)
    assert len(b) == 2
    assert bu.big_endian_to_uint16(b) == n
    b = bu.uint16_to_little_endian(n)
    assert len(b) == 2
    assert bu.little_endian_to_uint16(b) == n


def test_byte_order():
    assert bu.uint32_to_big_endian(9) == b"\x00\x00\x00\x09"
    assert bu.uint32_to_little_endian(9) == b"\x09\x00\x00\x00"


def test_big_and_little_are_reversed():
    n = 47528346792
    assert bu.uint64_to_big_endian(n) == bu.uint64_to_little_endian(n)[::-1]


def test_decode_reads_leading_bytes_only():
    data = bu.uint32_to_big_endian(475283467) + b"\xff\xff"
    assert bu.big_endian_to_uint32(data) == 475283467


def test_short_input_raises():
    with pytest.raises(ValueError):
        bu.big_endian_to_uint64(b"\x00" * 7)
    with pytest.raises(ValueError):
        bu.little_endian_to_uint16(b"\x01")


def test_out_of_range_raises():
    with pytest.raises(OverflowError):
        bu.uint16_to_big_endian(0x10000)
    with pytest.raises(OverflowError):
        bu.uint32_to_little_endian(-1)