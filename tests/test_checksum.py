import struct

import pytest

from cyusb.checksum import Checksum
from cyusb.errors import ErrorKind, TruncatedDataError

def test_starts_at_zero():
    assert Checksum().value == 0

def test_sums_little_endian_words():
    checksum = Checksum()
    checksum.update(struct.pack("<3I", 1, 0x100, 0x01020304))
    assert checksum.value == 1 + 0x100 + 0x01020304

def test_word_byte_order():
    checksum = Checksum()
    checksum.update(b"\x01\x00\x00\x00")
    assert checksum.value == 1

def test_wraps_at_32_bits():
    checksum = Checksum()
    checksum.update(struct.pack("<2I", 0xffffffff, 2))
    assert checksum.value == 1

def test_updates_accumulate():
    data = bytes(range(64))

    whole = Checksum()
    whole.update(data)

    pieces = Checksum()
    for i in range(0, len(data), 16):
        pieces.update(data[i:i + 16])

    assert pieces.value == whole.value

def test_empty_update_is_a_no_op():
    checksum = Checksum()
    checksum.update(b"")
    assert checksum.value == 0

def test_accepts_memoryview():
    checksum = Checksum()
    checksum.update(memoryview(struct.pack("<2I", 5, 6)))
    assert checksum.value == 11

@pytest.mark.parametrize("size", [1, 2, 3, 5, 7])
def test_partial_word_is_truncated(size):
    with pytest.raises(TruncatedDataError) as info:
        Checksum().update(bytes(size))
    assert info.value.kind is ErrorKind.TRUNCATED_DATA
    assert info.value.offset == size - size % 4
    assert info.value.expected == 4

def test_truncation_offset_is_relative_to_the_update():
    checksum = Checksum()
    checksum.update(bytes(64))
    with pytest.raises(TruncatedDataError) as info:
        checksum.update(bytes(10))
    assert info.value.offset == 8
    assert checksum.value == 0
