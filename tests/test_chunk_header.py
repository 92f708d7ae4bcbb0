import pytest

from psn_sdk_python.chunks import CHUNK_HEADER_LENGTH, MAX_DATA_LENGTH, ChunkHeader


def test_bit_layout():
    header = ChunkHeader(0x6755, 3, True)
    assert header.to_uint32() == 0x80036755
    assert header.pack() == b"\x55\x67\x03\x80"


def test_no_children_flag_clears_top_bit():
    assert ChunkHeader(1, 12, False).to_uint32() == 0x000C0001


def test_unpack_round_trips_extremes():
    for header in (ChunkHeader(0, 0, False), ChunkHeader(0xFFFF, MAX_DATA_LENGTH, True)):
        assert ChunkHeader.unpack(header.pack()) == header


def test_unpack_at_offset():
    data = b"\xff\xff" + ChunkHeader(7, 100, False).pack()
    assert ChunkHeader.unpack(data, 2) == ChunkHeader(7, 100, False)


def test_data_length_over_15_bits_rejected():
    with pytest.raises(ValueError):
        ChunkHeader(0, MAX_DATA_LENGTH + 1, False).pack()


def test_chunk_id_over_16_bits_rejected():
    with pytest.raises(ValueError):
        ChunkHeader(0x10000, 0, False).pack()


def test_truncated_header_rejected():
    with pytest.raises(ValueError):
        ChunkHeader.unpack(b"\x00" * (CHUNK_HEADER_LENGTH - 1))
