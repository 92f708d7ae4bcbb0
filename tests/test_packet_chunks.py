import numpy as np
import pytest

from psn_sdk_python.chunks import (
    DATA_PACKET_ID,
    ChunkDecodeError,
    ChunkNode,
    DataPacket,
    DataTrackerChunk,
    InfoPacket,
    InfoTrackerChunk,
    OrientationChunk,
    PacketKind,
    PositionChunk,
    StatusChunk,
    TimestampChunk,
    TrackerNameChunk,
    UnknownChunk,
    UnknownPacket,
    decode_packet,
    describe_packet,
    encode_chunk,
    encode_packet,
)

from conftest import frame_header


def _data_packet(*trackers):
    return DataPacket.create(frame_header(), trackers)


def test_data_packet_round_trip():
    tracker = DataTrackerChunk(3, (PositionChunk(1.0, 2.0, 3.0), OrientationChunk(0.1, 0.2, 0.3),
                                   StatusChunk(0.5), TimestampChunk(123456789)))
    packet = _data_packet(tracker)
    decoded = decode_packet(encode_packet(packet))
    assert decoded == packet
    assert decoded.kind == PacketKind.DATA
    assert decoded.header == frame_header()
    assert decoded.tracker_list.trackers[0].tracker_id == 3


def test_minimal_data_packet_size():
    packet = _data_packet(DataTrackerChunk(0, (PositionChunk(0.0, 0.0, 0.0),)))
    # root + frame header + tracker list + tracker + position
    assert len(packet.encode()) == 4 + 16 + 4 + 4 + 16


def test_info_packet_round_trip():
    packet = InfoPacket.create(frame_header(), "Server", [InfoTrackerChunk(7, (TrackerNameChunk("Seven"),))])
    decoded = decode_packet(packet.encode())
    assert decoded == packet
    assert decoded.system_name == "Server"
    assert decoded.tracker_list.trackers[0].chunks[0].name == "Seven"


def test_vectors_are_float32():
    chunk = PositionChunk(0.1, 0.2, 0.3)
    assert chunk.x == float(np.float32(0.1))
    assert decode_packet(_data_packet(DataTrackerChunk(0, (chunk,))).encode()) \
        .tracker_list.trackers[0].chunks[0] == chunk


def test_chunk_ids_are_scoped_to_container():
    data = _data_packet(DataTrackerChunk(0, (PositionChunk(1.0, 1.0, 1.0),))).encode()
    info = InfoPacket.create(frame_header(), "S", [InfoTrackerChunk(0, (TrackerNameChunk("N"),))]).encode()
    assert isinstance(decode_packet(data).tracker_list.trackers[0].chunks[0], PositionChunk)
    assert isinstance(decode_packet(info).tracker_list.trackers[0].chunks[0], TrackerNameChunk)


def test_unknown_chunks_are_preserved_and_flagged():
    tracker = DataTrackerChunk(1, (PositionChunk(1.0, 2.0, 3.0), UnknownChunk(0x42, b"xyz")))
    packet = _data_packet(tracker)
    decoded = decode_packet(packet.encode())
    assert decoded == packet
    assert decoded.has_unknown_chunks
    assert decoded.tracker_list.trackers[0].unknown_chunks == [UnknownChunk(0x42, b"xyz")]
    assert decoded.encode() == packet.encode()


def test_known_packet_has_no_unknown_chunks():
    assert not decode_packet(_data_packet(DataTrackerChunk(0)).encode()).has_unknown_chunks


def test_unknown_root_id():
    data = encode_chunk(ChunkNode(0x1234, b"abc"))
    packet = decode_packet(data)
    assert isinstance(packet, UnknownPacket)
    assert packet.kind == PacketKind.UNKNOWN
    assert packet.chunk_id == 0x1234
    assert packet.data == b"abc"
    assert packet.encode() == data


def test_empty_packet_rejected():
    with pytest.raises(ChunkDecodeError):
        decode_packet(b"")


def test_truncated_packet_rejected():
    data = _data_packet(DataTrackerChunk(0, (PositionChunk(1.0, 2.0, 3.0),))).encode()
    for cut in (1, 5, len(data) - 1):
        with pytest.raises(ChunkDecodeError):
            decode_packet(data[:cut])


def test_too_short_known_leaf_fails_whole_packet():
    data = encode_chunk(ChunkNode(DATA_PACKET_ID, children=[ChunkNode(0, b"\x00" * 5)]))
    with pytest.raises(ChunkDecodeError):
        decode_packet(data)


def test_trailing_bytes_ignored():
    packet = _data_packet(DataTrackerChunk(0))
    assert decode_packet(packet.encode() + b"\x00\x00\x00") == packet


def test_container_without_children_flag_is_empty():
    packet = decode_packet(encode_chunk(ChunkNode(DATA_PACKET_ID)))
    assert packet == DataPacket(())
    assert packet.header is None
    assert packet.tracker_list is None


def test_header_none_when_repeated():
    packet = DataPacket((frame_header(), frame_header()))
    assert packet.header is None


def test_frame_header_range_checked():
    with pytest.raises(ValueError):
        frame_header(frame_id=256)
    with pytest.raises(ValueError):
        DataTrackerChunk(0x10000)


def test_describe_packet():
    text = describe_packet(_data_packet(DataTrackerChunk(5, (PositionChunk(1.0, 2.0, 3.0),))))
    lines = text.splitlines()
    assert lines[0] == "DataPacket()"
    assert lines[1].startswith("  FrameHeaderChunk(timestamp=1000")
    assert lines[3] == "    DataTrackerChunk(tracker_id=5)"
    assert lines[4] == "      PositionChunk(x=1.0, y=2.0, z=3.0)"
