import random

import pytest

from psn_sdk_python import Tracker, TrackerStore
from psn_sdk_python.chunks import (
    DataPacket,
    DataTrackerChunk,
    InfoPacket,
    InfoTrackerChunk,
    PacketKind,
    PositionChunk,
    decode_packet,
)
from psn_sdk_python.client import FrameReassembler, NoticeKind, ReassemblyState
from psn_sdk_python.server import fragment_data_frame, fragment_info_frame

from conftest import frame_header


@pytest.fixture
def store():
    return TrackerStore()


@pytest.fixture
def data_reassembler(store):
    return FrameReassembler(PacketKind.DATA, store)


@pytest.fixture
def info_reassembler(store):
    return FrameReassembler(PacketKind.INFO, store)


def _position_trackers(count, start=0):
    return [Tracker(i, position=(float(i), 0.0, 0.0)) for i in range(start, start + count)]


def test_single_packet_data_and_info_frames(store, data_reassembler, info_reassembler):
    tracker = Tracker(0, name="Tracker 0", position=(0.0, 0.0, 0.0))

    data = DataPacket.create(frame_header(1000, 5, 1), [tracker.to_data_tracker_chunk()])
    result = data_reassembler.add_packet(decode_packet(data.encode()))
    assert result.notices == []
    assert result.update.kind == PacketKind.DATA
    assert result.update.updated_ids == (0,)
    assert store.get(0).position == (0.0, 0.0, 0.0)
    assert store.get(0).data_last_received == 1000
    assert store.get(0).name is None

    info = InfoPacket.create(frame_header(1000, 5, 1), "Server", [tracker.to_info_tracker_chunk()])
    result = info_reassembler.add_packet(decode_packet(info.encode()))
    assert result.update.system_name == "Server"
    assert store.get(0).name == "Tracker 0"
    assert store.get(0).info_last_received == 1000
    assert store.get(0) == tracker


def test_multi_packet_frame_in_any_order(store, data_reassembler):
    packets = fragment_data_frame(_position_trackers(100), 2000, 1)
    assert len(packets) == 2

    result = data_reassembler.add_packet(packets[1])
    assert result.update is None
    assert data_reassembler.state == ReassemblyState.COLLECTING
    assert len(store) == 0

    result = data_reassembler.add_packet(packets[0])
    assert result.notices == []
    assert len(result.update.trackers) == 100
    assert data_reassembler.state == ReassemblyState.EMPTY


def test_mismatched_packet_discards_frame_and_starts_new_one(store, data_reassembler):
    frame_a = fragment_data_frame(_position_trackers(100), 1000, 1)
    frame_b = fragment_data_frame(_position_trackers(100, start=200), 2000, 2)

    data_reassembler.add_packet(frame_a[0])
    result = data_reassembler.add_packet(frame_b[0])
    assert [n.kind for n in result.notices] == [NoticeKind.INCOMPLETE_FRAME_DISCARDED]
    assert result.notices[0].packets == (frame_a[0],)
    assert result.update is None
    assert data_reassembler.state == ReassemblyState.COLLECTING

    result = data_reassembler.add_packet(frame_b[1])
    assert result.update is not None
    assert sorted(store.snapshot()) == list(range(200, 300))


def test_packet_count_change_discards_frame(data_reassembler):
    data_reassembler.add_packet(DataPacket.create(frame_header(1000, 0, 2), []))
    result = data_reassembler.add_packet(DataPacket.create(frame_header(1000, 0, 3), []))
    assert [n.kind for n in result.notices] == [NoticeKind.INCOMPLETE_FRAME_DISCARDED]


def test_duplicate_tracker_ids_leave_store_unchanged(store, data_reassembler):
    store.merge([(0, {"position": (9.0, 9.0, 9.0)})])
    chunk = DataTrackerChunk(0, (PositionChunk(1.0, 1.0, 1.0),))
    data_reassembler.add_packet(DataPacket.create(frame_header(1000, 0, 2), [chunk]))
    result = data_reassembler.add_packet(DataPacket.create(frame_header(1000, 0, 2), [chunk]))
    assert [n.kind for n in result.notices] == [NoticeKind.DUPLICATE_TRACKER_ID]
    assert len(result.notices[0].packets) == 2
    assert result.update is None
    assert store.get(0).position == (9.0, 9.0, 9.0)


@pytest.mark.parametrize("packet", [
    DataPacket((frame_header(),)),
    DataPacket((DataTrackerChunk(0),)),
    DataPacket((frame_header(), frame_header(), DataPacket.create(frame_header(), []).tracker_list)),
    DataPacket.create(frame_header(frame_packet_count=0), []),
    InfoPacket.create(frame_header(), "S", []),
])
def test_malformed_packets_rejected(store, data_reassembler, packet):
    result = data_reassembler.add_packet(packet)
    assert [n.kind for n in result.notices] == [NoticeKind.MALFORMED_PACKET]
    assert result.notices[0].packets == (packet,)
    assert result.update is None
    assert data_reassembler.state == ReassemblyState.EMPTY


def test_malformed_packet_does_not_disturb_collection(data_reassembler):
    packets = fragment_data_frame(_position_trackers(100), 1000, 0)
    data_reassembler.add_packet(packets[0])
    data_reassembler.add_packet(DataPacket((frame_header(),)))
    assert data_reassembler.add_packet(packets[1]).update is not None


def test_info_packet_needs_system_name(info_reassembler):
    header = frame_header()
    packet = InfoPacket((header, InfoPacket.create(header, "S", []).tracker_list))
    result = info_reassembler.add_packet(packet)
    assert [n.kind for n in result.notices] == [NoticeKind.MALFORMED_PACKET]


def test_absent_fields_are_kept(store, data_reassembler):
    first = Tracker(0, position=(1.0, 1.0, 1.0), speed=(2.0, 2.0, 2.0))
    second = Tracker(0, position=(3.0, 3.0, 3.0))
    data_reassembler.add_packet(fragment_data_frame([first], 1000, 0)[0])
    data_reassembler.add_packet(fragment_data_frame([second], 2000, 1)[0])
    assert store.get(0).position == (3.0, 3.0, 3.0)
    assert store.get(0).speed == (2.0, 2.0, 2.0)
    assert store.get(0).data_last_received == 2000


def _repeated_position_packet():
    bad = DataTrackerChunk(1, (PositionChunk(1.0, 1.0, 1.0), PositionChunk(2.0, 2.0, 2.0)))
    good = DataTrackerChunk(2, (PositionChunk(5.0, 5.0, 5.0),))
    return DataPacket.create(frame_header(), [good, bad])


def test_strict_mode_rejects_frame_with_repeated_field(store, data_reassembler):
    result = data_reassembler.add_packet(_repeated_position_packet())
    assert [n.kind for n in result.notices] == [NoticeKind.INVALID_TRACKER]
    assert result.notices[0].was_processed is False
    assert result.update is None
    assert len(store) == 0


def test_lenient_mode_keeps_last_value(store):
    reassembler = FrameReassembler(PacketKind.DATA, store, is_strict=False)
    result = reassembler.add_packet(_repeated_position_packet())
    assert [n.kind for n in result.notices] == [NoticeKind.INVALID_TRACKER]
    assert result.notices[0].was_processed is True
    assert store.get(1).position == (2.0, 2.0, 2.0)
    assert store.get(2).position == (5.0, 5.0, 5.0)


def test_info_tracker_without_name(store):
    packet = InfoPacket.create(frame_header(), "S", [InfoTrackerChunk(0), Tracker(1, name="One").to_info_tracker_chunk()])

    strict = FrameReassembler(PacketKind.INFO, store)
    result = strict.add_packet(packet)
    assert [n.kind for n in result.notices] == [NoticeKind.INVALID_TRACKER]
    assert len(store) == 0

    lenient = FrameReassembler(PacketKind.INFO, store, is_strict=False)
    result = lenient.add_packet(packet)
    assert result.update.updated_ids == (1,)
    assert 0 not in store
    assert store.get(1).name == "One"


def test_info_frame_over_several_packets(store, info_reassembler):
    trackers = [Tracker(i, name="x" * 100) for i in range(50)]
    packets = fragment_info_frame(trackers, "Big", 1000, 0)
    result = None
    for packet in reversed(packets):
        result = info_reassembler.add_packet(packet)
    assert result.update.system_name == "Big"
    assert len(store) == 50


def test_reset_drops_partial_frame(data_reassembler):
    data_reassembler.add_packet(fragment_data_frame(_position_trackers(100), 1000, 0)[0])
    data_reassembler.reset()
    assert data_reassembler.state == ReassemblyState.EMPTY


def test_unknown_kind_rejected(store):
    with pytest.raises(ValueError):
        FrameReassembler(PacketKind.UNKNOWN, store)


@pytest.mark.parametrize("seed", range(5))
def test_frame_completes_only_on_last_packet_in_any_order(seed):
    store = TrackerStore()
    reassembler = FrameReassembler(PacketKind.DATA, store)
    trackers = _position_trackers(500)
    packets = fragment_data_frame(trackers, 3000, 9)
    assert len(packets) > 3

    random.Random(seed).shuffle(packets)
    for packet in packets[:-1]:
        result = reassembler.add_packet(packet)
        assert result.notices == []
        assert result.update is None
        assert len(store) == 0

    result = reassembler.add_packet(packets[-1])
    assert result.notices == []
    assert dict(store.snapshot()) == {t.tracker_id: t for t in trackers}
