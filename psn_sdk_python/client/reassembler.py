"""
FrameReassembler - Collect the packets of one data or info frame.

One reassembler exists per packet kind. Packets of a frame share a timestamp
and frame packet count; the first packet that disagrees with the frame being
collected discards that frame and starts a new one. A complete frame is
merged into the TrackerStore only if every tracker id in it is unique.

States:
    EMPTY       nothing buffered
    COLLECTING  some, but not all, packets of a frame buffered
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Tuple

from ..chunks.packet_chunks import (
    AccelerationChunk,
    DataTrackerListChunk,
    FrameHeaderChunk,
    InfoTrackerListChunk,
    OrientationChunk,
    PacketKind,
    PositionChunk,
    SpeedChunk,
    StatusChunk,
    SystemNameChunk,
    TargetPositionChunk,
    TimestampChunk,
    TrackerNameChunk,
)


class ReassemblyState(Enum):
    EMPTY = "empty"
    COLLECTING = "collecting"


class NoticeKind(Enum):
    MALFORMED_PACKET = "malformed_packet"
    INCOMPLETE_FRAME_DISCARDED = "incomplete_frame_discarded"
    DUPLICATE_TRACKER_ID = "duplicate_tracker_id"
    INVALID_TRACKER = "invalid_tracker"


@dataclass(frozen=True)
class ReassemblyNotice:
    """
    Describes packets that were rejected or only partly processed.

    Attributes:
        kind: What went wrong
        message: Human readable description
        packets: The packets concerned
        was_processed: True if the packets were still applied to the store
    """

    kind: NoticeKind
    message: str
    packets: Tuple = ()
    was_processed: bool = False

    def __str__(self):
        return f"{self.kind.value}: {self.message} ({len(self.packets)} packet(s))"


@dataclass(frozen=True)
class FrameUpdate:
    """A completed frame that has been merged into the store."""

    kind: PacketKind
    header: FrameHeaderChunk
    trackers: Mapping
    updated_ids: Tuple[int, ...]
    system_name: Optional[str] = None


@dataclass
class ReassemblyResult:
    notices: list = field(default_factory=list)
    update: Optional[FrameUpdate] = None


# Data tracker chunk type -> (tracker field, value getter)
DATA_FIELD_SETTERS = {
    PositionChunk: ("position", lambda c: c.vector),
    SpeedChunk: ("speed", lambda c: c.vector),
    OrientationChunk: ("orientation", lambda c: c.vector),
    AccelerationChunk: ("acceleration", lambda c: c.vector),
    TargetPositionChunk: ("target_position", lambda c: c.vector),
    StatusChunk: ("validity", lambda c: c.validity),
    TimestampChunk: ("timestamp", lambda c: c.timestamp),
}

INFO_FIELD_SETTERS = {
    TrackerNameChunk: ("name", lambda c: c.name),
}


class _FrameRejected(Exception):
    pass


class FrameReassembler:
    """
    Per-kind reassembly state machine.

    Example usage:
        store = TrackerStore()
        reassembler = FrameReassembler(PacketKind.DATA, store)
        result = reassembler.add_packet(decode_packet(data))
        if result.update:
            print(result.update.trackers)
    """

    def __init__(self, kind: PacketKind, store, is_strict: bool = True):
        """
        Args:
            kind: PacketKind.DATA or PacketKind.INFO
            store: TrackerStore receiving completed frames
            is_strict: Discard a whole frame when one tracker in it is imperfect
        """
        if kind not in (PacketKind.DATA, PacketKind.INFO):
            raise ValueError(f"Cannot reassemble {kind.value} packets")
        self.kind = kind
        self.store = store
        self.is_strict = is_strict
        self.lock = threading.Lock()
        self.packets = []

    @property
    def state(self) -> ReassemblyState:
        return ReassemblyState.COLLECTING if self.packets else ReassemblyState.EMPTY

    def reset(self):
        with self.lock:
            self.packets = []

    def add_packet(self, packet) -> ReassemblyResult:
        """Feed one decoded packet of this reassembler's kind."""
        result = ReassemblyResult()

        error = self._validate(packet)
        if error:
            result.notices.append(ReassemblyNotice(NoticeKind.MALFORMED_PACKET, error, (packet,)))
            return result

        header = packet.header
        with self.lock:
            if self.packets:
                first = self.packets[0].header
                if (header.timestamp != first.timestamp
                        or header.frame_packet_count != first.frame_packet_count):
                    result.notices.append(ReassemblyNotice(
                        NoticeKind.INCOMPLETE_FRAME_DISCARDED,
                        f"Incomplete {self.kind.value} frame discarded, "
                        f"received {len(self.packets)} of {first.frame_packet_count} packets",
                        tuple(self.packets)))
                    self.packets = []

            self.packets.append(packet)
            if len(self.packets) < header.frame_packet_count:
                return result

            packets = tuple(self.packets)
            self.packets = []
            result.update = self._complete(header, packets, result.notices)
        return result

    def _validate(self, packet) -> Optional[str]:
        if packet.kind != self.kind:
            return f"Expected a {self.kind.value} packet, got {packet.kind.value}"

        name = self.kind.value.capitalize()
        required = [(FrameHeaderChunk, "frame header")]
        if self.kind == PacketKind.DATA:
            required.append((DataTrackerListChunk, "tracker list"))
        else:
            required.append((SystemNameChunk, "system name"))
            required.append((InfoTrackerListChunk, "tracker list"))

        for chunk_type, label in required:
            count = len(packet.chunks_of(chunk_type))
            if count == 0:
                return f"{name} packet missing {label} chunk"
            if count > 1:
                return f"{name} packet contains multiple {label} chunks"

        if packet.header.frame_packet_count == 0:
            return f"{name} packet declares a frame packet count of 0"
        return None

    def _complete(self, header, packets, notices) -> Optional[FrameUpdate]:
        tracker_chunks = [t for p in packets for t in p.tracker_list.trackers]
        ids = [t.tracker_id for t in tracker_chunks]
        if len(set(ids)) != len(ids):
            notices.append(ReassemblyNotice(
                NoticeKind.DUPLICATE_TRACKER_ID, "Duplicate tracker IDs in frame", packets))
            return None

        if self.kind == PacketKind.DATA:
            setters, marker = DATA_FIELD_SETTERS, "data_last_received"
        else:
            setters, marker = INFO_FIELD_SETTERS, "info_last_received"

        updates = []
        try:
            for chunk in tracker_chunks:
                fields = self._collect_fields(chunk, setters, packets, notices)
                if fields is None:
                    continue
                fields[marker] = header.timestamp
                updates.append((chunk.tracker_id, fields))
        except _FrameRejected:
            return None

        snapshot = self.store.merge(updates)
        system_name = packets[-1].system_name if self.kind == PacketKind.INFO else None
        return FrameUpdate(self.kind, header, snapshot,
                           tuple(tracker_id for tracker_id, _ in updates), system_name)

    def _collect_fields(self, chunk, setters, packets, notices):
        """Field values carried by one tracker chunk; None to skip the tracker."""
        fields = {}
        for sub in chunk.chunks:
            setter = setters.get(type(sub))
            if setter is None:
                continue
            name, getter = setter
            if name in fields:
                self._report(notices, packets,
                             f"Tracker ID {chunk.tracker_id} has multiple {name} chunks")
            fields[name] = getter(sub)

        if self.kind == PacketKind.INFO and "name" not in fields:
            self._report(notices, packets, f"Tracker ID {chunk.tracker_id} has no tracker name chunk")
            return None
        return fields

    def _report(self, notices, packets, message):
        notices.append(ReassemblyNotice(NoticeKind.INVALID_TRACKER, message, packets,
                                        was_processed=not self.is_strict))
        if self.is_strict:
            raise _FrameRejected(message)
