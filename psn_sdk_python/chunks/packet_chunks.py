"""
Typed PosiStageNet chunks and packet encode/decode.

Chunk ids are scoped to the container they appear in, so each container type
owns its own id -> decoder table. The same small integer means "position"
inside a data tracker, "tracker name" inside an info tracker and "frame header"
inside a packet. Any id missing from a container's table decodes to an
UnknownChunk holding the raw bytes.

Packet structure:
    DataPacket (0x6755)
        FrameHeaderChunk (0x0000)
        DataTrackerListChunk (0x0001)
            DataTrackerChunk (id = tracker id)
                PositionChunk (0x0000), SpeedChunk (0x0001), OrientationChunk (0x0002),
                StatusChunk (0x0003), AccelerationChunk (0x0004),
                TargetPositionChunk (0x0005), TimestampChunk (0x0006)
    InfoPacket (0x6756)
        FrameHeaderChunk (0x0000)
        SystemNameChunk (0x0001)
        InfoTrackerListChunk (0x0002)
            InfoTrackerChunk (id = tracker id)
                TrackerNameChunk (0x0000)
"""

import dataclasses
import struct
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from ..utils.vector_utils import to_float32
from .chunk_header import ChunkHeader
from .chunk_reader import ChunkReader, ChunkDecodeError
from .chunk_tree import ChunkNode, encode_chunk


DATA_PACKET_ID = 0x6755
INFO_PACKET_ID = 0x6756

FRAME_HEADER_DATA_LENGTH = 12

_FRAME_HEADER = struct.Struct("<QBBBB")
_VECTOR3 = struct.Struct("<fff")
_FLOAT32 = struct.Struct("<f")
_UINT64 = struct.Struct("<Q")


class PacketKind(Enum):
    DATA = "data"
    INFO = "info"
    UNKNOWN = "unknown"


def _check_range(name, value, low, high):
    if not low <= value <= high:
        raise ValueError(f"{name} must be in range {low}-{high}, got {value}")


# ---------------------------------------------------------------------------
# Shared chunks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UnknownChunk:
    """A chunk whose id is not known in its container. Kept as raw bytes."""

    chunk_id: int
    data: bytes = b""
    has_children: bool = False

    has_unknown_chunks: ClassVar[bool] = True

    def to_node(self) -> ChunkNode:
        return ChunkNode(self.chunk_id, self.data, force_has_children=self.has_children)

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader) -> "UnknownChunk":
        return cls(header.chunk_id, body.read_bytes(body.remaining), header.has_children)


@dataclass(frozen=True)
class FrameHeaderChunk:
    """
    Packet header chunk shared by data and info packets.

    Attributes:
        timestamp: Frame timestamp in microseconds
        version_high: Protocol major version
        version_low: Protocol minor version
        frame_id: Frame identifier (wraps at 256)
        frame_packet_count: Number of packets making up the frame
    """

    timestamp: int
    version_high: int
    version_low: int
    frame_id: int
    frame_packet_count: int

    CHUNK_ID: ClassVar[int] = 0x0000
    has_unknown_chunks: ClassVar[bool] = False

    def __post_init__(self):
        _check_range("timestamp", self.timestamp, 0, 0xFFFFFFFFFFFFFFFF)
        _check_range("version_high", self.version_high, 0, 255)
        _check_range("version_low", self.version_low, 0, 255)
        _check_range("frame_id", self.frame_id, 0, 255)
        _check_range("frame_packet_count", self.frame_packet_count, 0, 255)

    @property
    def chunk_id(self) -> int:
        return self.CHUNK_ID

    def to_node(self) -> ChunkNode:
        return ChunkNode(self.CHUNK_ID, _FRAME_HEADER.pack(
            self.timestamp, self.version_high, self.version_low,
            self.frame_id, self.frame_packet_count))

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader) -> "FrameHeaderChunk":
        timestamp = body.read_uint64()
        return cls(timestamp, body.read_uint8(), body.read_uint8(),
                   body.read_uint8(), body.read_uint8())


class _StringChunk:
    """Leaf chunk carrying UTF-8 text sized by the chunk's data length."""

    CHUNK_ID: ClassVar[int]
    has_unknown_chunks: ClassVar[bool] = False

    @property
    def chunk_id(self) -> int:
        return self.CHUNK_ID

    def to_node(self) -> ChunkNode:
        return ChunkNode(self.CHUNK_ID, self.name.encode("utf-8"))

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader):
        return cls(body.read_string(body.remaining))


# ---------------------------------------------------------------------------
# Data tracker fields
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _VectorChunk:
    x: float
    y: float
    z: float

    CHUNK_ID: ClassVar[int]
    has_unknown_chunks: ClassVar[bool] = False

    def __post_init__(self):
        # Values travel as float32; store what a receiver will see
        object.__setattr__(self, "x", to_float32(self.x))
        object.__setattr__(self, "y", to_float32(self.y))
        object.__setattr__(self, "z", to_float32(self.z))

    @property
    def chunk_id(self) -> int:
        return self.CHUNK_ID

    @property
    def vector(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def to_node(self) -> ChunkNode:
        return ChunkNode(self.CHUNK_ID, _VECTOR3.pack(self.x, self.y, self.z))

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader):
        return cls(*body.read_vector3())


class PositionChunk(_VectorChunk):
    CHUNK_ID = 0x0000


class SpeedChunk(_VectorChunk):
    CHUNK_ID = 0x0001


class OrientationChunk(_VectorChunk):
    CHUNK_ID = 0x0002


class AccelerationChunk(_VectorChunk):
    CHUNK_ID = 0x0004


class TargetPositionChunk(_VectorChunk):
    CHUNK_ID = 0x0005


@dataclass(frozen=True)
class StatusChunk:
    """Tracker status. Validity is a float32 confidence value."""

    validity: float

    CHUNK_ID: ClassVar[int] = 0x0003
    has_unknown_chunks: ClassVar[bool] = False

    def __post_init__(self):
        object.__setattr__(self, "validity", to_float32(self.validity))

    @property
    def chunk_id(self) -> int:
        return self.CHUNK_ID

    def to_node(self) -> ChunkNode:
        return ChunkNode(self.CHUNK_ID, _FLOAT32.pack(self.validity))

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader) -> "StatusChunk":
        return cls(body.read_float32())


@dataclass(frozen=True)
class TimestampChunk:
    """Per-tracker timestamp (u64)."""

    timestamp: int

    CHUNK_ID: ClassVar[int] = 0x0006
    has_unknown_chunks: ClassVar[bool] = False

    def __post_init__(self):
        _check_range("timestamp", self.timestamp, 0, 0xFFFFFFFFFFFFFFFF)

    @property
    def chunk_id(self) -> int:
        return self.CHUNK_ID

    def to_node(self) -> ChunkNode:
        return ChunkNode(self.CHUNK_ID, _UINT64.pack(self.timestamp))

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader) -> "TimestampChunk":
        return cls(body.read_uint64())


DataTrackerField = Union[PositionChunk, SpeedChunk, OrientationChunk, StatusChunk,
                         AccelerationChunk, TargetPositionChunk, TimestampChunk, UnknownChunk]

DATA_TRACKER_DECODERS = {
    PositionChunk.CHUNK_ID: PositionChunk.decode,
    SpeedChunk.CHUNK_ID: SpeedChunk.decode,
    OrientationChunk.CHUNK_ID: OrientationChunk.decode,
    StatusChunk.CHUNK_ID: StatusChunk.decode,
    AccelerationChunk.CHUNK_ID: AccelerationChunk.decode,
    TargetPositionChunk.CHUNK_ID: TargetPositionChunk.decode,
    TimestampChunk.CHUNK_ID: TimestampChunk.decode,
}


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

def _decode_children(header: ChunkHeader, body: ChunkReader, decoders) -> tuple:
    """Decode every sub-chunk in body, dispatching on the container's own table."""
    if not header.has_children:
        body.read_bytes(body.remaining)
        return ()
    chunks = []
    while not body.at_end():
        child_header = body.read_header()
        child_body = body.sub_reader(child_header.data_length)
        decoder = decoders.get(child_header.chunk_id, UnknownChunk.decode)
        chunks.append(decoder(child_header, child_body))
    return tuple(chunks)


class _ContainerChunk:
    """Mixin for chunks made only of sub-chunks held in `chunks`."""

    CHUNK_ID: ClassVar[int]

    @property
    def chunk_id(self) -> int:
        return self.CHUNK_ID

    @property
    def has_unknown_chunks(self) -> bool:
        return any(c.has_unknown_chunks for c in self.chunks)

    @property
    def unknown_chunks(self):
        return [c for c in self.chunks if isinstance(c, UnknownChunk)]

    def chunks_of(self, chunk_type) -> list:
        return [c for c in self.chunks if isinstance(c, chunk_type)]

    def to_node(self) -> ChunkNode:
        return ChunkNode(self.chunk_id, children=[c.to_node() for c in self.chunks])


@dataclass(frozen=True)
class DataTrackerChunk(_ContainerChunk):
    """One tracker inside a data packet. Its chunk id is the tracker id."""

    tracker_id: int
    chunks: Tuple[DataTrackerField, ...] = ()

    def __post_init__(self):
        _check_range("tracker_id", self.tracker_id, 0, 0xFFFF)
        object.__setattr__(self, "chunks", tuple(self.chunks))

    @property
    def chunk_id(self) -> int:
        return self.tracker_id

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader) -> "DataTrackerChunk":
        return cls(header.chunk_id, _decode_children(header, body, DATA_TRACKER_DECODERS))


@dataclass(frozen=True)
class DataTrackerListChunk(_ContainerChunk):
    chunks: Tuple[DataTrackerChunk, ...] = ()

    CHUNK_ID: ClassVar[int] = 0x0001

    def __post_init__(self):
        object.__setattr__(self, "chunks", tuple(self.chunks))

    @property
    def trackers(self) -> Tuple[DataTrackerChunk, ...]:
        return self.chunks

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader) -> "DataTrackerListChunk":
        # Every sub-chunk id is a tracker id, so there is no id table at this level
        return cls(_decode_children(header, body, _AnyIdDecoders(DataTrackerChunk.decode)))


@dataclass(frozen=True)
class TrackerNameChunk(_StringChunk):
    name: str

    CHUNK_ID: ClassVar[int] = 0x0000


InfoTrackerField = Union[TrackerNameChunk, UnknownChunk]

INFO_TRACKER_DECODERS = {
    TrackerNameChunk.CHUNK_ID: TrackerNameChunk.decode,
}


@dataclass(frozen=True)
class InfoTrackerChunk(_ContainerChunk):
    """One tracker inside an info packet. Its chunk id is the tracker id."""

    tracker_id: int
    chunks: Tuple[InfoTrackerField, ...] = ()

    def __post_init__(self):
        _check_range("tracker_id", self.tracker_id, 0, 0xFFFF)
        object.__setattr__(self, "chunks", tuple(self.chunks))

    @property
    def chunk_id(self) -> int:
        return self.tracker_id

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader) -> "InfoTrackerChunk":
        return cls(header.chunk_id, _decode_children(header, body, INFO_TRACKER_DECODERS))


@dataclass(frozen=True)
class InfoTrackerListChunk(_ContainerChunk):
    chunks: Tuple[InfoTrackerChunk, ...] = ()

    CHUNK_ID: ClassVar[int] = 0x0002

    def __post_init__(self):
        object.__setattr__(self, "chunks", tuple(self.chunks))

    @property
    def trackers(self) -> Tuple[InfoTrackerChunk, ...]:
        return self.chunks

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader) -> "InfoTrackerListChunk":
        return cls(_decode_children(header, body, _AnyIdDecoders(InfoTrackerChunk.decode)))


@dataclass(frozen=True)
class SystemNameChunk(_StringChunk):
    name: str

    CHUNK_ID: ClassVar[int] = 0x0001


class _AnyIdDecoders:
    """Decoder table that maps every chunk id to one decoder."""

    def __init__(self, decoder):
        self.decoder = decoder

    def get(self, chunk_id, default=None):
        return self.decoder


DataPacketChunk = Union[FrameHeaderChunk, DataTrackerListChunk, UnknownChunk]
InfoPacketChunk = Union[FrameHeaderChunk, SystemNameChunk, InfoTrackerListChunk, UnknownChunk]

DATA_PACKET_DECODERS = {
    FrameHeaderChunk.CHUNK_ID: FrameHeaderChunk.decode,
    DataTrackerListChunk.CHUNK_ID: DataTrackerListChunk.decode,
}

INFO_PACKET_DECODERS = {
    FrameHeaderChunk.CHUNK_ID: FrameHeaderChunk.decode,
    SystemNameChunk.CHUNK_ID: SystemNameChunk.decode,
    InfoTrackerListChunk.CHUNK_ID: InfoTrackerListChunk.decode,
}


# ---------------------------------------------------------------------------
# Packets
# ---------------------------------------------------------------------------

class _PacketChunk(_ContainerChunk):

    def _single(self, chunk_type):
        found = self.chunks_of(chunk_type)
        return found[0] if len(found) == 1 else None

    @property
    def header(self) -> Optional[FrameHeaderChunk]:
        """The frame header, or None unless exactly one is present."""
        return self._single(FrameHeaderChunk)

    def encode(self) -> bytes:
        return encode_chunk(self.to_node())


@dataclass(frozen=True)
class DataPacket(_PacketChunk):
    chunks: Tuple[DataPacketChunk, ...] = ()

    CHUNK_ID: ClassVar[int] = DATA_PACKET_ID
    kind: ClassVar[PacketKind] = PacketKind.DATA

    def __post_init__(self):
        object.__setattr__(self, "chunks", tuple(self.chunks))

    @classmethod
    def create(cls, header: FrameHeaderChunk, trackers) -> "DataPacket":
        return cls((header, DataTrackerListChunk(tuple(trackers))))

    @property
    def tracker_list(self) -> Optional[DataTrackerListChunk]:
        return self._single(DataTrackerListChunk)

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader) -> "DataPacket":
        return cls(_decode_children(header, body, DATA_PACKET_DECODERS))


@dataclass(frozen=True)
class InfoPacket(_PacketChunk):
    chunks: Tuple[InfoPacketChunk, ...] = ()

    CHUNK_ID: ClassVar[int] = INFO_PACKET_ID
    kind: ClassVar[PacketKind] = PacketKind.INFO

    def __post_init__(self):
        object.__setattr__(self, "chunks", tuple(self.chunks))

    @classmethod
    def create(cls, header: FrameHeaderChunk, system_name: str, trackers) -> "InfoPacket":
        return cls((header, SystemNameChunk(system_name), InfoTrackerListChunk(tuple(trackers))))

    @property
    def system_name(self) -> Optional[str]:
        chunk = self._single(SystemNameChunk)
        return chunk.name if chunk is not None else None

    @property
    def tracker_list(self) -> Optional[InfoTrackerListChunk]:
        return self._single(InfoTrackerListChunk)

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader) -> "InfoPacket":
        return cls(_decode_children(header, body, INFO_PACKET_DECODERS))


@dataclass(frozen=True)
class UnknownPacket:
    """A packet with an unrecognised root id. Its body is not parsed."""

    chunk_id: int
    data: bytes = b""
    has_children: bool = False

    kind: ClassVar[PacketKind] = PacketKind.UNKNOWN
    has_unknown_chunks: ClassVar[bool] = True
    header: ClassVar[None] = None

    def to_node(self) -> ChunkNode:
        return ChunkNode(self.chunk_id, self.data, force_has_children=self.has_children)

    def encode(self) -> bytes:
        return encode_chunk(self.to_node())

    @classmethod
    def decode(cls, header: ChunkHeader, body: ChunkReader) -> "UnknownPacket":
        return cls(header.chunk_id, body.read_bytes(body.remaining), header.has_children)


Packet = Union[DataPacket, InfoPacket, UnknownPacket]

PACKET_DECODERS = {
    DATA_PACKET_ID: DataPacket.decode,
    INFO_PACKET_ID: InfoPacket.decode,
}


def encode_packet(packet: Packet) -> bytes:
    """Serialize a packet to bytes."""
    return packet.encode()


def decode_packet(data: bytes) -> Packet:
    """
    Decode one PSN packet.

    Bytes after the root chunk are ignored.

    Raises:
        ChunkDecodeError: If data is empty or any declared length overruns the buffer
    """
    if not data:
        raise ChunkDecodeError("Empty packet")
    reader = ChunkReader(data)
    header = reader.read_header()
    body = reader.sub_reader(header.data_length)
    decoder = PACKET_DECODERS.get(header.chunk_id, UnknownPacket.decode)
    return decoder(header, body)


def describe_packet(packet: Packet) -> str:
    """Render a decoded packet as an indented multi-line string."""
    lines = []
    _describe(packet, 0, lines)
    return "\n".join(lines)


def _describe(chunk, depth, lines):
    fields = []
    for f in dataclasses.fields(chunk):
        if f.name == "chunks":
            continue
        value = getattr(chunk, f.name)
        if isinstance(value, bytes):
            value = f"<{len(value)} bytes>"
        fields.append(f"{f.name}={value}")
    lines.append("  " * depth + f"{type(chunk).__name__}({', '.join(fields)})")
    for child in getattr(chunk, "chunks", ()):
        _describe(child, depth + 1, lines)
