"""
Chunks - PosiStageNet binary chunk format.

Every PSN message is a tree of chunks. Each chunk starts with a 4-byte
little-endian header (16-bit id, 15-bit data length, 1-bit has-sub-chunks
flag) followed by either raw data or sub-chunks.

Example usage:
    from psn_sdk_python.chunks import decode_packet

    packet = decode_packet(data)
    if packet.kind == PacketKind.DATA:
        for tracker in packet.tracker_list.trackers:
            print(tracker.tracker_id, tracker.chunks)
"""

from .chunk_header import CHUNK_HEADER_LENGTH, MAX_DATA_LENGTH, ChunkHeader
from .chunk_reader import ChunkDecodeError, ChunkReader
from .chunk_tree import ChunkNode, decode_chunk_tree, encode_chunk
from .packet_chunks import (
    DATA_PACKET_ID,
    INFO_PACKET_ID,
    AccelerationChunk,
    DataPacket,
    DataTrackerChunk,
    DataTrackerListChunk,
    FrameHeaderChunk,
    InfoPacket,
    InfoTrackerChunk,
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
    UnknownChunk,
    UnknownPacket,
    decode_packet,
    describe_packet,
    encode_packet,
)

__all__ = [
    "CHUNK_HEADER_LENGTH",
    "MAX_DATA_LENGTH",
    "ChunkHeader",
    "ChunkDecodeError",
    "ChunkReader",
    "ChunkNode",
    "decode_chunk_tree",
    "encode_chunk",
    "DATA_PACKET_ID",
    "INFO_PACKET_ID",
    "AccelerationChunk",
    "DataPacket",
    "DataTrackerChunk",
    "DataTrackerListChunk",
    "FrameHeaderChunk",
    "InfoPacket",
    "InfoTrackerChunk",
    "InfoTrackerListChunk",
    "OrientationChunk",
    "PacketKind",
    "PositionChunk",
    "SpeedChunk",
    "StatusChunk",
    "SystemNameChunk",
    "TargetPositionChunk",
    "TimestampChunk",
    "TrackerNameChunk",
    "UnknownChunk",
    "UnknownPacket",
    "decode_packet",
    "describe_packet",
    "encode_packet",
]
