"""
Fragmenter - Split one data or info frame into packets that fit the MTU.

Trackers are placed first-fit in input order: when the next tracker chunk does
not fit in the current packet's budget, the packet is closed and the tracker
starts a new one. The frame packet count is only known once every tracker is
placed, so headers are stamped after partitioning.
"""

from ..chunks.chunk_header import CHUNK_HEADER_LENGTH
from ..chunks.packet_chunks import (
    FRAME_HEADER_DATA_LENGTH,
    DataPacket,
    FrameHeaderChunk,
    InfoPacket,
    SystemNameChunk,
)


MAX_PACKET_LENGTH = 1500
VERSION_HIGH = 2
VERSION_LOW = 3

FRAME_HEADER_CHUNK_LENGTH = CHUNK_HEADER_LENGTH + FRAME_HEADER_DATA_LENGTH


class FragmentationError(ValueError):
    """Raised when trackers cannot be split into packets of the allowed size."""


def data_tracker_budget(max_packet_length=MAX_PACKET_LENGTH):
    """Bytes available for tracker chunks in one data packet."""
    return max_packet_length - (
        CHUNK_HEADER_LENGTH            # root chunk header
        + FRAME_HEADER_CHUNK_LENGTH    # frame header chunk
        + CHUNK_HEADER_LENGTH)         # tracker list chunk header


def info_tracker_budget(system_name, max_packet_length=MAX_PACKET_LENGTH):
    """Bytes available for tracker chunks in one info packet."""
    budget = (data_tracker_budget(max_packet_length)
              - SystemNameChunk(system_name).to_node().encoded_length)
    if budget < 0:
        raise FragmentationError(f"System name is too long for a {max_packet_length} byte packet")
    return budget


def partition_chunks(chunks, budget):
    """
    Partition tracker chunks first-fit into groups whose encoded size fits budget.

    Args:
        chunks: Tracker chunks in send order
        budget: Bytes available for tracker chunks in one packet

    Returns:
        List of lists of chunks; always at least one (possibly empty) group

    Raises:
        FragmentationError: If a single chunk is larger than budget
    """
    groups = [[]]
    used = 0
    for chunk in chunks:
        length = chunk.to_node().encoded_length
        if length > budget:
            raise FragmentationError(
                f"Tracker {chunk.tracker_id} needs {length} bytes, "
                f"only {budget} bytes fit in one packet")
        if used + length > budget and groups[-1]:
            groups.append([])
            used = 0
        groups[-1].append(chunk)
        used += length
    if len(groups) > 255:
        raise FragmentationError(f"Frame needs {len(groups)} packets, at most 255 allowed")
    return groups


def check_trackers_fit(trackers, system_name, max_packet_length=MAX_PACKET_LENGTH):
    """
    Check that a whole tracker set can be sent as one data frame and one info frame.

    Raises:
        FragmentationError: If a tracker chunk cannot fit in one packet or a frame
            would need more than 255 packets
    """
    trackers = list(trackers)
    partition_chunks([t.to_data_tracker_chunk() for t in trackers],
                     data_tracker_budget(max_packet_length))
    partition_chunks([t.to_info_tracker_chunk() for t in trackers],
                     info_tracker_budget(system_name, max_packet_length))


def fragment_data_frame(trackers, timestamp, frame_id,
                        version_high=VERSION_HIGH, version_low=VERSION_LOW,
                        max_packet_length=MAX_PACKET_LENGTH):
    """
    Build the data packets for one frame.

    Args:
        trackers: Iterable of Tracker, in send order
        timestamp: Frame timestamp in microseconds
        frame_id: Frame id (0-255)
        version_high, version_low: Protocol version stamped on every packet
        max_packet_length: Largest encoded packet size in bytes

    Returns:
        List of DataPacket sharing one frame header
    """
    groups = partition_chunks([t.to_data_tracker_chunk() for t in trackers],
                              data_tracker_budget(max_packet_length))
    header = FrameHeaderChunk(timestamp, version_high, version_low, frame_id, len(groups))
    return [DataPacket.create(header, group) for group in groups]


def fragment_info_frame(trackers, system_name, timestamp, frame_id,
                        version_high=VERSION_HIGH, version_low=VERSION_LOW,
                        max_packet_length=MAX_PACKET_LENGTH):
    """
    Build the info packets for one frame. Every packet repeats the system name.

    Returns:
        List of InfoPacket sharing one frame header
    """
    groups = partition_chunks([t.to_info_tracker_chunk() for t in trackers],
                              info_tracker_budget(system_name, max_packet_length))
    header = FrameHeaderChunk(timestamp, version_high, version_low, frame_id, len(groups))
    return [InfoPacket.create(header, system_name, group) for group in groups]
