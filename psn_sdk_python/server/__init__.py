"""
PsnServer - Periodic PosiStageNet sender and frame fragmentation.
"""

from .fragmenter import (
    MAX_PACKET_LENGTH,
    VERSION_HIGH,
    VERSION_LOW,
    FragmentationError,
    check_trackers_fit,
    fragment_data_frame,
    fragment_info_frame,
    partition_chunks,
)
from .psn_server import DEFAULT_DATA_SEND_FREQUENCY, DEFAULT_INFO_SEND_FREQUENCY, PsnServer

__all__ = [
    "PsnServer",
    "FragmentationError",
    "MAX_PACKET_LENGTH",
    "VERSION_HIGH",
    "VERSION_LOW",
    "DEFAULT_DATA_SEND_FREQUENCY",
    "DEFAULT_INFO_SEND_FREQUENCY",
    "check_trackers_fit",
    "fragment_data_frame",
    "fragment_info_frame",
    "partition_chunks",
]
