"""
PSN SDK Python - PosiStageNet tracking data over UDP multicast.

This package provides tools for sending and receiving PosiStageNet (PSN)
tracker data, the protocol used to share real-time 3D positions between
stage automation, lighting and media server systems.

Main classes:
    - PsnClient: Receives PSN packets and reassembles multi-packet frames
    - PsnServer: Sends PSN data and info frames at fixed rates
    - Tracker: Immutable state of one tracked object

Example usage:
    from psn_sdk_python import PsnClient, PsnServer, Tracker

    # Send
    server = PsnServer("MyServer")
    server.set_trackers([Tracker(0, name="Tracker 0", position=(0.0, 0.0, 0.0))])
    server.start_sending()

    # Receive
    client = PsnClient()
    client.start()

    # Main loop
    while running:
        trackers = client.get_latest_update()
        if trackers:
            for tracker in trackers.values():
                print(tracker.tracker_id, tracker.position)

    # Cleanup
    client.stop()
    server.close()
"""

from .chunks import ChunkDecodeError, decode_packet, encode_packet, describe_packet
from .client import PsnClient, FrameReassembler, NoticeKind, ReassemblyNotice
from .server import PsnServer, FragmentationError, fragment_data_frame, fragment_info_frame
from .tracker import Tracker, TrackerStore
from .utils import DEFAULT_MULTICAST_IP, DEFAULT_PORT

__version__ = "0.1.0"
__all__ = [
    "PsnClient",
    "PsnServer",
    "Tracker",
    "TrackerStore",
    "FrameReassembler",
    "NoticeKind",
    "ReassemblyNotice",
    "FragmentationError",
    "ChunkDecodeError",
    "fragment_data_frame",
    "fragment_info_frame",
    "decode_packet",
    "encode_packet",
    "describe_packet",
    "DEFAULT_MULTICAST_IP",
    "DEFAULT_PORT",
]
