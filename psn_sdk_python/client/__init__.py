"""
PsnClient - Real-time PosiStageNet receiver.

Example usage:
    from psn_sdk_python.client import PsnClient

    client = PsnClient()
    client.invalid_packet_listener = lambda notice: print(notice)
    client.start()

    while running:
        trackers = client.get_latest_update()
        if trackers:
            print(f"{len(trackers)} trackers")

    client.stop()
"""

from .psn_client import PsnClient
from .reassembler import (
    FrameReassembler,
    FrameUpdate,
    NoticeKind,
    ReassemblyNotice,
    ReassemblyResult,
    ReassemblyState,
)

__all__ = [
    "PsnClient",
    "FrameReassembler",
    "FrameUpdate",
    "NoticeKind",
    "ReassemblyNotice",
    "ReassemblyResult",
    "ReassemblyState",
]
