import pytest

from psn_sdk_python.chunks import FrameHeaderChunk


class FakeTransport:
    """Records datagrams instead of putting them on the network."""

    def __init__(self):
        self.sent = []
        self.closed = False

    def send(self, data, destination):
        self.sent.append((data, destination))

    def close(self):
        self.closed = True

    @property
    def datagrams(self):
        return [data for data, _ in self.sent]


@pytest.fixture
def transport():
    return FakeTransport()


def frame_header(timestamp=1000, frame_id=0, frame_packet_count=1):
    return FrameHeaderChunk(timestamp, 2, 3, frame_id, frame_packet_count)
