"""
PsnServer - Periodic PosiStageNet sender.

Serializes the current tracker set into data and info frames and sends them
to the PSN multicast group at fixed rates from two background threads.
"""

import threading
import time
from types import MappingProxyType

from loop_rate_limiters import RateLimiter

from ..utils.net_utils import DEFAULT_MULTICAST_IP, DEFAULT_PORT, UdpSender, validate_endpoint
from .fragmenter import (
    MAX_PACKET_LENGTH,
    VERSION_HIGH,
    VERSION_LOW,
    check_trackers_fit,
    fragment_data_frame,
    fragment_info_frame,
)


DEFAULT_DATA_SEND_FREQUENCY = 60.0
DEFAULT_INFO_SEND_FREQUENCY = 1.0


class PsnServer:
    """
    Sends PSN data and info packets for a set of trackers.

    The tracker set is replaced as a whole on every change, so a send thread
    always serializes a consistent set. Data and info frames carry independent
    frame id counters.

    Example usage:
        server = PsnServer("ExampleServer")
        server.set_trackers([Tracker(0, name="Tracker 0", position=(0.0, 0.0, 0.0))])
        server.start_sending()

        # Move a tracker
        server.update_trackers([server.trackers[0].with_position((1.0, 0.0, 0.0))])

        server.close()
    """

    def __init__(
        self,
        system_name: str,
        multicast_ip: str = DEFAULT_MULTICAST_IP,
        port: int = DEFAULT_PORT,
        data_send_frequency: float = DEFAULT_DATA_SEND_FREQUENCY,
        info_send_frequency: float = DEFAULT_INFO_SEND_FREQUENCY,
        local_ip: str = None,
        transport=None,
        verbose: bool = False,
    ):
        """
        Initialize the PsnServer.

        Args:
            system_name: Name identifying this server in info packets
            multicast_ip: Destination multicast group (default: 236.10.10.10)
            port: Destination UDP port (default: 56565)
            data_send_frequency: Data frames per second while sending automatically
            info_send_frequency: Info frames per second while sending automatically
            local_ip: IP of the network interface to send on (default: OS choice)
            transport: Object with send(data, destination); defaults to a UdpSender
            verbose: Print a line for every frame sent
        """
        if system_name is None:
            raise ValueError("system_name must not be None")
        validate_endpoint(multicast_ip, port)
        if data_send_frequency <= 0:
            raise ValueError(f"data_send_frequency must be greater than 0, got {data_send_frequency}")
        if info_send_frequency <= 0:
            raise ValueError(f"info_send_frequency must be greater than 0, got {info_send_frequency}")

        self.system_name = system_name
        self.multicast_ip = multicast_ip
        self.port = port
        self.destination = (multicast_ip, port)
        self.data_send_frequency = data_send_frequency
        self.info_send_frequency = info_send_frequency
        self.local_ip = local_ip
        self.verbose = verbose
        self.transport = transport if transport is not None else UdpSender(local_ip)

        self.lock = threading.Lock()
        self.send_lock = threading.Lock()
        self._trackers = {}
        self.data_frame_id = 0
        self.info_frame_id = 0
        self.stop_event = threading.Event()
        self.data_thread = None
        self.info_thread = None
        self.is_sending_automatic = False
        self.closed = False
        self._timestamp_reference = time.perf_counter()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def trackers(self):
        """Read-only snapshot of the trackers being sent, keyed by tracker id."""
        return MappingProxyType(self._trackers)

    @property
    def current_timestamp(self) -> int:
        """Microseconds elapsed since the timestamp reference."""
        return int((time.perf_counter() - self._timestamp_reference) * 1e6)

    def reset_timestamp_reference(self):
        self._timestamp_reference = time.perf_counter()

    def set_trackers(self, trackers):
        """
        Replace the whole tracker set.

        Raises:
            FragmentationError: If a tracker is too large to fit in one packet or
                the set needs more than 255 packets per frame
        """
        new_trackers = {tracker.tracker_id: tracker for tracker in trackers or ()}
        check_trackers_fit(new_trackers.values(), self.system_name)
        with self.lock:
            self._trackers = new_trackers

    def update_trackers(self, trackers):
        """
        Replace or add the given trackers, keeping all others.

        Raises:
            FragmentationError: If the resulting set cannot be sent, as for set_trackers
        """
        with self.lock:
            new_trackers = dict(self._trackers)
            for tracker in trackers:
                new_trackers[tracker.tracker_id] = tracker
            check_trackers_fit(new_trackers.values(), self.system_name)
            self._trackers = new_trackers

    def remove_trackers(self, tracker_ids) -> bool:
        """
        Remove trackers by id.

        Returns:
            False if any id was not present
        """
        found_all = True
        with self.lock:
            new_trackers = dict(self._trackers)
            for tracker_id in tracker_ids:
                if new_trackers.pop(tracker_id, None) is None:
                    found_all = False
            self._trackers = new_trackers
        return found_all

    def remove_all_trackers(self):
        with self.lock:
            self._trackers = {}

    def start_sending(self, reset_timestamp_reference: bool = False):
        """
        Start sending data and info frames at their configured rates.

        Raises:
            RuntimeError: If closed or already sending
        """
        if self.closed:
            raise RuntimeError("Cannot start sending, server is closed")
        if self.is_sending_automatic:
            raise RuntimeError("Cannot start sending, server is already sending")
        if reset_timestamp_reference:
            self.reset_timestamp_reference()

        self.stop_event.clear()
        self.is_sending_automatic = True
        self.data_thread = threading.Thread(
            target=self._send_loop, args=(self._send_data_frame, self.data_send_frequency), daemon=True)
        self.info_thread = threading.Thread(
            target=self._send_loop, args=(self._send_info_frame, self.info_send_frequency), daemon=True)
        self.data_thread.start()
        self.info_thread.start()
        print(f"[PsnServer] Sending to {self.multicast_ip}:{self.port} "
              f"(data {self.data_send_frequency:g} Hz, info {self.info_send_frequency:g} Hz)")

    def stop_sending(self):
        """
        Stop both send threads and wait for any frame in flight.

        Raises:
            RuntimeError: If not sending
        """
        if not self.is_sending_automatic:
            raise RuntimeError("Cannot stop sending, server is not currently sending")
        self.stop_event.set()
        for thread in (self.data_thread, self.info_thread):
            if thread is not None and thread is not threading.current_thread():
                thread.join()
        self.data_thread = None
        self.info_thread = None
        self.is_sending_automatic = False
        print("[PsnServer] Stopped")

    def send_data(self):
        """
        Send one data frame now.

        Raises:
            RuntimeError: While automatic sending is active
        """
        if self.is_sending_automatic:
            raise RuntimeError("Cannot send data while automatic sending is active")
        self._send_data_frame()

    def send_info(self):
        """
        Send one info frame now.

        Raises:
            RuntimeError: While automatic sending is active
        """
        if self.is_sending_automatic:
            raise RuntimeError("Cannot send info while automatic sending is active")
        self._send_info_frame()

    def send_custom_packet(self, packet):
        """
        Send any encodable packet.

        Raises:
            ValueError: If the encoded packet is longer than 1500 bytes
        """
        data = packet.encode()
        if len(data) > MAX_PACKET_LENGTH:
            raise ValueError(
                f"Serialized packet length ({len(data)}) is longer than "
                f"maximum PosiStageNet packet length ({MAX_PACKET_LENGTH})")
        self._send(data)

    def close(self):
        """Stop sending and release the transport."""
        if self.closed:
            return
        if self.is_sending_automatic:
            self.stop_sending()
        self.transport.close()
        self.closed = True

    def _send(self, data):
        with self.send_lock:
            self.transport.send(data, self.destination)

    def _send_data_frame(self):
        trackers = self._trackers
        packets = fragment_data_frame(
            trackers.values(), self.current_timestamp, self.data_frame_id,
            VERSION_HIGH, VERSION_LOW, MAX_PACKET_LENGTH)
        for packet in packets:
            self._send(packet.encode())
        self.data_frame_id = (self.data_frame_id + 1) % 256
        if self.verbose:
            print(f"[PsnServer] Data frame: {len(trackers)} trackers in {len(packets)} packets")

    def _send_info_frame(self):
        trackers = self._trackers
        packets = fragment_info_frame(
            trackers.values(), self.system_name, self.current_timestamp, self.info_frame_id,
            VERSION_HIGH, VERSION_LOW, MAX_PACKET_LENGTH)
        for packet in packets:
            self._send(packet.encode())
        self.info_frame_id = (self.info_frame_id + 1) % 256
        if self.verbose:
            print(f"[PsnServer] Info frame: {len(trackers)} trackers in {len(packets)} packets")

    def _send_loop(self, send_frame, frequency):
        """Background thread that sends one kind of frame at a fixed rate."""
        rate_limiter = RateLimiter(frequency=frequency, warn=False)
        while not self.stop_event.is_set():
            try:
                send_frame()
            except (OSError, ValueError) as e:
                print(f"[PsnServer] Send error: {e}")
            rate_limiter.sleep()
