"""
PsnClient - Real-time PosiStageNet receiver.

This module provides the PsnClient class for receiving PSN data and info
packets over UDP multicast. It decodes each datagram, reassembles frames that
span several packets, and keeps the last known state of every tracker in a
background thread.
"""

import socket
import threading
import time
from collections import deque

from ..chunks.chunk_reader import ChunkDecodeError
from ..chunks.packet_chunks import PacketKind, decode_packet
from ..tracker.tracker_store import TrackerStore
from ..utils.net_utils import (
    DEFAULT_MULTICAST_IP,
    DEFAULT_PORT,
    create_receiver_socket,
    leave_multicast_group,
    validate_endpoint,
)
from .reassembler import FrameReassembler, NoticeKind


class PsnClient:
    """
    Manages PSN reception and frame reassembly in a background thread.

    The data flow:
    1. UDP datagrams arrive on the PSN multicast group
    2. Each datagram is decoded into a data, info or unknown packet
    3. Data and info packets go to their own FrameReassembler
    4. Completed frames update the tracker store and fire listeners

    Listeners are plain attributes; set any of them to a callable:
        trackers_updated_listener(trackers)   complete frame merged
        data_packet_listener(packet)          well-formed data packet received
        info_packet_listener(packet)          well-formed info packet received
        unknown_packet_listener(packet)       packet with unrecognised root id
        unknown_chunks_listener(packet)       packet holding unrecognised chunks
        invalid_packet_listener(notice)       ReassemblyNotice for rejected packets
        system_name_listener(name)            remote system name changed

    Listeners run on the receive thread. None of them fires after stop() returns.

    Example usage:
        client = PsnClient()
        client.start()

        while running:
            trackers = client.get_latest_update()
            if trackers:
                for tracker in trackers.values():
                    print(tracker)

        client.stop()
    """

    def __init__(
        self,
        local_ip: str = "0.0.0.0",
        multicast_ip: str = DEFAULT_MULTICAST_IP,
        port: int = DEFAULT_PORT,
        is_strict: bool = True,
        verbose: bool = False,
    ):
        """
        Initialize the PsnClient.

        Args:
            local_ip: IP of the network interface to join the multicast group on
            multicast_ip: PSN multicast group (default: 236.10.10.10)
            port: UDP port to listen on (default: 56565)
            is_strict: Discard whole frames containing an imperfect tracker
            verbose: Print a line for every dropped or rejected packet
        """
        validate_endpoint(multicast_ip, port)
        self.local_ip = local_ip
        self.multicast_ip = multicast_ip
        self.port = port
        self.is_strict = is_strict
        self.verbose = verbose

        self.thread = None
        self.sock = None
        self.running = False
        self.stop_requested = False
        # Listeners run under this lock and may call back into the client
        self.lock = threading.RLock()

        self.store = TrackerStore()
        self.data_reassembler = FrameReassembler(PacketKind.DATA, self.store, is_strict)
        self.info_reassembler = FrameReassembler(PacketKind.INFO, self.store, is_strict)
        self.ready_updates = deque(maxlen=4)
        self.remote_system_name = None
        self.dropped_packet_count = 0
        self.recv_count = 0
        self.last_rate_time = time.time()
        self.recv_rate_hz = 0.0

        self.trackers_updated_listener = None
        self.data_packet_listener = None
        self.info_packet_listener = None
        self.unknown_packet_listener = None
        self.unknown_chunks_listener = None
        self.invalid_packet_listener = None
        self.system_name_listener = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.running:
            self.stop()

    @property
    def is_listening(self) -> bool:
        return self.running

    @property
    def trackers(self):
        """Read-only snapshot of every tracker seen so far, keyed by tracker id."""
        return self.store.snapshot()

    def reset(self):
        """Reset all internal state and buffers."""
        with self.lock:
            self.data_reassembler.reset()
            self.info_reassembler.reset()
            self.store.clear()
            self.ready_updates.clear()
            self.remote_system_name = None
            self.dropped_packet_count = 0
            self.recv_count = 0
            self.recv_rate_hz = 0.0

    def start(self):
        """
        Join the multicast group and start the receive thread.

        Raises:
            RuntimeError: If already listening
            OSError: If the socket cannot be bound
        """
        if self.running:
            raise RuntimeError("Cannot start listening, client is already listening")
        self.reset()
        self.stop_requested = False
        self.sock = create_receiver_socket(self.multicast_ip, self.port, self.local_ip)
        self.running = True
        self.thread = threading.Thread(target=self._udp_server_loop, daemon=True)
        self.thread.start()
        print(f"[PsnClient] Listening on {self.multicast_ip}:{self.port}")

    def stop(self):
        """
        Stop the receive thread and leave the multicast group.

        Blocks until the receive thread has finished handling its last datagram.

        Raises:
            RuntimeError: If not listening
        """
        if not self.running:
            raise RuntimeError("Cannot stop listening, client is not currently listening")
        with self.lock:
            self.running = False
            self.stop_requested = True
        if self.thread is not None and self.thread is not threading.current_thread():
            self.thread.join()
        if self.sock is not None:
            leave_multicast_group(self.sock, self.multicast_ip, self.local_ip)
            try:
                self.sock.close()
            except OSError:
                pass
        self.thread = None
        self.sock = None
        print("[PsnClient] Stopped")

    def get_latest_update(self):
        """
        Get the tracker snapshot from the most recent complete frame, clearing older ones.

        Returns:
            Read-only mapping of tracker id -> Tracker, or None if no frame completed
        """
        with self.lock:
            if not self.ready_updates:
                return None
            trackers = self.ready_updates.pop()
            self.ready_updates.clear()
            return trackers

    def get_receive_rate(self):
        """
        Get the current packet receive rate.

        Returns:
            Receive rate in Hz (packets per second)
        """
        return self.recv_rate_hz

    def process_datagram(self, data: bytes):
        """
        Handle one received datagram.

        Undecodable datagrams are counted in dropped_packet_count and otherwise
        ignored. Everything else runs under the client lock, so packets are
        reassembled strictly in the order they are handed in.
        """
        try:
            packet = decode_packet(data)
        except ChunkDecodeError as e:
            with self.lock:
                self.dropped_packet_count += 1
            if self.verbose:
                print(f"[PsnClient] Dropped undecodable packet: {e}")
            return

        with self.lock:
            self._update_rate()

            if packet.kind == PacketKind.UNKNOWN:
                self._notify(self.unknown_packet_listener, packet)
                return
            if packet.has_unknown_chunks:
                self._notify(self.unknown_chunks_listener, packet)

            if packet.kind == PacketKind.DATA:
                result = self.data_reassembler.add_packet(packet)
            else:
                result = self.info_reassembler.add_packet(packet)

            for notice in result.notices:
                if self.verbose:
                    print(f"[PsnClient] {notice}")
                self._notify(self.invalid_packet_listener, notice)

            if not any(n.kind == NoticeKind.MALFORMED_PACKET for n in result.notices):
                if packet.kind == PacketKind.DATA:
                    self._notify(self.data_packet_listener, packet)
                else:
                    self._notify(self.info_packet_listener, packet)

            if result.update is not None:
                self._apply_update(result.update)

    def _apply_update(self, update):
        if update.system_name is not None and update.system_name != self.remote_system_name:
            self.remote_system_name = update.system_name
            self._notify(self.system_name_listener, update.system_name)
        self.ready_updates.append(update.trackers)
        self._notify(self.trackers_updated_listener, update.trackers)

    def _notify(self, listener, arg):
        # A listener may call stop() on the receive thread; nothing fires after that
        if listener is not None and not self.stop_requested:
            listener(arg)

    def _update_rate(self):
        now = time.time()
        self.recv_count += 1
        dt = now - self.last_rate_time
        if dt >= 1.0:
            self.recv_rate_hz = self.recv_count / dt
            self.recv_count = 0
            self.last_rate_time = now

    def _udp_server_loop(self):
        """Background thread that receives PSN datagrams."""
        sock = self.sock
        while self.running:
            try:
                data, _addr = sock.recvfrom(65535)
            except socket.timeout:
                continue
            except OSError:
                break

            if not self.running:
                break

            try:
                self.process_datagram(data)
            except Exception as e:
                print(f"[PsnClient] Error handling packet: {e}")
