"""
UDP multicast helpers shared by PsnClient and PsnServer.
"""

import ipaddress
import socket
import struct


DEFAULT_MULTICAST_IP = "236.10.10.10"
DEFAULT_PORT = 56565


def is_ipv4_multicast(ip) -> bool:
    try:
        return ipaddress.IPv4Address(ip).is_multicast
    except ValueError:
        return False


def validate_endpoint(multicast_ip, port):
    """
    Raises:
        ValueError: If multicast_ip is not IPv4 multicast or port is out of range
    """
    if not is_ipv4_multicast(multicast_ip):
        raise ValueError(f"Not a valid IPv4 multicast address: {multicast_ip}")
    if not 1 <= port <= 65535:
        raise ValueError(f"Port must be in range 1-65535, got {port}")


def _membership(multicast_ip, local_ip):
    return struct.pack("4s4s", socket.inet_aton(multicast_ip), socket.inet_aton(local_ip))


def create_receiver_socket(multicast_ip, port, local_ip="0.0.0.0", timeout=0.5):
    """
    Open a UDP socket bound to port and joined to multicast_ip.

    Args:
        multicast_ip: Group to join
        port: UDP port to listen on
        local_ip: Address of the interface to join the group on
        timeout: recv timeout in seconds, so a receive loop can check for stop

    Returns:
        socket.socket
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, 8 * 1024 * 1024)
    except OSError:
        pass
    sock.bind(("", port))
    sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, _membership(multicast_ip, local_ip))
    sock.settimeout(timeout)
    return sock


def leave_multicast_group(sock, multicast_ip, local_ip="0.0.0.0"):
    try:
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_DROP_MEMBERSHIP, _membership(multicast_ip, local_ip))
    except OSError:
        # Socket already closed or membership already gone
        pass


class UdpSender:
    """
    Fire-and-forget UDP sender.

    Example usage:
        sender = UdpSender()
        sender.send(data, ("236.10.10.10", 56565))
        sender.close()
    """

    def __init__(self, local_ip=None, ttl=1):
        """
        Args:
            local_ip: Address of the interface to send multicast on (default: OS choice)
            ttl: Multicast time-to-live
        """
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        self.sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, ttl)
        if local_ip:
            self.sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, socket.inet_aton(local_ip))

    def send(self, data: bytes, destination):
        self.sock.sendto(data, destination)

    def close(self):
        try:
            self.sock.close()
        except OSError:
            pass
