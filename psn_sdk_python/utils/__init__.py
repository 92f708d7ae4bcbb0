"""
Utility functions for PSN tracker data and networking.

This module provides:
    - vector_utils: float32 vectors and orientation conversions
    - net_utils: UDP multicast sockets and sender
"""

from .net_utils import DEFAULT_MULTICAST_IP, DEFAULT_PORT, UdpSender, is_ipv4_multicast
from .vector_utils import (
    euler_to_orientation,
    orientation_to_quat,
    quat_to_orientation,
    to_float32,
    to_vector3,
)

__all__ = [
    "DEFAULT_MULTICAST_IP",
    "DEFAULT_PORT",
    "UdpSender",
    "is_ipv4_multicast",
    "euler_to_orientation",
    "orientation_to_quat",
    "quat_to_orientation",
    "to_float32",
    "to_vector3",
]
