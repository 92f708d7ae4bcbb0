#!/usr/bin/env python3
"""
Example: Send PosiStageNet trackers orbiting the stage origin.

Usage:
    python send_psn.py
    python send_psn.py --count 20 --rate 60 --verbose
"""

import argparse
import math
import os
import sys

from loop_rate_limiters import RateLimiter

# Allow running without installing the package (add project root to path)
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root not in sys.path:
    sys.path.insert(0, _root)

from psn_sdk_python import DEFAULT_MULTICAST_IP, DEFAULT_PORT, PsnServer, Tracker
from psn_sdk_python.utils import euler_to_orientation


def orbit(tracker, t, radius):
    """Place a tracker on a circle, facing along its direction of travel."""
    phase = t + tracker.tracker_id * 2.0 * math.pi / 8.0
    position = (radius * math.cos(phase), radius * math.sin(phase), 1.5)
    speed = (-radius * math.sin(phase), radius * math.cos(phase), 0.0)
    orientation = euler_to_orientation((0.0, 0.0, phase + math.pi / 2.0))
    return tracker.replace(position=position, speed=speed, orientation=orientation, validity=1.0)


def main():
    parser = argparse.ArgumentParser(description="Send orbiting PosiStageNet trackers")

    parser.add_argument("--name", type=str, default="PSN Python Server", help="System name")
    parser.add_argument("--group", type=str, default=DEFAULT_MULTICAST_IP,
                        help=f"PSN multicast group (default: {DEFAULT_MULTICAST_IP})")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT,
                        help=f"Destination UDP port (default: {DEFAULT_PORT})")
    parser.add_argument("--interface", type=str, default=None,
                        help="IP of the network interface to send on")
    parser.add_argument("--rate", type=float, default=60.0, help="Data frames per second (default: 60)")
    parser.add_argument("--count", type=int, default=4, help="Number of trackers (default: 4)")
    parser.add_argument("--radius", type=float, default=3.0, help="Orbit radius in meters (default: 3)")
    parser.add_argument("--verbose", action="store_true", default=False,
                        help="Print a line for every frame sent")

    args = parser.parse_args()

    trackers = [Tracker(i, name=f"Tracker {i}") for i in range(args.count)]

    print(f"[Main] Initializing PsnServer '{args.name}' with {args.count} trackers...")
    server = PsnServer(args.name, multicast_ip=args.group, port=args.port,
                       data_send_frequency=args.rate, local_ip=args.interface,
                       verbose=args.verbose)
    server.set_trackers(trackers)
    server.start_sending(reset_timestamp_reference=True)

    print("[Main] Press Ctrl+C to stop")

    # Update positions at the data rate; the server's threads do the sending
    rate_limiter = RateLimiter(frequency=args.rate, warn=False)
    t = 0.0
    try:
        while True:
            trackers = [orbit(tracker, t, args.radius) for tracker in trackers]
            server.update_trackers(trackers)
            t += 1.0 / args.rate
            rate_limiter.sleep()
    except KeyboardInterrupt:
        print("\n[Main] Stopping...")
    finally:
        server.close()
        print("[Main] Done")


if __name__ == "__main__":
    main()
