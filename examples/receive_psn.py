#!/usr/bin/env python3
"""
Example: Receive and print PosiStageNet tracker data.

This script demonstrates how to use the PsnClient class to receive PSN
frames from a media server or tracking system and print every tracker.

Usage:
    python receive_psn.py
    python receive_psn.py --group 236.10.10.10 --port 56565 --verbose
"""

import argparse
import os
import sys
import time

# Allow running without installing the package (add project root to path)
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root not in sys.path:
    sys.path.insert(0, _root)

from psn_sdk_python import DEFAULT_MULTICAST_IP, DEFAULT_PORT, PsnClient


def main():
    parser = argparse.ArgumentParser(description="Receive and print PosiStageNet tracker data")

    parser.add_argument(
        "--group",
        type=str,
        default=DEFAULT_MULTICAST_IP,
        help=f"PSN multicast group (default: {DEFAULT_MULTICAST_IP})",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"UDP port to listen on (default: {DEFAULT_PORT})",
    )

    parser.add_argument(
        "--interface",
        type=str,
        default="0.0.0.0",
        help="IP of the network interface to join the group on",
    )

    parser.add_argument(
        "--lenient",
        action="store_true",
        default=False,
        help="Keep frames that contain imperfect trackers",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Print every tracker field and rejected packet",
    )

    parser.add_argument(
        "--print_rate",
        action="store_true",
        default=False,
        help="Print receive rate statistics",
    )

    args = parser.parse_args()

    print(f"[Main] Initializing PsnClient on {args.group}:{args.port}...")
    client = PsnClient(local_ip=args.interface, multicast_ip=args.group, port=args.port,
                       is_strict=not args.lenient, verbose=args.verbose)
    client.system_name_listener = lambda name: print(f"[Main] Remote system: {name}")
    client.start()

    frame_count = 0
    fps_start_time = time.time()
    fps_display_interval = 2.0

    print("[Main] Press Ctrl+C to stop")

    try:
        while True:
            trackers = client.get_latest_update()

            if trackers is None:
                time.sleep(0.001)
                continue

            print(f"\n[{client.remote_system_name or 'PSN'}] {len(trackers)} trackers")
            if args.verbose:
                for tracker_id in sorted(trackers):
                    print(f"  {trackers[tracker_id]}")
            else:
                names = [trackers[i].name or str(i) for i in sorted(trackers)]
                print(f"  Trackers: {', '.join(names[:5])}{'...' if len(names) > 5 else ''}")

            frame_count += 1

            if args.print_rate:
                current_time = time.time()
                if current_time - fps_start_time >= fps_display_interval:
                    fps = frame_count / (current_time - fps_start_time)
                    print(f"[Main] Frame rate: {fps:.1f} fps, "
                          f"packet receive rate: {client.get_receive_rate():.1f} Hz, "
                          f"dropped: {client.dropped_packet_count}")
                    frame_count = 0
                    fps_start_time = current_time

    except KeyboardInterrupt:
        print("\n[Main] Stopping...")
    finally:
        client.stop()
        print("[Main] Done")


if __name__ == "__main__":
    main()
