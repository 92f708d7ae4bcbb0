"""
TrackerStore - Last-known state of every tracker seen by a receiver.
"""

import threading
from types import MappingProxyType

from .tracker import Tracker


class TrackerStore:
    """
    Keyed map of tracker id -> Tracker.

    Writers build a new dict under the lock and swap it in, so a snapshot
    handed to a reader never changes afterwards. Entries are never evicted
    automatically; use remove() or clear() to drop trackers that went silent.

    Example usage:
        store = TrackerStore()
        store.merge([(0, {"position": (1.0, 2.0, 3.0), "data_last_received": 1000})])
        trackers = store.snapshot()
    """

    def __init__(self):
        self.lock = threading.Lock()
        self._trackers = {}

    def __len__(self):
        return len(self._trackers)

    def __contains__(self, tracker_id):
        return tracker_id in self._trackers

    def get(self, tracker_id, default=None):
        return self._trackers.get(tracker_id, default)

    def snapshot(self):
        """Read-only view of the current tracker map."""
        return MappingProxyType(self._trackers)

    def merge(self, updates):
        """
        Create or update trackers field by field in one atomic step.

        Fields not named in an update keep their previous value.

        Args:
            updates: Iterable of (tracker_id, {field_name: value}) pairs

        Returns:
            Snapshot of the full map after the update
        """
        with self.lock:
            trackers = dict(self._trackers)
            for tracker_id, fields in updates:
                tracker = trackers.get(tracker_id)
                if tracker is None:
                    tracker = Tracker(tracker_id)
                trackers[tracker_id] = tracker.replace(**fields)
            self._trackers = trackers
            return MappingProxyType(trackers)

    def remove(self, tracker_id) -> bool:
        """Drop one tracker. Returns False if it was not present."""
        with self.lock:
            if tracker_id not in self._trackers:
                return False
            trackers = dict(self._trackers)
            del trackers[tracker_id]
            self._trackers = trackers
            return True

    def clear(self):
        with self.lock:
            self._trackers = {}
