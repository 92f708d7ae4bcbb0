"""
Tracker value object and the receive-side tracker store.
"""

from .tracker import Tracker
from .tracker_store import TrackerStore

__all__ = ["Tracker", "TrackerStore"]
