"""
Tracker - Immutable state of one PosiStageNet tracker.
"""

from dataclasses import dataclass, field, replace as dc_replace
from typing import Optional, Tuple

from ..chunks.packet_chunks import (
    AccelerationChunk,
    DataTrackerChunk,
    InfoTrackerChunk,
    OrientationChunk,
    PositionChunk,
    SpeedChunk,
    StatusChunk,
    TargetPositionChunk,
    TimestampChunk,
    TrackerNameChunk,
)
from ..utils.vector_utils import orientation_to_quat, to_float32, to_vector3


Vector3 = Tuple[float, float, float]

VECTOR_FIELDS = ("position", "speed", "orientation", "acceleration", "target_position")


@dataclass(frozen=True)
class Tracker:
    """
    One tracked object. Identity is tracker_id; every other field is optional.

    Vectors are stored as float32-rounded (x, y, z) tuples. The *_last_received
    fields are only set on the receive side and hold the timestamp of the last
    data/info frame that touched this tracker. They are ignored by equality.

    Example usage:
        tracker = Tracker(0, name="Tracker 0", position=(0.0, 1.0, 2.0))
        moved = tracker.with_position((0.5, 1.0, 2.0))
    """

    tracker_id: int
    name: Optional[str] = None
    position: Optional[Vector3] = None
    speed: Optional[Vector3] = None
    orientation: Optional[Vector3] = None
    acceleration: Optional[Vector3] = None
    target_position: Optional[Vector3] = None
    timestamp: Optional[int] = None
    validity: Optional[float] = None
    data_last_received: Optional[int] = field(default=None, compare=False)
    info_last_received: Optional[int] = field(default=None, compare=False)

    def __post_init__(self):
        if not 0 <= self.tracker_id <= 0xFFFF:
            raise ValueError(f"tracker_id must be in range 0-65535, got {self.tracker_id}")
        for name in VECTOR_FIELDS:
            object.__setattr__(self, name, to_vector3(getattr(self, name)))
        if self.validity is not None:
            object.__setattr__(self, "validity", to_float32(self.validity))
        if self.timestamp is not None and not 0 <= self.timestamp <= 0xFFFFFFFFFFFFFFFF:
            raise ValueError(f"timestamp must fit in 64 bits, got {self.timestamp}")

    def replace(self, **changes) -> "Tracker":
        """Return a copy with the given fields overridden."""
        if "tracker_id" in changes:
            raise ValueError("tracker_id cannot be changed")
        return dc_replace(self, **changes)

    def with_name(self, name):
        return self.replace(name=name)

    def with_position(self, position):
        return self.replace(position=position)

    def with_speed(self, speed):
        return self.replace(speed=speed)

    def with_orientation(self, orientation):
        return self.replace(orientation=orientation)

    def with_acceleration(self, acceleration):
        return self.replace(acceleration=acceleration)

    def with_target_position(self, target_position):
        return self.replace(target_position=target_position)

    def with_timestamp(self, timestamp):
        return self.replace(timestamp=timestamp)

    def with_validity(self, validity):
        return self.replace(validity=validity)

    def orientation_quat(self):
        """Orientation as a (w, x, y, z) quaternion, or None if unset."""
        if self.orientation is None:
            return None
        return orientation_to_quat(self.orientation)

    def to_data_tracker_chunk(self) -> DataTrackerChunk:
        chunks = []
        if self.position is not None:
            chunks.append(PositionChunk(*self.position))
        if self.speed is not None:
            chunks.append(SpeedChunk(*self.speed))
        if self.orientation is not None:
            chunks.append(OrientationChunk(*self.orientation))
        if self.acceleration is not None:
            chunks.append(AccelerationChunk(*self.acceleration))
        if self.target_position is not None:
            chunks.append(TargetPositionChunk(*self.target_position))
        if self.timestamp is not None:
            chunks.append(TimestampChunk(self.timestamp))
        if self.validity is not None:
            chunks.append(StatusChunk(self.validity))
        return DataTrackerChunk(self.tracker_id, chunks)

    def to_info_tracker_chunk(self) -> InfoTrackerChunk:
        chunks = []
        if self.name is not None:
            chunks.append(TrackerNameChunk(self.name))
        return InfoTrackerChunk(self.tracker_id, chunks)

    def __str__(self):
        parts = [f"Tracker {self.tracker_id}", f"name={self.name or '(unknown)'}"]
        for name in VECTOR_FIELDS:
            value = getattr(self, name)
            if value is not None:
                parts.append(f"{name}=({value[0]:.3f}, {value[1]:.3f}, {value[2]:.3f})")
        if self.timestamp is not None:
            parts.append(f"timestamp={self.timestamp}")
        if self.validity is not None:
            parts.append(f"validity={self.validity:.3f}")
        return ", ".join(parts)
