"""
Vector utility functions for PosiStageNet tracker data.

PSN carries every vector as three float32 values. Orientations are rotation
vectors: the axis of rotation scaled by the rotation angle in radians.

All quaternions are in (w, x, y, z) format unless otherwise specified.
"""

import numpy as np
from scipy.spatial.transform import Rotation as R


def to_float32(value):
    """
    Round a number to the nearest float32 and return it as a Python float.

    Args:
        value: Any real number

    Returns:
        float exactly representable as float32
    """
    return float(np.float32(value))


def to_vector3(v):
    """
    Convert a 3-element sequence to a tuple of float32-representable floats.

    Args:
        v: Sequence or array of 3 numbers, or None

    Returns:
        (x, y, z) tuple, or None if v is None

    Raises:
        ValueError: If v does not have exactly 3 elements
    """
    if v is None:
        return None
    arr = np.asarray(v, dtype=np.float32).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Vector must have 3 components, got {arr.shape[0]}")
    return tuple(float(c) for c in arr)


def orientation_to_quat(rotvec):
    """
    Convert a PSN orientation (rotation vector) to a quaternion.

    Args:
        rotvec: Rotation vector (axis * angle in radians)

    Returns:
        Quaternion (w, x, y, z)
    """
    x, y, z, w = R.from_rotvec(np.asarray(rotvec, dtype=np.float64)).as_quat()
    return np.array([w, x, y, z])


def quat_to_orientation(q):
    """
    Convert a quaternion to a PSN orientation (rotation vector).

    Args:
        q: Quaternion (w, x, y, z)

    Returns:
        Rotation vector (x, y, z) rounded to float32
    """
    w, x, y, z = q[0], q[1], q[2], q[3]
    return to_vector3(R.from_quat([x, y, z, w]).as_rotvec())


def euler_to_orientation(e, order="xyz", degrees=False):
    """
    Convert euler angles to a PSN orientation (rotation vector).

    Args:
        e: Euler angles (3 values)
        order: Axis sequence understood by scipy (e.g. "xyz", "ZYX")
        degrees: True if e is in degrees

    Returns:
        Rotation vector (x, y, z) rounded to float32
    """
    return to_vector3(R.from_euler(order, e, degrees=degrees).as_rotvec())
