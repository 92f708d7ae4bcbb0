import math

import numpy as np
import pytest

from psn_sdk_python.utils import (
    euler_to_orientation,
    orientation_to_quat,
    quat_to_orientation,
    to_float32,
    to_vector3,
)


def test_to_float32():
    assert to_float32(0.1) == float(np.float32(0.1))
    assert to_float32(1.5) == 1.5


def test_to_vector3():
    assert to_vector3(None) is None
    assert to_vector3([1, 2, 3]) == (1.0, 2.0, 3.0)
    assert to_vector3(np.array([0.1, 0.2, 0.3])) == tuple(float(np.float32(v)) for v in (0.1, 0.2, 0.3))
    with pytest.raises(ValueError):
        to_vector3((1.0, 2.0))


def test_orientation_to_quat():
    q = orientation_to_quat((0.0, 0.0, math.pi / 2))
    assert np.allclose(q, [math.cos(math.pi / 4), 0.0, 0.0, math.sin(math.pi / 4)])


def test_quat_round_trip():
    rotvec = (0.3, -0.2, 0.1)
    assert np.allclose(quat_to_orientation(orientation_to_quat(rotvec)), rotvec, atol=1e-6)


def test_euler_to_orientation():
    assert np.allclose(euler_to_orientation((0.0, 0.0, 90.0), degrees=True), (0.0, 0.0, math.pi / 2))
