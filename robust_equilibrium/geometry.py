"""
Geometry Helpers
================
Small linear-algebra utilities used to build contact sets and wrench maps.
"""

import numpy as np
from typing import Optional, Tuple
from scipy.spatial.transform import Rotation


def cross_matrix(x: np.ndarray) -> np.ndarray:
    """
    Skew-symmetric matrix such that cross_matrix(x) @ y == np.cross(x, y).

    Args:
        x: 3D vector

    Returns:
        (3, 3) skew-symmetric matrix
    """
    x = np.asarray(x, dtype=float).reshape(3)
    return np.array([
        [0.0, -x[2], x[1]],
        [x[2], 0.0, -x[0]],
        [-x[1], x[0], 0.0],
    ])


def euler_matrix(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """Rotation matrix for fixed-axis x-y-z angles, i.e. Rz(yaw) Ry(pitch) Rx(roll)."""
    return Rotation.from_euler('xyz', [roll, pitch, yaw]).as_matrix()


def generate_rectangle_contacts(lx: float, ly: float,
                                pos: np.ndarray,
                                rpy: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Contact points and normals at the corners of a rectangular foot.

    Args:
        lx: Half-length of the rectangle along its local x axis
        ly: Half-width of the rectangle along its local y axis
        pos: Position of the rectangle center in world frame (3,)
        rpy: Roll, pitch, yaw of the rectangle in world frame (3,)

    Returns:
        (points, normals) - both (4, 3)
    """
    R = euler_matrix(*np.asarray(rpy, dtype=float).reshape(3))
    local = np.array([
        [lx, ly, 0.0],
        [lx, -ly, 0.0],
        [-lx, -ly, 0.0],
        [-lx, ly, 0.0],
    ])
    points = np.asarray(pos, dtype=float).reshape(3) + local @ R.T
    n = R @ np.array([0.0, 0.0, 1.0])
    normals = np.tile(n, (4, 1))
    return points, normals


def uniform(lower: np.ndarray, upper: np.ndarray,
            rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Sample elementwise uniformly between two arrays of equal shape.

    Raises:
        ValueError: If the bounds have different shapes.
    """
    lower = np.asarray(lower, dtype=float)
    upper = np.asarray(upper, dtype=float)
    if lower.shape != upper.shape:
        raise ValueError(f"Bound shapes differ: {lower.shape} vs {upper.shape}")
    rng = rng or np.random.default_rng()
    return lower + rng.random(lower.shape) * (upper - lower)
