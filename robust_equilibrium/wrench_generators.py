"""
Wrench Generator Builder
========================
Discretizes each contact's friction cone and maps the generators into the
6D gravito-inertial wrench space.

For a contact at point p, a contact force f produces the gravito-inertial
wrench A f with

    A = [ -I          ]
        [ cross(-p)   ]
"""

import logging
import numpy as np
from typing import Tuple

from .errors import ValidationError
from .geometry import cross_matrix


logger = logging.getLogger(__name__)

NORMAL_NORM_TOLERANCE = 1e-6
TANGENT_NORM_THRESHOLD = 1e-5
MIN_GENERATORS_PER_CONTACT = 3


def clamp_generators_per_contact(generators_per_contact: int) -> int:
    """Raise the generator count to the minimum the algorithms can work with."""
    if generators_per_contact < MIN_GENERATORS_PER_CONTACT:
        logger.warning(f"[WRENCH] Algorithm cannot work with less than "
                       f"{MIN_GENERATORS_PER_CONTACT} generators per contact, "
                       f"using {MIN_GENERATORS_PER_CONTACT} instead of {generators_per_contact}")
        return MIN_GENERATORS_PER_CONTACT
    return int(generators_per_contact)


def check_contact_arrays(points, normals) -> Tuple[np.ndarray, np.ndarray]:
    """
    Validate and convert contact points/normals to (c, 3) float arrays.

    Raises:
        ValidationError: On bad shapes or mismatched counts.
    """
    points = np.asarray(points, dtype=float)
    normals = np.asarray(normals, dtype=float)
    if points.size == 0 and normals.size == 0:
        return np.zeros((0, 3)), np.zeros((0, 3))
    if points.ndim != 2 or points.shape[1] != 3:
        raise ValidationError(f"Contact points must have shape (c, 3), got {points.shape}")
    if normals.ndim != 2 or normals.shape[1] != 3:
        raise ValidationError(f"Contact normals must have shape (c, 3), got {normals.shape}")
    if points.shape[0] != normals.shape[0]:
        raise ValidationError(f"Got {points.shape[0]} contact points but {normals.shape[0]} normals")
    return points, normals


def tangent_directions(normal: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Two unit tangents orthogonal to a unit normal."""
    T1 = np.cross(normal, [0.0, 1.0, 0.0])
    if np.linalg.norm(T1) < TANGENT_NORM_THRESHOLD:
        T1 = np.cross(normal, [1.0, 0.0, 0.0])
    T2 = np.cross(normal, T1)
    return T1 / np.linalg.norm(T1), T2 / np.linalg.norm(T2)


def friction_cone_generators(normal: np.ndarray, friction_coefficient: float,
                             generators_per_contact: int) -> np.ndarray:
    """
    Unit generators of the linearized friction cone around a normal.

    Returns:
        (3, generators_per_contact) array, one generator per column
    """
    T1, T2 = tangent_directions(normal)
    theta = np.arange(generators_per_contact) * (2.0 * np.pi / generators_per_contact)
    G = (friction_coefficient * np.outer(T1, np.sin(theta))
         + friction_coefficient * np.outer(T2, np.cos(theta))
         + normal[:, None])
    return G / np.linalg.norm(G, axis=0)


def force_to_wrench_matrix(point: np.ndarray) -> np.ndarray:
    """(6, 3) matrix mapping a 3D contact force at point to a gravito-inertial wrench."""
    A = np.zeros((6, 3))
    A[:3, :] = -np.eye(3)
    A[3:, :] = cross_matrix(-point)
    return A


def build_wrench_generators(points, normals, friction_coefficient: float,
                            generators_per_contact: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Stack the gravito-inertial wrench generators of all contacts.

    Args:
        points: Contact points (c, 3)
        normals: Unit contact normals (c, 3)
        friction_coefficient: Friction coefficient shared by all contacts
        generators_per_contact: Generators per friction cone (>= 3)

    Returns:
        (G, last_cone) - G is (6, c * generators_per_contact); last_cone holds
        the (3, generators_per_contact) force generators of the last contact,
        or is empty when there are no contacts

    Raises:
        ValidationError: If a normal does not have unit norm or the arrays
            are malformed.
    """
    points, normals = check_contact_arrays(points, normals)
    cg = clamp_generators_per_contact(generators_per_contact)
    c = points.shape[0]

    G_centr = np.zeros((6, c * cg))
    cone = np.zeros((3, 0))
    for i in range(c):
        norm = np.linalg.norm(normals[i])
        if abs(norm - 1.0) > NORMAL_NORM_TOLERANCE:
            raise ValidationError(f"Contact normals should have norm 1, normal {i} has norm {norm:f}")

        cone = friction_cone_generators(normals[i], friction_coefficient, cg)
        G_centr[:, cg * i:cg * (i + 1)] = force_to_wrench_matrix(points[i]) @ cone

    return G_centr, cone
