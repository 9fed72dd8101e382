"""
Shared fixtures: a flat rectangular foot and an engine factory.
"""

import numpy as np
import pytest

from robust_equilibrium import StaticEquilibrium, generate_rectangle_contacts


MASS = 54.0
MU = 0.5
LX, LY = 0.1, 0.05


def analytic_center_robustness(mass: float = MASS) -> float:
    """
    Robustness of a CoM above the center of a flat square foot
    (mu = 0.5, 4 generators): b0 = m g sqrt(1 + mu^2) / 16, scale 1.6.
    """
    b0 = mass * 9.81 * np.sqrt(1.25) / 16.0
    return b0 * 1.6


@pytest.fixture
def flat_foot():
    """Four corner contacts of a flat 0.2 x 0.1 m foot at the origin."""
    return generate_rectangle_contacts(LX, LY, [0.0, 0.0, 0.0], [0.0, 0.0, 0.0])


@pytest.fixture
def make_engine(flat_foot):
    """Factory: engine with the flat foot loaded for a given algorithm."""
    def _make(algorithm, **kwargs):
        eq = StaticEquilibrium(f"test_{algorithm}", MASS, generators_per_contact=4, **kwargs)
        points, normals = flat_foot
        assert eq.set_new_contacts(points, normals, MU, algorithm)
        return eq
    return _make
