"""
Robustness Metric Converter
===========================
Converts the dimensionless LP margin b0 to a force margin e_max and back.

The coefficient is the distance between the friction cone boundary and the
sum of one contact's generators, i.e. the e_max obtained for b0 = 1. It
depends only on the friction coefficient and the number of generators.
"""

import numpy as np
from dataclasses import dataclass


@dataclass(frozen=True)
class RobustnessScale:
    """Per-contact-set scale between b0 and e_max."""
    coefficient: float = 0.0

    @classmethod
    def from_generators(cls, cone: np.ndarray) -> 'RobustnessScale':
        """
        Build the scale from one contact's (3, cg) force generators.

        An empty cone (no contacts) gives a zero coefficient.
        """
        cone = np.asarray(cone, dtype=float)
        if cone.size == 0:
            return cls(0.0)
        f0 = cone.sum(axis=1)
        return cls(float(np.linalg.norm(np.cross(f0, cone[:, 0]))))

    def b0_to_emax(self, b0: float) -> float:
        return b0 * self.coefficient

    def emax_to_b0(self, e_max: float) -> float:
        """NaN when there is no scale (no contacts)."""
        if self.coefficient == 0.0:
            return float('nan')
        return e_max / self.coefficient
