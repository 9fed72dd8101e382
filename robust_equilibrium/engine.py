"""
Static Equilibrium Engine
=========================
Tests whether a rigid body supported by frictional contacts can stay in
static equilibrium at a given CoM position, and how robust that equilibrium
is to disturbance forces.

Usage:
    eq = StaticEquilibrium("biped", mass=54.0, generators_per_contact=4)
    eq.set_new_contacts(points, normals, 0.5, EquilibriumAlgorithm.LP)
    status, robustness = eq.compute_equilibrium_robustness(com)

set_new_contacts() builds an immutable EquilibriumSnapshot (generators,
robustness scale, optional half-space cache, active formulation) and swaps
it in; every query reads the current snapshot. The engine does no locking:
callers must not run queries concurrently with set_new_contacts().
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Optional, Tuple

from .config import EngineConfig, normalize_algorithm, normalize_solver_type
from .errors import EquilibriumError, UnsupportedAlgorithmError
from .formulations import FORMULATIONS, EquilibriumAlgorithm, RobustnessFormulation
from .geometry import cross_matrix
from .polytope import HalfSpaceCache, PolytopeProjector
from .recorder import QueryRecorder
from .robustness import RobustnessScale
from .solvers import LPStatus, SolverLP, get_new_solver
from .wrench_generators import build_wrench_generators, clamp_generators_per_contact


logger = logging.getLogger(__name__)

DEFAULT_GRAVITY = (0.0, 0.0, -9.81)


@dataclass(frozen=True)
class EquilibriumSnapshot:
    """Everything derived from one contact set."""
    algorithm: EquilibriumAlgorithm
    G: np.ndarray
    scale: RobustnessScale
    formulation: RobustnessFormulation
    generators_per_contact: int
    halfspace: Optional[HalfSpaceCache] = None

    @property
    def num_contacts(self) -> int:
        return self.G.shape[1] // self.generators_per_contact


class StaticEquilibrium:
    """
    Robust static equilibrium engine for one body.

    Args:
        name: Name used in diagnostics
        mass: Body mass (kg)
        generators_per_contact: Friction cone generators per contact (>= 3)
        solver_type: LP backend
        use_warm_start: Warm-start the LP backend when it supports it
        gravity: Gravity vector (3,)
        recorder: Optional QueryRecorder receiving every query
        projector: Optional PolytopeProjector for the PP algorithm
    """

    def __init__(self, name: str, mass: float,
                 generators_per_contact: int = 4,
                 solver_type: SolverLP = SolverLP.HIGHS,
                 use_warm_start: bool = True,
                 gravity=DEFAULT_GRAVITY,
                 recorder: Optional[QueryRecorder] = None,
                 projector: Optional[PolytopeProjector] = None):
        self.name = name
        self.mass = float(mass)
        self.generators_per_contact = clamp_generators_per_contact(generators_per_contact)
        self.solver_type = solver_type
        self.solver = get_new_solver(solver_type, use_warm_start=use_warm_start)
        self.recorder = recorder
        self.projector = projector or PolytopeProjector()
        self.projector.backend.setup()

        self.gravity = np.asarray(gravity, dtype=float).reshape(3)
        self.d = np.zeros(6)
        self.d[:3] = self.mass * self.gravity
        self.D = np.zeros((6, 3))
        self.D[3:, :] = cross_matrix(-self.mass * self.gravity)

        self._snapshot: Optional[EquilibriumSnapshot] = None

    @classmethod
    def from_config(cls, config: EngineConfig,
                    recorder: Optional[QueryRecorder] = None) -> 'StaticEquilibrium':
        """Create an engine from an EngineConfig; a record_dir opens a recorder."""
        if recorder is None and config.record_dir is not None:
            recorder = QueryRecorder(config.record_dir, dump_lps=config.dump_lps)
        return cls(
            name=config.name,
            mass=config.mass,
            generators_per_contact=config.generators_per_contact,
            solver_type=normalize_solver_type(config.solver),
            use_warm_start=config.use_warm_start,
            gravity=config.gravity,
            recorder=recorder,
        )

    # ------------------------------------------------------------------
    # Contact set
    # ------------------------------------------------------------------

    def set_new_contacts(self, contact_points, contact_normals,
                         friction_coefficient: float,
                         algorithm=EquilibriumAlgorithm.LP) -> bool:
        """
        Replace the contact set and rebuild every cached quantity.

        Args:
            contact_points: Contact points (c, 3)
            contact_normals: Unit contact normals (c, 3)
            friction_coefficient: Friction coefficient shared by all contacts
            algorithm: EquilibriumAlgorithm (or alias string) used by the queries

        Returns:
            True on success. On failure the previous contact set is dropped and
            queries behave as with zero contacts.
        """
        self._snapshot = None
        try:
            algorithm = normalize_algorithm(algorithm)
            snapshot = self._build_snapshot(contact_points, contact_normals,
                                            friction_coefficient, algorithm)
        except EquilibriumError as e:
            logger.error(f"[EQUILIBRIUM] {self.name}: contact set rejected: {e}")
            self._record('set_new_contacts', algorithm, LPStatus.ERROR, {'error': str(e)})
            return False

        self._snapshot = snapshot
        self._record('set_new_contacts', algorithm, LPStatus.OPTIMAL,
                     {'num_generators': int(snapshot.G.shape[1]),
                      'friction_coefficient': float(friction_coefficient)})
        return True

    def _build_snapshot(self, points, normals, friction_coefficient,
                        algorithm: EquilibriumAlgorithm) -> EquilibriumSnapshot:
        if algorithm not in FORMULATIONS:
            raise UnsupportedAlgorithmError(f"Algorithm {algorithm.value} not implemented yet")

        G, cone = build_wrench_generators(points, normals, friction_coefficient,
                                          self.generators_per_contact)
        scale = RobustnessScale.from_generators(cone)

        formulation_cls = FORMULATIONS[algorithm]
        halfspace = None
        if algorithm == EquilibriumAlgorithm.PP:
            if G.shape[1] > 0:
                halfspace = self.projector.project(G, self.D, self.d)
            formulation = formulation_cls(self.solver, G, self.D, self.d, scale,
                                          halfspace, recorder=self.recorder)
        else:
            formulation = formulation_cls(self.solver, G, self.D, self.d, scale,
                                          recorder=self.recorder)

        return EquilibriumSnapshot(algorithm=algorithm, G=G, scale=scale,
                                   formulation=formulation, halfspace=halfspace,
                                   generators_per_contact=self.generators_per_contact)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def compute_equilibrium_robustness(self, com) -> Tuple[LPStatus, float]:
        """
        Robustness e_max of the equilibrium at a CoM position.

        A negative value means the CoM is not in equilibrium, by that margin.

        Returns:
            (status, robustness) - robustness is NaN unless status is OPTIMAL
        """
        snapshot = self._snapshot
        if snapshot is None or snapshot.G.shape[1] == 0:
            status, robustness = LPStatus.INFEASIBLE, float('nan')
        else:
            status, robustness = self._run(snapshot.formulation.compute_robustness,
                                           (com,), float('nan'))
        self._record('compute_equilibrium_robustness', self.algorithm, status,
                     {'com': com, 'robustness': robustness})
        return status, robustness

    def check_robust_equilibrium(self, com, e_max: float = 0.0) -> Tuple[LPStatus, bool]:
        """
        Check whether the CoM is in equilibrium using the half-space cache.

        Only available for the PP algorithm and e_max == 0; otherwise the
        status is ERROR.
        """
        snapshot = self._snapshot
        if snapshot is None or snapshot.G.shape[1] == 0:
            status, equilibrium = LPStatus.OPTIMAL, False
        else:
            status, equilibrium = self._run(snapshot.formulation.check_equilibrium,
                                            (com, e_max), False)
        self._record('check_robust_equilibrium', self.algorithm, status,
                     {'com': com, 'e_max': e_max, 'equilibrium': equilibrium})
        return status, equilibrium

    def find_extremum_over_line(self, a, a0, e_max: float = 0.0) -> Tuple[LPStatus, np.ndarray]:
        """
        Furthest CoM a0 + p a (largest p) that is in robust equilibrium.

        Args:
            a: Line direction (3,)
            a0: Line origin (3,)
            e_max: Required robustness

        Returns:
            (status, com) - com is a0 unless status is OPTIMAL
        """
        a0 = np.asarray(a0, dtype=float).reshape(3)
        snapshot = self._snapshot
        if snapshot is None or snapshot.G.shape[1] == 0:
            status, com = LPStatus.INFEASIBLE, a0.copy()
        else:
            status, com = self._run(snapshot.formulation.find_extremum_over_line,
                                    (a, a0, e_max), a0.copy())
        self._record('find_extremum_over_line', self.algorithm, status,
                     {'a': a, 'a0': a0, 'e_max': e_max, 'com': com})
        return status, com

    def find_extremum_in_direction(self, direction, e_max: float = 0.0) -> Tuple[LPStatus, Optional[np.ndarray]]:
        """Reserved; reports INFEASIBLE with zero contacts and ERROR otherwise."""
        snapshot = self._snapshot
        if snapshot is None or snapshot.G.shape[1] == 0:
            status, com = LPStatus.INFEASIBLE, None
        else:
            status, com = self._run(snapshot.formulation.find_extremum_in_direction,
                                    (direction, e_max), None)
        self._record('find_extremum_in_direction', self.algorithm, status,
                     {'direction': direction, 'e_max': e_max})
        return status, com

    # ------------------------------------------------------------------
    # Robustness conversion
    # ------------------------------------------------------------------

    def convert_b0_to_emax(self, b0: float) -> float:
        return self._scale().b0_to_emax(b0)

    def convert_emax_to_b0(self, e_max: float) -> float:
        return self._scale().emax_to_b0(e_max)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> Optional[EquilibriumSnapshot]:
        return self._snapshot

    @property
    def algorithm(self) -> Optional[EquilibriumAlgorithm]:
        return None if self._snapshot is None else self._snapshot.algorithm

    @property
    def G(self) -> np.ndarray:
        return np.zeros((6, 0)) if self._snapshot is None else self._snapshot.G

    @property
    def H(self) -> Optional[np.ndarray]:
        halfspace = None if self._snapshot is None else self._snapshot.halfspace
        return None if halfspace is None else halfspace.H

    @property
    def h(self) -> Optional[np.ndarray]:
        halfspace = None if self._snapshot is None else self._snapshot.halfspace
        return None if halfspace is None else halfspace.h

    # ------------------------------------------------------------------

    def _scale(self) -> RobustnessScale:
        return RobustnessScale() if self._snapshot is None else self._snapshot.scale

    def _run(self, operation, args, fallback):
        try:
            return operation(*args)
        except UnsupportedAlgorithmError as e:
            logger.error(f"[EQUILIBRIUM] {self.name}: {e}")
            return LPStatus.ERROR, fallback

    def _record(self, operation: str, algorithm, status: LPStatus, data: dict):
        if self.recorder is None:
            return
        self.recorder.record_query(operation, algorithm, status, data)
