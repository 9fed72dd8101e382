"""
Robustness LP Formulations
==========================
One strategy per equilibrium algorithm. Each builds the LP for a query,
hands it to the LP backend and interprets the result.

Notation:
    G   (6, m) gravito-inertial wrench generators
    D,d gravity terms, the external wrench at CoM c is D c + d
    b   generator coefficients, contact forces are G b
    b0  dimensionless robustness margin

Supported operations per algorithm:

    algorithm  robustness  check_equilibrium  extremum over line
    LP         primal      -                  primal
    LP2        primal-alt  -                  -
    DLP        dual        -                  dual
    PP         -           half-space cache   -
"""

import logging
import numpy as np
from enum import Enum
from typing import Optional, Tuple

from .errors import UnsupportedAlgorithmError
from .polytope import HalfSpaceCache
from .robustness import RobustnessScale
from .solvers import LPSolution, LPSolver, LPStatus, invert_dual_status


logger = logging.getLogger(__name__)

# Variable bounds used by the LPs
B_LOWER = -1e5
B_UPPER = 1e10
UNBOUNDED = 1e100


class EquilibriumAlgorithm(Enum):
    """Static equilibrium algorithms."""
    LP = "LP"      # primal LP
    LP2 = "LP2"    # alternate primal LP, fewer constraint rows
    DLP = "DLP"    # dual LP
    PP = "PP"      # polytope projection (half-space representation)
    IP = "IP"      # incremental projection, not implemented
    DIP = "DIP"    # dual incremental projection, not implemented


class RobustnessFormulation:
    """
    Base strategy: zero-contact handling and solver plumbing. Every
    operation a subclass does not override raises UnsupportedAlgorithmError.
    """

    algorithm: EquilibriumAlgorithm = None

    def __init__(self, solver: LPSolver, G: np.ndarray, D: np.ndarray, d: np.ndarray,
                 scale: RobustnessScale, recorder=None):
        self.solver = solver
        self.G = G
        self.D = D
        self.d = d
        self.scale = scale
        self.recorder = recorder

    @property
    def num_generators(self) -> int:
        return self.G.shape[1]

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def compute_robustness(self, com: np.ndarray) -> Tuple[LPStatus, float]:
        """
        Robustness (e_max) of the equilibrium at a CoM position.

        Returns:
            (status, robustness) - robustness is NaN unless status is OPTIMAL
        """
        if self.num_generators == 0:
            return LPStatus.INFEASIBLE, float('nan')
        return self._compute_robustness(np.asarray(com, dtype=float).reshape(3))

    def check_equilibrium(self, com: np.ndarray, e_max: float = 0.0) -> Tuple[LPStatus, bool]:
        """
        Whether the CoM is in robust equilibrium with margin e_max.

        Raises:
            UnsupportedAlgorithmError: If the algorithm has no half-space cache
                or e_max is not zero.
        """
        if self.num_generators == 0:
            return LPStatus.OPTIMAL, False
        return self._check_equilibrium(np.asarray(com, dtype=float).reshape(3), e_max)

    def find_extremum_over_line(self, a: np.ndarray, a0: np.ndarray,
                                e_max: float) -> Tuple[LPStatus, np.ndarray]:
        """
        Furthest point a0 + p a (largest p) in robust equilibrium with margin e_max.

        Returns:
            (status, com) - com is a0 unless status is OPTIMAL
        """
        a = np.asarray(a, dtype=float).reshape(3)
        a0 = np.asarray(a0, dtype=float).reshape(3)
        if self.num_generators == 0:
            return LPStatus.INFEASIBLE, a0.copy()
        b0 = self.scale.emax_to_b0(e_max)
        return self._find_extremum_over_line(a, a0, e_max, b0)

    def find_extremum_in_direction(self, direction: np.ndarray,
                                   e_max: float = 0.0) -> Tuple[LPStatus, Optional[np.ndarray]]:
        if self.num_generators == 0:
            return LPStatus.INFEASIBLE, None
        raise UnsupportedAlgorithmError("findExtremumInDirection not implemented yet")

    # ------------------------------------------------------------------
    # Algorithm specific parts
    # ------------------------------------------------------------------

    def _compute_robustness(self, com: np.ndarray) -> Tuple[LPStatus, float]:
        raise UnsupportedAlgorithmError(
            f"computeEquilibriumRobustness is not implemented for algorithm {self.algorithm.value}")

    def _check_equilibrium(self, com: np.ndarray, e_max: float) -> Tuple[LPStatus, bool]:
        raise UnsupportedAlgorithmError("checkRobustEquilibrium is only implemented for the PP algorithm")

    def _find_extremum_over_line(self, a, a0, e_max, b0) -> Tuple[LPStatus, np.ndarray]:
        raise UnsupportedAlgorithmError(
            f"findExtremumOverLine is not implemented for algorithm {self.algorithm.value}")

    # ------------------------------------------------------------------

    def _solve(self, tag: str, c, lb, ub, A, Alb, Aub) -> LPSolution:
        solution = self.solver.solve(c, lb, ub, A, Alb, Aub)
        if self.recorder is not None:
            self.recorder.record_lp(tag, (c, lb, ub, A, Alb, Aub), solution)
        return solution

    def _primal_robustness(self, solution: LPSolution, label: str) -> Tuple[LPStatus, float]:
        if solution.optimal:
            return solution.status, self.scale.b0_to_emax(-solution.objective)
        logger.debug(f"[EQUILIBRIUM] {label} problem could not be solved: {solution.status.value}")
        return solution.status, float('nan')


class PrimalLP(RobustnessFormulation):
    """LP algorithm."""

    algorithm = EquilibriumAlgorithm.LP

    def _compute_robustness(self, com):
        """
        find          b, b0
        minimize      -b0
        subject to    D c + d <= G b      <= D c + d
                      0       <= b - b0   <= Inf
        """
        m = self.num_generators
        c = np.zeros(m + 1)
        c[m] = -1.0
        lb = np.full(m + 1, B_LOWER)
        ub = np.full(m + 1, B_UPPER)
        Alb = np.zeros(6 + m)
        Aub = np.full(6 + m, UNBOUNDED)
        Alb[:6] = self.D @ com + self.d
        Aub[:6] = Alb[:6]
        A = np.zeros((6 + m, m + 1))
        A[:6, :m] = self.G
        A[6:, :m] = np.eye(m)
        A[6:, m] = -1.0

        solution = self._solve('robustness_lp', c, lb, ub, A, Alb, Aub)
        return self._primal_robustness(solution, "Primal LP")

    def _find_extremum_over_line(self, a, a0, e_max, b0):
        """
        find          b, p
        minimize      -p
        subject to    D (a p + a0) + d <= G (b + 1 b0) <= D (a p + a0) + d
                      0 <= b <= Inf
        """
        m = self.num_generators
        c = np.zeros(m + 1)
        c[m] = -1.0
        lb = np.zeros(m + 1)
        lb[m] = B_LOWER
        ub = np.full(m + 1, B_UPPER)
        Alb = self.D @ a0 + self.d - self.G @ np.ones(m) * b0
        Aub = Alb.copy()
        A = np.zeros((6, m + 1))
        A[:, :m] = self.G
        A[:, m] = -self.D @ a

        solution = self._solve('extremum_primal', c, lb, ub, A, Alb, Aub)
        if solution.optimal:
            return solution.status, a0 + a * solution.x[m]

        logger.debug(f"[EQUILIBRIUM] Primal LP problem could not be solved suggesting that no "
                     f"equilibrium position with robustness {e_max} exists over the line starting "
                     f"from {a0} in direction {a}, solver status: {solution.status.value}")
        return solution.status, a0.copy()


class PrimalLP2(RobustnessFormulation):
    """LP2 algorithm: b0 folded into the generator coefficients."""

    algorithm = EquilibriumAlgorithm.LP2

    def _compute_robustness(self, com):
        """
        find          b, b0
        minimize      -b0
        subject to    D c + d <= G (b + 1 b0) <= D c + d
                      0       <= b            <= Inf
        """
        m = self.num_generators
        c = np.zeros(m + 1)
        c[m] = -1.0
        lb = np.zeros(m + 1)
        lb[m] = -B_UPPER
        ub = np.full(m + 1, B_UPPER)
        Alb = self.D @ com + self.d
        Aub = Alb.copy()
        A = np.zeros((6, m + 1))
        A[:, :m] = self.G
        A[:, m] = self.G @ np.ones(m)

        solution = self._solve('robustness_lp2', c, lb, ub, A, Alb, Aub)
        return self._primal_robustness(solution, "Primal LP")


class DualLP(RobustnessFormulation):
    """DLP algorithm: dual of the LP formulation."""

    algorithm = EquilibriumAlgorithm.DLP

    def solve_robustness_dual(self, com: np.ndarray) -> LPSolution:
        """
        Raw dual solve, statuses refer to the dual problem:

        find          v
        minimize      (D c + d)' v
        subject to    G' v >= 0
                      1' G' v = 1
        """
        m = self.num_generators
        c = self.D @ com + self.d
        lb = np.full(6, -UNBOUNDED)
        ub = np.full(6, UNBOUNDED)
        Alb = np.zeros(m + 1)
        Alb[m] = 1.0
        Aub = np.full(m + 1, UNBOUNDED)
        Aub[m] = 1.0
        A = np.zeros((m + 1, 6))
        A[:m] = self.G.T
        A[m] = self.G @ np.ones(m)

        return self._solve('robustness_dlp', c, lb, ub, A, Alb, Aub)

    def _compute_robustness(self, com):
        solution = self.solve_robustness_dual(com)
        if solution.optimal:
            return solution.status, self.scale.b0_to_emax(solution.objective)
        logger.debug(f"[EQUILIBRIUM] Dual LP problem for com position {com} could not be solved: "
                     f"{solution.status.value}")
        return invert_dual_status(solution.status), float('nan')

    def _find_extremum_over_line(self, a, a0, e_max, b0):
        """
        find          v
        minimize      (D a0 + d - G 1 b0)' v
        subject to    0  <= G' v    <= Inf
                      -1 <= a' D' v <= -1
        """
        m = self.num_generators
        c = self.D @ a0 + self.d - self.G @ np.ones(m) * b0
        lb = np.full(6, -B_UPPER)
        ub = np.full(6, B_UPPER)
        Alb = np.zeros(m + 1)
        Alb[m] = -1.0
        Aub = np.full(m + 1, B_UPPER)
        Aub[m] = -1.0
        A = np.zeros((m + 1, 6))
        A[:m] = self.G.T
        A[m] = self.D @ a

        solution = self._solve('extremum_dual', c, lb, ub, A, Alb, Aub)
        if solution.optimal:
            p = solution.objective
            solution = self.solver.flag_suspected_unboundedness(solution)
            if solution.optimal:
                return solution.status, a0 + a * p
            logger.debug(f"[EQUILIBRIUM] Dual LP problem with robustness {e_max} over the line "
                         f"starting from {a0} in direction {a} has large negative objective "
                         f"value {p}, suggesting it is probably unbounded")
            # overridden status, not swapped
            return solution.status, a0.copy()

        logger.debug(f"[EQUILIBRIUM] Dual LP problem could not be solved suggesting that no "
                     f"equilibrium position with robustness {e_max} exists over the line starting "
                     f"from {a0} in direction {a}, solver status: {solution.status.value}")
        return invert_dual_status(solution.status), a0.copy()


class HalfSpacePolytope(RobustnessFormulation):
    """PP algorithm: equilibrium checks against the pre-computed half-space cache."""

    algorithm = EquilibriumAlgorithm.PP

    def __init__(self, solver, G, D, d, scale, halfspace: HalfSpaceCache, recorder=None):
        super().__init__(solver, G, D, d, scale, recorder=recorder)
        self.halfspace = halfspace

    def _check_equilibrium(self, com, e_max):
        if e_max != 0.0:
            raise UnsupportedAlgorithmError("checkRobustEquilibrium with e_max!=0 not implemented yet")
        return LPStatus.OPTIMAL, self.halfspace.contains(com)


FORMULATIONS = {
    EquilibriumAlgorithm.LP: PrimalLP,
    EquilibriumAlgorithm.LP2: PrimalLP2,
    EquilibriumAlgorithm.DLP: DualLP,
    EquilibriumAlgorithm.PP: HalfSpacePolytope,
}
