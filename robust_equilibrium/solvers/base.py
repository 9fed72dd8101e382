"""
LP Solver Interface
===================
Common types for the bounded-LP backends.

Every backend solves:

    minimize    c' x
    subject to  lb  <= x   <= ub
                Alb <= A x <= Aub

Values with magnitude >= INFINITY are treated as unbounded.
"""

import time
import numpy as np
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union


INFINITY = 1e20

# Objective below which a dual LP is assumed unbounded when the backend
# cannot report unboundedness itself.
UNBOUNDED_OBJECTIVE_THRESHOLD = -1e7


class LPStatus(Enum):
    """Outcome of an LP solve."""
    OPTIMAL = "optimal"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    ERROR = "error"


class SolverLP(Enum):
    """Available LP backends."""
    HIGHS = "highs"
    OSQP = "osqp"


@dataclass
class LPSolution:
    """Result of one LP solve."""
    status: LPStatus
    objective: float = float('nan')
    x: Optional[np.ndarray] = None
    solve_time_ms: float = 0.0
    message: str = ""

    @property
    def optimal(self) -> bool:
        return self.status == LPStatus.OPTIMAL


def invert_dual_status(status: LPStatus) -> LPStatus:
    """
    Translate the status of a dual LP into the status of its primal.

    Primal infeasible <=> dual unbounded, and vice versa. Other statuses
    pass through unchanged.
    """
    if status == LPStatus.INFEASIBLE:
        return LPStatus.UNBOUNDED
    if status == LPStatus.UNBOUNDED:
        return LPStatus.INFEASIBLE
    return status


def as_finite_or_none(value: float) -> Optional[float]:
    """Map values beyond +-INFINITY to None."""
    return None if abs(value) >= INFINITY else float(value)


class LPSolver:
    """
    Base class for LP backends.

    Subclasses implement _solve(); input validation, timing and the
    unboundedness heuristic live here.
    """

    name = "abstract"

    # Whether the backend reports UNBOUNDED on its own. Backends that
    # cannot report it rely on flag_suspected_unboundedness().
    detects_unboundedness = True

    def __init__(self, use_warm_start: bool = True):
        self.use_warm_start = use_warm_start

    def set_use_warm_start(self, use_warm_start: bool):
        self.use_warm_start = bool(use_warm_start)

    def solve(self, c: np.ndarray, lb: np.ndarray, ub: np.ndarray,
              A: np.ndarray, Alb: np.ndarray, Aub: np.ndarray) -> LPSolution:
        """
        Solve a bounded LP.

        Args:
            c: Cost vector (n,)
            lb, ub: Variable bounds (n,)
            A: Constraint matrix (m, n)
            Alb, Aub: Constraint bounds (m,)

        Returns:
            LPSolution; x and objective are only meaningful when OPTIMAL
        """
        c, lb, ub, A, Alb, Aub = self._check_problem(c, lb, ub, A, Alb, Aub)
        t_start = time.perf_counter()
        solution = self._solve(c, lb, ub, A, Alb, Aub)
        solution.solve_time_ms = (time.perf_counter() - t_start) * 1000.0
        return solution

    def _solve(self, c, lb, ub, A, Alb, Aub) -> LPSolution:
        raise NotImplementedError

    def flag_suspected_unboundedness(self, solution: LPSolution) -> LPSolution:
        """
        Best-effort unboundedness detection for backends that cannot report it.

        An "optimal" solution with a very large negative objective is most
        likely an unbounded problem clipped by the variable bounds.
        """
        if (not self.detects_unboundedness and solution.optimal
                and solution.objective < UNBOUNDED_OBJECTIVE_THRESHOLD):
            solution.status = LPStatus.UNBOUNDED
            solution.message = (f"objective {solution.objective:.3g} below "
                                f"{UNBOUNDED_OBJECTIVE_THRESHOLD:.0e}, probably unbounded")
        return solution

    @staticmethod
    def _check_problem(c, lb, ub, A, Alb, Aub):
        c = np.asarray(c, dtype=float).reshape(-1)
        n = c.shape[0]
        lb = np.asarray(lb, dtype=float).reshape(-1)
        ub = np.asarray(ub, dtype=float).reshape(-1)
        A = np.asarray(A, dtype=float).reshape(-1, n)
        Alb = np.asarray(Alb, dtype=float).reshape(-1)
        Aub = np.asarray(Aub, dtype=float).reshape(-1)
        if lb.shape != (n,) or ub.shape != (n,):
            raise ValueError(f"Variable bounds must have shape ({n},)")
        m = A.shape[0]
        if Alb.shape != (m,) or Aub.shape != (m,):
            raise ValueError(f"Constraint bounds must have shape ({m},)")
        return c, lb, ub, A, Alb, Aub


def write_lp_to_file(path: Union[str, Path], c, lb, ub, A, Alb, Aub) -> Path:
    """Store an LP as a compressed .npz archive."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(path, c=c, lb=lb, ub=ub, A=A, Alb=Alb, Aub=Aub)
    # savez appends .npz when missing
    return path if path.suffix == '.npz' else path.with_name(path.name + '.npz')


def read_lp_from_file(path: Union[str, Path]) -> Tuple[np.ndarray, ...]:
    """Load an LP stored by write_lp_to_file as (c, lb, ub, A, Alb, Aub)."""
    with np.load(Path(path)) as data:
        return tuple(data[k] for k in ('c', 'lb', 'ub', 'A', 'Alb', 'Aub'))
