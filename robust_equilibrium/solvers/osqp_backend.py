"""
OSQP LP Backend
===============
Bounded LP solved as a QP with a zero Hessian using OSQP.

The variable bounds are stacked on top of the constraint rows:

    minimize    (1/2) x' 0 x + c' x
    subject to  [lb ; Alb] <= [I ; A] x <= [ub ; Aub]

OSQP reports dual infeasibility for truly unbounded problems, but a
problem that is only bounded by huge finite variable bounds comes back
"solved" with a huge objective. Callers use flag_suspected_unboundedness()
for that case.
"""

import logging
import numpy as np
from importlib.metadata import version, PackageNotFoundError

import osqp
from scipy import sparse

from .base import LPSolver, LPSolution, LPStatus, INFINITY


logger = logging.getLogger(__name__)


def _osqp_major_version() -> int:
    try:
        return int(version("osqp").split(".")[0])
    except (PackageNotFoundError, ValueError):
        return 1


# OSQP 1.x renamed a few settings
_POLISH_KEY = "polishing" if _osqp_major_version() >= 1 else "polish"

# Exact status strings; the "... inaccurate" variants are reported as ERROR
OSQP_STATUS = {
    "solved": LPStatus.OPTIMAL,
    "primal infeasible": LPStatus.INFEASIBLE,
    "dual infeasible": LPStatus.UNBOUNDED,
}


def status_from_reason(reason: str) -> LPStatus:
    """Map an OSQP status string to an LPStatus."""
    return OSQP_STATUS.get(str(reason).strip().lower(), LPStatus.ERROR)


class OSQPSolver(LPSolver):
    """LP backend built on OSQP (ADMM, QP-style)."""

    name = "osqp"
    detects_unboundedness = False

    def __init__(self, use_warm_start: bool = True,
                 eps_abs: float = 1e-7,
                 eps_rel: float = 1e-7,
                 max_iter: int = 100000):
        super().__init__(use_warm_start)
        self.eps_abs = eps_abs
        self.eps_rel = eps_rel
        self.max_iter = max_iter

        # Previous primal solution, used for warm-starting same-size problems
        self.prev_solution = None

    def _solve(self, c, lb, ub, A, Alb, Aub) -> LPSolution:
        n = c.shape[0]
        P = sparse.csc_matrix((n, n))
        A_full = sparse.csc_matrix(np.vstack([np.eye(n), A]))
        l_full = np.concatenate([lb, Alb])
        u_full = np.concatenate([ub, Aub])
        l_full[l_full <= -INFINITY] = -np.inf
        u_full[u_full >= INFINITY] = np.inf

        solver = osqp.OSQP()
        settings = {
            'verbose': False,
            'eps_abs': self.eps_abs,
            'eps_rel': self.eps_rel,
            'max_iter': self.max_iter,
            _POLISH_KEY: True,
        }
        solver.setup(P=P, q=c, A=A_full, l=l_full, u=u_full, **settings)

        if self.use_warm_start and self.prev_solution is not None and len(self.prev_solution) == n:
            solver.warm_start(x=self.prev_solution)

        result = solver.solve()
        reason = str(result.info.status).strip().lower()
        status = status_from_reason(reason)

        if status == LPStatus.OPTIMAL:
            x = np.asarray(result.x, dtype=float)
            self.prev_solution = x
            return LPSolution(status=LPStatus.OPTIMAL, objective=float(c @ x), x=x, message=reason)

        logger.debug(f"[LP_OSQP] Solver finished with status {reason}")
        return LPSolution(status=status, message=reason)
