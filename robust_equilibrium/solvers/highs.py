"""
HiGHS LP Backend
================
Bounded LP solved with scipy.optimize.linprog(method="highs").

Double-sided constraint rows are split into equality rows (Alb == Aub)
and one or two inequality rows otherwise.
"""

import logging
import numpy as np
from typing import List, Optional, Tuple
from scipy.optimize import linprog

from .base import LPSolver, LPSolution, LPStatus, INFINITY, as_finite_or_none


logger = logging.getLogger(__name__)

# linprog status codes
_LINPROG_STATUS = {
    0: LPStatus.OPTIMAL,
    1: LPStatus.ERROR,  # iteration limit
    2: LPStatus.INFEASIBLE,
    3: LPStatus.UNBOUNDED,
    4: LPStatus.ERROR,  # numerical difficulties
}


def split_constraints(A: np.ndarray, Alb: np.ndarray, Aub: np.ndarray):
    """
    Convert Alb <= A x <= Aub into linprog's (A_ub, b_ub, A_eq, b_eq).

    Returns:
        (A_ub, b_ub, A_eq, b_eq), entries are None when empty
    """
    ub_rows: List[np.ndarray] = []
    ub_vals: List[float] = []
    eq_rows: List[np.ndarray] = []
    eq_vals: List[float] = []

    for row, lo, hi in zip(A, Alb, Aub):
        if lo == hi and abs(lo) < INFINITY:
            eq_rows.append(row)
            eq_vals.append(lo)
            continue
        if hi < INFINITY:
            ub_rows.append(row)
            ub_vals.append(hi)
        if lo > -INFINITY:
            ub_rows.append(-row)
            ub_vals.append(-lo)

    A_ub = np.array(ub_rows) if ub_rows else None
    b_ub = np.array(ub_vals) if ub_rows else None
    A_eq = np.array(eq_rows) if eq_rows else None
    b_eq = np.array(eq_vals) if eq_rows else None
    return A_ub, b_ub, A_eq, b_eq


def variable_bounds(lb: np.ndarray, ub: np.ndarray) -> List[Tuple[Optional[float], Optional[float]]]:
    return [(as_finite_or_none(lo), as_finite_or_none(hi)) for lo, hi in zip(lb, ub)]


class HighsSolver(LPSolver):
    """LP backend built on scipy's HiGHS interface."""

    name = "highs"
    detects_unboundedness = True

    def __init__(self, use_warm_start: bool = True):
        super().__init__(use_warm_start)
        self._warned_warm_start = False

    def _solve(self, c, lb, ub, A, Alb, Aub) -> LPSolution:
        if self.use_warm_start and not self._warned_warm_start:
            logger.debug("[LP_HIGHS] Warm start is not supported by linprog, ignoring")
            self._warned_warm_start = True

        A_ub, b_ub, A_eq, b_eq = split_constraints(A, Alb, Aub)
        bounds = variable_bounds(lb, ub)

        res = linprog(c, A_ub=A_ub, b_ub=b_ub, A_eq=A_eq, b_eq=b_eq,
                      bounds=bounds, method='highs')
        status = _LINPROG_STATUS.get(res.status, LPStatus.ERROR)

        if status == LPStatus.OPTIMAL:
            return LPSolution(status=status, objective=float(res.fun),
                              x=np.asarray(res.x, dtype=float), message=res.message)

        message = str(res.message)
        lowered = message.lower()
        if 'infeasible' in lowered and 'unbounded' in lowered:
            # HiGHS presolve may stop at "infeasible or unbounded"; a
            # zero-cost solve tells the two apart.
            status = self._resolve_ambiguous(c, A_ub, b_ub, A_eq, b_eq, bounds)
            logger.debug(f"[LP_HIGHS] Ambiguous status resolved to {status.value}: {message}")

        return LPSolution(status=status, message=message)

    @staticmethod
    def _resolve_ambiguous(c, A_ub, b_ub, A_eq, b_eq, bounds) -> LPStatus:
        feasibility = linprog(np.zeros_like(c), A_ub=A_ub, b_ub=b_ub, A_eq=A_eq, b_eq=b_eq,
                              bounds=bounds, method='highs')
        if feasibility.status == 0:
            return LPStatus.UNBOUNDED
        if feasibility.status == 2:
            return LPStatus.INFEASIBLE
        return LPStatus.ERROR
