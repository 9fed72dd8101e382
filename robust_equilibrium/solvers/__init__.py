"""
LP solver backends and the factory that selects one.
"""

from .base import (
    INFINITY,
    UNBOUNDED_OBJECTIVE_THRESHOLD,
    LPSolution,
    LPSolver,
    LPStatus,
    SolverLP,
    invert_dual_status,
    read_lp_from_file,
    write_lp_to_file,
)
from .highs import HighsSolver


def get_new_solver(solver_type: SolverLP, use_warm_start: bool = True) -> LPSolver:
    """
    Create a new LP solver instance.

    Raises:
        ValueError: If the solver type is unknown.
    """
    if solver_type == SolverLP.HIGHS:
        return HighsSolver(use_warm_start=use_warm_start)
    if solver_type == SolverLP.OSQP:
        from .osqp_backend import OSQPSolver
        return OSQPSolver(use_warm_start=use_warm_start)
    raise ValueError(f"Unknown LP solver: {solver_type}")


__all__ = [
    "INFINITY",
    "UNBOUNDED_OBJECTIVE_THRESHOLD",
    "LPSolution",
    "LPSolver",
    "LPStatus",
    "SolverLP",
    "HighsSolver",
    "get_new_solver",
    "invert_dual_status",
    "read_lp_from_file",
    "write_lp_to_file",
]
