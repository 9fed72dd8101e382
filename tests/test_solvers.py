"""
LP Backend Tests
================
Small, well-conditioned LPs run through both backends.
"""

import numpy as np
import pytest

from robust_equilibrium.solvers import (
    LPSolution,
    LPStatus,
    SolverLP,
    get_new_solver,
    invert_dual_status,
    read_lp_from_file,
    write_lp_to_file,
)
from robust_equilibrium.solvers.highs import HighsSolver, split_constraints
from robust_equilibrium.solvers.osqp_backend import OSQPSolver, status_from_reason


INF = 1e100


def simple_lp():
    """
    minimize   -x0 - x1
    subject to 0 <= x0 <= 1, 0 <= x1 <= 10
               x0 + 2 x1 <= 2
    Optimum x = (1, 0.5), objective -1.5.
    """
    c = np.array([-1.0, -1.0])
    lb = np.zeros(2)
    ub = np.array([1.0, 10.0])
    A = np.array([[1.0, 2.0]])
    Alb = np.array([-INF])
    Aub = np.array([2.0])
    return c, lb, ub, A, Alb, Aub


def infeasible_lp():
    """0 <= x <= 1 together with x >= 2."""
    return (np.array([1.0]), np.zeros(1), np.ones(1),
            np.array([[1.0]]), np.array([2.0]), np.array([INF]))


def unbounded_lp():
    """minimize -x with x >= 0 and nothing bounding it from above."""
    return (np.array([-1.0]), np.zeros(1), np.array([INF]),
            np.array([[1.0]]), np.array([0.0]), np.array([INF]))


@pytest.fixture(params=[SolverLP.HIGHS, SolverLP.OSQP], ids=["highs", "osqp"])
def solver(request):
    return get_new_solver(request.param)


def test_factory_types():
    assert isinstance(get_new_solver(SolverLP.HIGHS), HighsSolver)
    assert isinstance(get_new_solver(SolverLP.OSQP, use_warm_start=False), OSQPSolver)
    with pytest.raises(ValueError):
        get_new_solver("glpk")


def test_simple_lp_optimal(solver):
    solution = solver.solve(*simple_lp())
    assert solution.status == LPStatus.OPTIMAL
    assert solution.objective == pytest.approx(-1.5, abs=1e-4)
    np.testing.assert_allclose(solution.x, [1.0, 0.5], atol=1e-4)
    assert solution.solve_time_ms >= 0.0


def test_equality_row(solver):
    """x0 + x1 == 1 with x >= 0: minimizing x0 puts everything in x1."""
    c = np.array([1.0, 0.0])
    solution = solver.solve(c, np.zeros(2), np.full(2, 10.0),
                            np.array([[1.0, 1.0]]), np.array([1.0]), np.array([1.0]))
    assert solution.optimal
    np.testing.assert_allclose(solution.x, [0.0, 1.0], atol=1e-4)


def test_infeasible_lp(solver):
    assert solver.solve(*infeasible_lp()).status == LPStatus.INFEASIBLE


def test_unbounded_lp(solver):
    assert solver.solve(*unbounded_lp()).status == LPStatus.UNBOUNDED


def test_bad_bounds_shape_rejected():
    c, lb, ub, A, Alb, Aub = simple_lp()
    with pytest.raises(ValueError):
        HighsSolver().solve(c, lb[:1], ub, A, Alb, Aub)


def test_split_constraints():
    A = np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 1.0], [1.0, -1.0]])
    Alb = np.array([2.0, -INF, -1.0, -INF])
    Aub = np.array([2.0, 3.0, 4.0, INF])
    A_ub, b_ub, A_eq, b_eq = split_constraints(A, Alb, Aub)

    np.testing.assert_allclose(A_eq, [[1.0, 0.0]])
    np.testing.assert_allclose(b_eq, [2.0])
    # row 1: upper only, row 2: both sides, row 3: free
    np.testing.assert_allclose(A_ub, [[0.0, 1.0], [1.0, 1.0], [-1.0, -1.0]])
    np.testing.assert_allclose(b_ub, [3.0, 4.0, 1.0])


def test_invert_dual_status():
    assert invert_dual_status(LPStatus.INFEASIBLE) == LPStatus.UNBOUNDED
    assert invert_dual_status(LPStatus.UNBOUNDED) == LPStatus.INFEASIBLE
    assert invert_dual_status(LPStatus.OPTIMAL) == LPStatus.OPTIMAL
    assert invert_dual_status(LPStatus.ERROR) == LPStatus.ERROR


def test_unboundedness_heuristic_only_for_osqp():
    """A huge negative "optimal" objective is flagged only by backends that cannot detect unboundedness."""
    flagged = OSQPSolver().flag_suspected_unboundedness(
        LPSolution(status=LPStatus.OPTIMAL, objective=-1e8))
    assert flagged.status == LPStatus.UNBOUNDED

    kept = HighsSolver().flag_suspected_unboundedness(
        LPSolution(status=LPStatus.OPTIMAL, objective=-1e8))
    assert kept.status == LPStatus.OPTIMAL

    moderate = OSQPSolver().flag_suspected_unboundedness(
        LPSolution(status=LPStatus.OPTIMAL, objective=-1e3))
    assert moderate.status == LPStatus.OPTIMAL


def test_osqp_keeps_warm_start_solution():
    solver = OSQPSolver(use_warm_start=True)
    first = solver.solve(*simple_lp())
    np.testing.assert_allclose(solver.prev_solution, first.x)
    second = solver.solve(*simple_lp())
    assert second.objective == pytest.approx(first.objective, abs=1e-4)


def test_lp_file_roundtrip(tmp_path):
    problem = simple_lp()
    path = write_lp_to_file(tmp_path / "lps" / "simple", *problem)
    assert path.suffix == ".npz"
    assert path.exists()
    for original, loaded in zip(problem, read_lp_from_file(path)):
        np.testing.assert_array_equal(original, loaded)


def test_osqp_inaccurate_statuses_are_errors():
    """Only exact OSQP statuses count; "... inaccurate" results are not trusted."""
    assert status_from_reason("solved") == LPStatus.OPTIMAL
    assert status_from_reason("primal infeasible") == LPStatus.INFEASIBLE
    assert status_from_reason("dual infeasible") == LPStatus.UNBOUNDED
    assert status_from_reason("solved inaccurate") == LPStatus.ERROR
    assert status_from_reason("primal infeasible inaccurate") == LPStatus.ERROR
    assert status_from_reason("dual infeasible inaccurate") == LPStatus.ERROR
    assert status_from_reason("maximum iterations reached") == LPStatus.ERROR
