"""
Robust Static Equilibrium
=========================
Static equilibrium and robustness tests for a rigid body supported by
frictional point contacts.

Quick Start:
    from robust_equilibrium import StaticEquilibrium, EquilibriumAlgorithm
    from robust_equilibrium import generate_rectangle_contacts

    points, normals = generate_rectangle_contacts(0.1, 0.05, [0, 0, 0], [0, 0, 0])
    eq = StaticEquilibrium("foot", mass=54.0, generators_per_contact=4)
    eq.set_new_contacts(points, normals, 0.5, EquilibriumAlgorithm.LP)
    status, robustness = eq.compute_equilibrium_robustness([0.0, 0.0, 0.8])

    # PP answers fast equilibrium checks only
    eq.set_new_contacts(points, normals, 0.5, EquilibriumAlgorithm.PP)
    status, equilibrium = eq.check_robust_equilibrium([0.0, 0.0, 0.8])
"""

import logging

from .config import (
    ContactSet,
    EngineConfig,
    load_contact_set,
    load_engine_config,
    normalize_algorithm,
    normalize_solver_type,
    save_contact_set,
    save_engine_config,
)
from .engine import EquilibriumSnapshot, StaticEquilibrium
from .errors import (
    EquilibriumError,
    NumericalInstabilityError,
    UnsupportedAlgorithmError,
    ValidationError,
)
from .formulations import EquilibriumAlgorithm
from .geometry import cross_matrix, euler_matrix, generate_rectangle_contacts, uniform
from .polytope import DoubleDescriptionBackend, HalfSpaceCache, PolytopeProjector
from .recorder import QueryRecorder
from .robustness import RobustnessScale
from .solvers import LPSolution, LPStatus, SolverLP, get_new_solver, invert_dual_status
from .wrench_generators import build_wrench_generators


logging.getLogger(__name__).addHandler(logging.NullHandler())

LOG_FORMAT = "[%(asctime)s][%(name)s][%(levelname)s]: %(message)s"


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a stream handler to the package logger (for scripts)."""
    pkg_logger = logging.getLogger(__name__)
    if not any(isinstance(h, logging.StreamHandler) for h in pkg_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        pkg_logger.addHandler(handler)
    pkg_logger.setLevel(level)
    return pkg_logger


__version__ = "1.0.0"
__all__ = [
    # Engine
    "StaticEquilibrium",
    "EquilibriumSnapshot",
    "EquilibriumAlgorithm",

    # Components
    "build_wrench_generators",
    "RobustnessScale",
    "PolytopeProjector",
    "DoubleDescriptionBackend",
    "HalfSpaceCache",

    # LP backends
    "LPStatus",
    "LPSolution",
    "SolverLP",
    "get_new_solver",
    "invert_dual_status",

    # Errors
    "EquilibriumError",
    "ValidationError",
    "UnsupportedAlgorithmError",
    "NumericalInstabilityError",

    # Configuration and recording
    "EngineConfig",
    "ContactSet",
    "load_engine_config",
    "save_engine_config",
    "load_contact_set",
    "save_contact_set",
    "normalize_algorithm",
    "normalize_solver_type",
    "QueryRecorder",
    "configure_logging",

    # Geometry
    "cross_matrix",
    "euler_matrix",
    "generate_rectangle_contacts",
    "uniform",
]
