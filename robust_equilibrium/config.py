"""
Engine Configuration: YAML/JSON Definitions
===========================================
Declarative engine settings and contact sets.

Example (YAML):

    name: hrp2
    mass: 54.0
    generators_per_contact: 4
    solver: highs
    use_warm_start: true
    gravity: [0.0, 0.0, -9.81]

    # contact set file
    friction_coefficient: 0.5
    algorithm: PP
    points:  [[0.1, 0.05, 0.0], [0.1, -0.05, 0.0], ...]
    normals: [[0.0, 0.0, 1.0], [0.0, 0.0, 1.0], ...]
"""

import json
import yaml
import numpy as np
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from .errors import ValidationError
from .formulations import EquilibriumAlgorithm
from .solvers import SolverLP


# Alias -> canonical name. Keys are lower-cased; canonical names map to
# themselves implicitly.
SOLVER_ALIASES: Dict[str, SolverLP] = {
    "highs": SolverLP.HIGHS,
    "lp_highs": SolverLP.HIGHS,
    "scipy": SolverLP.HIGHS,
    "linprog": SolverLP.HIGHS,
    "osqp": SolverLP.OSQP,
    "lp_osqp": SolverLP.OSQP,
}

ALGORITHM_ALIASES: Dict[str, EquilibriumAlgorithm] = {
    "lp": EquilibriumAlgorithm.LP,
    "primal": EquilibriumAlgorithm.LP,
    "lp2": EquilibriumAlgorithm.LP2,
    "primal2": EquilibriumAlgorithm.LP2,
    "dlp": EquilibriumAlgorithm.DLP,
    "dual": EquilibriumAlgorithm.DLP,
    "pp": EquilibriumAlgorithm.PP,
    "polytope": EquilibriumAlgorithm.PP,
    "half_space": EquilibriumAlgorithm.PP,
    "halfspace": EquilibriumAlgorithm.PP,
    "ip": EquilibriumAlgorithm.IP,
    "dip": EquilibriumAlgorithm.DIP,
}


def normalize_solver_type(solver: Union[str, SolverLP]) -> SolverLP:
    """
    Resolve a solver name (case insensitive) to a SolverLP.

    Raises:
        ValidationError: If the solver is unknown.
    """
    if isinstance(solver, SolverLP):
        return solver
    if solver is None:
        raise ValidationError("solver is None")
    key = str(solver).strip().lower()
    if key not in SOLVER_ALIASES:
        raise ValidationError(f"Unknown LP solver: {solver}")
    return SOLVER_ALIASES[key]


def normalize_algorithm(algorithm: Union[str, EquilibriumAlgorithm]) -> EquilibriumAlgorithm:
    """
    Resolve an algorithm name (case insensitive) to an EquilibriumAlgorithm.

    Raises:
        ValidationError: If the algorithm is unknown.
    """
    if isinstance(algorithm, EquilibriumAlgorithm):
        return algorithm
    if algorithm is None:
        raise ValidationError("algorithm is None")
    key = str(algorithm).strip().lower()
    if key not in ALGORITHM_ALIASES:
        raise ValidationError(f"Unknown equilibrium algorithm: {algorithm}")
    return ALGORITHM_ALIASES[key]


@dataclass
class EngineConfig:
    """Settings of one StaticEquilibrium engine."""
    name: str = "robot"
    mass: float = 1.0
    generators_per_contact: int = 4
    solver: str = "highs"
    use_warm_start: bool = True
    gravity: List[float] = field(default_factory=lambda: [0.0, 0.0, -9.81])

    # Query recording (disabled when record_dir is None)
    record_dir: Optional[str] = None
    dump_lps: bool = False

    def __post_init__(self):
        if self.mass <= 0.0:
            raise ValidationError(f"mass must be positive, got {self.mass}")
        if len(self.gravity) != 3:
            raise ValidationError(f"gravity must have 3 components, got {len(self.gravity)}")
        normalize_solver_type(self.solver)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'name': self.name,
            'mass': float(self.mass),
            'generators_per_contact': int(self.generators_per_contact),
            'solver': self.solver,
            'use_warm_start': bool(self.use_warm_start),
            'gravity': [float(g) for g in self.gravity],
            'record_dir': self.record_dir,
            'dump_lps': bool(self.dump_lps),
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'EngineConfig':
        """Create from dictionary, ignoring unknown keys."""
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


@dataclass
class ContactSet:
    """A contact set as accepted by StaticEquilibrium.set_new_contacts()."""
    points: np.ndarray
    normals: np.ndarray
    friction_coefficient: float = 0.5
    algorithm: str = "LP"

    def __post_init__(self):
        self.points = np.asarray(self.points, dtype=float).reshape(-1, 3)
        self.normals = np.asarray(self.normals, dtype=float).reshape(-1, 3)
        if self.points.shape != self.normals.shape:
            raise ValidationError(f"Got {self.points.shape[0]} contact points but "
                                  f"{self.normals.shape[0]} normals")
        normalize_algorithm(self.algorithm)

    @property
    def num_contacts(self) -> int:
        return self.points.shape[0]

    def to_dict(self) -> dict:
        return {
            'friction_coefficient': float(self.friction_coefficient),
            'algorithm': str(self.algorithm),
            'points': self.points.tolist(),
            'normals': self.normals.tolist(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'ContactSet':
        return cls(
            points=d.get('points', []),
            normals=d.get('normals', []),
            friction_coefficient=d.get('friction_coefficient', 0.5),
            algorithm=d.get('algorithm', 'LP'),
        )


def _load(path: Union[str, Path]) -> dict:
    path = Path(path)
    with open(path, 'r') as f:
        if path.suffix in ['.yaml', '.yml']:
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    return data or {}


def _save(data: dict, path: Union[str, Path]):
    path = Path(path)
    with open(path, 'w') as f:
        if path.suffix in ['.yaml', '.yml']:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(data, f, indent=2)


def load_engine_config(path: Union[str, Path]) -> EngineConfig:
    """Load an EngineConfig from a YAML or JSON file."""
    return EngineConfig.from_dict(_load(path))


def save_engine_config(config: EngineConfig, path: Union[str, Path]):
    """Save an EngineConfig to YAML (.yaml/.yml) or JSON."""
    _save(config.to_dict(), path)


def load_contact_set(path: Union[str, Path]) -> ContactSet:
    """Load a ContactSet from a YAML or JSON file."""
    return ContactSet.from_dict(_load(path))


def save_contact_set(contact_set: ContactSet, path: Union[str, Path]):
    """Save a ContactSet to YAML (.yaml/.yml) or JSON."""
    _save(contact_set.to_dict(), path)
