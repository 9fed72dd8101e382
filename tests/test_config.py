"""
Configuration Tests
===================
YAML/JSON files and name aliases.
"""

import numpy as np
import pytest
import yaml

from robust_equilibrium import (
    ContactSet,
    EngineConfig,
    EquilibriumAlgorithm,
    SolverLP,
    ValidationError,
    load_contact_set,
    load_engine_config,
    normalize_algorithm,
    normalize_solver_type,
    save_contact_set,
    save_engine_config,
)


def test_engine_config_yaml_roundtrip(tmp_path):
    config = EngineConfig(name="hrp2", mass=54.0, generators_per_contact=6,
                          solver="osqp", gravity=[0.0, 0.0, -9.8])
    path = tmp_path / "engine.yaml"
    save_engine_config(config, path)

    with open(path) as f:
        raw = yaml.safe_load(f)
    assert raw["name"] == "hrp2"

    loaded = load_engine_config(path)
    assert loaded == config


def test_engine_config_ignores_unknown_keys():
    config = EngineConfig.from_dict({"name": "x", "mass": 2.0, "controller": "mpc"})
    assert config.name == "x"
    assert config.mass == 2.0


def test_engine_config_validation():
    with pytest.raises(ValidationError):
        EngineConfig(mass=0.0)
    with pytest.raises(ValidationError):
        EngineConfig(gravity=[0.0, -9.81])
    with pytest.raises(ValidationError):
        EngineConfig(solver="cplex")


def test_contact_set_json_roundtrip(tmp_path):
    contacts = ContactSet(points=[[0.1, 0.05, 0.0], [-0.1, -0.05, 0.0]],
                          normals=[[0.0, 0.0, 1.0], [0.0, 0.0, 1.0]],
                          friction_coefficient=0.7, algorithm="PP")
    path = tmp_path / "contacts.json"
    save_contact_set(contacts, path)

    loaded = load_contact_set(path)
    assert loaded.num_contacts == 2
    assert loaded.friction_coefficient == 0.7
    assert normalize_algorithm(loaded.algorithm) == EquilibriumAlgorithm.PP
    np.testing.assert_allclose(loaded.points, contacts.points)
    np.testing.assert_allclose(loaded.normals, contacts.normals)


def test_contact_set_count_mismatch():
    with pytest.raises(ValidationError):
        ContactSet(points=[[0.0, 0.0, 0.0]], normals=[[0.0, 0.0, 1.0], [0.0, 0.0, 1.0]])


@pytest.mark.parametrize("name,expected", [
    ("highs", SolverLP.HIGHS),
    ("LP_HIGHS", SolverLP.HIGHS),
    (" scipy ", SolverLP.HIGHS),
    ("osqp", SolverLP.OSQP),
    (SolverLP.OSQP, SolverLP.OSQP),
])
def test_solver_aliases(name, expected):
    assert normalize_solver_type(name) == expected


@pytest.mark.parametrize("name,expected", [
    ("lp", EquilibriumAlgorithm.LP),
    ("Primal2", EquilibriumAlgorithm.LP2),
    ("dual", EquilibriumAlgorithm.DLP),
    ("half_space", EquilibriumAlgorithm.PP),
    (EquilibriumAlgorithm.DIP, EquilibriumAlgorithm.DIP),
])
def test_algorithm_aliases(name, expected):
    assert normalize_algorithm(name) == expected


def test_unknown_names_rejected():
    with pytest.raises(ValidationError):
        normalize_solver_type("glpk")
    with pytest.raises(ValidationError):
        normalize_algorithm("bisection")
