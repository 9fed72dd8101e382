"""
Equilibrium Errors
==================
Exception taxonomy shared by the engine and its components.

Solver outcomes (infeasible, unbounded, ...) are NOT exceptions: "no
equilibrium exists" is a legitimate answer and is returned as an LPStatus.
"""


class EquilibriumError(Exception):
    """Base class for all robust equilibrium errors."""


class ValidationError(EquilibriumError, ValueError):
    """Malformed input: non-unit normal, mismatched counts, bad array shapes."""


class UnsupportedAlgorithmError(EquilibriumError):
    """Algorithm (or operation for the active algorithm) is not implemented."""


class NumericalInstabilityError(EquilibriumError):
    """Double description conversion produced an ill-formed polytope."""
