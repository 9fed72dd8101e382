"""
Polytope Projector
==================
Converts the wrench generator cone (V-representation) into a half-space
representation with the double description method (pycddlib).

cdd returns rows [b | A] meaning b + A x >= 0. They are stored as

    H x <= h    with    h = b,  H = -A

and every equality row is additionally stored negated, so that both
directions of the equality become one-sided inequalities.
"""

import logging
import threading
import numpy as np
from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from .errors import NumericalInstabilityError


logger = logging.getLogger(__name__)


class DoubleDescriptionBackend:
    """
    Process-scoped state of the double description library.

    setup() is idempotent and runs once, guarded by a lock; release() is
    optional and only drops the module reference.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._initialized = False
        self._cdd = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    def setup(self):
        if self._initialized:
            return
        with self._lock:
            if self._initialized:
                return
            import cdd
            self._cdd = cdd
            self._initialized = True
            logger.debug("[POLYTOPE] Double description library initialized")

    def release(self):
        with self._lock:
            self._cdd = None
            self._initialized = False

    def cone_to_halfspace(self, V: np.ndarray) -> Tuple[np.ndarray, FrozenSet[int]]:
        """
        Half-space representation of a cone/polytope given in generator form.

        Args:
            V: Generator rows [t | v], t = 0 for rays, t = 1 for vertices

        Returns:
            (rows, lin_set) - rows is (k, 1 + dim) with rows [b | A] meaning
            b + A x >= 0; lin_set holds the indices of equality rows

        Raises:
            NumericalInstabilityError: If cdd fails on the input.
        """
        self.setup()
        cdd = self._cdd
        try:
            mat = cdd.matrix_from_array(np.asarray(V, dtype=float).tolist(),
                                        rep_type=cdd.RepType.GENERATOR)
            poly = cdd.polyhedron_from_matrix(mat)
            ineq = cdd.copy_inequalities(poly)
        except (RuntimeError, ValueError) as e:
            raise NumericalInstabilityError(f"numerical instability in cddlib, ill formed polytope: {e}") from e

        dim = np.asarray(V).shape[1]
        rows = np.array(ineq.array, dtype=float).reshape(-1, dim)
        return rows, frozenset(int(i) for i in ineq.lin_set)


_DEFAULT_BACKEND: Optional[DoubleDescriptionBackend] = None


def get_default_backend() -> DoubleDescriptionBackend:
    """Shared backend instance for the whole process."""
    global _DEFAULT_BACKEND
    if _DEFAULT_BACKEND is None:
        _DEFAULT_BACKEND = DoubleDescriptionBackend()
    return _DEFAULT_BACKEND


@dataclass(frozen=True)
class HalfSpaceCache:
    """Half-space representation folded with the gravity wrench terms."""
    H: np.ndarray
    h: np.ndarray
    HD: np.ndarray
    Hd: np.ndarray

    def contains(self, com: np.ndarray) -> bool:
        """True if HD com + Hd <= 0 componentwise."""
        res = self.HD @ np.asarray(com, dtype=float).reshape(3) + self.Hd
        return bool(np.all(res <= 0.0))


class PolytopeProjector:
    """Computes the half-space cache of a wrench generator matrix."""

    def __init__(self, backend: Optional[DoubleDescriptionBackend] = None):
        self.backend = backend or get_default_backend()

    def compute_polytope_projection(self, G: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Half-space representation (H, h) of the cone spanned by the columns of G.

        Raises:
            NumericalInstabilityError: If the conversion fails.
        """
        G = np.asarray(G, dtype=float)
        V = np.hstack([np.zeros((G.shape[1], 1)), G.T])
        rows, lin_set = self.backend.cone_to_halfspace(V)

        eq_rows = sorted(lin_set)
        n_rows = rows.shape[0]
        H = np.zeros((n_rows + len(eq_rows), G.shape[0]))
        h = np.zeros(n_rows + len(eq_rows))
        h[:n_rows] = rows[:, 0]
        H[:n_rows] = -rows[:, 1:]
        for k, row in enumerate(eq_rows):
            h[n_rows + k] = -h[row]
            H[n_rows + k] = -H[row]

        logger.debug(f"[POLYTOPE] {n_rows} inequalities, {len(eq_rows)} equalities")
        return H, h

    def project(self, G: np.ndarray, D: np.ndarray, d: np.ndarray) -> HalfSpaceCache:
        """Half-space representation pre-multiplied with the gravity terms."""
        H, h = self.compute_polytope_projection(G)
        return HalfSpaceCache(H=H, h=h, HD=H @ D, Hd=H @ d)
