"""
Korobov Lattice Point Sets
==========================

A Korobov lattice with n points in d dimensions is the rank-1 lattice
with generating vector

    z = (1, a, a^2, ..., a^{d-1}) mod n

When no generator ``a`` is given, it is chosen by maximizing one of:

    - "dual": λ₁(Λ^⊥)  [shortest vector in dual lattice]
    - "primal": λ₁(Λ)  [shortest vector in primal lattice]
    - "product": λ₁(Λ) × λ₁(Λ^⊥)  [product of shortest vectors]

References
----------
[1] Korobov, N.M. (1959). The approximate computation of multiple integrals.
[2] Sloan, I.H. and Joe, S. (1994). Lattice Methods for Multiple Integration.
"""

import logging
import numpy as np
from typing import Optional, Tuple

from .exceptions import ArgumentError
from .rank1 import Rank1Lattice, dual_lambda1, generating_matrix, primal_lambda1

logger = logging.getLogger(__name__)

CRITERION_LABELS = {
    "dual": "λ₁(Λ^⊥)",
    "primal": "λ₁(Λ)",
    "product": "λ₁(Λ)×λ₁(Λ^⊥)",
}


def korobov_vector(a: int, d: int, n: int) -> np.ndarray:
    """Generating vector (1, a, a^2, ..., a^{d-1}) mod n."""
    z = np.zeros(d, dtype=np.int64)
    power = 1 % n
    for j in range(d):
        z[j] = power
        power = (power * a) % n
    return z


class KorobovLattice(Rank1Lattice):
    """
    Korobov lattice, with an optional search for the generator.

    Parameters
    ----------
    n : int
        Number of points (should be prime for best results).
    d : int
        Dimension.
    a : int, optional
        Generator. If omitted, every 1 <= a < n is tried and the one that
        maximizes ``criterion`` is kept.
    criterion : str, optional
        "dual" (default), "primal" or "product".
    verbose : bool, optional
        Log the search progress at INFO level instead of DEBUG.

    Examples
    --------
    >>> lattice = KorobovLattice(n=101, d=3, criterion="product")
    >>> lattice.generator  # doctest: +SKIP
    """

    VALID_CRITERIA = ("dual", "primal", "product")

    def __init__(
        self,
        n: int,
        d: int,
        a: Optional[int] = None,
        criterion: str = "dual",
        verbose: bool = False
    ):
        if criterion not in self.VALID_CRITERIA:
            raise ArgumentError(
                f"Invalid criterion '{criterion}'. "
                f"Must be one of {self.VALID_CRITERIA}"
            )
        if n < 1 or d < 1:
            raise ArgumentError(f"n and d must be >= 1, got n={n}, d={d}")
        self.criterion = criterion
        self.verbose = verbose
        best = None
        if a is None:
            a, best = self._find_best_generator(n, d)
        super().__init__(n, korobov_vector(a, d, n))
        self.generator = a
        if best is not None:
            self._lambda1_primal, self._lambda1_dual = best

    def _criterion_value(self, lambda1_primal: float, lambda1_dual: float) -> float:
        """Criterion value; higher is better for all criteria."""
        if self.criterion == "dual":
            return lambda1_dual
        if self.criterion == "primal":
            return lambda1_primal
        return lambda1_primal * lambda1_dual

    def _find_best_generator(self, n: int, d: int) -> Tuple[int, Optional[Tuple[float, float]]]:
        level = logging.INFO if self.verbose else logging.DEBUG
        label = CRITERION_LABELS[self.criterion]
        logger.log(level, "Searching %d candidate generators (criterion: %s)...",
                   n - 1, label)

        best_a, best_value = 1, -np.inf
        best: Optional[Tuple[float, float]] = None
        for idx, a in enumerate(range(1, n)):
            T = generating_matrix(korobov_vector(a, d, n), n)
            l_primal = primal_lambda1(T)
            l_dual = dual_lambda1(T)
            value = self._criterion_value(l_primal, l_dual)
            if value > best_value:
                best_a, best_value, best = a, value, (l_primal, l_dual)
            if (idx + 1) % 100 == 0:
                logger.log(level, "  Processed %d/%d generators, best %s = %.6f",
                           idx + 1, n - 1, label, best_value)

        if best is not None:
            logger.log(level, "Best generator: a = %d, λ₁(Λ) = %.6f, λ₁(Λ^⊥) = %.6f",
                       best_a, best[0], best[1])
        return best_a, best

    def info(self) -> dict:
        info = super().info()
        info.update(generator=self.generator, criterion=self.criterion)
        return info

    def __repr__(self) -> str:
        return (f"KorobovLattice(n={self.num_points}, d={self.dimension}, "
                f"a={self.generator}, criterion='{self.criterion}')")
