"""
Rank-1 Lattice Point Sets
=========================

A rank-1 lattice with n points in d dimensions is defined by an integer
generating vector ``a = (a_1, ..., a_d)``:

    P_n = { ({k a_1 / n}, ..., {k a_d / n}) : k = 0, 1, ..., n-1 }

where {x} denotes the fractional part. Coordinates are computed from
exact integer products, so ``get_coordinate(k, j)`` is ``((k a_j) mod n) / n``.

A random shift for lattices adds one uniform value per coordinate,
modulo 1.

The generating matrix B of the lattice is obtained from a component
``a_p`` coprime to n:

    B = [[1/n,             0, ..., 0],
         [a_p^{-1} a_1 / n, 1, ..., 0],
         [...,             ..., ..., ...],
         [a_p^{-1} a_d / n, 0, ..., 1]]

(the pivot coordinate is put first), and the dual lattice has basis B^{-T}.

References
----------
[1] Sloan, I.H. and Joe, S. (1994). Lattice Methods for Multiple Integration.
"""

import numpy as np
from math import gcd
from typing import Optional, Sequence

from .exceptions import ArgumentError
from .point_set import PointSet
from .utils import EPSILON_HALF, ShiftVector, shortest_vector_length


def generating_matrix(z: np.ndarray, n: int) -> np.ndarray:
    """
    Compute the generating matrix of the rank-1 lattice with vector ``z``.

    Parameters
    ----------
    z : np.ndarray
        Generating vector of shape (d,).
    n : int
        Number of points.

    Returns
    -------
    np.ndarray
        Generating matrix of shape (d, d); its columns are basis vectors.
    """
    d = len(z)
    pivot = next((j for j in range(d) if gcd(int(z[j]), n) == 1), None)
    B = np.eye(d, dtype=np.float64)
    B[0, 0] = 1.0 / n
    if pivot is None:
        for i in range(1, d):
            B[i, 0] = float(z[i]) / n
        return B

    inv = pow(int(z[pivot]), -1, n)
    row = 1
    for i in range(d):
        if i != pivot:
            B[row, 0] = (inv * int(z[i]) % n) / n
            row += 1
    return B


def primal_lambda1(T: np.ndarray) -> float:
    """Shortest vector length λ₁(Λ) of the lattice with generating matrix T."""
    # shortest_vector_length expects rows as basis vectors
    return shortest_vector_length(T.T)


def dual_lambda1(T: np.ndarray) -> float:
    """Shortest vector length λ₁(Λ^⊥) of the dual lattice, with basis T^{-T}."""
    dual_basis = np.linalg.inv(T).T
    return shortest_vector_length(dual_basis.T)


class Rank1Lattice(PointSet):
    """
    Rank-1 lattice point set.

    Parameters
    ----------
    n : int
        Number of points.
    a : sequence of int
        Generating vector; its length is the dimension.

    Attributes
    ----------
    generating_vector : np.ndarray
        The vector a reduced modulo n.

    Examples
    --------
    >>> lattice = Rank1Lattice(8, [1, 3])
    >>> lattice.get_coordinate(3, 1)
    0.125
    """

    def __init__(self, n: int, a: Sequence[int]):
        super().__init__()
        if n < 1:
            raise ArgumentError(f"n must be >= 1, got {n}")
        a = np.asarray(a, dtype=np.int64)
        if a.ndim != 1 or len(a) == 0:
            raise ArgumentError("a must be a non-empty vector")
        self._n = n
        self.generating_vector = a % n
        self._num_points = n
        self._dim = len(a)
        self._lambda1_primal: Optional[float] = None
        self._lambda1_dual: Optional[float] = None

    def get_coordinate(self, i: int, j: int) -> float:
        if not 0 <= j < self._dim:
            raise ArgumentError(f"coordinate index {j} out of range [0, {self._dim})")
        x = (i * int(self.generating_vector[j])) % self._n / self._n
        if self._shift is None:
            return x
        self._shift.ensure(j + 1)
        x += float(self._shift[j])
        if x >= 1.0:
            x -= 1.0
        if x <= 0.0:
            x = EPSILON_HALF
        return x

    def add_random_shift(self, d1: int = 0, d2: Optional[int] = None, stream=None) -> None:
        """Add one uniform value of [0, 1) to each coordinate ``d1 <= j < d2``, modulo 1."""
        self._grow_shift(d1, d2, stream,
                         lambda: ShiftVector(lambda s: float(s.random()), dtype=np.float64))

    @property
    def lambda1_primal(self) -> float:
        """Shortest vector length in the primal lattice."""
        if self._lambda1_primal is None:
            self._lambda1_primal = primal_lambda1(
                generating_matrix(self.generating_vector, self._n))
        return self._lambda1_primal

    @property
    def lambda1_dual(self) -> float:
        """Shortest vector length in the dual lattice."""
        if self._lambda1_dual is None:
            self._lambda1_dual = dual_lambda1(
                generating_matrix(self.generating_vector, self._n))
        return self._lambda1_dual

    def info(self) -> dict:
        """Return a dictionary with lattice information."""
        return {
            "type": type(self).__name__,
            "dimension": self._dim,
            "num_points": self._n,
            "generating_vector": self.generating_vector.tolist(),
            "shift_dimension": self.shift_dimension,
        }

    def __str__(self) -> str:
        return (f"Rank-1 lattice, a = {self.generating_vector.tolist()}\n"
                + super().__str__())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n={self._n}, a={self.generating_vector.tolist()})"
