"""
Utility functions and shared state helpers for point sets.
"""

import math
import numpy as np
from typing import Callable, Iterator, List, Optional, Tuple


# Number of usable bits in bit-packed digits. Generator matrices stored in
# existing parameter files are left-justified on 31 bits, so this stays a
# compatibility constant.
MAXBITS = 31

# Added to shifted coordinates so that they never equal 0.
EPSILON_HALF = 2.0 ** -55

# Sentinel for an unbounded dimension or number of points.
INFINITE = math.inf


def format_count(x) -> str:
    """Format a cardinality, writing the sentinel as 'infinite'."""
    return "infinite" if x == INFINITE else str(int(x))


def format_base(x: float, b: int, digits: int) -> str:
    """
    Write a number of [0, 1) as a fraction in base ``b``.

    Parameters
    ----------
    x : float
        Value to format.
    b : int
        Base, 2 <= b <= 36.
    digits : int
        Number of digits after the radix point.

    Returns
    -------
    str
        The truncated expansion, e.g. ``format_base(0.75, 2, 4) == '0.1100'``.

    Examples
    --------
    >>> format_base(0.5, 3, 3)
    '0.111'
    """
    if not 2 <= b <= 36:
        raise ValueError(f"base must be in [2, 36], got {b}")
    alphabet = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = []
    for _ in range(digits):
        x *= b
        d = int(x)
        out.append(alphabet[d])
        x -= d
    return "0." + "".join(out)


class ShiftVector:
    """
    Per-coordinate random shift, grown on demand.

    The vector keeps ``dim`` active entries inside a buffer whose capacity
    grows by doubling. Entries are produced by ``draw(stream)``, one call
    per coordinate in increasing order, so that growing the vector in one
    step or several gives the same values for the same stream.

    Parameters
    ----------
    draw : callable
        ``draw(stream)`` returns one shift value.
    dtype : numpy dtype
        Storage type (int64 for digital shifts, float64 for shifts modulo 1).

    Notes
    -----
    Streams are ``numpy.random.Generator`` objects. A vector is detached when
    the point set moves to a copy of it: from then on it grows from a
    child stream, so the copy and the old vector never draw from the same
    generator.
    """

    def __init__(self, draw: Callable, dtype=np.int64):
        self._draw = draw
        self._dtype = dtype
        self._values: Optional[np.ndarray] = None
        self.dim = 0
        self.stream = None

    @property
    def capacity(self) -> int:
        return 0 if self._values is None else len(self._values)

    def copy(self) -> "ShiftVector":
        other = ShiftVector(self._draw, self._dtype)
        if self._values is not None:
            other._values = self._values.copy()
        other.dim = self.dim
        other.stream = self.stream
        return other

    def add(self, d1: int, d2: int, stream) -> None:
        """Draw new values for coordinates ``d1 <= j < d2``."""
        if self._values is None:
            self._values = np.zeros(d2, dtype=self._dtype)
        elif d2 > len(self._values):
            d3 = max(4, len(self._values))
            while d2 > d3:
                d3 *= 2
            temp = np.zeros(d3, dtype=self._dtype)
            temp[:self.dim] = self._values[:self.dim]
            self._values = temp
        self.dim = d2
        for j in range(d1, d2):
            self._values[j] = self._draw(stream)
        self.stream = stream

    def detach(self) -> None:
        """Grow from a child of the remembered stream from now on."""
        if self.stream is not None:
            self.stream = self.stream.spawn(1)[0]

    def ensure(self, n: int) -> None:
        """Extend the vector with the remembered stream to cover ``n`` coordinates."""
        if n > self.dim:
            self.add(self.dim, n, self.stream)

    def __getitem__(self, j):
        return self._values[j]

    def values(self, start: int, stop: int) -> np.ndarray:
        return self._values[start:stop]


def digital_shift_vector(num_bits: int) -> ShiftVector:
    """Shift vector drawing uniform integers on ``min(num_bits, MAXBITS)`` bits."""
    maxj = (1 << min(num_bits, MAXBITS)) - 1

    def draw(stream):
        return int(stream.integers(0, maxj, endpoint=True))

    return ShiftVector(draw, dtype=np.int64)


# ---------------------------------------------------------------------------
# Arithmetic on bit-packed vectors and on polynomials over GF(2).
# A polynomial is an int whose bit k is the coefficient of x^k.
# ---------------------------------------------------------------------------

def bit_positions(i: int) -> List[int]:
    """Positions of the bits set in ``i``, least significant first."""
    out = []
    c = 0
    while i:
        if i & 1:
            out.append(c)
        i >>= 1
        c += 1
    return out


def trailing_zeros(i: int) -> int:
    """Number of trailing zero bits of ``i > 0``."""
    return (i & -i).bit_length() - 1


def xor_columns(columns: np.ndarray, i: int) -> int:
    """XOR of ``columns[c]`` over the bits c set in ``i``."""
    x = 0
    for c in bit_positions(i):
        x ^= int(columns[c])
    return x


def gf2_mul(a: int, b: int) -> int:
    """Product of two polynomials over GF(2)."""
    result = 0
    while b:
        if b & 1:
            result ^= a
        a <<= 1
        b >>= 1
    return result


def gf2_mod(a: int, b: int) -> int:
    """Remainder of ``a`` divided by ``b`` over GF(2)."""
    db = b.bit_length()
    while a.bit_length() >= db:
        a ^= b << (a.bit_length() - db)
    return a


def is_irreducible(p: int) -> bool:
    """True if ``p`` (degree >= 1) has no factor of degree between 1 and deg(p)/2."""
    degree = p.bit_length() - 1
    if degree < 1:
        return False
    for q in range(2, 1 << (degree // 2 + 1)):
        if gf2_mod(p, q) == 0:
            return False
    return True


def irreducible_polynomials() -> Iterator[int]:
    """Irreducible polynomials over GF(2) in increasing order: x, x+1, x^2+x+1, ..."""
    p = 2
    while True:
        if is_irreducible(p):
            yield p
        p += 1


# ---------------------------------------------------------------------------
# Lattice reduction, used to rank Korobov generators.
# ---------------------------------------------------------------------------

def _gram_schmidt(B: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Squared norms of the Gram-Schmidt vectors of the rows of B, and the mu matrix."""
    n = B.shape[0]
    ortho = np.zeros_like(B)
    mu = np.eye(n)
    for i in range(n):
        v = B[i].copy()
        for j in range(i):
            mu[i, j] = np.dot(B[i], ortho[j]) / np.dot(ortho[j], ortho[j])
            v -= mu[i, j] * ortho[j]
        ortho[i] = v
    return np.einsum("ij,ij->i", ortho, ortho), mu


def lll_reduce(basis: np.ndarray, delta: float = 0.75) -> np.ndarray:
    """
    LLL-reduce a lattice basis.

    Parameters
    ----------
    basis : np.ndarray
        Array of shape (n, d) whose rows are linearly independent basis vectors.
    delta : float, optional
        Lovász constant, 0.25 < delta < 1 (default: 0.75).

    Returns
    -------
    np.ndarray
        Reduced basis; its rows span the same lattice.
    """
    B = np.array(basis, dtype=np.float64)
    n = B.shape[0]
    k = 1
    while k < n:
        norms, mu = _gram_schmidt(B)
        # Size reduction leaves the Gram-Schmidt vectors unchanged, only mu moves.
        for j in range(k - 1, -1, -1):
            q = round(mu[k, j])
            if q:
                B[k] -= q * B[j]
                mu[k, :j + 1] -= q * mu[j, :j + 1]
        if norms[k] >= (delta - mu[k, k - 1] ** 2) * norms[k - 1]:
            k += 1
        else:
            B[[k - 1, k]] = B[[k, k - 1]]
            k = max(k - 1, 1)
    return B


def shortest_vector_length(basis: np.ndarray) -> float:
    """
    Estimate the length of the shortest non-zero vector in a lattice.

    The basis (rows are basis vectors) is LLL-reduced first; the shortest
    reduced vector is returned.
    """
    return float(np.min(np.linalg.norm(lll_reduce(basis), axis=1)))
