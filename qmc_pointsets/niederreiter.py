"""
Niederreiter Sequences in Base 2
================================

The first ``2^k`` points of the Niederreiter sequence in base 2, as a
digital net. The generator matrices of all supported dimensions come
from one process-wide table of ``NIED_MAXDIM x NIED_NUMCOLS`` packed
columns, loaded once and shared read-only by every instance.

The table is read from the file named by the environment variable
``QMC_POINTSETS_NIED_TABLE`` when it is set (whitespace-separated
integers, dimension-major, ``//`` comments allowed). Otherwise it is
built from the Niederreiter construction over the irreducible
polynomials of GF(2), taken in increasing order (Bratley, Fox and
Niederreiter, ACM TOMS 2(1), 1992).

Each table entry packs one column on 30 bits, the first output digit in
bit 29.
"""

import functools
import logging
import os
from itertools import islice
from typing import List

import numpy as np

from .digital_net import DigitalNetBase2
from .digital_net_file import read_source, tokenize
from .exceptions import ArgumentError, FatalLoadError
from .utils import MAXBITS, gf2_mul, irreducible_polynomials

logger = logging.getLogger(__name__)

NIED_MAXDIM = 318
NIED_NUMCOLS = 30
TABLE_ENV_VAR = "QMC_POINTSETS_NIED_TABLE"


def _niederreiter_columns(poly: int, nbits: int = NIED_NUMCOLS) -> List[int]:
    """
    Packed generator columns of the dimension associated with ``poly``.

    Column ``c`` holds, from bit ``nbits - 1`` down to bit 0, the output
    digits that digit ``c`` of the point index contributes to.
    """
    degree = poly.bit_length() - 1
    maxv = nbits + degree
    v = [0] * (maxv + 1)
    ci = [[0] * nbits for _ in range(nbits)]
    pb = 1
    u = 0
    for j in range(nbits):
        if u == 0:
            # Next block of the expansion of b(x) / p(x)^e.
            bigm = pb.bit_length() - 1
            pb = gf2_mul(poly, pb)
            m = pb.bit_length() - 1
            for r in range(bigm):
                v[r] = 0
            v[bigm] = 1
            for r in range(bigm + 1, m):
                v[r] = 1
            for r in range(maxv - m + 1):
                term = 0
                for k in range(m):
                    if (pb >> k) & 1:
                        term ^= v[r + k]
                v[r + m] = term
        for r in range(nbits):
            ci[r][j] = v[r + u]
        u += 1
        if u == degree:
            u = 0

    columns = []
    for r in range(nbits):
        term = 0
        for j in range(nbits):
            term = (term << 1) | ci[r][j]
        columns.append(term)
    return columns


def build_niederreiter_table(dim: int = NIED_MAXDIM, nbits: int = NIED_NUMCOLS) -> np.ndarray:
    """Compute the (dim, nbits) table of packed Niederreiter columns."""
    polys = islice(irreducible_polynomials(), dim)
    return np.array([_niederreiter_columns(p, nbits) for p in polys], dtype=np.int64)


def _read_table(path: str) -> np.ndarray:
    text, name = read_source(path)
    values = []
    for token in tokenize(text):
        try:
            values.append(int(token))
        except ValueError:
            raise FatalLoadError(f"malformed Niederreiter table {name}: "
                                 f"token {token!r}") from None
    expected = NIED_MAXDIM * NIED_NUMCOLS
    if len(values) != expected:
        raise FatalLoadError(f"Niederreiter table {name} has {len(values)} "
                             f"entries, expected {expected}")
    table = np.array(values, dtype=np.int64).reshape(NIED_MAXDIM, NIED_NUMCOLS)
    if table.min() < 0 or table.max() >= 1 << NIED_NUMCOLS:
        raise FatalLoadError(f"Niederreiter table {name} has entries wider "
                             f"than {NIED_NUMCOLS} bits")
    return table


@functools.lru_cache(maxsize=None)
def niederreiter_table() -> np.ndarray:
    """
    Return the shared, read-only Niederreiter table.

    The table is produced on the first call only.

    Raises
    ------
    FatalLoadError
        If the configured table file is missing or malformed. No point
        set can be built without it; the caller decides whether to stop.
    """
    path = os.environ.get(TABLE_ENV_VAR)
    try:
        if path:
            logger.debug("Loading Niederreiter table from %s", path)
            table = _read_table(path)
        else:
            logger.debug("Building Niederreiter table for %d dimensions", NIED_MAXDIM)
            table = build_niederreiter_table()
    except FatalLoadError:
        logger.critical("Cannot load the Niederreiter table from %s", path)
        raise
    except OSError as e:
        logger.critical("Cannot load the Niederreiter table from %s", path)
        raise FatalLoadError(f"cannot read Niederreiter table {path}: {e}") from e
    table.setflags(write=False)
    return table


class NiedSequenceBase2(DigitalNetBase2):
    """
    First ``2^k`` points of the Niederreiter sequence in base 2.

    Parameters
    ----------
    k : int
        There are 2^k points, 0 <= k <= 30.
    w : int
        Number of output digits, k <= w <= 31. The matrices are w x k.
    dim : int
        Dimension, 1 <= dim <= 318.

    Examples
    --------
    >>> seq = NiedSequenceBase2(k=4, w=10, dim=2)
    >>> seq.num_points
    16
    >>> seq.extend_sequence(6)
    >>> seq.num_points
    64
    """

    def __init__(self, k: int, w: int, dim: int):
        super().__init__(self._generator(k, w, w, dim), out_digits=w, num_rows=w)

    @staticmethod
    def _generator(k: int, r: int, w: int, dim: int) -> np.ndarray:
        if not 1 <= dim <= NIED_MAXDIM:
            raise ArgumentError(
                f"Dimension for NiedSequenceBase2 must be >= 1 and <= {NIED_MAXDIM}")
        if not 0 <= k < MAXBITS or r < k or w < r or w > MAXBITS:
            raise ArgumentError(
                f"One must have k < {MAXBITS} and k <= r <= w <= {MAXBITS} "
                f"for NiedSequenceBase2")
        table = niederreiter_table()
        return (table[:dim, :k] << 1) >> (MAXBITS - w)

    def extend_sequence(self, k: int) -> None:
        """Rebuild the matrices for 2^k points, keeping w and the dimension."""
        r, w = self.num_rows, self.out_digits
        self._set_generator(self._generator(k, r, w, self.dimension), w, r)

    def __str__(self) -> str:
        return "Niederreiter sequence:\n" + super().__str__()
