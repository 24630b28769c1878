"""
Digital Nets in Base 2
======================

A digital net in base 2 with ``2^k`` points in ``s`` dimensions is defined
by one ``w x k`` generator matrix ``C_j`` over GF(2) per coordinate. For a
point index ``i = sum_c a_c 2^c``, the binary digits of coordinate ``j`` are

    (u_{i,j,1}, ..., u_{i,j,w})^T = C_j (a_0, ..., a_{k-1})^T   (mod 2)

Column ``c`` of ``C_j`` is stored bit-packed as one integer whose bit
``w - 1`` is the first output digit, so that coordinate ``j`` of point
``i`` is the XOR of the columns selected by the bits of ``i``, times
``2^-w``.

Generator columns read from parameter files are left-justified on
:data:`MAXBITS` = 31 bits; :func:`mask_rows` truncates them to the
requested number of rows and aligns them on ``w`` bits.
"""

import logging
import numpy as np
from typing import Optional

from .exceptions import ArgumentError
from .point_set import PointSet, PointSetIterator
from .utils import (
    EPSILON_HALF,
    MAXBITS,
    bit_positions,
    digital_shift_vector,
    trailing_zeros,
    xor_columns,
)

logger = logging.getLogger(__name__)


def mask_rows(columns: np.ndarray, r: int, w: int) -> np.ndarray:
    """
    Keep the ``r`` most significant of the 31 bits and align them on ``w`` bits.

    Parameters
    ----------
    columns : np.ndarray
        Left-justified 31-bit columns.
    r : int
        Number of rows to keep.
    w : int
        Output resolution, r <= w <= 31.

    Returns
    -------
    np.ndarray
        Masked columns, shifted right by ``31 - w``.
    """
    mask = ((1 << r) - 1) << (MAXBITS - r)
    return (np.asarray(columns, dtype=np.int64) & mask) >> (MAXBITS - w)


class DigitalNetBase2(PointSet):
    """
    Digital net in base 2 given by its generator matrices.

    Parameters
    ----------
    gen_mat : array_like of int
        Array of shape (dim, num_cols); entry ``[j, c]`` is column ``c`` of
        ``C_j`` packed on ``out_digits`` bits.
    out_digits : int
        Output resolution w, at most 31.
    num_rows : int, optional
        Number of meaningful rows of the matrices (default: out_digits).

    Attributes
    ----------
    num_cols : int
        k; the net has 2^k points.
    norm_factor : float
        2^-w.

    Examples
    --------
    >>> net = DigitalNetBase2([[4, 2, 1]], out_digits=3)
    >>> [net.get_coordinate(i, 0) for i in range(4)]
    [0.0, 0.5, 0.25, 0.75]
    """

    def __init__(self, gen_mat, out_digits: int = MAXBITS, num_rows: Optional[int] = None):
        super().__init__()
        self._set_generator(np.array(gen_mat, dtype=np.int64), out_digits,
                            out_digits if num_rows is None else num_rows)

    @classmethod
    def from_columns(cls, columns, num_rows: int = MAXBITS,
                     out_digits: int = MAXBITS) -> "DigitalNetBase2":
        """Build a net from 31-bit left-justified columns, keeping ``num_rows`` rows."""
        if not 0 <= num_rows <= out_digits <= MAXBITS:
            raise ArgumentError(f"Must have 0 <= num_rows <= w <= {MAXBITS}")
        return cls(mask_rows(columns, num_rows, out_digits), out_digits, num_rows)

    def _set_generator(self, gen_mat: np.ndarray, out_digits: int, num_rows: int) -> None:
        if gen_mat.ndim != 2 or gen_mat.shape[0] < 1:
            raise ArgumentError("gen_mat must have shape (dim, num_cols) with dim >= 1")
        num_cols = gen_mat.shape[1]
        if num_cols >= MAXBITS:
            raise ArgumentError(f"Must have num_cols < {MAXBITS}")
        if not 0 <= num_rows <= out_digits <= MAXBITS:
            raise ArgumentError(f"Must have num_rows <= w <= {MAXBITS}")
        if gen_mat.size and (gen_mat.min() < 0 or gen_mat.max() >= 1 << out_digits):
            raise ArgumentError(f"generator columns must fit in {out_digits} bits")
        self._gen_mat = gen_mat
        self._gen_mat.setflags(write=False)
        self._num_cols = num_cols
        self._num_rows = num_rows
        self._out_digits = out_digits
        self._norm_factor = 1.0 / (1 << out_digits)
        self._num_points = 1 << num_cols
        self._dim = gen_mat.shape[0]

    @property
    def num_cols(self) -> int:
        return self._num_cols

    @property
    def num_rows(self) -> int:
        return self._num_rows

    @property
    def out_digits(self) -> int:
        return self._out_digits

    @property
    def norm_factor(self) -> float:
        return self._norm_factor

    @property
    def generator_matrix(self) -> np.ndarray:
        """Read-only (dim, num_cols) array of packed columns."""
        return self._gen_mat

    def point_digits(self, i: int) -> np.ndarray:
        """Unshifted digits of point ``i`` in every coordinate, as w-bit integers."""
        if not 0 <= i < self._num_points:
            raise ArgumentError(f"point index {i} out of range [0, {self._num_points})")
        return _point_digits(self._gen_mat, i)

    def get_coordinate(self, i: int, j: int) -> float:
        if not 0 <= i < self._num_points:
            raise ArgumentError(f"point index {i} out of range [0, {self._num_points})")
        if not 0 <= j < self._dim:
            raise ArgumentError(f"coordinate index {j} out of range [0, {self._dim})")
        x = xor_columns(self._gen_mat[j], i)
        if self._shift is None:
            return x * self._norm_factor
        self._shift.ensure(j + 1)
        return (x ^ int(self._shift[j])) * self._norm_factor + EPSILON_HALF

    def iterator(self) -> "DigitalNetIterator":
        """Iterator over the points in natural order 0, 1, 2, ..."""
        return DigitalNetIterator(self)

    def iterator_gray(self) -> "GrayCodeIterator":
        """Iterator visiting point ``i ^ (i >> 1)`` at position ``i``."""
        return GrayCodeIterator(self)

    def add_random_shift(self, d1: int = 0, d2: Optional[int] = None, stream=None) -> None:
        """XOR coordinates ``d1 <= j < d2`` with random ``w``-bit integers."""
        self._grow_shift(d1, d2, stream, lambda: digital_shift_vector(self._out_digits))

    def __str__(self) -> str:
        return (f"Digital net in base 2\n"
                f"Number of columns k: {self._num_cols}\n"
                f"Number of rows r: {self._num_rows}\n"
                f"Output digits w: {self._out_digits}\n" + super().__str__())

    def format_generator_matrices(self) -> str:
        """Dump the packed generator columns, one block per dimension."""
        lines = [str(self), f"dim = {self._dim}"]
        for j in range(self._dim):
            lines.append(f"\n// dim = {j + 1}")
            lines.extend(str(int(v)) for v in self._gen_mat[j])
        lines.append("--------------------------------")
        return "\n".join(lines) + "\n"


class DigitalNetIterator(PointSetIterator):
    """
    Natural-order iterator over a digital net.

    The unshifted digits of the current point are computed once, for all
    coordinates, the first time a coordinate of that point is read. The
    generator matrix and shift vector are those in place when the
    iterator was created.
    """

    def __init__(self, point_set: DigitalNetBase2):
        super().__init__(point_set)
        self._gen_mat = point_set.generator_matrix
        self._shift = point_set._shift
        self._norm_factor = point_set.norm_factor
        self._digits: Optional[np.ndarray] = None

    def _dimension(self):
        return self._gen_mat.shape[0]

    def _num_points(self):
        return 1 << self._gen_mat.shape[1]

    def _net_index(self, i: int) -> int:
        return i

    def _current_digits(self) -> np.ndarray:
        if self._digits is None:
            self._digits = _point_digits(self._gen_mat, self._net_index(self._cur_point))
        return self._digits

    def set_cur_point_index(self, i: int) -> None:
        self._cur_point = i
        self._cur_coord = 0
        self._digits = None

    def next_coordinate(self) -> float:
        if self._cur_point >= self._num_points() or self._cur_coord >= self._dimension():
            self._out_of_bounds()
        x = int(self._current_digits()[self._cur_coord])
        if self._shift is None:
            self._cur_coord += 1
            return x * self._norm_factor
        self._shift.ensure(self._cur_coord + 1)
        x ^= int(self._shift[self._cur_coord])
        self._cur_coord += 1
        return x * self._norm_factor + EPSILON_HALF

    def next_coordinates(self, d: int, out: Optional[np.ndarray] = None) -> np.ndarray:
        if d < 0:
            raise ArgumentError("d must be non-negative")
        if self._cur_point >= self._num_points() or self._cur_coord + d > self._dimension():
            self._out_of_bounds()
        start = self._cur_coord
        x = self._current_digits()[start:start + d]
        if self._shift is None:
            values = x * self._norm_factor
        else:
            self._shift.ensure(start + d)
            values = (x ^ self._shift.values(start, start + d)) * self._norm_factor \
                + EPSILON_HALF
        self._cur_coord += d
        if out is None:
            return values
        out[:d] = values
        return out


class GrayCodeIterator(DigitalNetIterator):
    """
    Iterator visiting the net in Gray-code order.

    Position ``i`` holds net point ``g(i) = i ^ (i >> 1)``. Since ``g(i)``
    and ``g(i + 1)`` differ only in the bit at position
    ``trailing_zeros(i + 1)``, moving to the next point XORs a single
    generator column into the current digits.
    """

    def _net_index(self, i: int) -> int:
        return i ^ (i >> 1)

    @property
    def net_point_index(self) -> int:
        """Index in the net of the point at the current position."""
        return self._net_index(self._cur_point)

    def reset_to_next_point(self) -> int:
        i = self._cur_point + 1
        if 0 < i < self._num_points():
            self._current_digits()
            self._digits = self._digits ^ self._gen_mat[:, trailing_zeros(i)]
            self._cur_point = i
            self._cur_coord = 0
        else:
            self.set_cur_point_index(i)
        return self._cur_point


def _point_digits(gen_mat: np.ndarray, i: int) -> np.ndarray:
    cols = bit_positions(i)
    if not cols:
        return np.zeros(gen_mat.shape[0], dtype=np.int64)
    return np.bitwise_xor.reduce(gen_mat[:, cols], axis=1)
