"""
Cycle-Based Point Sets in Base 2
================================

Point sets whose points are the successive states of a GF(2) linear
recurrence. The state space splits into disjoint cycles; point ``i`` is
the run of values starting at its position in its cycle, so coordinate
``j`` is the value ``j`` steps further along (wrapping around the cycle).

Values are stored as ``k``-bit integers and only divided by ``2^k`` when
a coordinate is read. A digital shift is then an exact XOR on the
stored bits.
"""

import logging
import numpy as np
from typing import List, Optional, Sequence

from .exceptions import ArgumentError
from .point_set import PointSet, PointSetIterator
from .utils import EPSILON_HALF, INFINITE, MAXBITS, digital_shift_vector, format_count

logger = logging.getLogger(__name__)


class CycleBasedPointSetBase2(PointSet):
    """
    Point set stored as disjoint cycles of ``num_bits``-bit integers.

    Parameters
    ----------
    cycles : sequence of sequences of int
        The cycles; point indices run through the cycles in order.
    num_bits : int
        Number of bits of the stored values, 1 <= num_bits <= 31.
    dim : int or INFINITE, optional
        Dimension of the point set (default: INFINITE).

    Examples
    --------
    >>> ps = CycleBasedPointSetBase2([[0], [1, 2, 3]], num_bits=2, dim=2)
    >>> ps.get_coordinate(1, 1)
    0.5
    """

    def __init__(self, cycles: Sequence[Sequence[int]], num_bits: int, dim=INFINITE):
        super().__init__()
        if not 1 <= num_bits <= MAXBITS:
            raise ArgumentError(f"num_bits must be in [1, {MAXBITS}], got {num_bits}")
        if dim != INFINITE and dim < 1:
            raise ArgumentError(f"dim must be >= 1, got {dim}")
        arrays = [np.asarray(c, dtype=np.int64) for c in cycles]
        if not arrays or any(len(a) == 0 for a in arrays):
            raise ArgumentError("cycles must be non-empty")
        limit = 1 << num_bits
        for a in arrays:
            if a.min() < 0 or a.max() >= limit:
                raise ArgumentError(f"cycle values must fit in {num_bits} bits")

        self._cycles: List[np.ndarray] = arrays
        lengths = np.array([len(a) for a in arrays], dtype=np.int64)
        self._cycle_ends = np.cumsum(lengths)
        self._cycle_starts = self._cycle_ends - lengths
        self._num_bits = num_bits
        self._norm_factor = 1.0 / (1 << num_bits)
        self._num_points = int(self._cycle_ends[-1])
        self._dim = dim
        logger.debug("Cycle-based point set: %d cycles, %d points, %d bits",
                     len(arrays), self._num_points, num_bits)

    @property
    def num_bits(self) -> int:
        return self._num_bits

    @property
    def norm_factor(self) -> float:
        return self._norm_factor

    @property
    def num_cycles(self) -> int:
        return len(self._cycles)

    def cycle(self, k: int) -> np.ndarray:
        return self._cycles[k]

    def _locate(self, i: int) -> int:
        """Index of the cycle that holds point ``i``."""
        if not 0 <= i < self._num_points:
            raise ArgumentError(f"point index {i} out of range [0, {self._num_points})")
        return int(np.searchsorted(self._cycle_ends, i, side="right"))

    def get_coordinate(self, i: int, j: int) -> float:
        k = self._locate(i)
        if not 0 <= j < self._dim:
            raise ArgumentError(
                f"coordinate index {j} out of range [0, {format_count(self._dim)})")
        cycle = self._cycles[k]
        x = int(cycle[(i - int(self._cycle_starts[k]) + j) % len(cycle)])
        if self._shift is None:
            return x * self._norm_factor
        self._shift.ensure(j + 1)
        return (x ^ int(self._shift[j])) * self._norm_factor + EPSILON_HALF

    def iterator(self) -> "CycleBasedIterator":
        return CycleBasedIterator(self)

    def add_random_shift(self, d1: int = 0, d2: Optional[int] = None, stream=None) -> None:
        """
        XOR coordinates ``d1 <= j < d2`` with random ``num_bits``-bit integers.

        Raises
        ------
        ArgumentError
            If no stream is given and none was remembered.
        """
        self._grow_shift(d1, d2, stream, lambda: digital_shift_vector(self._num_bits))

    def format_cycles(self) -> str:
        lines = [str(self)]
        for c, cycle in enumerate(self._cycles):
            lines.append(f"Cycle {c}: ({', '.join(str(int(x)) for x in cycle)})")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(num_cycles={self.num_cycles}, "
                f"num_points={self._num_points}, num_bits={self._num_bits})")


class CycleBasedIterator(PointSetIterator):
    """
    Iterator that walks the stored cycles directly.

    Keeps the current cycle and a running position inside it, so each
    coordinate costs O(1). The shift vector is the one in place when the
    iterator was created; it is extended in place as coordinates beyond
    its length are read.
    """

    def __init__(self, point_set: CycleBasedPointSetBase2):
        super().__init__(point_set)
        self._shift = point_set._shift
        self._norm_factor = point_set.norm_factor
        self._cycle_index = 0
        self._cycle: Optional[np.ndarray] = None
        self._start_in_cycle = 0
        self._coord_in_cycle = 0
        self.set_cur_point_index(0)

    def _reset_cycle(self, index: int, start: int) -> None:
        ps = self._point_set
        if index < ps.num_cycles:
            self._cycle_index = index
            self._cycle = ps.cycle(index)
            self._start_in_cycle = start
        else:
            self._cycle_index = ps.num_cycles
            self._cycle = None
            self._start_in_cycle = 0
        self._coord_in_cycle = self._start_in_cycle

    def set_cur_coord_index(self, j: int) -> None:
        self._cur_coord = j
        if self._cycle is not None:
            self._coord_in_cycle = (self._start_in_cycle + j) % len(self._cycle)

    def set_cur_point_index(self, i: int) -> None:
        ps = self._point_set
        self._cur_point = i
        self._cur_coord = 0
        if 0 <= i < ps.num_points:
            k = ps._locate(i)
            self._reset_cycle(k, i - int(ps._cycle_starts[k]))
        else:
            self._reset_cycle(ps.num_cycles, 0)

    def reset_to_next_point(self) -> int:
        self._cur_point += 1
        self._cur_coord = 0
        if self._cycle is not None and self._start_in_cycle + 1 < len(self._cycle):
            self._start_in_cycle += 1
            self._coord_in_cycle = self._start_in_cycle
        else:
            self._reset_cycle(self._cycle_index + 1, 0)
        return self._cur_point

    def next_coordinate(self) -> float:
        if self._cur_point >= self._num_points() or self._cur_coord >= self._dimension():
            self._out_of_bounds()
        x = int(self._cycle[self._coord_in_cycle])
        if self._shift is not None:
            self._shift.ensure(self._cur_coord + 1)
            x ^= int(self._shift[self._cur_coord])
        self._cur_coord += 1
        self._coord_in_cycle += 1
        if self._coord_in_cycle >= len(self._cycle):
            self._coord_in_cycle = 0
        if self._shift is None:
            return x * self._norm_factor
        return x * self._norm_factor + EPSILON_HALF

    def next_coordinates(self, d: int, out: Optional[np.ndarray] = None) -> np.ndarray:
        if d < 0:
            raise ArgumentError("d must be non-negative")
        if self._cur_point >= self._num_points() or self._cur_coord + d > self._dimension():
            self._out_of_bounds()
        n = len(self._cycle)
        idx = (self._coord_in_cycle + np.arange(d)) % n
        x = self._cycle[idx]
        if self._shift is not None:
            self._shift.ensure(self._cur_coord + d)
            x = x ^ self._shift.values(self._cur_coord, self._cur_coord + d)
        values = x * self._norm_factor
        if self._shift is not None:
            values = values + EPSILON_HALF
        self._cur_coord += d
        self._coord_in_cycle = (self._coord_in_cycle + d) % n
        if out is None:
            return values
        out[:d] = values
        return out


class LFSRPointSetBase2(CycleBasedPointSetBase2):
    """
    Cycle-based point set of a linear feedback shift register.

    The state is a ``num_bits``-bit integer ``s`` read as a polynomial over
    GF(2); one step maps ``s`` to ``s * x mod P(x)``. Since ``P`` has a
    non-zero constant term the map is a bijection, so the ``2^k`` states
    split into disjoint cycles. With a primitive ``P`` these are ``{0}``
    and one cycle of length ``2^k - 1``.

    Parameters
    ----------
    poly : int
        Characteristic polynomial ``P``, bit ``m`` being the coefficient of
        ``x^m``; its degree must equal ``num_bits``.
    num_bits : int
        Register size k. All 2^k states are enumerated.
    dim : int or INFINITE, optional
        Dimension of the point set (default: INFINITE).
    """

    def __init__(self, poly: int, num_bits: int, dim=INFINITE):
        if not 1 <= num_bits <= MAXBITS:
            raise ArgumentError(f"num_bits must be in [1, {MAXBITS}], got {num_bits}")
        if poly.bit_length() - 1 != num_bits or not poly & 1:
            raise ArgumentError(
                f"poly must have degree {num_bits} and a constant term, got {poly:#x}")
        self.poly = poly
        super().__init__(self._enumerate_cycles(poly, num_bits), num_bits, dim)

    @staticmethod
    def _enumerate_cycles(poly: int, k: int) -> List[List[int]]:
        top = 1 << k
        seen = np.zeros(top, dtype=bool)
        cycles = []
        for s0 in range(top):
            if seen[s0]:
                continue
            cycle = []
            s = s0
            while not seen[s]:
                seen[s] = True
                cycle.append(s)
                s <<= 1
                if s & top:
                    s ^= poly
            cycles.append(cycle)
        return cycles

    def __str__(self) -> str:
        return f"LFSR point set, P(x) = {self.poly:#x}\n" + super().__str__()
