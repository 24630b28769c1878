"""
Point Sets and Their Iterators
==============================

A point set is a finite or infinite family of points in the unit
hypercube. Point ``i`` has coordinates ``u_{i,0}, u_{i,1}, ...``; either the
number of points or the dimension may be infinite (see
:data:`qmc_pointsets.utils.INFINITE`).

Subclasses only have to implement :meth:`PointSet.get_coordinate`. The
default :class:`PointSetIterator` walks the points by calling it;
subclasses with a cheaper way to enumerate coordinates return their own
iterator from :meth:`PointSet.iterator`, and every such iterator follows
the same contract:

    - ``next_coordinate()`` returns coordinate ``c`` of point ``p`` and moves
      to ``c + 1``. It raises :class:`ExhaustionError` when ``p`` or ``c``
      is out of range.
    - ``reset_to_next_point()`` moves to point ``p + 1``, coordinate 0.
    - ``set_cur_point_index(i)`` and ``set_cur_coord_index(j)`` seek
      directly. ``set_cur_point_index(num_points)`` is allowed, so that a
      traversal that just produced the last point does not fail.

An iterator is also a source of uniform random numbers: ``next_double()``
is ``next_coordinate()``, a substream is a point.
"""

import logging
import numpy as np
from abc import ABC, abstractmethod
from typing import Optional

from .exceptions import ArgumentError, ExhaustionError
from .utils import INFINITE, format_base, format_count

logger = logging.getLogger(__name__)


class PointSet(ABC):
    """
    Base class of all point sets.

    Attributes
    ----------
    dimension : int or INFINITE
        Number of coordinates per point.
    num_points : int or INFINITE
        Number of points.
    stream : numpy.random.Generator or None
        Randomness source remembered by the last randomization, used to
        extend a random shift to new coordinates.
    """

    def __init__(self):
        self._dim = 0
        self._num_points = 0
        self._shift = None
        self._stream = None

    @property
    def dimension(self):
        return self._dim

    @property
    def num_points(self):
        return self._num_points

    def get_dimension(self):
        return self._dim

    def get_num_points(self):
        return self._num_points

    @abstractmethod
    def get_coordinate(self, i: int, j: int) -> float:
        """Return coordinate ``j`` of point ``i``."""

    def iterator(self) -> "PointSetIterator":
        """Return a new iterator positioned at point 0, coordinate 0."""
        return PointSetIterator(self)

    @property
    def stream(self):
        return self._stream

    @stream.setter
    def stream(self, stream):
        self._stream = stream

    @property
    def shift_dimension(self) -> int:
        """Number of coordinates covered by the current random shift."""
        return 0 if self._shift is None else self._shift.dim

    # ------------------------------------------------------------------
    # Randomization
    # ------------------------------------------------------------------

    def add_random_shift(self, d1: int = 0, d2: Optional[int] = None, stream=None) -> None:
        """
        Add a random shift to coordinates ``d1 <= j < d2``.

        The base class cannot shift; it only logs a warning. Subclasses
        that support shifting override this method.
        """
        logger.warning("add_random_shift does nothing for %s", type(self).__name__)

    def _shift_stream(self, stream):
        if stream is None:
            stream = self._stream
        if stream is None:
            raise ArgumentError("Calling add_random_shift with no stream")
        return stream

    def _shift_bound(self, d2: Optional[int]) -> int:
        if d2 is None:
            d2 = self.shift_dimension
        if d2 == 0:
            d2 = 1 if self._dim == INFINITE else max(1, int(self._dim))
        return d2

    def _grow_shift(self, d1: int, d2: Optional[int], stream, new_vector) -> None:
        # Copy on write: iterators created earlier keep the vector they hold.
        stream = self._shift_stream(stream)
        d2 = self._shift_bound(d2)
        if not 0 <= d1 <= d2:
            raise ArgumentError(f"invalid shift range [{d1}, {d2})")
        if self._shift is not None:
            shift = self._shift.copy()
            # The old vector must not draw from the stream the new one grows from.
            self._shift.detach()
        else:
            shift = new_vector()
        shift.add(d1, d2, stream)
        self._shift = shift
        self._stream = stream

    def clear_random_shift(self) -> None:
        """Remove the random shift; coordinates become those of the unshifted set."""
        self._shift = None

    def randomize(self, rand=None, d1: int = 0, d2: Optional[int] = None) -> None:
        """
        Randomize the point set.

        Parameters
        ----------
        rand : numpy.random.Generator or randomization object, optional
            An object with a ``randomize(point_set)`` method is applied to
            this point set. Anything else is used as the randomness source
            of :meth:`add_random_shift`.
        d1, d2 : int, optional
            Coordinate range of the shift.
        """
        if rand is not None and callable(getattr(rand, "randomize", None)):
            rand.randomize(self)
        else:
            self.add_random_shift(d1, d2, rand)

    def unrandomize(self) -> None:
        self.clear_random_shift()

    # ------------------------------------------------------------------
    # Bulk access and formatting
    # ------------------------------------------------------------------

    def _clip_sizes(self, n, d):
        if n is None:
            n = self._num_points
        if d is None:
            d = self._dim
        n = min(n, self._num_points)
        d = min(d, self._dim)
        if n == INFINITE:
            raise ArgumentError("Number of points is infinite")
        if d == INFINITE:
            raise ArgumentError("Dimension is infinite")
        return int(n), int(d)

    def points(self, n: Optional[int] = None, d: Optional[int] = None) -> np.ndarray:
        """
        Return the first ``n`` points, first ``d`` coordinates.

        Returns
        -------
        np.ndarray
            Array of shape (n, d); the defaults are the full point set.
        """
        n, d = self._clip_sizes(n, d)
        out = np.empty((n, d))
        it = self.iterator()
        for i in range(n):
            it.next_point(d, out=out[i])
        return out

    def __str__(self) -> str:
        return (f"Number of points: {format_count(self._num_points)}\n"
                f"Point set dimension: {format_count(self._dim)}")

    def _header(self) -> str:
        return str(self) + "\n\nPoints of the point set:\n"

    def format_points(self, n: Optional[int] = None, d: Optional[int] = None,
                      iterator: Optional["PointSetIterator"] = None) -> str:
        """Return the first ``n`` points (``d`` coordinates each), one per line."""
        n, d = self._clip_sizes(n, d)
        it = iterator if iterator is not None else self.iterator()
        lines = [self._header()]
        for _ in range(n):
            lines.append("".join(f"  {it.next_coordinate()!r}" for _ in range(d)) + "\n")
            it.reset_to_next_point()
        return "".join(lines)

    def format_points_base(self, b: int = 2, n: Optional[int] = None,
                           d: Optional[int] = None,
                           iterator: Optional["PointSetIterator"] = None) -> str:
        """Same as :meth:`format_points`, with coordinates written in base ``b``."""
        n, d = self._clip_sizes(n, d)
        it = iterator if iterator is not None else self.iterator()
        acc = {2: 20, 3: 13}.get(b, 10)
        if self._stream is not None:
            acc += 6
        width = acc + 3
        lines = [self._header()]
        for _ in range(n):
            lines.append("".join(
                "  " + format_base(it.next_coordinate(), b, acc).ljust(width)
                for _ in range(d)) + "\n")
            it.reset_to_next_point()
        return "".join(lines)

    def format_points_numbered(self, n: Optional[int] = None,
                               d: Optional[int] = None) -> str:
        """Return the points as ``Point i  =  (u_0, u_1, ...)`` lines."""
        n, d = self._clip_sizes(n, d)
        it = self.iterator()
        lines = [str(self), "\n\nPoints of the point set:"]
        for i in range(n):
            coords = ", ".join(repr(it.next_coordinate()) for _ in range(d))
            lines.append(f"\nPoint {i}  =  ({coords})")
            it.reset_to_next_point()
        return "".join(lines)


class PointSetIterator:
    """
    Default iterator: reads every coordinate through ``get_coordinate``.

    Subclass iterators override the traversal methods and keep the same
    bounds checks.

    Parameters
    ----------
    point_set : PointSet
        The point set to traverse.
    """

    def __init__(self, point_set: PointSet):
        self._point_set = point_set
        self._cur_point = 0
        self._cur_coord = 0

    @property
    def point_set(self) -> PointSet:
        return self._point_set

    @property
    def cur_point_index(self) -> int:
        return self._cur_point

    @property
    def cur_coord_index(self) -> int:
        return self._cur_coord

    def _dimension(self):
        return self._point_set.dimension

    def _num_points(self):
        return self._point_set.num_points

    def _out_of_bounds(self):
        if self._cur_point >= self._num_points():
            raise ExhaustionError("Not enough points available")
        raise ExhaustionError("Not enough coordinates available")

    # -- coordinates ----------------------------------------------------

    def set_cur_coord_index(self, j: int) -> None:
        self._cur_coord = j

    def reset_cur_coord_index(self) -> None:
        self.set_cur_coord_index(0)

    def has_next_coordinate(self) -> bool:
        return self._cur_coord < self._dimension()

    def next_coordinate(self) -> float:
        if self._cur_point >= self._num_points() or self._cur_coord >= self._dimension():
            self._out_of_bounds()
        x = self._point_set.get_coordinate(self._cur_point, self._cur_coord)
        self._cur_coord += 1
        return x

    def next_coordinates(self, d: int, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Return the next ``d`` coordinates of the current point.

        Parameters
        ----------
        d : int
            Number of coordinates.
        out : np.ndarray, optional
            Array of length >= d receiving the values.
        """
        if d < 0:
            raise ArgumentError("d must be non-negative")
        if self._cur_coord + d > self._dimension():
            self._out_of_bounds()
        if out is None:
            out = np.empty(d)
        for j in range(d):
            out[j] = self.next_coordinate()
        return out

    # -- points ---------------------------------------------------------

    def set_cur_point_index(self, i: int) -> None:
        self._cur_point = i
        self.reset_cur_coord_index()

    def reset_cur_point_index(self) -> None:
        self.set_cur_point_index(0)

    def reset_to_next_point(self) -> int:
        """Move to coordinate 0 of the next point and return its index."""
        self.set_cur_point_index(self._cur_point + 1)
        return self._cur_point

    def has_next_point(self) -> bool:
        return self._cur_point < self._num_points()

    def next_point(self, d: int, out: Optional[np.ndarray] = None) -> np.ndarray:
        """Return the first ``d`` coordinates of the current point, then move to the next one."""
        self.reset_cur_coord_index()
        out = self.next_coordinates(d, out)
        self.reset_to_next_point()
        return out

    # -- uniform random source ------------------------------------------

    def reset_start_stream(self) -> None:
        self.reset_cur_point_index()

    def reset_start_substream(self) -> None:
        self.reset_cur_coord_index()

    def reset_next_substream(self) -> None:
        self.reset_to_next_point()

    def set_antithetic(self, antithetic: bool) -> None:
        raise NotImplementedError("antithetic point set iterators are not supported")

    def next_double(self) -> float:
        return self.next_coordinate()

    def next_array_of_double(self, n: int, out: Optional[np.ndarray] = None) -> np.ndarray:
        if n < 0:
            raise ArgumentError("n must be non-negative")
        if out is None:
            out = np.empty(n)
        for k in range(n):
            out[k] = self.next_double()
        return out

    def next_int(self, i: int, j: int) -> int:
        """Return an integer in ``[i, j]`` built from the next coordinate."""
        return i + int(self.next_double() * (j - i + 1.0))

    def next_array_of_int(self, i: int, j: int, n: int) -> np.ndarray:
        if n < 0:
            raise ArgumentError("n must be non-negative")
        return np.array([self.next_int(i, j) for _ in range(n)], dtype=np.int64)

    def format_state(self) -> str:
        return (f"Current point index: {self._cur_point}\n"
                f"Current coordinate index: {self._cur_coord}")

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(point={self._cur_point}, "
                f"coordinate={self._cur_coord})")
