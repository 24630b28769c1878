"""
Padded Point Sets
=================

A padded point set puts several point sets with the same number of
points side by side: the coordinates of point ``i`` are those of point
``i`` of the first set, followed by those of point ``i`` of the second
set, and so on. The visitation order of each component may be permuted
independently; randomizing those permutations gives Latin supercube
sampling.
"""

import logging
import numpy as np
from typing import List, Optional

from .exceptions import ArgumentError
from .point_set import PointSet, PointSetIterator
from .utils import INFINITE, format_count

logger = logging.getLogger(__name__)

# Scratch buffer length used by bulk reads when a component has infinite dimension.
INFINITE_DIM_BUFFER = 16


class PaddedPointSet(PointSet):
    """
    Concatenation of point sets along the dimension axis.

    Parameters
    ----------
    max_point_sets : int
        Maximum number of components.

    Examples
    --------
    >>> padded = PaddedPointSet(2)
    >>> padded.pad_point_set(Rank1Lattice(4, [1]))        # doctest: +SKIP
    >>> padded.pad_point_set_permute(Rank1Lattice(4, [3]))  # doctest: +SKIP
    >>> padded.randomize(np.random.default_rng(1))          # doctest: +SKIP
    """

    def __init__(self, max_point_sets: int):
        super().__init__()
        if max_point_sets < 1:
            raise ArgumentError("max_point_sets must be >= 1")
        self._max_point_sets = max_point_sets
        self._point_sets: List[PointSet] = []
        self._end_dim: List = []
        self._permutations: List[Optional[np.ndarray]] = []

    @property
    def max_point_sets(self) -> int:
        return self._max_point_sets

    @property
    def num_point_sets(self) -> int:
        return len(self._point_sets)

    def component(self, k: int) -> PointSet:
        return self._point_sets[k]

    def permutation(self, k: int) -> Optional[np.ndarray]:
        """Point permutation of component ``k``, or None if it is not permuted."""
        return self._permutations[k]

    def _check_pad(self, p: PointSet) -> None:
        if len(self._point_sets) == self._max_point_sets:
            raise ArgumentError("Cannot pad more, increase max_point_sets parameter")
        if self._dim == INFINITE:
            raise ArgumentError("Cannot pad more, dimension already infinite")
        if self._point_sets and self._num_points != p.num_points:
            raise ArgumentError("Padded points must have same number of points")

    def _append(self, p: PointSet, permutation: Optional[np.ndarray]) -> None:
        if not self._point_sets:
            self._num_points = p.num_points
        if p.dimension == INFINITE:
            self._dim = INFINITE
        else:
            self._dim += p.dimension
        self._point_sets.append(p)
        self._end_dim.append(self._dim)
        self._permutations.append(permutation)
        logger.debug("Padded %s: dimension is now %s", type(p).__name__,
                     format_count(self._dim))

    def pad_point_set(self, p: PointSet) -> None:
        """
        Append the coordinates of ``p`` after the current ones.

        Raises
        ------
        ArgumentError
            If ``max_point_sets`` components are already padded, if a previous
            component has infinite dimension, or if ``p`` does not have the
            same number of points as the previous components.
        """
        self._check_pad(p)
        self._append(p, None)

    def pad_point_set_permute(self, p: PointSet) -> None:
        """Same as :meth:`pad_point_set`, with a permutation of the points of ``p``."""
        self._check_pad(p)
        n = p.num_points if not self._point_sets else self._num_points
        if n == INFINITE:
            raise ArgumentError("Cannot generate infinite permutation")
        self._append(p, np.arange(n, dtype=np.int64))

    def _locate(self, j: int) -> int:
        """Component that holds coordinate ``j``."""
        return _owning_component(self._end_dim, j)

    def _start_dim(self, k: int):
        return 0 if k == 0 else self._end_dim[k - 1]

    def get_coordinate(self, i: int, j: int) -> float:
        k = self._locate(j)
        perm = self._permutations[k]
        if perm is not None:
            i = int(perm[i])
        return self._point_sets[k].get_coordinate(i, j - self._start_dim(k))

    def randomize(self, rand=None, d1: int = 0, d2: Optional[int] = None) -> None:
        """
        Draw new random permutations for the permuted components.

        Parameters
        ----------
        rand : numpy.random.Generator or randomization object
            Randomness source of the shuffles. A randomization object is
            applied to this point set instead, as in :meth:`PointSet.randomize`.
        """
        if rand is not None and callable(getattr(rand, "randomize", None)):
            rand.randomize(self)
            return
        stream = rand if rand is not None else self._stream
        if stream is None:
            raise ArgumentError("Calling randomize with no stream")
        n = self._num_points
        for k, perm in enumerate(self._permutations):
            if perm is None:
                continue
            # New array, so that iterators already created keep their order.
            perm = perm.copy()
            for i in range(n - 1):
                u = int(stream.integers(0, n - i - 1, endpoint=True))
                perm[i], perm[i + u] = perm[i + u], perm[i]
            self._permutations[k] = perm
        self._stream = stream

    def unrandomize(self) -> None:
        """Reset every permutation to the identity."""
        for k, perm in enumerate(self._permutations):
            if perm is not None:
                self._permutations[k] = np.arange(len(perm), dtype=np.int64)

    def iterator(self) -> "PaddedIterator":
        return PaddedIterator(self)

    def __str__(self) -> str:
        lines = ["Padded point set",
                 f"Maximal number of point sets: {self._max_point_sets}",
                 f"Current number of point sets: {self.num_point_sets}",
                 f"Number of points: {format_count(self._num_points)}"]
        blocks = []
        for k, p in enumerate(self._point_sets):
            kind = "Point set" if self._permutations[k] is None else "Permuted point set"
            blocks.append(f"{kind} {k} information: {{\n{p}\n}}")
        return "\n".join(lines) + "\n" + "\n".join(blocks)


class PaddedIterator(PointSetIterator):
    """
    Iterator over a padded point set.

    Holds one iterator per component plus the index of the component that
    serves the current coordinate. Component permutations are read from
    the snapshot taken when the iterator is created.
    """

    def __init__(self, point_set: PaddedPointSet):
        super().__init__(point_set)
        components = [point_set.component(k) for k in range(point_set.num_point_sets)]
        self._iterators = [p.iterator() for p in components]
        self._permutations = list(point_set._permutations)
        self._end_dim = list(point_set._end_dim)
        self._current = 0
        maxdim = max((p.dimension for p in components), default=0)
        if maxdim == INFINITE:
            self._buffer = np.empty(INFINITE_DIM_BUFFER)
        else:
            self._buffer = np.empty(max(1, int(maxdim)))
        self.set_cur_point_index(0)

    def _dimension(self):
        return self._end_dim[-1] if self._end_dim else 0

    def _component_point(self, k: int, i: int) -> int:
        perm = self._permutations[k]
        if perm is None or not 0 <= i < len(perm):
            return i
        return int(perm[i])

    def _start_dim(self, k: int):
        return 0 if k == 0 else self._end_dim[k - 1]

    def set_cur_coord_index(self, j: int) -> None:
        k = _owning_component(self._end_dim, j)
        self._current = k
        self._iterators[k].set_cur_coord_index(j - self._start_dim(k))
        for it in self._iterators[k + 1:]:
            it.reset_cur_coord_index()
        self._cur_coord = j

    def reset_cur_coord_index(self) -> None:
        self._current = 0
        for it in self._iterators:
            it.reset_cur_coord_index()
        self._cur_coord = 0

    def next_coordinate(self) -> float:
        if self._cur_point >= self._num_points() or self._cur_coord >= self._dimension():
            self._out_of_bounds()
        while self._cur_coord >= self._end_dim[self._current]:
            self._current += 1
        x = self._iterators[self._current].next_coordinate()
        self._cur_coord += 1
        return x

    def next_coordinates(self, d: int, out: Optional[np.ndarray] = None) -> np.ndarray:
        if d < 0:
            raise ArgumentError("d must be non-negative")
        if self._cur_point >= self._num_points() or self._cur_coord + d > self._dimension():
            self._out_of_bounds()
        if out is None:
            out = np.empty(d)
        i = 0
        while i < d:
            while self._cur_coord >= self._end_dim[self._current]:
                self._current += 1
            span = min(d - i, len(self._buffer),
                       self._end_dim[self._current] - self._cur_coord)
            span = int(span)
            self._iterators[self._current].next_coordinates(span, out=self._buffer)
            out[i:i + span] = self._buffer[:span]
            i += span
            self._cur_coord += span
        return out

    def set_cur_point_index(self, i: int) -> None:
        for k, it in enumerate(self._iterators):
            it.set_cur_point_index(self._component_point(k, i))
        self._cur_point = i
        self._cur_coord = 0
        self._current = 0

    def reset_cur_point_index(self) -> None:
        self.set_cur_point_index(0)

    def reset_to_next_point(self) -> int:
        i = self._cur_point + 1
        for k, it in enumerate(self._iterators):
            if self._permutations[k] is None:
                it.reset_to_next_point()
            else:
                it.set_cur_point_index(self._component_point(k, i))
        self._cur_point = i
        self._cur_coord = 0
        self._current = 0
        return i

    def format_state(self) -> str:
        return super().format_state() + f"\nCurrent padded set: {self._current}"


def _owning_component(end_dim: List, j: int) -> int:
    if not end_dim or j >= end_dim[-1]:
        raise ArgumentError("Not enough dimensions")
    k = 0
    while j >= end_dim[k]:
        k += 1
    return k
