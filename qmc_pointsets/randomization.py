"""
Randomization objects accepted by :meth:`PointSet.randomize`.
"""

from typing import Optional


class RandomShift:
    """
    Random shift of a whole point set.

    Applies ``point_set.add_random_shift(stream=stream)``: a digital shift
    for point sets in base 2, a shift modulo 1 for lattices.

    Parameters
    ----------
    stream : numpy.random.Generator, optional
        Randomness source; None uses the point set's own stream.
    """

    def __init__(self, stream=None):
        self.stream = stream

    def randomize(self, point_set, d1: int = 0, d2: Optional[int] = None) -> None:
        point_set.add_random_shift(d1, d2, self.stream)

    def __repr__(self) -> str:
        return f"RandomShift(stream={self.stream!r})"
