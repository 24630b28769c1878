#tests/conftest.py
"""
Shared fixtures for all tests.
"""

import numpy as np
import pytest

from qmc_pointsets import PointSet


class ArrayPointSet(PointSet):
    """Point set backed by a (n, d) array; uses the default iterator."""

    def __init__(self, values):
        super().__init__()
        self.values = np.asarray(values, dtype=np.float64)
        self._num_points, self._dim = self.values.shape

    def get_coordinate(self, i, j):
        return float(self.values[i, j])


class ZeroStream:
    """Randomness source that always draws 0."""

    def integers(self, low, high=None, endpoint=False):
        return 0

    def random(self):
        return 0.0

    def spawn(self, n_children):
        return [ZeroStream() for _ in range(n_children)]


@pytest.fixture()
def rng() -> np.random.Generator:
    """Seeded generator, reset for every test."""
    return np.random.default_rng(12345)


@pytest.fixture()
def make_array_set():
    """Factory for array-backed point sets."""
    return ArrayPointSet


@pytest.fixture()
def column_set():
    """One-dimensional array-backed point set from a list of values."""
    def build(values):
        return ArrayPointSet(np.asarray(values, dtype=np.float64).reshape(-1, 1))
    return build


@pytest.fixture()
def zero_stream() -> ZeroStream:
    return ZeroStream()
