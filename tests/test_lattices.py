# tests/test_lattices.py
import logging

import numpy as np
import pytest

from qmc_pointsets import (
    ArgumentError,
    EPSILON_HALF,
    KorobovLattice,
    RandomShift,
    Rank1Lattice,
)
from qmc_pointsets.korobov import korobov_vector


# -------------------------  rank-1 lattices ---------------------------
def test_rank1_coordinates_are_exact_fractions():
    lattice = Rank1Lattice(8, [1, 3])
    assert lattice.get_coordinate(3, 1) == 0.125
    pts = lattice.points()
    assert pts.shape == (8, 2)
    for j in range(2):
        assert sorted(pts[:, j]) == [k / 8 for k in range(8)]


def test_rank1_rejects_bad_parameters():
    with pytest.raises(ArgumentError):
        Rank1Lattice(0, [1])
    with pytest.raises(ArgumentError):
        Rank1Lattice(8, [])


def test_rank1_shift_is_modulo_one(rng):
    lattice = Rank1Lattice(16, [1, 5, 7])
    base = lattice.points()
    lattice.add_random_shift(stream=rng)
    assert lattice.shift_dimension == 3
    shifted = lattice.points()
    assert np.all(shifted > 0.0) and np.all(shifted < 1.0)
    delta = (shifted - base) % 1.0
    np.testing.assert_allclose(delta, np.broadcast_to(delta[0], delta.shape), atol=1e-12)

    lattice.clear_random_shift()
    np.testing.assert_array_equal(lattice.points(), base)


def test_rank1_shift_never_yields_zero(zero_stream):
    lattice = Rank1Lattice(4, [1])
    lattice.add_random_shift(stream=zero_stream)
    assert lattice.get_coordinate(0, 0) == EPSILON_HALF
    assert lattice.get_coordinate(2, 0) == 0.5


def test_rank1_iterator_matches_get_coordinate(rng):
    lattice = Rank1Lattice(16, [1, 5, 7])
    lattice.randomize(RandomShift(rng))
    it = lattice.iterator()
    for i in range(16):
        for j in range(3):
            assert it.next_coordinate() == lattice.get_coordinate(i, j)
        it.reset_to_next_point()


def test_rank1_lambda1():
    lattice = Rank1Lattice(5, [1, 2])
    # shortest vectors: (1, 2) / 5 in the lattice, (1, 2) in its dual
    assert lattice.lambda1_primal == pytest.approx(np.sqrt(5) / 5)
    assert lattice.lambda1_dual == pytest.approx(np.sqrt(5))


# -------------------------  Korobov ---------------------------
def test_korobov_vector():
    np.testing.assert_array_equal(korobov_vector(5, 4, 13), [1, 5, 12, 8])


def test_korobov_explicit_generator():
    lattice = KorobovLattice(13, 3, a=5)
    assert lattice.generator == 5
    np.testing.assert_array_equal(lattice.generating_vector, [1, 5, 12])
    assert lattice.get_coordinate(1, 2) == 12 / 13


@pytest.mark.parametrize("criterion", ["dual", "primal", "product"])
def test_korobov_search_maximizes_criterion(criterion):
    best = KorobovLattice(13, 2, criterion=criterion)
    assert 1 <= best.generator < 13

    def value(lattice):
        if criterion == "dual":
            return lattice.lambda1_dual
        if criterion == "primal":
            return lattice.lambda1_primal
        return lattice.lambda1_primal * lattice.lambda1_dual

    for a in range(1, 13):
        assert value(best) >= value(KorobovLattice(13, 2, a=a)) - 1e-12


def test_korobov_invalid_criterion():
    with pytest.raises(ArgumentError, match="Invalid criterion"):
        KorobovLattice(13, 2, criterion="mesh")
    with pytest.raises(ValueError):
        KorobovLattice(13, 0, a=2)


def test_korobov_verbose_logs_at_info(caplog):
    with caplog.at_level(logging.INFO, logger="qmc_pointsets.korobov"):
        KorobovLattice(11, 2, verbose=True)
    assert "Best generator" in caplog.text


def test_korobov_info():
    info = KorobovLattice(13, 3, a=5).info()
    assert info["generator"] == 5
    assert info["criterion"] == "dual"
    assert info["generating_vector"] == [1, 5, 12]
