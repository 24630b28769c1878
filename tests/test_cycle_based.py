# tests/test_cycle_based.py
import numpy as np
import pytest

from qmc_pointsets import (
    ArgumentError,
    CycleBasedPointSetBase2,
    EPSILON_HALF,
    ExhaustionError,
    INFINITE,
    LFSRPointSetBase2,
)

CYCLES = [[0], [1, 2, 3]]
EXPECTED = [[0.0, 0.0],
            [0.25, 0.5],
            [0.5, 0.75],
            [0.75, 0.25]]


def small_set(dim=2):
    return CycleBasedPointSetBase2(CYCLES, num_bits=2, dim=dim)


def traverse(ps, n, d):
    it = ps.iterator()
    rows = []
    for _ in range(n):
        rows.append([it.next_coordinate() for _ in range(d)])
        it.reset_to_next_point()
    return rows


# -------------------------  construction ---------------------------
def test_points_follow_the_cycles():
    ps = small_set()
    assert ps.num_points == 4
    assert ps.num_cycles == 2
    assert [[ps.get_coordinate(i, j) for j in range(2)] for i in range(4)] == EXPECTED


def test_infinite_dimension_wraps_around_cycle():
    ps = small_set(dim=INFINITE)
    assert ps.dimension == INFINITE
    assert ps.get_coordinate(1, 4) == 0.5
    assert ps.get_coordinate(0, 100) == 0.0


@pytest.mark.parametrize("cycles, num_bits", [
    (CYCLES, 0),
    (CYCLES, 32),
    ([], 2),
    ([[0], []], 2),
    ([[0], [4]], 2),
])
def test_invalid_construction(cycles, num_bits):
    with pytest.raises(ArgumentError):
        CycleBasedPointSetBase2(cycles, num_bits=num_bits)


def test_get_coordinate_out_of_range():
    with pytest.raises(ArgumentError):
        small_set().get_coordinate(4, 0)


# -------------------------  iterator ---------------------------
def test_iterator_matches_get_coordinate():
    assert traverse(small_set(), 4, 2) == EXPECTED


def test_iterator_bulk_read_wraps():
    it = small_set(dim=INFINITE).iterator()
    it.set_cur_point_index(2)
    np.testing.assert_array_equal(it.next_coordinates(5), [0.5, 0.75, 0.25, 0.5, 0.75])
    assert it.cur_coord_index == 5
    assert it.next_coordinate() == 0.25


def test_iterator_seek_coordinate():
    it = small_set(dim=INFINITE).iterator()
    it.set_cur_point_index(3)
    it.set_cur_coord_index(4)
    assert it.next_coordinate() == 0.25


def test_iterator_exhaustion():
    it = small_set().iterator()
    it.next_coordinates(2)
    with pytest.raises(ExhaustionError):
        it.next_coordinate()
    it.set_cur_point_index(4)
    assert not it.has_next_point()
    with pytest.raises(ExhaustionError):
        it.next_coordinate()


# -------------------------  random shift ---------------------------
def test_shift_is_xor_on_stored_bits(rng):
    ps = small_set()
    ps.add_random_shift(stream=rng)
    assert ps.shift_dimension == 2
    for j in range(2):
        xors = set()
        for i in range(4):
            x = ps.get_coordinate(i, j)
            assert 0.0 < x < 1.0
            xors.add(int(round((x - EPSILON_HALF) * 4)) ^ int(EXPECTED[i][j] * 4))
        assert len(xors) == 1


def test_shift_extends_lazily_with_remembered_stream():
    ps = small_set(dim=INFINITE)
    ps.add_random_shift(stream=np.random.default_rng(3))
    assert ps.shift_dimension == 1
    bulk = small_set(dim=INFINITE)
    bulk.add_random_shift(0, 6, np.random.default_rng(3))
    assert [ps.get_coordinate(1, j) for j in range(6)] == \
        [bulk.get_coordinate(1, j) for j in range(6)]


def test_shifted_iterator_matches_get_coordinate(rng):
    ps = small_set()
    ps.add_random_shift(stream=rng)
    expected = [[ps.get_coordinate(i, j) for j in range(2)] for i in range(4)]
    assert traverse(ps, 4, 2) == expected


def test_clear_random_shift_restores_points(rng):
    ps = small_set()
    ps.randomize(rng)
    ps.unrandomize()
    assert ps.shift_dimension == 0
    assert traverse(ps, 4, 2) == EXPECTED


def test_existing_iterator_keeps_its_shift(rng):
    ps = small_set()
    it = ps.iterator()
    ps.add_random_shift(stream=rng)
    assert [it.next_coordinate() for _ in range(2)] == EXPECTED[0]


def test_stale_iterator_does_not_change_shift():
    coords = []
    for read_first in (False, True):
        ps = small_set(dim=INFINITE)
        stream = np.random.default_rng(1)
        ps.add_random_shift(stream=stream)
        it = ps.iterator()
        ps.add_random_shift(stream=stream)
        if read_first:
            it.next_coordinates(5)
        coords.append([ps.get_coordinate(1, j) for j in range(6)])
    assert coords[0] == coords[1]


def test_coordinate_index_out_of_range():
    with pytest.raises(ArgumentError, match="coordinate index"):
        small_set().get_coordinate(0, 2)
    with pytest.raises(ArgumentError, match="coordinate index"):
        small_set(dim=INFINITE).get_coordinate(0, -1)


def test_shift_without_stream_fails():
    with pytest.raises(ArgumentError, match="no stream"):
        small_set().add_random_shift()


# -------------------------  LFSR ---------------------------
def test_lfsr_with_primitive_polynomial():
    ps = LFSRPointSetBase2(0b1011, num_bits=3, dim=3)
    assert ps.num_points == 8
    assert ps.num_cycles == 2
    assert ps.cycle(0).tolist() == [0]
    assert ps.cycle(1).tolist() == [1, 2, 4, 3, 6, 7, 5]
    assert ps.get_coordinate(1, 2) == 4 / 8
    assert "LFSR point set" in str(ps)


def test_lfsr_rejects_bad_polynomial():
    with pytest.raises(ArgumentError):
        LFSRPointSetBase2(0b1010, num_bits=3)
    with pytest.raises(ArgumentError):
        LFSRPointSetBase2(0b111, num_bits=3)
