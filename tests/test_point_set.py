# tests/test_point_set.py
import logging

import numpy as np
import pytest

from qmc_pointsets import ArgumentError, ExhaustionError, INFINITE
from qmc_pointsets.utils import (
    ShiftVector,
    bit_positions,
    digital_shift_vector,
    format_base,
    format_count,
    gf2_mul,
    gf2_mod,
    irreducible_polynomials,
    lll_reduce,
    shortest_vector_length,
    trailing_zeros,
    xor_columns,
)

VALUES = np.array([[0.1, 0.2, 0.3],
                   [0.4, 0.5, 0.6]])


# -------------------------  default iterator ---------------------------
def test_iterator_walks_points_and_coordinates(make_array_set):
    ps = make_array_set(VALUES)
    it = ps.iterator()
    seen = []
    while it.has_next_point():
        while it.has_next_coordinate():
            seen.append(it.next_coordinate())
        it.reset_to_next_point()
    assert seen == VALUES.ravel().tolist()


def test_next_coordinate_past_dimension_raises(make_array_set):
    it = make_array_set(VALUES).iterator()
    it.next_coordinates(3)
    with pytest.raises(ExhaustionError, match="coordinates"):
        it.next_coordinate()


def test_seek_one_past_last_point_is_allowed(make_array_set):
    it = make_array_set(VALUES).iterator()
    it.set_cur_point_index(2)
    assert not it.has_next_point()
    with pytest.raises(ExhaustionError, match="points"):
        it.next_coordinate()


def test_exhaustion_error_is_an_index_error(make_array_set):
    it = make_array_set(VALUES).iterator()
    it.set_cur_point_index(5)
    with pytest.raises(IndexError):
        it.next_coordinate()


def test_reset_to_next_point_returns_index(make_array_set):
    it = make_array_set(VALUES).iterator()
    it.next_coordinate()
    assert it.reset_to_next_point() == 1
    assert it.cur_coord_index == 0
    assert it.next_coordinate() == 0.4


def test_set_cur_coord_index(make_array_set):
    it = make_array_set(VALUES).iterator()
    it.set_cur_coord_index(2)
    assert it.next_coordinate() == 0.3
    it.reset_cur_coord_index()
    assert it.next_coordinate() == 0.1


def test_next_point_fills_out_and_advances(make_array_set):
    it = make_array_set(VALUES).iterator()
    out = np.zeros(2)
    it.next_point(2, out=out)
    assert out.tolist() == [0.1, 0.2]
    assert it.cur_point_index == 1


def test_next_coordinates_rejects_negative_count(make_array_set):
    it = make_array_set(VALUES).iterator()
    with pytest.raises(ArgumentError):
        it.next_coordinates(-1)


def test_uniform_source_view(make_array_set):
    it = make_array_set(VALUES).iterator()
    assert it.next_double() == 0.1
    assert it.next_int(0, 9) == 2
    it.reset_start_substream()
    np.testing.assert_array_equal(it.next_array_of_double(3), VALUES[0])
    it.reset_next_substream()
    np.testing.assert_array_equal(it.next_array_of_int(0, 9, 2), [4, 5])
    it.reset_start_stream()
    assert (it.cur_point_index, it.cur_coord_index) == (0, 0)
    with pytest.raises(NotImplementedError):
        it.set_antithetic(True)


# -------------------------  point set ---------------------------
def test_points_matches_values(make_array_set):
    ps = make_array_set(VALUES)
    np.testing.assert_array_equal(ps.points(), VALUES)
    assert ps.points(n=1, d=2).shape == (1, 2)


def test_points_of_infinite_set_need_limits():
    from qmc_pointsets import CycleBasedPointSetBase2
    ps = CycleBasedPointSetBase2([[0], [1, 2, 3]], num_bits=2)
    assert ps.dimension == INFINITE
    with pytest.raises(ArgumentError):
        ps.points()
    assert ps.points(d=5).shape == (4, 5)


def test_base_add_random_shift_only_warns(make_array_set, rng, caplog):
    ps = make_array_set(VALUES)
    with caplog.at_level(logging.WARNING):
        ps.randomize(rng)
    assert "add_random_shift does nothing" in caplog.text
    assert ps.get_coordinate(0, 0) == 0.1


def test_formatting(make_array_set):
    ps = make_array_set(VALUES)
    text = ps.format_points(n=1, d=2)
    assert "Number of points: 2" in text
    assert "0.1" in text and "0.3" not in text
    assert "Point 1  =  (0.4, 0.5, 0.6)" in ps.format_points_numbered()
    assert "0.00011001" in ps.format_points_base(2, n=1, d=1)


# -------------------------  utils ---------------------------
def test_format_helpers():
    assert format_count(INFINITE) == "infinite"
    assert format_count(8) == "8"
    assert format_base(0.75, 2, 4) == "0.1100"
    assert format_base(0.5, 3, 3) == "0.111"


def test_shift_vector_grows_like_a_single_draw():
    one = ShiftVector(lambda s: float(s.random()), dtype=np.float64)
    one.add(0, 10, np.random.default_rng(5))
    several = ShiftVector(lambda s: float(s.random()), dtype=np.float64)
    several.add(0, 3, np.random.default_rng(5))
    several.ensure(10)
    assert several.dim == 10
    assert several.capacity == 16
    np.testing.assert_array_equal(one.values(0, 10), several.values(0, 10))


def test_shift_vector_copy_is_independent(rng):
    sv = digital_shift_vector(8)
    sv.add(0, 4, rng)
    other = sv.copy()
    other.add(0, 4, rng)
    assert sv.dim == other.dim == 4
    assert all(0 <= sv[j] < 256 for j in range(4))
    assert not np.array_equal(sv.values(0, 4), other.values(0, 4))


def test_detached_shift_vector_leaves_stream_alone():
    sv = digital_shift_vector(8)
    sv.add(0, 2, np.random.default_rng(7))
    current = sv.copy()
    sv.detach()
    sv.ensure(6)
    current.ensure(6)
    single = digital_shift_vector(8)
    single.add(0, 6, np.random.default_rng(7))
    np.testing.assert_array_equal(current.values(0, 6), single.values(0, 6))
    np.testing.assert_array_equal(sv.values(0, 2), single.values(0, 2))


def test_lll_reduce_finds_short_basis():
    reduced = lll_reduce(np.array([[5.0, 0.0], [-2.0, 1.0]]))
    np.testing.assert_allclose(np.linalg.norm(reduced, axis=1), [np.sqrt(5)] * 2)
    assert abs(np.linalg.det(reduced)) == pytest.approx(5.0)
    assert shortest_vector_length(np.array([[0.2, 0.4], [0.0, 1.0]])) == \
        pytest.approx(np.sqrt(0.2))


def test_bit_helpers():
    assert bit_positions(5) == [0, 2]
    assert trailing_zeros(8) == 3
    assert xor_columns(np.array([1, 2, 4]), 7) == 7
    assert xor_columns(np.array([3, 1]), 3) == 2


def test_gf2_arithmetic():
    assert gf2_mul(3, 3) == 5
    assert gf2_mod(5, 3) == 0
    polys = irreducible_polynomials()
    assert [next(polys) for _ in range(8)] == [2, 3, 7, 11, 13, 19, 25, 31]
