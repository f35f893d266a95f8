"""Tests for the KD-tree index and the array point source."""

from __future__ import annotations

import numpy as np
import pytest

from pointseg.core.errors import InvalidInputError, OutOfRangeError
from pointseg.pipeline.source import ArrayPointSource, PointSource, gather_positions
from pointseg.pipeline.spatial import KdTreeIndex


class TestArrayPointSource:
    def test_protocol(self):
        source = ArrayPointSource(np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]))
        assert isinstance(source, PointSource)
        assert len(source) == 2
        assert source.position_at(1) == (4.0, 5.0, 6.0)

    def test_positions_are_restartable(self):
        source = ArrayPointSource(np.arange(9.0).reshape(3, 3))
        first = list(source.positions())
        second = list(source.positions())
        assert first == second
        assert [i for i, _ in first] == [0, 1, 2]

    @pytest.mark.parametrize("index", [2, 10, -1])
    def test_out_of_range(self, index: int):
        source = ArrayPointSource(np.zeros((2, 3)))
        with pytest.raises(OutOfRangeError):
            source.position_at(index)

    def test_out_of_range_is_index_error(self):
        with pytest.raises(IndexError):
            ArrayPointSource(np.zeros((2, 3))).position_at(5)

    def test_rejects_wrong_shape(self):
        with pytest.raises(InvalidInputError):
            ArrayPointSource(np.zeros((4, 2)))

    def test_input_is_copied_and_read_only(self):
        raw = np.zeros((3, 3))
        source = ArrayPointSource(raw)
        raw[0, 0] = 99.0
        assert source.position_at(0) == (0.0, 0.0, 0.0)
        with pytest.raises(ValueError):
            source.as_array()[0, 0] = 1.0

    def test_gather_positions_walks_generic_sources(self):
        class ListSource:
            def __init__(self, pts):
                self._pts = pts

            def __len__(self):
                return len(self._pts)

            def position_at(self, index):
                return self._pts[index]

            def positions(self):
                return iter(enumerate(self._pts))

        pts = [(0.0, 0.0, 0.0), (1.0, 2.0, 3.0)]
        np.testing.assert_array_equal(gather_positions(ListSource(pts)), np.array(pts))


class TestKdTreeIndex:
    def test_nearest(self):
        pts = np.array([[0.0, 0.0, 0.0], [10.0, 0.0, 0.0], [0.0, 10.0, 0.0]])
        index = KdTreeIndex.build(pts)
        assert index.nearest((9.0, 1.0, 0.0)) == 1
        assert index.nearest([0.1, 0.1, 0.1]) == 0

    def test_nearest_on_empty_index(self):
        with pytest.raises(InvalidInputError):
            KdTreeIndex.build(np.empty((0, 3))).nearest((0.0, 0.0, 0.0))

    def test_within_radius_includes_center(self):
        pts = np.array([[0.0, 0.0, 0.0], [5.0, 0.0, 0.0]])
        index = KdTreeIndex.build(pts)
        assert index.within_radius(0, 1e-9) == [0]
        assert index.within_radius(1, 1e-9) == [1]

    def test_within_radius_sorted(self, five_colinear_points: np.ndarray):
        index = KdTreeIndex.build(five_colinear_points)
        assert index.within_radius(2, 1.1) == [1, 2, 3]
        assert index.within_radius(0, 2.5) == [0, 1, 2]

    def test_within_radius_of_point(self, five_colinear_points: np.ndarray):
        index = KdTreeIndex.build(five_colinear_points)
        assert index.within_radius_of_point((1.5, 0.0, 0.0), 0.6) == [1, 2]

    def test_build_from_point_source(self, two_groups: np.ndarray):
        index = KdTreeIndex.build(ArrayPointSource(two_groups))
        assert len(index) == index.size() == 6
        assert list(index) == [0, 1, 2, 3, 4, 5]
        np.testing.assert_array_equal(index.position_at(4), [101.0, 0.0, 0.0])

    def test_queries_do_not_mutate(self, two_groups: np.ndarray):
        index = KdTreeIndex.build(two_groups)
        before = index.position_at(0).copy()
        index.within_radius(0, 5.0)
        index.nearest((50.0, 0.0, 0.0))
        np.testing.assert_array_equal(index.position_at(0), before)
        assert not index.position_at(0).flags.writeable

    def test_position_at_out_of_range(self, two_groups: np.ndarray):
        with pytest.raises(OutOfRangeError):
            KdTreeIndex.build(two_groups).position_at(6)

    def test_rejects_wrong_shape(self):
        with pytest.raises(InvalidInputError):
            KdTreeIndex.build(np.zeros((3, 4)))
