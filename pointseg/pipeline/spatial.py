"""KD-tree spatial index over a fixed set of positions.

Point references are integer indices into the positions the index was
built from.  The tree itself is SciPy's :class:`~scipy.spatial.cKDTree`.
"""

from __future__ import annotations

import logging
from typing import Iterator

import numpy as np
from scipy.spatial import cKDTree

from pointseg.core.errors import InvalidInputError, OutOfRangeError
from pointseg.pipeline.source import PointSource, gather_positions

logger = logging.getLogger(__name__)


class KdTreeIndex:
    """Immutable nearest-neighbour / radius-search index.

    Build with :meth:`build`; queries never modify the tree.
    """

    def __init__(self, points: np.ndarray):
        self._points = points
        self._tree = cKDTree(points) if len(points) else None

    @classmethod
    def build(cls, positions: np.ndarray | PointSource) -> "KdTreeIndex":
        if isinstance(positions, PointSource):
            points = np.array(gather_positions(positions), dtype=np.float64)
        else:
            points = np.array(positions, dtype=np.float64)
            if points.size == 0:
                points = points.reshape(0, 3)
        if points.ndim != 2 or points.shape[1] != 3:
            raise InvalidInputError(f"Expected an (N, 3) array, got shape {points.shape}")
        points.setflags(write=False)
        logger.debug("Built KD-tree over %d points", len(points))
        return cls(points)

    def __len__(self) -> int:
        return len(self._points)

    def size(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[int]:
        return iter(range(len(self._points)))

    def position_at(self, ref: int) -> np.ndarray:
        if ref < 0 or ref >= len(self._points):
            raise OutOfRangeError(ref, len(self._points))
        return self._points[ref]

    def nearest(self, query_point) -> int:
        """Return the reference of the point closest to *query_point*."""
        if self._tree is None:
            raise InvalidInputError("Cannot query nearest point of an empty index")
        _, ref = self._tree.query(np.asarray(query_point, dtype=np.float64), k=1)
        return int(ref)

    def within_radius(self, center_ref: int, radius: float) -> list[int]:
        """All references within *radius* of point *center_ref*, sorted.

        The distance test is inclusive, so *center_ref* is always part of
        the result.
        """
        center = self.position_at(center_ref)
        refs = self._tree.query_ball_point(center, radius, return_sorted=True)
        return [int(r) for r in refs]

    def within_radius_of_point(self, query_point, radius: float) -> list[int]:
        """All references within *radius* of an arbitrary coordinate, sorted."""
        if self._tree is None:
            return []
        refs = self._tree.query_ball_point(
            np.asarray(query_point, dtype=np.float64), radius, return_sorted=True
        )
        return [int(r) for r in refs]
