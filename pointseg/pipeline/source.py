"""Read-only point sources.

The fitters only need three things from whatever stores the points: its
length, random access to one position, and an in-order walk over all
positions.  :class:`PointSource` names that contract and
:class:`ArrayPointSource` implements it over an ``(N, 3)`` NumPy array.
"""

from __future__ import annotations

from typing import Iterator, Protocol, runtime_checkable

import numpy as np

from pointseg.core.errors import InvalidInputError, OutOfRangeError

Position = tuple[float, float, float]


@runtime_checkable
class PointSource(Protocol):
    def __len__(self) -> int: ...

    def position_at(self, index: int) -> Position: ...

    def positions(self) -> Iterator[tuple[int, Position]]: ...


class ArrayPointSource:
    """A :class:`PointSource` backed by an ``(N, 3)`` float64 array.

    The array is copied and marked read-only so the source cannot change
    underneath a running fit.
    """

    def __init__(self, points: np.ndarray):
        arr = np.array(points, dtype=np.float64)
        if arr.size == 0:
            arr = arr.reshape(0, 3)
        if arr.ndim != 2 or arr.shape[1] != 3:
            raise InvalidInputError(f"Expected an (N, 3) array, got shape {arr.shape}")
        arr.setflags(write=False)
        self._points = arr

    def __len__(self) -> int:
        return len(self._points)

    def __repr__(self) -> str:
        return f"ArrayPointSource(n={len(self)})"

    def position_at(self, index: int) -> Position:
        if index < 0 or index >= len(self._points):
            raise OutOfRangeError(index, len(self._points))
        x, y, z = self._points[index]
        return float(x), float(y), float(z)

    def positions(self) -> Iterator[tuple[int, Position]]:
        for i, (x, y, z) in enumerate(self._points):
            yield i, (float(x), float(y), float(z))

    def as_array(self) -> np.ndarray:
        """Read-only ``(N, 3)`` view of the stored positions."""
        return self._points


def gather_positions(source: PointSource) -> np.ndarray:
    """Materialise *source* into an ``(N, 3)`` array, walking it once."""
    if isinstance(source, ArrayPointSource):
        return source.as_array()
    n = len(source)
    out = np.empty((n, 3), dtype=np.float64)
    count = 0
    for index, position in source.positions():
        out[index] = position
        count += 1
    if count != n:
        raise InvalidInputError(
            f"Point source yielded {count} positions but reports length {n}"
        )
    return out


def as_point_source(points) -> PointSource:
    """Wrap raw arrays; pass existing sources through untouched."""
    if isinstance(points, PointSource):
        return points
    return ArrayPointSource(points)
