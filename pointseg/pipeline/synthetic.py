"""Synthetic point clouds for demos and tests."""

from __future__ import annotations

import numpy as np


def plane_and_line_cloud(
    n: int = 20_000,
    *,
    extent: float = 100.0,
    plane_z: float = 1.0,
    line_length: float = 200.0,
    line_every: int = 4,
    outlier_every: int = 50,
    outlier_z_range: tuple[float, float] = (-50.0, 50.2),
    seed: int | None = 0,
) -> np.ndarray:
    """A horizontal plane crossed by a vertical line, plus outliers.

    * most points lie on ``z = plane_z`` inside ``[0, extent)²``;
    * every *line_every*-th point sits on the z-axis with
      ``z ∈ [0, line_length)``;
    * every *outlier_every*-th point has its z replaced by a uniform draw
      from *outlier_z_range*.  This is applied after the line step, so a
      point can be both.
    """
    rng = np.random.default_rng(seed)
    points = np.column_stack(
        (
            rng.uniform(0.0, extent, size=n),
            rng.uniform(0.0, extent, size=n),
            np.full(n, plane_z),
        )
    )

    idx = np.arange(n)
    on_line = idx % line_every == 0
    points[on_line, 0] = 0.0
    points[on_line, 1] = 0.0
    points[on_line, 2] = rng.uniform(0.0, line_length, size=int(on_line.sum()))

    outliers = idx % outlier_every == 0
    points[outliers, 2] = rng.uniform(*outlier_z_range, size=int(outliers.sum()))
    return points


def noisy_plane_patch(
    normal: np.ndarray,
    offset: float,
    u_axis: np.ndarray,
    v_axis: np.ndarray,
    extent: float = 5.0,
    n: int = 500,
    noise: float = 0.005,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Generate *n* points on a plane with a bit of Gaussian noise."""
    rng = rng or np.random.default_rng(0)
    centre = np.asarray(normal, dtype=np.float64) * offset
    u = rng.uniform(-extent / 2, extent / 2, size=(n, 1))
    v = rng.uniform(-extent / 2, extent / 2, size=(n, 1))
    pts = centre + u * u_axis + v * v_axis
    pts += rng.normal(scale=noise, size=pts.shape)
    return pts
