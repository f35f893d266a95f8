"""Shared test fixtures – small deterministic point clouds."""

from __future__ import annotations

import numpy as np
import pytest

from pointseg.pipeline.synthetic import noisy_plane_patch


@pytest.fixture()
def x_axis_points() -> np.ndarray:
    """50 points (i, 0, 0) for i in 0..50 – collinear and on y = 0."""
    return np.column_stack((np.arange(50.0), np.zeros(50), np.zeros(50)))


@pytest.fixture()
def y0_grid_points() -> np.ndarray:
    """A 10 × 5 grid lying exactly on the plane y = 0."""
    i = np.arange(50)
    return np.column_stack(((i % 10).astype(float), np.zeros(50), (i // 10).astype(float)))


@pytest.fixture()
def five_colinear_points() -> np.ndarray:
    return np.column_stack((np.arange(5.0), np.zeros(5), np.zeros(5)))


@pytest.fixture()
def two_groups() -> np.ndarray:
    """Three points near the origin, three points far away along +x."""
    return np.array(
        [
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
            [2.0, 0.0, 0.0],
            [100.0, 0.0, 0.0],
            [101.0, 0.0, 0.0],
            [102.0, 0.0, 0.0],
        ]
    )


@pytest.fixture()
def noisy_floor_with_clutter() -> np.ndarray:
    """A noisy floor patch (z ≈ 0) plus uniformly scattered clutter."""
    rng = np.random.default_rng(42)
    floor = noisy_plane_patch(
        np.array([0, 0, 1.0]), 0.0,
        np.array([1, 0, 0.0]), np.array([0, 1, 0.0]),
        extent=5.0, n=400, noise=0.002, rng=rng,
    )
    clutter = rng.uniform(-2.5, 2.5, size=(100, 3))
    clutter[:, 2] = rng.uniform(0.5, 3.0, size=100)
    return np.vstack([floor, clutter])
