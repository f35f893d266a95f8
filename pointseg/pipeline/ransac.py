"""RANSAC plane and line fitting.

Each iteration draws a minimal sample (3 points for a plane, 2 for a line)
from the point source, builds a hypothesis from it and counts the points
closer than ``distance_threshold``.  The hypothesis with the most inliers
wins; on equal counts the earliest iteration is kept.

Degenerate samples (collinear triples, coincident pairs) are not rejected
explicitly.  They produce a zero normal / direction, every distance becomes
NaN or inf, and ``distance < threshold`` is False for those values, so the
hypothesis scores zero inliers on both the serial and the parallel path.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator, TypeVar

import numpy as np
from joblib import Parallel, delayed

from pointseg.core.errors import InvalidInputError
from pointseg.core.types import LineFit, LineModel, PlaneFit, PlaneModel, Vec3
from pointseg.pipeline.source import PointSource, as_point_source, gather_positions

logger = logging.getLogger(__name__)

PLANE_SAMPLE_SIZE = 3
LINE_SAMPLE_SIZE = 2

M = TypeVar("M", PlaneModel, LineModel)


# ── sampling ─────────────────────────────────────────────────────────

def sample_distinct_indices(rng: np.random.Generator, n: int, k: int) -> np.ndarray:
    """Draw *k* pairwise-distinct indices uniformly from ``[0, n)``."""
    return rng.choice(n, size=k, replace=False)


def _iteration_seeds(rng: np.random.Generator, iterations: int) -> np.ndarray:
    # One independent child seed per iteration, drawn up front, so no
    # generator is shared between iterations on either execution path.
    return rng.integers(0, np.iinfo(np.int64).max, size=iterations, dtype=np.int64)


# ── hypotheses ───────────────────────────────────────────────────────

def plane_from_points(p_a: np.ndarray, p_b: np.ndarray, p_c: np.ndarray) -> PlaneModel:
    """Plane through three points; the normal is left unnormalised."""
    normal = np.cross(p_b - p_a, p_c - p_a)
    d = -float(normal @ p_a)
    return PlaneModel(a=float(normal[0]), b=float(normal[1]), c=float(normal[2]), d=d)


def _plane_hypothesis(source: PointSource, rng: np.random.Generator) -> PlaneModel:
    i, j, k = sample_distinct_indices(rng, len(source), PLANE_SAMPLE_SIZE)
    p_a = np.asarray(source.position_at(int(i)), dtype=np.float64)
    p_b = np.asarray(source.position_at(int(j)), dtype=np.float64)
    p_c = np.asarray(source.position_at(int(k)), dtype=np.float64)
    return plane_from_points(p_a, p_b, p_c)


def _line_hypothesis(source: PointSource, rng: np.random.Generator) -> LineModel:
    i, j = sample_distinct_indices(rng, len(source), LINE_SAMPLE_SIZE)
    return LineModel(
        first=Vec3.from_array(source.position_at(int(i))),
        second=Vec3.from_array(source.position_at(int(j))),
    )


# ── scoring & selection ──────────────────────────────────────────────

def count_inliers(model: M, points: np.ndarray, distance_threshold: float) -> tuple[M, np.ndarray]:
    """Score *model* against *points*.

    Returns a copy of the model with ``ranking`` set and the sorted inlier
    indices.
    """
    inliers = np.flatnonzero(model.distances(points) < distance_threshold)
    return model.model_copy(update={"ranking": int(len(inliers))}), inliers


def _run_iteration(
    hypothesize: Callable[[PointSource, np.random.Generator], M],
    source: PointSource,
    points: np.ndarray,
    distance_threshold: float,
    seed: int,
) -> tuple[M, np.ndarray]:
    rng = np.random.default_rng(int(seed))
    return count_inliers(hypothesize(source, rng), points, distance_threshold)


def select_best(results: Iterable[tuple[M, np.ndarray]]) -> tuple[M, np.ndarray]:
    """Fold iteration results, keeping the first strictly-best ranking."""
    best: tuple[M, np.ndarray] | None = None
    for i, (model, inliers) in enumerate(results):
        if best is None or model.ranking > best[0].ranking:
            if best is not None:
                logger.debug("  iteration %d improves ranking to %d", i, model.ranking)
            best = (model, inliers)
    if best is None:
        raise InvalidInputError("RANSAC produced no hypotheses")
    return best


# ── driver ───────────────────────────────────────────────────────────

def _validate(source: PointSource, distance_threshold: float, iterations: int, min_points: int) -> None:
    if not distance_threshold > 0:
        raise InvalidInputError(f"distance_threshold must be positive, got {distance_threshold}")
    if iterations < 1:
        raise InvalidInputError(f"iterations must be at least 1, got {iterations}")
    if len(source) < min_points:
        raise InvalidInputError(
            f"Need at least {min_points} points, point source has {len(source)}"
        )


def _ransac(
    hypothesize: Callable[[PointSource, np.random.Generator], M],
    sample_size: int,
    points_or_source,
    distance_threshold: float,
    iterations: int,
    parallel: bool,
    rng: np.random.Generator | None,
    seed: int | None,
    n_jobs: int,
) -> tuple[M, np.ndarray]:
    source = as_point_source(points_or_source)
    _validate(source, distance_threshold, iterations, sample_size)

    rng = rng if rng is not None else np.random.default_rng(seed)
    seeds = _iteration_seeds(rng, iterations)
    points = gather_positions(source)

    if parallel:
        results: Iterator[tuple[M, np.ndarray]] = Parallel(
            n_jobs=n_jobs, prefer="threads", return_as="generator",
        )(
            delayed(_run_iteration)(hypothesize, source, points, distance_threshold, s)
            for s in seeds
        )
    else:
        results = (
            _run_iteration(hypothesize, source, points, distance_threshold, s)
            for s in seeds
        )
    return select_best(results)


def fit_plane(
    points: np.ndarray | PointSource,
    distance_threshold: float = 0.01,
    iterations: int = 50,
    parallel: bool = False,
    *,
    rng: np.random.Generator | None = None,
    seed: int | None = None,
    n_jobs: int = -1,
) -> PlaneFit:
    """Fit a single plane to *points* using RANSAC.

    *points* is a :class:`PointSource` or an ``(N, 3)`` array.  Randomness
    comes from *rng* if given, otherwise from a generator seeded with
    *seed*.  With ``parallel=True`` the iterations run on a joblib thread
    pool; for the same generator state the winner is the same as on the
    serial path.

    Raises :class:`InvalidInputError` for a non-positive threshold, zero
    iterations or fewer than three points.
    """
    model, inliers = _ransac(
        _plane_hypothesis, PLANE_SAMPLE_SIZE, points,
        distance_threshold, iterations, parallel, rng, seed, n_jobs,
    )
    logger.info(
        "Plane fit: %s with %d inliers (%d iterations, %s)",
        model.equation, model.ranking, iterations, "parallel" if parallel else "serial",
    )
    return PlaneFit(model=model, inliers=inliers.tolist())


def fit_line(
    points: np.ndarray | PointSource,
    distance_threshold: float = 0.01,
    iterations: int = 50,
    parallel: bool = False,
    *,
    rng: np.random.Generator | None = None,
    seed: int | None = None,
    n_jobs: int = -1,
) -> LineFit:
    """Fit a single line to *points* using RANSAC.

    Same contract as :func:`fit_plane` with a two-point sample.
    """
    model, inliers = _ransac(
        _line_hypothesis, LINE_SAMPLE_SIZE, points,
        distance_threshold, iterations, parallel, rng, seed, n_jobs,
    )
    logger.info(
        "Line fit: (%.3f, %.3f, %.3f) → (%.3f, %.3f, %.3f) with %d inliers",
        model.first.x, model.first.y, model.first.z,
        model.second.x, model.second.y, model.second.z,
        model.ranking,
    )
    return LineFit(model=model, inliers=inliers.tolist())
