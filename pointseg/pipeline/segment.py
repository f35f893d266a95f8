"""Whole-scan segmentation: one plane, one line, a label per point."""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from pointseg.core.types import BBox, LineFit, PlaneFit, PointLabel, SegmentationResult, Vec3
from pointseg.pipeline.loader import load_point_cloud
from pointseg.pipeline.ransac import fit_line, fit_plane
from pointseg.pipeline.source import ArrayPointSource

logger = logging.getLogger(__name__)


def compute_bounds(points: np.ndarray) -> BBox | None:
    """Axis-aligned bounding box of an (N, 3) array, or None when empty."""
    if len(points) == 0:
        return None
    return BBox(min=Vec3.from_array(points.min(axis=0)), max=Vec3.from_array(points.max(axis=0)))


def label_points(n: int, plane: PlaneFit, line: LineFit) -> list[PointLabel]:
    """Line inliers win over plane inliers; everything else is OTHER."""
    labels = np.full(n, int(PointLabel.OTHER), dtype=np.int64)
    labels[plane.inliers] = int(PointLabel.PLANE)
    labels[line.inliers] = int(PointLabel.LINE)
    return [PointLabel(v) for v in labels.tolist()]


def segment_points(
    points: np.ndarray,
    *,
    distance_threshold: float = 0.01,
    iterations: int = 50,
    parallel: bool = False,
    seed: int | None = None,
    n_jobs: int = -1,
    source_file: str = "",
) -> SegmentationResult:
    """Fit a plane and a line to the same cloud and label every point.

    Both fits draw from one generator seeded with *seed*, plane first.
    """
    source = ArrayPointSource(points)
    rng = np.random.default_rng(seed)

    logger.info("Fitting plane (%d iterations) …", iterations)
    plane = fit_plane(source, distance_threshold, iterations, parallel, rng=rng, n_jobs=n_jobs)
    logger.info("Fitting line (%d iterations) …", iterations)
    line = fit_line(source, distance_threshold, iterations, parallel, rng=rng, n_jobs=n_jobs)

    return SegmentationResult(
        source_file=source_file,
        point_count=len(source),
        bounds=compute_bounds(source.as_array()),
        plane=plane,
        line=line,
        labels=label_points(len(source), plane, line),
    )


def segment_scan(input_path: str | Path, **kwargs) -> SegmentationResult:
    """Load a point-cloud file and run :func:`segment_points` on it."""
    input_path = Path(input_path)
    logger.info("Loading %s …", input_path.name)
    points = load_point_cloud(input_path)
    return segment_points(points, source_file=input_path.name, **kwargs)


def segment_scan_to_json(
    input_path: str | Path,
    output_path: str | Path | None = None,
    **kwargs,
) -> str:
    """Run the segmentation and write the result to a JSON file.

    Defaults to ``<input>.segmentation.json`` next to the input.  Returns
    the JSON string.
    """
    result = segment_scan(input_path, **kwargs)
    json_str = result.model_dump_json(indent=2)

    if output_path is None:
        output_path = Path(input_path).with_suffix(".segmentation.json")
    Path(output_path).write_text(json_str)
    logger.info("Wrote segmentation → %s", output_path)
    return json_str
