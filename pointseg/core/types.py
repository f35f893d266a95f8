"""Pydantic models for fitted primitives, clusters and segmentation output.

Models are plain data: the RANSAC and clustering code in
:mod:`pointseg.pipeline` produces them, the CLI and API serialise them.
Point references are always integer indices into the originating point
source.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Optional

import numpy as np
from pydantic import BaseModel, Field


# ── tiny helpers ──────────────────────────────────────────────────────
class Vec3(BaseModel):
    """A 3-component vector (x, y, z)."""

    x: float
    y: float
    z: float

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_array(cls, values) -> "Vec3":
        return cls(x=float(values[0]), y=float(values[1]), z=float(values[2]))


class BBox(BaseModel):
    """Axis-aligned bounding box."""

    min: Vec3
    max: Vec3


# ── fitted primitives ────────────────────────────────────────────────
class PlaneModel(BaseModel):
    """A plane in coordinate form ``a·x + b·y + c·z + d = 0``.

    The coefficients are kept exactly as produced by the hypothesis (the
    cross product of two edge vectors), so ``(a, b, c)`` is *not* a unit
    normal.  Normalisation happens in :meth:`distances`.
    """

    a: float
    b: float
    c: float
    d: float
    ranking: int = Field(default=0, ge=0, description="Number of inliers for this plane")

    def normal(self) -> np.ndarray:
        return np.array([self.a, self.b, self.c], dtype=np.float64)

    def distances(self, points: np.ndarray) -> np.ndarray:
        """Perpendicular distance of every row of *points* to the plane.

        A zero normal yields NaN / inf entries; callers compare with ``<``
        so those never count as inliers.
        """
        normal = self.normal()
        with np.errstate(divide="ignore", invalid="ignore"):
            return np.abs(points @ normal + self.d) / np.sqrt(normal @ normal)

    @property
    def equation(self) -> str:
        return f"{self.a:.4f}x + {self.b:.4f}y + {self.c:.4f}z + {self.d:.4f} = 0"


class LineModel(BaseModel):
    """An infinite line through two points."""

    first: Vec3
    second: Vec3
    ranking: int = Field(default=0, ge=0, description="Number of inliers for this line")

    def direction(self) -> np.ndarray:
        return self.second.as_array() - self.first.as_array()

    def distances(self, points: np.ndarray) -> np.ndarray:
        """Distance of every row of *points* to the line.

        Computed as ``|(p1 - p0) × (p0 - p)| / |p1 - p0|``; coincident
        defining points give non-finite distances for every point.
        """
        p0 = self.first.as_array()
        direction = self.direction()
        crosses = np.cross(direction, p0 - points)
        with np.errstate(divide="ignore", invalid="ignore"):
            return np.linalg.norm(crosses, axis=1) / np.linalg.norm(direction)


class PlaneFit(BaseModel):
    """Winning plane plus the indices of its inliers (sorted, unique)."""

    model: PlaneModel
    inliers: list[int] = Field(default_factory=list)


class LineFit(BaseModel):
    """Winning line plus the indices of its inliers (sorted, unique)."""

    model: LineModel
    inliers: list[int] = Field(default_factory=list)


# ── clustering ───────────────────────────────────────────────────────
class ClusterMode(str, Enum):
    PER_SEED = "per_seed"
    PER_SEED_BOUNDED = "per_seed_bounded"
    COMPONENTS = "components"


class ClusterSet(BaseModel):
    """Clusters produced by one extraction run."""

    mode: ClusterMode
    radius: float
    point_count: int = 0
    clusters: list[list[int]] = Field(default_factory=list)


# ── whole-scan segmentation ──────────────────────────────────────────
class PointLabel(IntEnum):
    """Per-point class written into the intensity channel by the segmenter."""

    OTHER = 300
    LINE = 500
    PLANE = 700


class SegmentationResult(BaseModel):
    """Top-level output of :func:`pointseg.pipeline.segment.segment_points`."""

    version: str = "0.1.0"
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    source_file: str = ""
    point_count: int = 0
    bounds: Optional[BBox] = None
    plane: PlaneFit
    line: LineFit
    labels: list[PointLabel] = Field(default_factory=list)
