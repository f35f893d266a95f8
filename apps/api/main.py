"""FastAPI application for point-cloud segmentation.

Accepts an uploaded point cloud, keeps it in memory together with its
KD-tree, and exposes RANSAC fitting, nearest-point lookup and cluster
extraction over it.
"""

from __future__ import annotations

import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional

import numpy as np
from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel as PydanticBaseModel

from pointseg.core.errors import InvalidInputError
from pointseg.core.types import ClusterMode
from pointseg.pipeline.clusters import cluster_summary
from pointseg.pipeline.loader import SUPPORTED_SUFFIXES, load_point_cloud
from pointseg.pipeline.ransac import fit_line, fit_plane
from pointseg.pipeline.segment import segment_points
from pointseg.pipeline.source import ArrayPointSource
from pointseg.pipeline.spatial import KdTreeIndex

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="pointseg API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── In-memory store (single cloud) ───────────────────────────────────
_state: dict = {
    "source": None,       # ArrayPointSource or None
    "index": None,        # KdTreeIndex or None
    "source_file": None,  # original filename
}


def _require_cloud() -> ArrayPointSource:
    if _state["source"] is None:
        raise HTTPException(404, "No point cloud uploaded yet")
    return _state["source"]


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/upload")
async def upload_cloud(file: UploadFile = File(...)):
    """Upload a point-cloud file (PLY or E57) and build its spatial index."""
    if not file.filename:
        raise HTTPException(400, "No filename provided")

    suffix = Path(file.filename).suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise HTTPException(400, f"Unsupported format '{suffix}'. Use .ply or .e57")

    logger.info("📥 Receiving file: %s", file.filename)
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        shutil.copyfileobj(file.file, tmp)
        tmp_path = Path(tmp.name)

    try:
        points = load_point_cloud(tmp_path)
        source = ArrayPointSource(points)
        index = KdTreeIndex.build(source)
    except InvalidInputError as e:
        raise HTTPException(400, str(e))
    except Exception as e:
        logger.exception("❌ Loading failed")
        raise HTTPException(500, f"Loading failed: {e}")
    finally:
        tmp_path.unlink(missing_ok=True)

    _state["source"] = source
    _state["index"] = index
    _state["source_file"] = file.filename
    logger.info("✅ Stored %d points from %s", len(source), file.filename)
    return {"filename": file.filename, "point_count": len(source)}


@app.get("/points")
def get_points():
    """Return the cloud as a flat ``[x, y, z, ...]`` Float32 list."""
    source = _require_cloud()
    pts = source.as_array()
    return {"count": len(pts), "positions": pts.astype(np.float32).ravel().tolist()}


class FitRequest(PydanticBaseModel):
    """Body for the RANSAC endpoints."""
    distance_threshold: float = 0.01
    iterations: int = 50
    parallel: bool = False
    seed: Optional[int] = None


class ClusterRequest(PydanticBaseModel):
    radius: float
    mode: ClusterMode = ClusterMode.PER_SEED


class NearestRequest(PydanticBaseModel):
    point: list[float]  # [x, y, z]


@app.post("/fit/plane")
def fit_plane_endpoint(req: FitRequest):
    source = _require_cloud()
    try:
        fit = fit_plane(source, req.distance_threshold, req.iterations, req.parallel, seed=req.seed)
    except InvalidInputError as e:
        raise HTTPException(400, str(e))
    return JSONResponse(content=json.loads(fit.model_dump_json()))


@app.post("/fit/line")
def fit_line_endpoint(req: FitRequest):
    source = _require_cloud()
    try:
        fit = fit_line(source, req.distance_threshold, req.iterations, req.parallel, seed=req.seed)
    except InvalidInputError as e:
        raise HTTPException(400, str(e))
    return JSONResponse(content=json.loads(fit.model_dump_json()))


@app.post("/clusters")
def clusters_endpoint(req: ClusterRequest):
    """Extract clusters from the stored cloud's KD-tree."""
    _require_cloud()
    try:
        result = cluster_summary(_state["index"], req.radius, req.mode)
    except InvalidInputError as e:
        raise HTTPException(400, str(e))
    return JSONResponse(content=json.loads(result.model_dump_json()))


@app.post("/nearest")
def nearest_endpoint(req: NearestRequest):
    _require_cloud()
    if len(req.point) != 3:
        raise HTTPException(400, "point must have exactly 3 coordinates")
    index: KdTreeIndex = _state["index"]
    try:
        ref = index.nearest(req.point)
    except InvalidInputError as e:
        raise HTTPException(400, str(e))
    return {"index": ref, "position": index.position_at(ref).tolist()}


@app.post("/segmentation")
def segmentation_endpoint(req: FitRequest):
    """Fit plane + line and return per-point labels."""
    source = _require_cloud()
    try:
        result = segment_points(
            source.as_array(),
            distance_threshold=req.distance_threshold,
            iterations=req.iterations,
            parallel=req.parallel,
            seed=req.seed,
            source_file=_state["source_file"] or "",
        )
    except InvalidInputError as e:
        raise HTTPException(400, str(e))
    return JSONResponse(content=json.loads(result.model_dump_json()))
