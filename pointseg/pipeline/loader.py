"""Read point-cloud files into a NumPy (N, 3) position array.

Decoding is left entirely to the format libraries:

* **PLY** – via ``plyfile``.
* **E57** – via ``pye57``.

Only the XYZ positions are kept; colours and other attributes are ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pye57
from plyfile import PlyData

from pointseg.core.errors import InvalidInputError

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".ply", ".e57")


def load_ply(path: str | Path) -> np.ndarray:
    """Return the vertex positions of a binary or ASCII PLY file."""
    ply = PlyData.read(str(path))
    vertex = ply["vertex"]
    positions = np.column_stack(
        [np.asarray(vertex[axis], dtype=np.float64) for axis in ("x", "y", "z")]
    )
    logger.info("📄 PLY loaded: %s points", f"{len(positions):,}")
    return positions


def load_e57(path: str | Path, scan_index: int = 0) -> np.ndarray:
    """Return the cartesian positions of one scan in an E57 file.

    *scan_index* picks the ``Data3D`` entry when the file holds several
    scans.
    """
    e57 = pye57.E57(str(path))
    try:
        raw = e57.read_scan_raw(scan_index)
        positions = np.column_stack(
            [np.asarray(raw[key], dtype=np.float64) for key in ("cartesianX", "cartesianY", "cartesianZ")]
        )
    finally:
        e57.close()
    logger.info("📄 E57 loaded: %s points (scan %d)", f"{len(positions):,}", scan_index)
    return positions


def load_point_cloud(path: str | Path) -> np.ndarray:
    """Dispatch on the file extension.

    Raises :class:`InvalidInputError` for unsupported extensions.
    """
    p = Path(path)
    ext = p.suffix.lower()
    if ext == ".ply":
        return load_ply(p)
    if ext == ".e57":
        return load_e57(p)
    raise InvalidInputError(
        f"Unsupported point-cloud format '{ext}'. Supported: {', '.join(SUPPORTED_SUFFIXES)}"
    )
