"""Optional YAML configuration for the CLI and API.

Every setting has a default here, so a missing or partial file is fine::

    ransac:
      distance_threshold: 0.01
      iterations: 50
      parallel: true
      seed: 42
    clustering:
      radius: 15.0
      mode: per_seed
    logging:
      level: DEBUG
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

import yaml

from pointseg.core.types import ClusterMode


def _read(path: str):
    with open(path, "r") as f:
        return yaml.safe_load(f)


@dataclass(frozen=True)
class Ransac:
    distance_threshold: float = 0.01
    iterations: int = 50
    parallel: bool = False
    seed: Optional[int] = None
    n_jobs: int = -1


@dataclass(frozen=True)
class Clustering:
    radius: float = 15.0
    mode: ClusterMode = ClusterMode.PER_SEED


@dataclass(frozen=True)
class Logging:
    level: str = "INFO"


@dataclass(frozen=True)
class Config:
    ransac: Ransac = Ransac()
    clustering: Clustering = Clustering()
    logging: Logging = Logging()


def load_config(path: Optional[str]) -> Config:
    cfg = Config()
    if path and os.path.isfile(path):
        data = _read(path) or {}
        ransac = replace(cfg.ransac, **(data.get("ransac", {}) or {}))
        clustering_data = dict(data.get("clustering", {}) or {})
        if "mode" in clustering_data:
            clustering_data["mode"] = ClusterMode(clustering_data["mode"])
        clustering = replace(cfg.clustering, **clustering_data)
        logging = replace(cfg.logging, **(data.get("logging", {}) or {}))
        cfg = replace(cfg, ransac=ransac, clustering=clustering, logging=logging)
    return cfg
