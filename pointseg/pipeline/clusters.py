"""Euclidean cluster extraction by region growing over a KD-tree.

Three modes are available:

* ``per_seed`` – every point in the index seeds its own expansion and
  yields one cluster holding everything reachable from it, so a connected
  cloud of *n* points produces *n* clusters listing the whole cloud.
  Useful for local-neighbourhood analysis.
* ``per_seed_bounded`` – same, but each expansion also stops once the raw
  number of radius-query hits (repeats included) reaches the index size.
  Dense neighbourhoods therefore yield partial clusters.
* ``components`` – a single visited set is shared by all seeds, giving one
  cluster per connected component.
"""

from __future__ import annotations

import logging

from pointseg.core.errors import InvalidInputError
from pointseg.core.types import ClusterMode, ClusterSet
from pointseg.pipeline.spatial import KdTreeIndex

logger = logging.getLogger(__name__)


def grow_from_seed(
    index: KdTreeIndex,
    seed: int,
    radius: float,
    *,
    bounded: bool = False,
) -> list[int]:
    """Expand a single seed through radius queries.

    Returns the queue in append order, starting with *seed*.  With
    *bounded* set, ``hits`` counts every neighbour returned by every query
    and the expansion stops once it reaches the index size.
    """
    total = index.size()
    queue = [seed]
    queued = {seed}
    hits = 0
    cursor = 0
    while cursor < len(queue) and (not bounded or hits < total):
        for ref in index.within_radius(queue[cursor], radius):
            if ref not in queued:
                queued.add(ref)
                queue.append(ref)
            hits += 1
        cursor += 1
    return queue


def _connected_components(index: KdTreeIndex, radius: float) -> list[list[int]]:
    visited: set[int] = set()
    clusters: list[list[int]] = []
    for seed in index:
        if seed in visited:
            continue
        visited.add(seed)
        members = [seed]
        cursor = 0
        while cursor < len(members):
            for ref in index.within_radius(members[cursor], radius):
                if ref not in visited:
                    visited.add(ref)
                    members.append(ref)
            cursor += 1
        clusters.append(members)
    return clusters


def extract_clusters(
    index: KdTreeIndex,
    radius: float,
    mode: ClusterMode = ClusterMode.PER_SEED,
) -> list[list[int]]:
    """Extract clusters of point references from *index*.

    In the per-seed modes the result has exactly one cluster per point, in
    index order, each starting with its seed.  Clusters from different
    seeds are not deduplicated.  In ``components`` mode each point appears
    in exactly one cluster.
    """
    if not radius > 0:
        raise InvalidInputError(f"radius must be positive, got {radius}")
    mode = ClusterMode(mode)

    if mode is ClusterMode.COMPONENTS:
        clusters = _connected_components(index, radius)
    else:
        bounded = mode is ClusterMode.PER_SEED_BOUNDED
        clusters = [grow_from_seed(index, seed, radius, bounded=bounded) for seed in index]

    logger.info(
        "  🔗 Extracted %d cluster(s) from %d points (radius=%s, mode=%s)",
        len(clusters), index.size(), radius, mode.value,
    )
    return clusters


def cluster_summary(
    index: KdTreeIndex,
    radius: float,
    mode: ClusterMode = ClusterMode.PER_SEED,
) -> ClusterSet:
    """Run :func:`extract_clusters` and wrap the result for serialisation."""
    mode = ClusterMode(mode)
    return ClusterSet(
        mode=mode,
        radius=radius,
        point_count=index.size(),
        clusters=extract_clusters(index, radius, mode),
    )
