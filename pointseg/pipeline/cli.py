"""CLI entry-point: RANSAC fits, cluster extraction and segmentation."""

from __future__ import annotations

import json
import logging

import click

from pointseg.core.config import Config, load_config
from pointseg.core.errors import PointSegError
from pointseg.core.types import ClusterMode
from pointseg.pipeline.clusters import cluster_summary
from pointseg.pipeline.loader import load_point_cloud
from pointseg.pipeline.ransac import fit_line, fit_plane
from pointseg.pipeline.segment import segment_scan_to_json
from pointseg.pipeline.spatial import KdTreeIndex

_input_file = click.argument("input_file", type=click.Path(exists=True, dir_okay=False))


def _ransac_options(func):
    func = click.option("--seed", type=int, default=None, help="RANSAC random seed.")(func)
    func = click.option("--parallel", is_flag=True, default=False, help="Run iterations on a thread pool.")(func)
    func = click.option("--iterations", type=int, default=None, help="Number of RANSAC iterations.")(func)
    func = click.option("--threshold", type=float, default=None, help="Inlier distance threshold.")(func)
    return func


def _ransac_kwargs(cfg: Config, threshold, iterations, parallel, seed) -> dict:
    return dict(
        distance_threshold=cfg.ransac.distance_threshold if threshold is None else threshold,
        iterations=cfg.ransac.iterations if iterations is None else iterations,
        parallel=cfg.ransac.parallel or parallel,
        seed=cfg.ransac.seed if seed is None else seed,
        n_jobs=cfg.ransac.n_jobs,
    )


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None, help="YAML config file.")
@click.option("--log-level", default=None, help="Override the configured log level.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, log_level: str | None):
    """Point-cloud RANSAC fitting and cluster extraction."""
    cfg = load_config(config_path)
    logging.basicConfig(
        level=(log_level or cfg.logging.level).upper(),
        format="%(levelname)s | %(name)s | %(message)s",
    )
    ctx.obj = cfg


@main.command()
@_input_file
@_ransac_options
@click.pass_obj
def plane(cfg: Config, input_file: str, threshold, iterations, parallel, seed):
    """Fit a plane and print it with its inlier indices as JSON."""
    try:
        points = load_point_cloud(input_file)
        fit = fit_plane(points, **_ransac_kwargs(cfg, threshold, iterations, parallel, seed))
    except PointSegError as e:
        raise click.ClickException(str(e))
    click.echo(fit.model_dump_json(indent=2))


@main.command()
@_input_file
@_ransac_options
@click.pass_obj
def line(cfg: Config, input_file: str, threshold, iterations, parallel, seed):
    """Fit a line and print it with its inlier indices as JSON."""
    try:
        points = load_point_cloud(input_file)
        fit = fit_line(points, **_ransac_kwargs(cfg, threshold, iterations, parallel, seed))
    except PointSegError as e:
        raise click.ClickException(str(e))
    click.echo(fit.model_dump_json(indent=2))


@main.command()
@_input_file
@click.option("--radius", type=float, default=None, help="Neighbour search radius.")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in ClusterMode]),
    default=None,
    help="Cluster extraction mode.",
)
@click.pass_obj
def clusters(cfg: Config, input_file: str, radius: float | None, mode: str | None):
    """Extract clusters and print them as JSON."""
    try:
        index = KdTreeIndex.build(load_point_cloud(input_file))
        result = cluster_summary(
            index,
            cfg.clustering.radius if radius is None else radius,
            cfg.clustering.mode if mode is None else ClusterMode(mode),
        )
    except PointSegError as e:
        raise click.ClickException(str(e))
    click.echo(result.model_dump_json(indent=2))


@main.command()
@_input_file
@click.argument("x", type=float)
@click.argument("y", type=float)
@click.argument("z", type=float)
def nearest(input_file: str, x: float, y: float, z: float):
    """Print the point closest to (X, Y, Z)."""
    try:
        index = KdTreeIndex.build(load_point_cloud(input_file))
        ref = index.nearest((x, y, z))
    except PointSegError as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps({"index": ref, "position": index.position_at(ref).tolist()}))


@main.command()
@_input_file
@click.option("-o", "--output", "output_file", default=None, help="Output JSON path.")
@_ransac_options
@click.pass_obj
def segment(cfg: Config, input_file: str, output_file: str | None, threshold, iterations, parallel, seed):
    """Fit a plane and a line, label every point, write the result JSON."""
    try:
        json_str = segment_scan_to_json(
            input_file,
            output_path=output_file,
            **_ransac_kwargs(cfg, threshold, iterations, parallel, seed),
        )
    except PointSegError as e:
        raise click.ClickException(str(e))
    click.echo(json_str)


if __name__ == "__main__":
    main()
