"""Cluster command - Run parallel DBSCAN on a point file."""
import time
import tracemalloc
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pardbscan.config import settings
from pardbscan.clustering.clusterer import DBSCANClusterer
from pardbscan.core.exceptions import PardbscanError
from pardbscan.core.models import NeighborIndexKind, OutputFormat
from pardbscan.data.loader import PointFileLoader
from pardbscan.data.writer import write_assignments
from pardbscan.utils.logger import logger

console = Console()


def cluster(
    input_file: Path = typer.Argument(
        ...,
        help="Point file: whitespace-separated x y pairs",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Output file (default: auto-generated in the output directory)",
    ),
    epsilon: float = typer.Option(
        settings.EPSILON,
        "--epsilon", "-e",
        help="Neighbourhood radius",
    ),
    min_pts: int = typer.Option(
        settings.MIN_PTS,
        "--min-pts", "-m",
        help="Neighbours needed for a core point",
    ),
    workers: int = typer.Option(
        settings.WORKER_COUNT,
        "--workers", "-w",
        help="Number of concurrent workers",
    ),
    max_points: int = typer.Option(
        settings.MAX_POINTS,
        "--max-points",
        help="Reject inputs with more points than this",
    ),
    index: NeighborIndexKind = typer.Option(
        settings.NEIGHBOR_INDEX,
        "--index",
        help="Neighbour index: grid or brute (both exact)",
    ),
    count_self: bool = typer.Option(
        settings.COUNT_SELF,
        "--count-self/--no-count-self",
        help="Count each point as its own neighbour in the core test",
    ),
    fmt: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format", "-f",
        help="Output format: text (x y label per line) or json",
    ),
) -> Path:
    """Run parallel DBSCAN on a point file."""
    console.print("[bold blue]pardbscan[/bold blue] - Clustering")
    console.print()

    if not input_file.exists():
        console.print(f"[red]Error:[/red] Input file not found: {input_file}")
        raise typer.Exit(1)

    logger.info(
        "Starting clustering",
        input=str(input_file),
        epsilon=epsilon,
        min_pts=min_pts,
        workers=workers,
    )

    tracemalloc.start()
    try:
        console.print(f"Loading points from: {input_file}")
        points = PointFileLoader(max_points=max_points).load(input_file)
        console.print(f"[green]Loaded {len(points)} points[/green]")

        clusterer = DBSCANClusterer(
            epsilon=epsilon,
            min_pts=min_pts,
            worker_count=workers,
            max_points=max_points,
            neighbor_index=index,
            count_self=count_self,
        )

        console.print(f"Running DBSCAN with {workers} workers...")
        start = time.perf_counter()
        assignments, stats = clusterer.cluster_points(points)
        runtime = time.perf_counter() - start
    except PardbscanError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    finally:
        _, peak_memory = tracemalloc.get_traced_memory()
        tracemalloc.stop()

    # Display results
    console.print()
    table = Table(title="Clustering Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Total points", str(stats.total_points))
    table.add_row("Total clusters", str(stats.num_clusters))
    table.add_row("Noise points", str(stats.num_noise_points))
    table.add_row("Noise fraction", f"{stats.noise_fraction:.1%}")
    table.add_row("Average cluster size", f"{stats.avg_cluster_size:.1f}")
    table.add_row("Largest cluster", str(stats.largest_cluster_size))
    table.add_row("Smallest cluster", str(stats.smallest_cluster_size))
    table.add_row("DBSCAN runtime", f"{runtime:.4f} s")
    table.add_row("Peak traced memory", f"{peak_memory / 1024:.0f} KB")

    console.print(table)

    # Generate output path
    if output is None:
        suffix = "json" if fmt is OutputFormat.JSON else "txt"
        output = settings.OUTPUT_DIR / f"clusters_{input_file.stem}.{suffix}"

    console.print(f"\nSaving clusters to: {output}")
    try:
        write_assignments(
            output,
            assignments,
            fmt=fmt,
            metadata={
                "source_file": str(input_file),
                "epsilon": epsilon,
                "min_pts": min_pts,
                "worker_count": workers,
                "neighbor_index": index.value,
                "runtime_seconds": runtime,
            },
        )
    except OSError as e:
        console.print(f"[red]Error:[/red] Failed to write {escape(str(output))}: {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[green]Total points written: {len(assignments)}[/green]")
    logger.info("Clustering complete", output=str(output), num_clusters=stats.num_clusters)

    return output
