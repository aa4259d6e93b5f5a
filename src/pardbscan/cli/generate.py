"""Generate command - Write a synthetic point file."""
from pathlib import Path

import typer
from rich.console import Console

from pardbscan.data.synthetic import generate_blobs, write_points

console = Console()


def generate(
    output: Path = typer.Argument(
        ...,
        help="Point file to write",
    ),
    clusters: int = typer.Option(10, "--clusters", "-c", help="Number of Gaussian clusters"),
    points_per_cluster: int = typer.Option(200, "--points-per-cluster", "-p", help="Points per cluster"),
    noise: int = typer.Option(500, "--noise", "-n", help="Uniform background points"),
    sigma: float = typer.Option(1.0, "--sigma", help="Standard deviation of each cluster"),
    width: float = typer.Option(1000.0, "--width", help="Side of the square area"),
    seed: int = typer.Option(42, "--seed", help="Random seed"),
) -> Path:
    """Write a synthetic dataset of Gaussian clusters over uniform noise."""
    points = generate_blobs(
        cluster_count=clusters,
        points_per_cluster=points_per_cluster,
        noise_count=noise,
        sigma=sigma,
        width=width,
        seed=seed,
    )
    write_points(output, points)
    console.print(f"[green]Wrote {len(points)} points to {output}[/green]")
    return output
