"""Main CLI application."""
import typer

from pardbscan.cli.cluster import cluster
from pardbscan.cli.generate import generate

app = typer.Typer(
    name="pardbscan",
    help="Parallel density-based clustering of 2-D points.",
    add_completion=False,
)

app.command()(cluster)
app.command()(generate)


if __name__ == "__main__":
    app()
