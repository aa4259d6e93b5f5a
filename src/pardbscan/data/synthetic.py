"""
Synthetic point sets with Gaussian clusters over a uniform background.
"""
from pathlib import Path

import numpy as np

from pardbscan.utils.logger import logger


def generate_blobs(
    cluster_count: int = 10,
    points_per_cluster: int = 200,
    noise_count: int = 500,
    sigma: float = 1.0,
    width: float = 1000.0,
    seed: int = 42,
) -> np.ndarray:
    """
    Sample ``cluster_count`` Gaussian blobs plus uniform noise in a square.

    Returns:
        Shuffled (n, 2) array of coordinates
    """
    rng = np.random.default_rng(seed)

    margin = min(4.0 * sigma, width / 2.0)
    centers = rng.uniform(margin, width - margin, size=(cluster_count, 2))
    blobs = [
        rng.normal(loc=center, scale=sigma, size=(points_per_cluster, 2))
        for center in centers
    ]
    background = rng.uniform(0.0, width, size=(noise_count, 2))

    points = np.vstack(blobs + [background]) if blobs else background
    rng.shuffle(points)
    return points


def write_points(output: Path, points: np.ndarray) -> Path:
    """Write points as ``x y`` lines readable by PointFileLoader."""
    output = Path(output)
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w") as f:
        for x, y in points:
            f.write(f"{float(x)!r} {float(y)!r}\n")
    logger.info("Wrote synthetic points", output=str(output), num_points=len(points))
    return output
