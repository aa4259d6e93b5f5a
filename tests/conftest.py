"""
Shared fixtures: small point sets with known DBSCAN partitions.
"""
import numpy as np
import pytest


def lattice(origin, rows, cols, spacing=1.0):
    """Points on a rows x cols grid starting at ``origin``."""
    ox, oy = origin
    return [(ox + c * spacing, oy + r * spacing) for r in range(rows) for c in range(cols)]


@pytest.fixture
def two_lattices():
    """
    Two 5x5 unit lattices 100 apart and two isolated points.

    With epsilon=1.5 and min_pts=3 every lattice point is core (a corner has
    three neighbours) and the two isolated points are noise.
    """
    points = lattice((0.0, 0.0), 5, 5) + lattice((100.0, 0.0), 5, 5)
    points += [(50.0, 50.0), (-50.0, -50.0)]
    return np.array(points, dtype=np.float64)


@pytest.fixture
def gaussian_blobs():
    """
    Four Gaussian blobs far apart plus a sparse lattice of background noise.

    Blobs are 60 units apart, so no border point is within reach of two
    clusters and the partition is fully determined by the data.
    """
    rng = np.random.default_rng(7)
    centers = [(0.0, 0.0), (60.0, 0.0), (0.0, 60.0), (60.0, 60.0)]
    blobs = [rng.normal(loc=c, scale=1.0, size=(80, 2)) for c in centers]
    background = np.array(lattice((200.0, 200.0), 6, 6, spacing=10.0))
    points = np.vstack(blobs + [background])
    rng.shuffle(points)
    return points


@pytest.fixture
def shared_border():
    """
    Two clusters of three points with one non-core point between them.

    With epsilon=1 and min_pts=3 the middle point (0, 0) has two neighbours,
    one core point from each cluster, so it is a border point of both.
    """
    return np.array(
        [
            (-1.0, 0.0), (-1.5, 0.5), (-1.5, -0.5),
            (0.0, 0.0),
            (1.0, 0.0), (1.5, 0.5), (1.5, -0.5),
        ],
        dtype=np.float64,
    )
