"""
Parallel DBSCAN clustering of 2-D points.
Validates input, wires the store, index, allocator, engine and coordinator
together for one run, and summarises the resulting labels.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
from pydantic import ValidationError

from pardbscan.clustering.allocator import ClusterIdentityAllocator
from pardbscan.clustering.coordinator import CoordinatorReport, WorkerCoordinator
from pardbscan.clustering.engine import ExpansionEngine
from pardbscan.clustering.neighbors import build_neighbor_index
from pardbscan.clustering.store import PointStore
from pardbscan.core.exceptions import ClusteringError, InputError
from pardbscan.core.models import (
    NOISE,
    ClusterAssignment,
    ClusteringParameters,
    NeighborIndexKind,
    PointRecord,
)
from pardbscan.utils.logger import logger
from pardbscan.config import settings


@dataclass
class ClusterStats:
    """Statistics about clustering results."""

    num_clusters: int
    num_noise_points: int
    total_points: int
    cluster_sizes: Dict[int, int]
    avg_cluster_size: float
    largest_cluster_size: int
    smallest_cluster_size: int
    noise_fraction: float


def relabel_sequential(labels: np.ndarray) -> np.ndarray:
    """
    Renumber cluster ids to 1..k in order of first appearance.

    Noise (0) stays 0. Two label arrays describe the same partition exactly
    when their sequential relabelings are equal.
    """
    labels = np.asarray(labels)
    mapping: Dict[int, int] = {}
    out = np.zeros(len(labels), dtype=np.int64)
    for i, label in enumerate(labels):
        label = int(label)
        if label == NOISE:
            continue
        if label not in mapping:
            mapping[label] = len(mapping) + 1
        out[i] = mapping[label]
    return out


class DBSCANClusterer:
    """
    Density-based clustering of 2-D points on a bounded worker pool.

    DBSCAN:
    1. Marks points with at least ``min_pts`` neighbours within ``epsilon``
       as core points
    2. Grows one cluster per density-connected group of core points,
       absorbing non-core neighbours as border points
    3. Labels every other point as noise (0)

    The partition does not depend on ``worker_count`` or on dispatch order.
    A border point within reach of two clusters joins the cluster of its
    lowest-index core neighbour.
    """

    def __init__(
        self,
        epsilon: Optional[float] = None,
        min_pts: Optional[int] = None,
        worker_count: Optional[int] = None,
        max_points: Optional[int] = None,
        neighbor_index: Union[str, NeighborIndexKind, None] = None,
        count_self: Optional[bool] = None,
    ):
        """
        Initialize the clusterer. Unset arguments fall back to settings.

        Args:
            epsilon: Neighbourhood radius (> 0)
            min_pts: Neighbours required for a core point (>= 1)
            worker_count: Concurrent workers (>= 1)
            max_points: Largest accepted input
            neighbor_index: "grid" or "brute"; both return exact results
            count_self: Count each point as its own neighbour in the core test

        Raises:
            InputError: If a parameter is out of range
        """
        try:
            self.params = ClusteringParameters(
                epsilon=settings.EPSILON if epsilon is None else epsilon,
                min_pts=settings.MIN_PTS if min_pts is None else min_pts,
                worker_count=settings.WORKER_COUNT if worker_count is None else worker_count,
                max_points=settings.MAX_POINTS if max_points is None else max_points,
                neighbor_index=settings.NEIGHBOR_INDEX if neighbor_index is None else neighbor_index,
                count_self=settings.COUNT_SELF if count_self is None else count_self,
            )
        except ValidationError as e:
            raise InputError(f"Invalid clustering parameters: {e}") from e

        self.store: Optional[PointStore] = None
        self.labels: Optional[np.ndarray] = None
        self.report: Optional[CoordinatorReport] = None

        logger.info(
            "Initialized DBSCANClusterer",
            epsilon=self.params.epsilon,
            min_pts=self.params.min_pts,
            worker_count=self.params.worker_count,
            neighbor_index=self.params.neighbor_index.value,
        )

    @property
    def epsilon(self) -> float:
        return self.params.epsilon

    @property
    def min_pts(self) -> int:
        return self.params.min_pts

    @property
    def worker_count(self) -> int:
        return self.params.worker_count

    def _validate(self, coordinates: np.ndarray) -> np.ndarray:
        coordinates = np.asarray(coordinates, dtype=np.float64)
        if coordinates.ndim != 2 or coordinates.shape[1] != 2:
            raise InputError(f"Expected coordinates of shape (n, 2), got {coordinates.shape}")
        if coordinates.shape[0] == 0:
            raise InputError("No points provided")
        if coordinates.shape[0] > self.params.max_points:
            raise InputError(
                f"Number of points ({coordinates.shape[0]}) exceeds "
                f"max_points ({self.params.max_points})"
            )
        if not np.all(np.isfinite(coordinates)):
            raise InputError("Coordinates must be finite")
        return coordinates

    def fit(self, coordinates: np.ndarray) -> np.ndarray:
        """
        Cluster points and return their labels.

        Args:
            coordinates: Array of shape (n_points, 2)

        Returns:
            Labels in input order (0 for noise, positive ids for clusters)

        Raises:
            InputError: If the input is empty, too large or malformed
            InternalConsistencyError: If a core point was reached by two clusters
            AllocatorExhaustionError: If cluster ids ran out
        """
        coordinates = self._validate(coordinates)

        logger.info("Starting DBSCAN clustering", num_points=len(coordinates))

        store = PointStore(coordinates)
        index = build_neighbor_index(store.coordinates, self.params.epsilon, self.params.neighbor_index)
        engine = ExpansionEngine(
            store,
            index,
            ClusterIdentityAllocator(),
            min_pts=self.params.min_pts,
            count_self=self.params.count_self,
        )
        coordinator = WorkerCoordinator(engine, worker_count=self.params.worker_count)

        self.report = coordinator.run()
        self.store = store
        self.labels = store.labels()

        num_clusters = len(set(self.labels.tolist()) - {NOISE})
        logger.info(
            "DBSCAN clustering complete",
            num_clusters=num_clusters,
            num_noise_points=int(np.sum(self.labels == NOISE)),
            total_points=len(self.labels),
        )
        return self.labels

    def cluster_points(
        self, points: List[PointRecord]
    ) -> Tuple[List[ClusterAssignment], ClusterStats]:
        """
        Cluster point records and return assignments with statistics.

        Args:
            points: Input points in order

        Returns:
            Tuple of (one ClusterAssignment per point, ClusterStats)
        """
        if not points:
            raise InputError("No points provided")

        coordinates = np.array([[p.x, p.y] for p in points], dtype=np.float64)
        labels = self.fit(coordinates)
        stats = self.get_stats()

        assignments = []
        for i, (point, label) in enumerate(zip(points, labels)):
            cluster_id = int(label)
            assignments.append(
                ClusterAssignment(
                    index=i,
                    x=point.x,
                    y=point.y,
                    cluster_id=cluster_id,
                    cluster_size=stats.cluster_sizes.get(cluster_id) if cluster_id != NOISE else None,
                )
            )

        logger.info(
            "Created cluster assignments",
            num_assignments=len(assignments),
            num_clusters=stats.num_clusters,
            num_noise=stats.num_noise_points,
        )
        return assignments, stats

    def get_stats(self) -> ClusterStats:
        """
        Get clustering statistics.

        Raises:
            ClusteringError: If clustering hasn't been run yet
        """
        if self.labels is None:
            raise ClusteringError("Clustering hasn't been fit yet")

        unique_labels = set(int(label) for label in self.labels)
        unique_labels.discard(NOISE)

        num_noise = int(np.sum(self.labels == NOISE))
        total_points = len(self.labels)

        cluster_sizes = {label: int(np.sum(self.labels == label)) for label in sorted(unique_labels)}

        avg_cluster_size = float(np.mean(list(cluster_sizes.values()))) if cluster_sizes else 0.0
        largest_cluster = max(cluster_sizes.values()) if cluster_sizes else 0
        smallest_cluster = min(cluster_sizes.values()) if cluster_sizes else 0
        noise_fraction = num_noise / total_points if total_points > 0 else 0.0

        return ClusterStats(
            num_clusters=len(cluster_sizes),
            num_noise_points=num_noise,
            total_points=total_points,
            cluster_sizes=cluster_sizes,
            avg_cluster_size=avg_cluster_size,
            largest_cluster_size=largest_cluster,
            smallest_cluster_size=smallest_cluster,
            noise_fraction=noise_fraction,
        )

    def get_cluster_members(self, cluster_id: int) -> np.ndarray:
        """Indices of the points labelled ``cluster_id`` (0 for noise)."""
        if self.labels is None:
            raise ClusteringError("Clustering hasn't been fit yet")

        return np.where(self.labels == cluster_id)[0]

    def get_cluster_center(self, cluster_id: int) -> np.ndarray:
        """
        Mean coordinate of a cluster.

        Raises:
            ClusteringError: If the cluster doesn't exist or is noise
        """
        if cluster_id == NOISE:
            raise ClusteringError("Cannot get center of noise (0)")

        if self.store is None or self.labels is None:
            raise ClusteringError("Clustering hasn't been fit yet")

        members = self.get_cluster_members(cluster_id)
        if len(members) == 0:
            raise ClusteringError(f"Cluster {cluster_id} has no members")

        return self.store.coordinates[members].mean(axis=0)
