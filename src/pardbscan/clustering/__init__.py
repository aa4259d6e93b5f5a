"""
Clustering module for density-based grouping of 2-D points.
Provides a DBSCAN engine that runs on a bounded worker pool.
"""

from pardbscan.clustering.allocator import ClusterIdentityAllocator
from pardbscan.clustering.clusterer import ClusterStats, DBSCANClusterer, relabel_sequential
from pardbscan.clustering.coordinator import CoordinatorReport, WorkerCoordinator
from pardbscan.clustering.engine import ExpansionEngine
from pardbscan.clustering.neighbors import (
    BruteForceNeighborIndex,
    GridNeighborIndex,
    NeighborIndex,
    build_neighbor_index,
)
from pardbscan.clustering.store import PointStore

__all__ = [
    "BruteForceNeighborIndex",
    "ClusterIdentityAllocator",
    "ClusterStats",
    "CoordinatorReport",
    "DBSCANClusterer",
    "ExpansionEngine",
    "GridNeighborIndex",
    "NeighborIndex",
    "PointStore",
    "WorkerCoordinator",
    "build_neighbor_index",
    "relabel_sequential",
]
