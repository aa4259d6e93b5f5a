"""
Cluster expansion for parallel DBSCAN.

Seeds are claimed and their neighbourhoods queried concurrently. Growing a
cluster from a core point is done by a single worker holding the expansion
lock from the first label to an empty frontier, so two expansions never run
over the same region at once and every density-connected region receives
exactly one id.

Expansion only labels core points. Border points reached on the way are
recorded and labelled by ``resolve_borders`` once every point has been
processed: each takes the cluster of its lowest-index core neighbour, which
makes the result independent of dispatch order.
"""
import threading
from collections import deque
from typing import Optional

import numpy as np

from pardbscan.clustering.allocator import ClusterIdentityAllocator
from pardbscan.clustering.neighbors import NeighborIndex
from pardbscan.clustering.store import PointStore
from pardbscan.core.exceptions import InternalConsistencyError
from pardbscan.core.models import UNASSIGNED, NOISE
from pardbscan.utils.logger import logger

_UNKNOWN = -1


class ExpansionEngine:
    """
    Per-point DBSCAN processing over a shared PointStore.

    Args:
        store: Points and their mutable state
        index: Neighbour index built over ``store.coordinates``
        allocator: Source of new cluster ids
        min_pts: Neighbours needed for a point to be a core point
        count_self: Count the point itself towards ``min_pts``
    """

    def __init__(
        self,
        store: PointStore,
        index: NeighborIndex,
        allocator: ClusterIdentityAllocator,
        min_pts: int,
        count_self: bool = False,
    ):
        self.store = store
        self.index = index
        self.allocator = allocator
        self.min_pts = min_pts
        self.count_self = count_self
        self._expansion_lock = threading.Lock()
        # Core flag per point: -1 unknown, 0 no, 1 yes. Every writer stores the same value.
        self._core = np.full(len(store), _UNKNOWN, dtype=np.int8)
        self._borders = set()

    def is_core(self, neighbors: np.ndarray) -> bool:
        count = len(neighbors) + (1 if self.count_self else 0)
        return count >= self.min_pts

    def _classify(self, index: int, neighbors: np.ndarray) -> bool:
        core = self.is_core(neighbors)
        self._core[index] = 1 if core else 0
        return core

    def is_core_point(self, index: int) -> bool:
        if self._core[index] == _UNKNOWN:
            return self._classify(index, self.index.neighbors(index))
        return bool(self._core[index])

    def process_point(self, index: int) -> Optional[int]:
        """
        Claim a point and, if it is an unabsorbed core point, grow its cluster.

        Returns:
            The id of the cluster started here, or None
        """
        if not self.store.try_mark_visited(index):
            return None

        neighbors = self.index.neighbors(index)
        if not self._classify(index, neighbors):
            self.store.mark_noise(index)
            return None

        with self._expansion_lock:
            # An expansion that ran while we waited may already own this seed.
            if self.store.label(index) != UNASSIGNED:
                return None

            cluster_id = self.allocator.allocate()
            self.store.assign_label(index, cluster_id)
            size = self._expand(index, neighbors, cluster_id)

        logger.debug("Expanded cluster", cluster_id=cluster_id, seed=index, core_points=size)
        return cluster_id

    def _expand(self, seed: int, neighbors: np.ndarray, cluster_id: int) -> int:
        frontier = deque(int(n) for n in neighbors)
        queued = set(frontier)
        queued.add(seed)
        size = 1

        while frontier:
            candidate = frontier.popleft()
            won = self.store.try_mark_visited(candidate)

            candidate_neighbors = self.index.neighbors(candidate)
            if not self._classify(candidate, candidate_neighbors):
                self._borders.add(candidate)
                continue

            if won:
                self.store.assign_label(candidate, cluster_id)
            else:
                # UNASSIGNED here means another worker claimed the point and has
                # not decided yet; it is ours now and gets expanded through here.
                previous = self.store.claim_label(candidate, cluster_id)
                if previous == cluster_id:
                    continue
                if previous > NOISE:
                    logger.error(
                        "Core point claimed by two clusters",
                        point=candidate,
                        existing_id=previous,
                        attempted_id=cluster_id,
                    )
                    raise InternalConsistencyError(candidate, previous, cluster_id)

            size += 1
            for n in candidate_neighbors:
                n = int(n)
                if n not in queued:
                    queued.add(n)
                    frontier.append(n)

        return size

    def resolve_borders(self) -> int:
        """
        Label the border points recorded during expansion.

        Each point takes the cluster of its lowest-index core neighbour. Call
        once every point has been processed.

        Returns:
            Number of border points labelled
        """
        with self._expansion_lock:
            borders = sorted(self._borders)
            self._borders.clear()

        assigned = 0
        for index in borders:
            if self.store.label(index) > NOISE:
                continue
            for n in self.index.neighbors(index):
                n = int(n)
                if not self.is_core_point(n):
                    continue
                cluster_id = self.store.label(n)
                if cluster_id > NOISE:
                    self.store.claim_label(index, cluster_id)
                    assigned += 1
                break

        logger.debug("Resolved border points", candidates=len(borders), assigned=assigned)
        return assigned
