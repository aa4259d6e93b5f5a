"""
Owned storage for points and their clustering state.

All reads and writes of a point's visit flag and label go through PointStore.
Each transition happens inside a per-point critical section (locks are striped
so the store does not allocate one lock per point).
"""
import threading
from typing import Iterable, Tuple

import numpy as np

from pardbscan.core.models import UNASSIGNED, NOISE, VisitState
from pardbscan.core.exceptions import InputError, InternalConsistencyError

DEFAULT_LOCK_STRIPES = 64


class PointStore:
    """
    Points indexed 0..N-1 with a visit flag and a label each.

    Labels follow a monotone rule: UNASSIGNED -> NOISE -> cluster id, and a
    cluster id is final.
    """

    def __init__(self, coordinates: np.ndarray, lock_stripes: int = DEFAULT_LOCK_STRIPES):
        coordinates = np.asarray(coordinates, dtype=np.float64)
        if coordinates.ndim != 2 or coordinates.shape[1] != 2:
            raise InputError(
                f"Expected coordinates of shape (n, 2), got {coordinates.shape}"
            )

        self._coordinates = coordinates.copy()
        self._coordinates.setflags(write=False)
        self._visited = np.zeros(len(coordinates), dtype=bool)
        self._labels = np.full(len(coordinates), UNASSIGNED, dtype=np.int64)
        self._locks = [threading.Lock() for _ in range(max(1, lock_stripes))]

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[float, float]]) -> "PointStore":
        """Build a store from an iterable of (x, y) pairs."""
        return cls(np.array(list(pairs), dtype=np.float64).reshape(-1, 2))

    def __len__(self) -> int:
        return len(self._coordinates)

    @property
    def coordinates(self) -> np.ndarray:
        """Read-only (N, 2) coordinate array."""
        return self._coordinates

    def _lock_for(self, index: int) -> threading.Lock:
        return self._locks[index % len(self._locks)]

    def try_mark_visited(self, index: int) -> bool:
        """
        Move a point from UNVISITED to VISITED.

        Returns:
            True for the single caller that performed the transition,
            False for every caller after it
        """
        with self._lock_for(index):
            if self._visited[index]:
                return False
            self._visited[index] = True
            return True

    def visit_state(self, index: int) -> VisitState:
        with self._lock_for(index):
            return VisitState.VISITED if self._visited[index] else VisitState.UNVISITED

    def label(self, index: int) -> int:
        with self._lock_for(index):
            return int(self._labels[index])

    def assign_label(self, index: int, label: int) -> None:
        """
        Apply a label under the monotone rule.

        Raises:
            InternalConsistencyError: If the point already carries a different
                cluster id, or a cluster id would be downgraded
        """
        with self._lock_for(index):
            current = int(self._labels[index])
            if current == label:
                return
            if current > NOISE or label < current:
                raise InternalConsistencyError(index, current, label)
            self._labels[index] = label

    def mark_noise(self, index: int) -> bool:
        """Label a point NOISE if it is still UNASSIGNED. Returns True if it changed."""
        with self._lock_for(index):
            if self._labels[index] != UNASSIGNED:
                return False
            self._labels[index] = NOISE
            return True

    def claim_label(self, index: int, cluster_id: int) -> int:
        """
        Give a point ``cluster_id`` unless it already belongs to a cluster.

        Returns:
            The label the point carried before the call. A positive value
            means the point was left untouched.
        """
        with self._lock_for(index):
            previous = int(self._labels[index])
            if previous <= NOISE:
                self._labels[index] = cluster_id
            return previous

    def unvisited_count(self) -> int:
        return int(len(self) - np.count_nonzero(self._visited))

    def labels(self) -> np.ndarray:
        """Final labels in input order, with UNASSIGNED reported as noise (0)."""
        labels = self._labels.copy()
        labels[labels < NOISE] = NOISE
        return labels
