"""
Source of cluster identities.
"""
import threading

from pardbscan.core.exceptions import AllocatorExhaustionError

# Labels are written out as signed 32-bit integers.
MAX_CLUSTER_ID = 2**31 - 1


class ClusterIdentityAllocator:
    """Issues unique, monotonically increasing cluster ids starting at 1."""

    def __init__(self, max_id: int = MAX_CLUSTER_ID):
        self._lock = threading.Lock()
        self._current = 0
        self.max_id = max_id

    def allocate(self) -> int:
        """
        Return a cluster id no previous call has returned.

        Raises:
            AllocatorExhaustionError: If the counter would pass ``max_id``
        """
        with self._lock:
            if self._current >= self.max_id:
                raise AllocatorExhaustionError(
                    f"Cluster id counter exhausted at {self._current}"
                )
            self._current += 1
            return self._current

    def current(self) -> int:
        """Last id handed out (0 if none)."""
        with self._lock:
            return self._current
