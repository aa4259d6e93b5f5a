"""
Unit tests for WorkerCoordinator.
"""
import threading
import time

import numpy as np
import pytest

from pardbscan.clustering.allocator import ClusterIdentityAllocator
from pardbscan.clustering.coordinator import CoordinatorReport, WorkerCoordinator
from pardbscan.clustering.engine import ExpansionEngine
from pardbscan.clustering.neighbors import GridNeighborIndex
from pardbscan.clustering.store import PointStore
from pardbscan.core.exceptions import AllocatorExhaustionError


class RecordingStore(PointStore):
    """PointStore that records every successful visit claim."""

    def __init__(self, coordinates):
        super().__init__(coordinates)
        self.claims = []
        self._claims_lock = threading.Lock()

    def try_mark_visited(self, index):
        won = super().try_mark_visited(index)
        if won:
            with self._claims_lock:
                self.claims.append(index)
        return won


class SlowEngine:
    """Engine stand-in that tracks how many calls run at once."""

    def __init__(self, num_points, fail_on=None):
        self.store = PointStore(np.zeros((num_points, 2)))
        self.fail_on = fail_on
        self.active = 0
        self.max_active = 0
        self.calls = []
        self._lock = threading.Lock()

    def process_point(self, index):
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.calls.append(index)
        try:
            time.sleep(0.002)
            if index == self.fail_on:
                raise RuntimeError(f"boom at {index}")
            return None
        finally:
            with self._lock:
                self.active -= 1

    def resolve_borders(self):
        return 0


def make_coordinator(points, epsilon, min_pts, worker_count, store_cls=PointStore, allocator=None):
    store = store_cls(np.asarray(points, dtype=np.float64))
    engine = ExpansionEngine(
        store,
        GridNeighborIndex(store.coordinates, epsilon),
        allocator or ClusterIdentityAllocator(),
        min_pts=min_pts,
    )
    return WorkerCoordinator(engine, worker_count=worker_count)


class TestWorkerCoordinator:
    """Tests for bounded dispatch."""

    def test_invalid_worker_count(self):
        """Test a pool needs at least one worker."""
        with pytest.raises(ValueError):
            WorkerCoordinator(SlowEngine(1), worker_count=0)

    @pytest.mark.parametrize("worker_count", [1, 3, 8])
    def test_concurrency_is_bounded(self, worker_count):
        """Test no more than worker_count calls are ever in flight."""
        engine = SlowEngine(60)

        report = WorkerCoordinator(engine, worker_count=worker_count).run()

        assert engine.max_active <= worker_count
        assert report.dispatched == 60
        assert sorted(engine.calls) == list(range(60))

    def test_every_point_visited_once(self, two_lattices):
        """Test each point's visit claim is won exactly once over a run."""
        coordinator = make_coordinator(two_lattices, 1.5, 3, worker_count=8, store_cls=RecordingStore)

        coordinator.run()

        store = coordinator.engine.store
        assert sorted(store.claims) == list(range(len(two_lattices)))
        assert store.unvisited_count() == 0

    def test_report(self, two_lattices):
        """Test the report counts dispatches and started clusters."""
        coordinator = make_coordinator(two_lattices, 1.5, 3, worker_count=4)

        report = coordinator.run()

        assert isinstance(report, CoordinatorReport)
        assert report.clusters_started == 2
        assert report.worker_count == 4
        assert report.borders_assigned == 0
        assert 2 <= report.dispatched <= len(two_lattices)

    def test_custom_dispatch_order(self, two_lattices):
        """Test reversed dispatch gives the same partition."""
        forward = make_coordinator(two_lattices, 1.5, 3, worker_count=4)
        forward.run()

        backward = make_coordinator(two_lattices, 1.5, 3, worker_count=4)
        backward.run(indices=reversed(range(len(two_lattices))))

        f = forward.engine.store.labels()
        b = backward.engine.store.labels()
        for i in range(len(f)):
            for j in range(len(f)):
                assert (f[i] == f[j]) == (b[i] == b[j])

    def test_failure_stops_run_and_propagates(self):
        """Test the first worker error is re-raised and dispatch stops."""
        engine = SlowEngine(500, fail_on=3)

        with pytest.raises(RuntimeError, match="boom at 3"):
            WorkerCoordinator(engine, worker_count=2).run()

        assert len(engine.calls) < 500

    def test_allocator_exhaustion_aborts_run(self, two_lattices):
        """Test a fatal engine error surfaces from run()."""
        coordinator = make_coordinator(
            two_lattices, 1.5, 3, worker_count=4, allocator=ClusterIdentityAllocator(max_id=1)
        )

        with pytest.raises(AllocatorExhaustionError):
            coordinator.run()
