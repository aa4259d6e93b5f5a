"""
Bounded-concurrency dispatch of points to the expansion engine.
"""
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Optional

from pardbscan.clustering.engine import ExpansionEngine
from pardbscan.core.models import VisitState
from pardbscan.utils.logger import logger


@dataclass
class CoordinatorReport:
    """Summary of one coordinator run."""

    dispatched: int
    clusters_started: int
    worker_count: int
    borders_assigned: int = 0


class WorkerCoordinator:
    """
    Runs ``ExpansionEngine.process_point`` for every point on a fixed pool.

    A permit is taken before each dispatch and returned when that call,
    including any expansion it triggers, has finished. At most
    ``worker_count`` points are in flight at any time.
    """

    def __init__(self, engine: ExpansionEngine, worker_count: int = 16):
        if worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {worker_count}")
        self.engine = engine
        self.worker_count = worker_count

        self._permits = threading.BoundedSemaphore(worker_count)
        self._state_lock = threading.Lock()
        self._failure: Optional[BaseException] = None
        self._clusters_started = 0

    def _record(self, future: Future) -> None:
        try:
            exc = future.exception()
            if exc is not None:
                with self._state_lock:
                    if self._failure is None:
                        self._failure = exc
            elif future.result() is not None:
                with self._state_lock:
                    self._clusters_started += 1
        finally:
            self._permits.release()

    def _failed(self) -> bool:
        with self._state_lock:
            return self._failure is not None

    def run(self, indices: Optional[Iterable[int]] = None) -> CoordinatorReport:
        """
        Dispatch each index once, wait for all work to finish, then label
        the border points found by the expansions.

        Args:
            indices: Dispatch order (default: 0..N-1)

        Raises:
            Whatever the first failing ``process_point`` call raised. No new
            points are dispatched after a failure.
        """
        store = self.engine.store
        if indices is None:
            indices = range(len(store))

        self._failure = None
        self._clusters_started = 0
        dispatched = 0

        logger.info(
            "Dispatching points",
            num_points=len(store),
            worker_count=self.worker_count,
        )

        with ThreadPoolExecutor(max_workers=self.worker_count, thread_name_prefix="dbscan") as executor:
            for index in indices:
                if store.visit_state(index) is VisitState.VISITED:
                    continue
                self._permits.acquire()
                if self._failed():
                    self._permits.release()
                    break
                future = executor.submit(self.engine.process_point, index)
                future.add_done_callback(self._record)
                dispatched += 1

        if self._failure is not None:
            logger.error("Clustering aborted", error=str(self._failure))
            raise self._failure

        borders_assigned = self.engine.resolve_borders()

        report = CoordinatorReport(
            dispatched=dispatched,
            clusters_started=self._clusters_started,
            worker_count=self.worker_count,
            borders_assigned=borders_assigned,
        )
        logger.info(
            "Dispatch complete",
            dispatched=report.dispatched,
            clusters_started=report.clusters_started,
            borders_assigned=report.borders_assigned,
        )
        return report
