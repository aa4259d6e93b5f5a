"""
Exact epsilon-radius neighbour queries over a static point set.

Both indexes return the same sorted index arrays; the grid only narrows the
candidates that get the exact squared-distance test.
"""
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Tuple, Union

import numpy as np

from pardbscan.core.models import NeighborIndexKind
from pardbscan.core.exceptions import ConfigurationError, InputError
from pardbscan.utils.logger import logger


class NeighborIndex(ABC):
    """Read-only neighbour index. Safe to query from many threads."""

    def __init__(self, coordinates: np.ndarray, epsilon: float):
        if not epsilon > 0:
            raise InputError(f"epsilon must be positive, got {epsilon}")
        self.coordinates = np.asarray(coordinates, dtype=np.float64)
        self.epsilon = float(epsilon)
        self.epsilon_squared = self.epsilon * self.epsilon

    def __len__(self) -> int:
        return len(self.coordinates)

    def _within(self, index: int, candidates: np.ndarray) -> np.ndarray:
        point = self.coordinates[index]
        deltas = self.coordinates[candidates] - point
        d2 = deltas[:, 0] * deltas[:, 0] + deltas[:, 1] * deltas[:, 1]
        hits = candidates[(d2 <= self.epsilon_squared) & (candidates != index)]
        return np.sort(hits)

    @abstractmethod
    def neighbors(self, index: int) -> np.ndarray:
        """Indices q != index with squared distance <= epsilon**2, ascending."""


class BruteForceNeighborIndex(NeighborIndex):
    """O(N) scan per query."""

    def __init__(self, coordinates: np.ndarray, epsilon: float):
        super().__init__(coordinates, epsilon)
        self._all = np.arange(len(self.coordinates))

    def neighbors(self, index: int) -> np.ndarray:
        return self._within(index, self._all)


class GridNeighborIndex(NeighborIndex):
    """
    Uniform grid with cells at least epsilon wide.

    Any two points within epsilon of each other fall in the same or adjacent
    cells, so a query only tests the 3x3 block around the point's cell.
    """

    def __init__(self, coordinates: np.ndarray, epsilon: float):
        super().__init__(coordinates, epsilon)
        # Slightly wider than epsilon so rounding in the division cannot push
        # two in-range points two cells apart.
        self.cell_size = self.epsilon * (1.0 + 1e-9)
        self._cells = np.floor(self.coordinates / self.cell_size).astype(np.int64)

        buckets: Dict[Tuple[int, int], list] = defaultdict(list)
        for i, (cx, cy) in enumerate(self._cells):
            buckets[(int(cx), int(cy))].append(i)
        self._buckets = {key: np.array(members, dtype=np.int64) for key, members in buckets.items()}

        logger.debug(
            "Built grid neighbour index",
            num_points=len(self.coordinates),
            num_cells=len(self._buckets),
            cell_size=self.cell_size,
        )

    def neighbors(self, index: int) -> np.ndarray:
        cx, cy = (int(c) for c in self._cells[index])
        blocks = []
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                members = self._buckets.get((cx + dx, cy + dy))
                if members is not None:
                    blocks.append(members)
        if not blocks:
            return np.empty(0, dtype=np.int64)
        return self._within(index, np.concatenate(blocks))


def build_neighbor_index(
    coordinates: np.ndarray,
    epsilon: float,
    kind: Union[str, NeighborIndexKind] = NeighborIndexKind.GRID,
) -> NeighborIndex:
    """
    Create a neighbour index by name.

    Raises:
        ConfigurationError: If ``kind`` is not a known index
    """
    try:
        kind = NeighborIndexKind(kind)
    except ValueError:
        raise ConfigurationError(f"Unknown neighbour index: {kind!r}")

    if kind is NeighborIndexKind.BRUTE:
        return BruteForceNeighborIndex(coordinates, epsilon)
    return GridNeighborIndex(coordinates, epsilon)
