"""
Loading of 2-D point files.

A point file is a whitespace-separated stream of ``x y`` number pairs. Line
breaks carry no meaning, so ``1 2 3 4`` and two lines ``1 2`` / ``3 4`` are
the same two points.
"""
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import numpy as np
from pydantic import ValidationError

from pardbscan.core.exceptions import DataLoadError, InputError
from pardbscan.core.models import PointRecord
from pardbscan.utils.logger import logger


class PointFileLoader:
    """Reads point files into PointRecord lists or coordinate arrays."""

    def __init__(self, max_points: Optional[int] = None):
        self.max_points = max_points

    def _tokens(self, file_path: Path) -> Iterator[Tuple[int, str]]:
        with open(file_path, "rb") as f:
            for line_number, raw in enumerate(f, 1):
                try:
                    line = raw.decode("utf-8")
                except UnicodeDecodeError as e:
                    raise DataLoadError(f"{file_path}:{line_number}: not valid UTF-8: {e}") from e
                for token in line.split():
                    yield line_number, token

    def iter_points(self, file_path: Path) -> Iterator[PointRecord]:
        """
        Yield points in file order.

        Raises:
            DataLoadError: If the file is missing or holds a bad token
            InputError: If the file holds more than ``max_points`` points
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise DataLoadError(f"Point file not found: {file_path}")

        pending: Optional[float] = None
        count = 0
        try:
            for line_number, token in self._tokens(file_path):
                try:
                    value = float(token)
                except ValueError:
                    raise DataLoadError(
                        f"{file_path}:{line_number}: not a number: {token!r}"
                    )
                if pending is None:
                    pending = value
                    continue

                if self.max_points is not None and count >= self.max_points:
                    raise InputError(
                        f"{file_path} holds more than max_points ({self.max_points}) points"
                    )
                try:
                    point = PointRecord(x=pending, y=value)
                except ValidationError as e:
                    raise DataLoadError(f"{file_path}:{line_number}: invalid point: {e}") from e
                yield point
                count += 1
                pending = None
        except OSError as e:
            raise DataLoadError(f"Failed to read {file_path}: {e}") from e

        if pending is not None:
            raise DataLoadError(f"{file_path}: trailing x coordinate without y")

    def load(self, file_path: Path) -> List[PointRecord]:
        """Load every point of a file. See ``iter_points``."""
        points = list(self.iter_points(file_path))
        logger.info("Loaded points", file=str(file_path), num_points=len(points))
        return points

    def load_array(self, file_path: Path) -> np.ndarray:
        """Load a file as an (n, 2) float64 array."""
        points = self.load(file_path)
        return np.array([[p.x, p.y] for p in points], dtype=np.float64).reshape(-1, 2)
