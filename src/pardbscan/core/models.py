"""
Pydantic models for type-safe data handling.
Defines the contract for input points, run parameters and cluster output.
"""
import math
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict


# Internal label encoding shared by the store and the engine.
UNASSIGNED = -1
NOISE = 0


class VisitState(str, Enum):
    """Per-point visitation state. Moves UNVISITED -> VISITED exactly once."""
    UNVISITED = "unvisited"
    VISITED = "visited"


class NeighborIndexKind(str, Enum):
    """Available exact epsilon-radius neighbour indexes."""
    GRID = "grid"
    BRUTE = "brute"


class OutputFormat(str, Enum):
    """Result file formats."""
    TEXT = "text"
    JSON = "json"


class PointRecord(BaseModel):
    """A single 2-D input point."""

    x: float = Field(..., description="X coordinate")
    y: float = Field(..., description="Y coordinate")

    model_config = ConfigDict(frozen=True)

    @field_validator("x", "y")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """Reject NaN and infinite coordinates."""
        if not math.isfinite(v):
            raise ValueError("Coordinates must be finite")
        return v


class ClusteringParameters(BaseModel):
    """
    Parameters of one clustering run.

    ``count_self`` makes the core test count the point itself, so that
    ``min_pts`` means "points in the closed epsilon-ball" rather than
    "other points in the epsilon-ball".
    """

    epsilon: float = Field(..., gt=0.0, description="Neighbourhood radius")
    min_pts: int = Field(..., ge=1, description="Neighbours needed for a core point")
    worker_count: int = Field(16, ge=1, description="Concurrent workers")
    max_points: int = Field(10000, ge=1, description="Input capacity")
    neighbor_index: NeighborIndexKind = Field(
        default=NeighborIndexKind.GRID,
        description="Neighbour index implementation",
    )
    count_self: bool = Field(False, description="Count the point itself as a neighbour")

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("epsilon")
    @classmethod
    def validate_epsilon(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("epsilon must be finite")
        return v


class ClusterAssignment(BaseModel):
    """
    Assignment of an input point to a cluster.
    """

    index: int = Field(..., ge=0, description="Position of the point in the input")
    x: float = Field(..., description="X coordinate")
    y: float = Field(..., description="Y coordinate")
    cluster_id: int = Field(..., ge=0, description="Cluster label (0 for noise)")
    cluster_size: Optional[int] = Field(None, ge=1, description="Total points in cluster")

    model_config = ConfigDict(validate_assignment=True)

    @property
    def is_noise(self) -> bool:
        """Check if this point was left out of every cluster."""
        return self.cluster_id == NOISE
