"""
Centralized configuration management.
Uses environment variables with sensible defaults.
"""
from pathlib import Path
from pydantic_settings import BaseSettings

from pardbscan.core.models import NeighborIndexKind


def _find_project_root() -> Path:
    """Find project root by looking for pyproject.toml."""
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return current.parent.parent  # Fallback: src/pardbscan -> project root


class Settings(BaseSettings):
    """Application settings with validation."""

    # Project paths
    PROJECT_ROOT: Path = _find_project_root()
    DATA_DIR: Path = PROJECT_ROOT / "data"
    OUTPUT_DIR: Path = DATA_DIR / "output"

    # Clustering configuration
    EPSILON: float = 2.5
    MIN_PTS: int = 2
    COUNT_SELF: bool = False  # Count a point as its own neighbour in the core test
    NEIGHBOR_INDEX: NeighborIndexKind = NeighborIndexKind.GRID  # or "brute"

    # Concurrency
    WORKER_COUNT: int = 16

    # Input limits
    MAX_POINTS: int = 10000

    # Logging
    LOG_LEVEL: str = "WARNING"
    LOG_FORMAT: str = "text"  # or "json"
    LOG_TO_FILE: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()
