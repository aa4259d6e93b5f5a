"""
pardbscan - Parallel density-based clustering of 2-D points.

This package provides a DBSCAN engine whose point processing runs on a bounded
worker pool while every density-connected region keeps a single cluster id.
"""

__version__ = "0.1.0"

from pardbscan.config import settings

__all__ = [
    "settings",
    "__version__",
]
