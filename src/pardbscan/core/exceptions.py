"""
Custom exceptions for the pardbscan application.
"""


class PardbscanError(Exception):
    """Base exception for all pardbscan errors."""
    pass


class InputError(PardbscanError):
    """Raised when points or parameters are rejected before clustering starts."""
    pass


class DataLoadError(PardbscanError):
    """Raised when a point file cannot be read or parsed."""
    pass


class ConfigurationError(PardbscanError):
    """Raised when a configured component name is not recognised."""
    pass


class ClusteringError(PardbscanError):
    """Raised when clustering results are queried in an invalid state."""
    pass


class InternalConsistencyError(PardbscanError):
    """
    Raised when a point's cluster id would be overwritten by a different id.

    This is never a data condition: it means two expansions were allowed to
    interleave over the same density-connected region. The run is aborted.
    """

    def __init__(self, index: int, existing_id: int, attempted_id: int):
        self.index = index
        self.existing_id = existing_id
        self.attempted_id = attempted_id
        super().__init__(
            f"Point {index} already belongs to cluster {existing_id}; "
            f"refusing to relabel it as {attempted_id}"
        )


class AllocatorExhaustionError(PardbscanError):
    """Raised when the cluster identity counter would overflow."""
    pass
