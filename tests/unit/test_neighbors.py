"""
Unit tests for the neighbour indexes.
"""
import numpy as np
import pytest

from pardbscan.clustering.neighbors import (
    BruteForceNeighborIndex,
    GridNeighborIndex,
    build_neighbor_index,
)
from pardbscan.core.exceptions import ConfigurationError, InputError


@pytest.fixture
def random_points():
    rng = np.random.default_rng(42)
    return rng.uniform(-20.0, 20.0, size=(400, 2))


class TestNeighborIndexes:
    """Tests for exact epsilon-radius queries."""

    @pytest.mark.parametrize("index_cls", [BruteForceNeighborIndex, GridNeighborIndex])
    def test_excludes_self(self, index_cls):
        """Test a point is never its own neighbour."""
        index = index_cls(np.array([[0.0, 0.0], [0.5, 0.0]]), epsilon=1.0)

        assert index.neighbors(0).tolist() == [1]
        assert index.neighbors(1).tolist() == [0]

    @pytest.mark.parametrize("index_cls", [BruteForceNeighborIndex, GridNeighborIndex])
    def test_boundary_is_inclusive(self, index_cls):
        """Test a point at exactly epsilon is a neighbour."""
        index = index_cls(np.array([[0.0, 0.0], [3.0, 4.0], [3.0, 4.0001]]), epsilon=5.0)

        assert index.epsilon_squared == 25.0
        assert index.neighbors(0).tolist() == [1]

    @pytest.mark.parametrize("index_cls", [BruteForceNeighborIndex, GridNeighborIndex])
    def test_duplicate_coordinates(self, index_cls):
        """Test points sharing coordinates see each other."""
        index = index_cls(np.array([[1.0, 1.0], [1.0, 1.0], [9.0, 9.0]]), epsilon=0.1)

        assert index.neighbors(0).tolist() == [1]
        assert index.neighbors(2).tolist() == []

    @pytest.mark.parametrize("epsilon", [0.3, 1.0, 2.5, 7.0])
    def test_grid_matches_brute_force(self, random_points, epsilon):
        """Test both indexes return identical sorted results."""
        brute = BruteForceNeighborIndex(random_points, epsilon)
        grid = GridNeighborIndex(random_points, epsilon)

        for i in range(len(random_points)):
            assert np.array_equal(brute.neighbors(i), grid.neighbors(i))

    def test_results_are_exact(self, random_points):
        """Test results agree with a direct distance computation."""
        epsilon = 2.0
        index = GridNeighborIndex(random_points, epsilon)

        for i in (0, 17, 250):
            d2 = ((random_points - random_points[i]) ** 2).sum(axis=1)
            expected = [j for j in np.flatnonzero(d2 <= epsilon * epsilon) if j != i]
            assert index.neighbors(i).tolist() == expected

    def test_negative_coordinates_across_cells(self):
        """Test neighbours on both sides of the origin are found."""
        points = np.array([[-0.4, -0.4], [0.4, 0.4], [-0.4, 0.4], [0.4, -0.4]])
        index = GridNeighborIndex(points, epsilon=1.2)

        assert index.neighbors(0).tolist() == [1, 2, 3]

    def test_invalid_epsilon(self):
        """Test non-positive epsilon is rejected."""
        with pytest.raises(InputError):
            BruteForceNeighborIndex(np.zeros((2, 2)), epsilon=0.0)

    def test_build_by_name(self, random_points):
        """Test the factory picks the index by name."""
        assert isinstance(build_neighbor_index(random_points, 1.0, "brute"), BruteForceNeighborIndex)
        assert isinstance(build_neighbor_index(random_points, 1.0, "grid"), GridNeighborIndex)
        assert isinstance(build_neighbor_index(random_points, 1.0), GridNeighborIndex)

    def test_build_unknown_name(self, random_points):
        """Test an unknown index name is a configuration error."""
        with pytest.raises(ConfigurationError):
            build_neighbor_index(random_points, 1.0, "kdtree")
