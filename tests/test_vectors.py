"""
Unit tests for planecut.geometry.vectors module.
"""

import math

import numpy as np
import pytest

from planecut.geometry.vectors import (
    as_point,
    centroid,
    normalize,
    plane_basis,
    project_to_plane_uv,
    sort_points_around_centroid,
)


class TestNormalize:
    """Tests for normalize."""

    def test_unit_length(self):
        v = normalize([3.0, 0.0, 4.0])
        assert np.allclose(v, [0.6, 0.0, 0.8])

    def test_zero_vector_returns_none(self):
        assert normalize([0.0, 0.0, 0.0]) is None

    def test_as_point_rejects_wrong_shape(self):
        with pytest.raises(ValueError):
            as_point([1.0, 2.0])


class TestPlaneBasis:
    """Tests for plane_basis."""

    @pytest.mark.parametrize("normal", [
        (0, 1, 0), (0, 0, 1), (1, 0, 0), (1, 1, 1), (0, 0.999, 0.01),
    ])
    def test_orthonormal_in_plane(self, normal):
        """u, v are unit, orthogonal, and orthogonal to the normal."""
        n = np.asarray(normal, dtype=float) / np.linalg.norm(normal)
        u, v = plane_basis(normal)
        assert np.linalg.norm(u) == pytest.approx(1.0)
        assert np.linalg.norm(v) == pytest.approx(1.0)
        assert np.dot(u, v) == pytest.approx(0.0, abs=1e-12)
        assert np.dot(u, n) == pytest.approx(0.0, abs=1e-12)
        assert np.dot(v, n) == pytest.approx(0.0, abs=1e-12)

    def test_right_handed(self):
        """u x v equals the unit normal."""
        u, v = plane_basis((1, 2, 3))
        n = np.array([1, 2, 3]) / np.linalg.norm([1, 2, 3])
        assert np.allclose(np.cross(u, v), n)

    def test_zero_normal_raises(self):
        with pytest.raises(ValueError):
            plane_basis((0, 0, 0))


class TestPlaneHelpers:
    """Tests for project_to_plane_uv, centroid, sort_points_around_centroid."""

    def test_project_origin_is_zero(self):
        assert project_to_plane_uv((1, 2, 3), (1, 2, 3), (0, 0, 1)) == (0.0, 0.0)

    def test_project_preserves_distance(self):
        u, v = project_to_plane_uv((3, 4, 0), (0, 0, 0), (0, 0, 1))
        assert math.hypot(u, v) == pytest.approx(5.0)

    def test_centroid(self):
        assert np.allclose(centroid([[0, 0, 0], [2, 0, 0], [2, 2, 0], [0, 2, 0]]), [1, 1, 0])

    def test_centroid_empty_raises(self):
        with pytest.raises(ValueError):
            centroid(np.zeros((0, 3)))

    def test_sort_around_centroid_gives_square_order(self):
        """Shuffled square corners come back in angular order."""
        square = np.array([[1, 0, 1], [-1, 0, -1], [1, 0, -1], [-1, 0, 1]], dtype=float)
        ordered = sort_points_around_centroid(square, (0, 1, 0))
        # consecutive corners are adjacent: every edge has length 2
        edges = np.linalg.norm(np.roll(ordered, -1, axis=0) - ordered, axis=1)
        assert np.allclose(edges, 2.0)

    def test_sort_short_input_unchanged(self):
        pts = np.array([[0, 0, 0], [1, 0, 0]], dtype=float)
        assert np.array_equal(sort_points_around_centroid(pts, (0, 0, 1)), pts)
