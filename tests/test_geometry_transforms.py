# -*- coding: utf-8 -*-
"""
Geometric Transform Tests.

Tests for point transforms, residuals, the (row, col) <-> OpenCV (x, y)
boundary conversion, and homography image warping.

Author
------
Steven Siebert

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-19

Modified
--------
2026-10-19
"""

import numpy as np
import pytest

from plandet.exceptions import ValidationError
from plandet.geometry.transforms import (
    apply_transform_to_points,
    compute_residuals,
    compute_rms,
    homography_xy_to_rc,
    normalize_homography,
    rc_to_xy,
    warp_image,
    xy_to_rc,
)


@pytest.fixture
def homography_rc():
    """A mild projective transform in (row, col) form."""
    return np.array([
        [1.1, 0.05, 3.0],
        [-0.04, 0.95, -2.0],
        [1e-4, -2e-4, 1.0],
    ])


# ---------------------------------------------------------------------------
# Point transforms
# ---------------------------------------------------------------------------

class TestApplyTransform:
    """Test apply_transform_to_points."""

    def test_identity(self):
        pts = np.array([[1.0, 2.0], [3.0, 4.0]])
        np.testing.assert_allclose(apply_transform_to_points(pts, np.eye(3)), pts)

    def test_affine_translation(self):
        M = np.array([[1, 0, 5], [0, 1, -3]], dtype=np.float64)
        out = apply_transform_to_points(np.array([[10.0, 10.0]]), M)
        np.testing.assert_allclose(out, [[15.0, 7.0]])

    def test_projective_division(self):
        H = np.diag([2.0, 2.0, 2.0])
        out = apply_transform_to_points(np.array([[3.0, 4.0]]), H)
        np.testing.assert_allclose(out, [[3.0, 4.0]])

    def test_bad_shape_raises(self):
        with pytest.raises(ValidationError, match="Transform matrix"):
            apply_transform_to_points(np.zeros((1, 2)), np.eye(2))


class TestResiduals:
    """Test residual and RMS helpers."""

    def test_exact_transform_zero_residual(self, homography_rc):
        src = np.array([[0.0, 0.0], [10.0, 5.0], [50.0, 80.0]])
        dst = apply_transform_to_points(src, homography_rc)
        np.testing.assert_allclose(compute_residuals(dst, src, homography_rc), 0.0, atol=1e-9)

    def test_known_offset(self):
        src = np.array([[0.0, 0.0], [1.0, 1.0]])
        dst = src + np.array([3.0, 4.0])
        np.testing.assert_allclose(compute_residuals(dst, src, np.eye(3)), [5.0, 5.0])

    def test_rms(self):
        assert compute_rms(np.array([3.0, 4.0])) == pytest.approx(np.sqrt(12.5))

    def test_rms_empty(self):
        assert compute_rms(np.array([])) == 0.0


# ---------------------------------------------------------------------------
# OpenCV boundary
# ---------------------------------------------------------------------------

class TestBoundaryConversion:
    """Test (row, col) <-> (x, y) conversion."""

    def test_points_swap(self):
        rc = np.array([[1.0, 2.0], [3.0, 4.0]])
        xy = rc_to_xy(rc)
        assert xy.dtype == np.float32
        np.testing.assert_array_equal(xy, [[2.0, 1.0], [4.0, 3.0]])
        np.testing.assert_array_equal(xy_to_rc(xy), rc)

    def test_opencv_shape_accepted(self):
        xy = np.array([[[2.0, 1.0]], [[4.0, 3.0]]], dtype=np.float32)
        np.testing.assert_array_equal(xy_to_rc(xy), [[1.0, 2.0], [3.0, 4.0]])

    def test_homography_conversion_consistent(self, homography_rc):
        # The fixture matrix is used here as an OpenCV (x, y) homography.
        H_xy = homography_rc
        pts_rc = np.array([[5.0, 7.0], [40.0, 12.0], [100.0, 90.0]])
        via_xy = xy_to_rc(apply_transform_to_points(pts_rc[:, ::-1], H_xy))
        np.testing.assert_allclose(
            via_xy, apply_transform_to_points(pts_rc, homography_xy_to_rc(H_xy)), atol=1e-9,
        )

    def test_homography_conversion_is_involution(self, homography_rc):
        back = homography_xy_to_rc(homography_xy_to_rc(homography_rc))
        np.testing.assert_allclose(back, homography_rc, atol=1e-12)

    def test_normalize(self):
        H = normalize_homography(np.eye(3) * 4.0)
        np.testing.assert_allclose(H, np.eye(3))


# ---------------------------------------------------------------------------
# Warping
# ---------------------------------------------------------------------------

class TestWarpImage:
    """Test warp_image inverse mapping."""

    def test_identity_preserves_image(self):
        image = np.arange(64, dtype=np.float64).reshape(8, 8)
        np.testing.assert_allclose(warp_image(image, np.eye(3)), image)

    def test_translation(self):
        image = np.zeros((20, 20))
        image[5, 6] = 1.0
        T = np.array([[1, 0, 3], [0, 1, 2], [0, 0, 1]], dtype=np.float64)
        out = warp_image(image, T, order=0)
        assert out[8, 8] == 1.0
        assert out[5, 6] == 0.0

    def test_output_shape_and_fill(self):
        image = np.ones((10, 10))
        out = warp_image(image, np.eye(3), output_shape=(15, 12), fill_value=-1.0)
        assert out.shape == (15, 12)
        assert out[14, 11] == -1.0
        assert out[0, 0] == 1.0

    def test_multiband(self):
        image = np.random.RandomState(0).rand(10, 10, 3)
        out = warp_image(image, np.eye(3))
        assert out.shape == (10, 10, 3)
        np.testing.assert_allclose(out, image)

    def test_singular_raises(self):
        with pytest.raises(ValidationError, match="singular"):
            warp_image(np.zeros((4, 4)), np.zeros((3, 3)))

    def test_non_square_matrix_raises(self):
        with pytest.raises(ValidationError):
            warp_image(np.zeros((4, 4)), np.eye(2))
