# -*- coding: utf-8 -*-
"""
Region of Interest Tests.

Tests for Rectangle, Quadrilateral, and the region resolver functions:
construction validation, corner order, containment, masks, and every
accepted call form of resolve_region.

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

import dataclasses

import numpy as np
import pytest

from plandet.exceptions import InvalidRegionError, ValidationError
from plandet.geometry.roi import (
    Quadrilateral,
    Rectangle,
    bounding_rectangle,
    full_image_rectangle,
    rectangle_from_point_and_size,
    resolve_region,
)


# ---------------------------------------------------------------------------
# Rectangle
# ---------------------------------------------------------------------------

class TestRectangle:
    """Test Rectangle construction and queries."""

    def test_fields_coerced_to_float(self):
        rect = Rectangle(10, 20, 30, 40)
        assert rect.top == 10.0
        assert isinstance(rect.width, float)
        assert rect.bottom == 40.0
        assert rect.right == 60.0
        assert rect.area == 1200.0

    def test_negative_size_raises(self):
        with pytest.raises(InvalidRegionError, match="non-negative"):
            Rectangle(0, 0, -1, 10)
        with pytest.raises(InvalidRegionError):
            Rectangle(0, 0, 10, -5)

    def test_zero_size_allowed(self):
        assert Rectangle(5, 5, 0, 0).area == 0.0

    def test_non_finite_raises(self):
        with pytest.raises(InvalidRegionError, match="finite"):
            Rectangle(np.nan, 0, 10, 10)

    def test_non_numeric_raises(self):
        with pytest.raises(InvalidRegionError, match="number"):
            Rectangle('a', 0, 10, 10)

    def test_invalid_region_is_validation_error(self):
        with pytest.raises(ValidationError):
            Rectangle(0, 0, -1, -1)

    def test_frozen(self):
        rect = Rectangle(0, 0, 10, 10)
        with pytest.raises(dataclasses.FrozenInstanceError):
            rect.top = 5

    def test_corner_order(self):
        corners = Rectangle(10, 10, 100, 100).corners()
        np.testing.assert_array_equal(corners, [
            [10, 10],    # top-left
            [10, 110],   # top-right
            [110, 110],  # bottom-right
            [110, 10],   # bottom-left
        ])

    def test_from_corners(self):
        rect = Rectangle.from_corners((10, 20), (50, 80))
        assert rect == Rectangle(10, 20, 40, 60)

    def test_from_corners_inverted_raises(self):
        with pytest.raises(InvalidRegionError):
            Rectangle.from_corners((50, 80), (10, 20))

    def test_contains_inclusive(self):
        rect = Rectangle(10, 10, 20, 20)
        pts = np.array([[10, 10], [30, 30], [20, 20], [9.9, 20], [20, 30.1]])
        np.testing.assert_array_equal(
            rect.contains(pts), [True, True, True, False, False],
        )

    def test_within_bounds(self):
        rect = Rectangle(10, 10, 100, 100)
        assert rect.is_within((240, 240))
        assert rect.is_within((110, 110))
        assert not rect.is_within((100, 240))

    def test_validate_within_raises(self):
        with pytest.raises(InvalidRegionError, match="exits image bounds"):
            Rectangle(200, 200, 100, 100).validate_within((240, 240))

    def test_mask(self):
        mask = Rectangle(2, 3, 4, 5).mask((10, 12))
        assert mask.dtype == np.uint8
        assert mask.shape == (10, 12)
        assert mask[2, 3] == 255
        assert mask[6, 8] == 255
        assert mask[1, 3] == 0
        assert mask[2, 9] == 0


# ---------------------------------------------------------------------------
# Quadrilateral
# ---------------------------------------------------------------------------

class TestQuadrilateral:
    """Test Quadrilateral validation and bounding rectangle."""

    def test_points_stored_as_tuples(self):
        quad = Quadrilateral([[0, 0], [0, 10], [10, 10], [10, 0]])
        assert quad.points[1] == (0.0, 10.0)
        assert quad.as_array().shape == (4, 2)

    def test_wrong_count_raises(self):
        with pytest.raises(InvalidRegionError, match="4"):
            Quadrilateral([[0, 0], [0, 10], [10, 10]])

    def test_non_finite_raises(self):
        with pytest.raises(InvalidRegionError):
            Quadrilateral([[0, 0], [0, np.inf], [10, 10], [10, 0]])

    def test_bounding_rectangle(self):
        quad = Quadrilateral([[12, 5], [3, 40], [30, 44], [25, 8]])
        assert quad.bounding_rectangle() == Rectangle(3, 5, 27, 39)


# ---------------------------------------------------------------------------
# Resolver functions
# ---------------------------------------------------------------------------

class TestRectangleFromPointAndSize:
    """Test origin plus size construction."""

    def test_basic(self):
        rect = rectangle_from_point_and_size((10, 10), 100, 100)
        assert rect == Rectangle(10, 10, 100, 100)

    def test_negative_height_raises(self):
        with pytest.raises(InvalidRegionError):
            rectangle_from_point_and_size((10, 10), -1, 100)

    def test_exits_image_raises(self):
        with pytest.raises(InvalidRegionError, match="exits image bounds"):
            rectangle_from_point_and_size((10, 10), 100, 100, image_shape=(64, 64))

    def test_bad_origin_raises(self):
        with pytest.raises(InvalidRegionError, match="point"):
            rectangle_from_point_and_size((1, 2, 3), 10, 10)


class TestBoundingRectangle:
    """Test the minimal axis-aligned bounding rectangle."""

    def test_rotated_square(self):
        pts = np.array([[0, 5], [5, 10], [10, 5], [5, 0]], dtype=np.float64)
        assert bounding_rectangle(pts) == Rectangle(0, 0, 10, 10)

    def test_accepts_quadrilateral(self):
        quad = Quadrilateral([[1, 1], [1, 4], [6, 4], [6, 1]])
        assert bounding_rectangle(quad) == Rectangle(1, 1, 5, 3)

    def test_empty_raises(self):
        with pytest.raises(InvalidRegionError, match="empty"):
            bounding_rectangle(np.empty((0, 2)))


class TestResolveRegion:
    """Test every accepted region form."""

    def test_none_is_whole_image(self):
        assert resolve_region((120, 80)) == full_image_rectangle((120, 80))
        assert resolve_region((120, 80, 3)) == Rectangle(0, 0, 120, 80)

    def test_rectangle_passthrough(self):
        rect = Rectangle(10, 10, 100, 100)
        assert resolve_region((240, 240), rect) is rect

    def test_rectangle_out_of_bounds_raises(self):
        with pytest.raises(InvalidRegionError):
            resolve_region((50, 50), Rectangle(10, 10, 100, 100))

    def test_origin_and_size(self):
        rect = resolve_region((240, 240), (10, 10), height=100, width=100)
        assert rect == Rectangle(10, 10, 100, 100)

    def test_origin_without_size_raises(self):
        with pytest.raises(InvalidRegionError, match="height and width"):
            resolve_region((240, 240), (10, 10))

    def test_size_without_origin_raises(self):
        with pytest.raises(InvalidRegionError):
            resolve_region((240, 240), height=10, width=10)

    def test_size_with_rectangle_raises(self):
        with pytest.raises(InvalidRegionError):
            resolve_region((240, 240), Rectangle(0, 0, 5, 5), height=10, width=10)

    def test_corner_array(self):
        corners = np.array([[20, 15], [18, 60], [70, 62], [72, 14]])
        assert resolve_region((240, 240), corners) == Rectangle(18, 14, 54, 48)

    def test_quadrilateral(self):
        quad = Quadrilateral([[20, 15], [18, 60], [70, 62], [72, 14]])
        assert resolve_region((240, 240), quad) == Rectangle(18, 14, 54, 48)

    def test_quadrilateral_out_of_bounds_raises(self):
        quad = Quadrilateral([[20, 15], [18, 60], [300, 62], [72, 14]])
        with pytest.raises(InvalidRegionError):
            resolve_region((240, 240), quad)

    def test_unsupported_raises(self):
        with pytest.raises(InvalidRegionError, match="Unsupported"):
            resolve_region((240, 240), np.zeros(5))
        with pytest.raises(InvalidRegionError):
            resolve_region((240, 240), 'whole')
