# -*- coding: utf-8 -*-
"""
Geometry Module - Regions of interest and planar transforms.

Key Classes
-----------
- Rectangle: Immutable axis-aligned region, corners ordered TL, TR, BR, BL
- Quadrilateral: Immutable four-point region

Key Functions
-------------
- rectangle_from_point_and_size / bounding_rectangle / resolve_region
- apply_transform_to_points / compute_residuals / compute_rms
- warp_image

Dependencies
------------
scipy

Author
------
Duane Smalley, PhD
duane.d.smalley@gmail.com

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

from plandet.geometry.roi import (
    Quadrilateral,
    Rectangle,
    bounding_rectangle,
    full_image_rectangle,
    rectangle_from_point_and_size,
    resolve_region,
)
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

__all__ = [
    'Quadrilateral',
    'Rectangle',
    'bounding_rectangle',
    'full_image_rectangle',
    'rectangle_from_point_and_size',
    'resolve_region',
    'apply_transform_to_points',
    'compute_residuals',
    'compute_rms',
    'homography_xy_to_rc',
    'normalize_homography',
    'rc_to_xy',
    'warp_image',
    'xy_to_rc',
]
