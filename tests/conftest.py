# -*- coding: utf-8 -*-
"""
Shared Test Fixtures - Synthetic checkerboard scenes.

The reference scene is a 240x240 grey image holding a 100x100 checkerboard
of 10 px squares with random intensities at rows and columns 10..110. The
query scene is the same image scaled 1.2x and rotated 15 degrees about the
board centre, which is moved to (120, 120).

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

try:
    import cv2
    _HAS_CV2 = True
except ImportError:
    _HAS_CV2 = False

BACKGROUND = 128
BOARD_ORIGIN = 10
BOARD_SIZE = 100
SQUARE = 10
SCENE_SHAPE = (240, 240)


def make_reference(seed: int = 7) -> np.ndarray:
    """Grey scene with a random-intensity checkerboard patch."""
    rng = np.random.RandomState(seed)
    image = np.full(SCENE_SHAPE, BACKGROUND, dtype=np.uint8)
    n = BOARD_SIZE // SQUARE
    for i in range(n):
        for j in range(n):
            if (i + j) % 2 == 0:
                value = rng.randint(0, 100)
            else:
                value = rng.randint(155, 256)
            r = BOARD_ORIGIN + i * SQUARE
            c = BOARD_ORIGIN + j * SQUARE
            image[r:r + SQUARE, c:c + SQUARE] = value
    return image


def query_transform(angle: float = 15.0, scale: float = 1.2) -> np.ndarray:
    """(2, 3) OpenCV affine map from reference (x, y) to query (x, y)."""
    center = BOARD_ORIGIN + BOARD_SIZE / 2.0
    M = cv2.getRotationMatrix2D((center, center), angle, scale)
    M[:, 2] += SCENE_SHAPE[0] / 2.0 - center
    return M


def warp_to_query(image: np.ndarray, M: np.ndarray) -> np.ndarray:
    return cv2.warpAffine(
        image, M, (SCENE_SHAPE[1], SCENE_SHAPE[0]),
        flags=cv2.INTER_LINEAR, borderValue=BACKGROUND,
    )


def map_rc(points_rc: np.ndarray, M: np.ndarray) -> np.ndarray:
    """Apply an OpenCV (x, y) affine map to (row, col) points."""
    xy = np.asarray(points_rc, dtype=np.float64)[:, ::-1]
    out = xy @ M[:, :2].T + M[:, 2]
    return out[:, ::-1]


@pytest.fixture
def reference_image():
    return make_reference()


@pytest.fixture
def reference_roi():
    from plandet.geometry.roi import Rectangle
    return Rectangle(BOARD_ORIGIN, BOARD_ORIGIN, BOARD_SIZE, BOARD_SIZE)


@pytest.fixture
def query_scene(reference_image):
    """Rotated and scaled query image plus the ground-truth map."""
    if not _HAS_CV2:
        pytest.skip("opencv-python-headless not installed")
    M = query_transform()
    return warp_to_query(reference_image, M), M


@pytest.fixture
def expected_corners(query_scene, reference_roi):
    """Reference ROI corners mapped analytically into the query image."""
    _, M = query_scene
    return map_rc(reference_roi.corners(), M)
