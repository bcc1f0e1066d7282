# -*- coding: utf-8 -*-
"""
Interest Point Detection - Repeatable image locations used as matching anchors.

Provides ``InterestPointDetector``, which finds corner-like interest points
inside a region of interest with OpenCV (Shi-Tomasi, Harris, or FAST), and
``to_uint8``, which brings any supported image array into the 8-bit
single-channel form the OpenCV detectors expect.

Points are returned in the canonical (row, col) form, strongest first.
OpenCV's (x, y) form never leaves this module.

Dependencies
------------
opencv-python-headless

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

# Standard library
import logging
from typing import Annotated, Optional

# Third-party
import numpy as np

try:
    import cv2
except ImportError:
    from plandet.exceptions import DependencyError
    raise DependencyError(
        "plandet.features requires opencv-python-headless. "
        "Install with: pip install opencv-python-headless>=4.5"
    )

# plandet internal
from plandet.base import TunableComponent
from plandet.exceptions import ValidationError
from plandet.geometry.roi import Rectangle
from plandet.geometry.transforms import xy_to_rc
from plandet.params import Desc, Options, Range
from plandet.versioning import component_version
from plandet.vocabulary import KeypointMethod

logger = logging.getLogger(__name__)


def to_uint8(image: np.ndarray) -> np.ndarray:
    """Convert an image to single-channel uint8 for OpenCV.

    ``uint8`` grayscale input is returned unchanged and 3-channel ``uint8``
    input is converted from BGR to gray. Other inputs (float, integer,
    complex, multi-band) use the first band, take the magnitude of complex
    values, and are min-max normalized to 0-255.

    Parameters
    ----------
    image : np.ndarray
        Input image. Shape (rows, cols) or (rows, cols, bands).

    Returns
    -------
    np.ndarray
        Single-channel uint8 image.

    Raises
    ------
    ValidationError
        If the array is not 2D or 3D.
    """
    image = np.asarray(image)
    if image.ndim not in (2, 3):
        raise ValidationError(
            f"Image must be 2D or 3D, got {image.ndim}D with shape {image.shape}"
        )

    if image.dtype == np.uint8:
        if image.ndim == 2:
            return image
        if image.shape[2] == 3:
            return cv2.cvtColor(np.ascontiguousarray(image), cv2.COLOR_BGR2GRAY)
        return np.ascontiguousarray(image[:, :, 0])

    img = image[:, :, 0] if image.ndim == 3 else image
    if np.iscomplexobj(img):
        img = np.abs(img)
    img = img.astype(np.float64)

    vmin, vmax = np.nanmin(img), np.nanmax(img)
    if vmax - vmin > 0:
        img = (img - vmin) / (vmax - vmin) * 255.0
    else:
        img = np.zeros_like(img)

    return np.nan_to_num(img).astype(np.uint8)


@component_version('1.0.0')
class InterestPointDetector(TunableComponent):
    """Detect corner-like interest points inside a region of interest.

    ``gftt`` (Shi-Tomasi) and ``harris`` respond strongly to corners and
    saddle points such as checkerboard junctions and can refine positions
    to sub-pixel accuracy. ``fast`` is quicker but misses saddle points.

    Parameters
    ----------
    method : str
        One of ``'gftt'``, ``'harris'``, ``'fast'``. Default ``'gftt'``.
    max_points : int
        Maximum number of points returned, strongest first. Default 300.
    quality_level : float
        Minimum accepted corner quality relative to the best corner
        (``gftt`` / ``harris``). Default 0.01.
    min_distance : float
        Minimum distance in pixels between returned points
        (``gftt`` / ``harris``). Default 5.0.
    block_size : int
        Neighbourhood size of the corner measure. Default 3.
    fast_threshold : int
        Intensity threshold of the FAST segment test. Default 20.
    subpixel : bool
        Refine ``gftt`` / ``harris`` positions with ``cv2.cornerSubPix``.
        Default True.

    Examples
    --------
    >>> detector = InterestPointDetector(max_points=200)
    >>> points = detector.detect(image, Rectangle(10, 10, 100, 100))
    >>> points.shape
    (87, 2)
    """

    method: Annotated[str, Options(*[m.value for m in KeypointMethod]),
                      Desc('Interest point detector')] = 'gftt'
    max_points: Annotated[int, Range(min=1), Desc('Maximum points returned')] = 300
    quality_level: Annotated[float, Range(min=1e-6, max=1.0),
                             Desc('Relative corner quality threshold')] = 0.01
    min_distance: Annotated[float, Range(min=0.0),
                            Desc('Minimum spacing between points (px)')] = 5.0
    block_size: Annotated[int, Range(min=2, max=31), Desc('Corner measure window')] = 3
    fast_threshold: Annotated[int, Range(min=1, max=255),
                              Desc('FAST intensity threshold')] = 20
    subpixel: Annotated[bool, Desc('Refine positions to sub-pixel accuracy')] = True

    def detect(
        self,
        image: np.ndarray,
        region: Optional[Rectangle] = None,
    ) -> np.ndarray:
        """Detect interest points, optionally restricted to *region*.

        Parameters
        ----------
        image : np.ndarray
            Image to search. Any form accepted by ``to_uint8``.
        region : Rectangle, optional
            Region of interest. Only points inside it (inclusive bounds)
            are returned. Default is the whole image.

        Returns
        -------
        np.ndarray
            Shape (N, 2), columns are (row, col), strongest first. N may
            be zero.
        """
        gray = to_uint8(image)
        mask = region.mask(gray.shape) if region is not None else None

        if self.method == KeypointMethod.FAST.value:
            points = self._detect_fast(gray, mask)
        else:
            points = self._detect_corners(gray, mask)

        if region is not None and len(points):
            points = points[region.contains(points)]

        logger.debug(
            "%s detected %d interest points (method=%s)",
            type(self).__name__, len(points), self.method,
        )
        return points

    def _detect_corners(
        self,
        gray: np.ndarray,
        mask: Optional[np.ndarray],
    ) -> np.ndarray:
        """Shi-Tomasi or Harris corners, optionally sub-pixel refined."""
        corners = cv2.goodFeaturesToTrack(
            gray,
            maxCorners=self.max_points,
            qualityLevel=self.quality_level,
            minDistance=self.min_distance,
            mask=mask,
            blockSize=self.block_size,
            useHarrisDetector=self.method == KeypointMethod.HARRIS.value,
        )
        if corners is None or len(corners) == 0:
            return np.empty((0, 2), dtype=np.float64)

        corners = corners.astype(np.float32).reshape(-1, 1, 2)
        if self.subpixel:
            criteria = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER, 20, 0.03)
            corners = cv2.cornerSubPix(gray, corners, (3, 3), (-1, -1), criteria)
        return xy_to_rc(corners)

    def _detect_fast(
        self,
        gray: np.ndarray,
        mask: Optional[np.ndarray],
    ) -> np.ndarray:
        """FAST segment-test corners ranked by response."""
        fast = cv2.FastFeatureDetector_create(
            threshold=self.fast_threshold, nonmaxSuppression=True,
        )
        keypoints = fast.detect(gray, mask)
        if not keypoints:
            return np.empty((0, 2), dtype=np.float64)
        keypoints = sorted(keypoints, key=lambda kp: kp.response, reverse=True)
        keypoints = keypoints[:self.max_points]
        return xy_to_rc(np.array([kp.pt for kp in keypoints], dtype=np.float64))
