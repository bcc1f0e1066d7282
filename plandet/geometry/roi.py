# -*- coding: utf-8 -*-
"""
Region of Interest - Immutable rectangle and quadrilateral value types.

Provides the ``Rectangle`` and ``Quadrilateral`` value types used to
restrict reference building and matching to part of an image, and the
resolver functions that fold the accepted call forms (whole image, origin
plus size, rectangle, quadrilateral) into one validated ``Rectangle``.

All coordinates are (row, col) pixel coordinates. A rectangle spans rows
``[top, top + height]`` and columns ``[left, left + width]``; its corners
are always reported in the order top-left, top-right, bottom-right,
bottom-left.

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
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

# Third-party
import numpy as np

# plandet internal
from plandet.exceptions import InvalidRegionError


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle in (row, col) pixel coordinates.

    Parameters
    ----------
    top : float
        Row of the top edge.
    left : float
        Column of the left edge.
    height : float
        Extent in rows. Must be non-negative.
    width : float
        Extent in columns. Must be non-negative.

    Raises
    ------
    InvalidRegionError
        If any value is not finite or height / width is negative.
    """

    top: float
    left: float
    height: float
    width: float

    def __post_init__(self) -> None:
        for name in ('top', 'left', 'height', 'width'):
            value = getattr(self, name)
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise InvalidRegionError(
                    f"Rectangle {name} must be a number, got {value!r}"
                ) from None
            if not math.isfinite(value):
                raise InvalidRegionError(f"Rectangle {name} must be finite, got {value}")
            object.__setattr__(self, name, value)
        if self.height < 0 or self.width < 0:
            raise InvalidRegionError(
                f"Rectangle height and width must be non-negative, "
                f"got height={self.height}, width={self.width}"
            )

    @classmethod
    def from_corners(
        cls,
        top_left: Sequence[float],
        bottom_right: Sequence[float],
    ) -> 'Rectangle':
        """Build a rectangle from its top-left and bottom-right points.

        Parameters
        ----------
        top_left : Sequence[float]
            (row, col) of the top-left corner.
        bottom_right : Sequence[float]
            (row, col) of the bottom-right corner.

        Raises
        ------
        InvalidRegionError
            If bottom-right lies above or left of top-left.
        """
        top, left = _as_point(top_left)
        bottom, right = _as_point(bottom_right)
        return cls(top, left, bottom - top, right - left)

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def area(self) -> float:
        return self.height * self.width

    def corners(self) -> np.ndarray:
        """The four corners in top-left, top-right, bottom-right, bottom-left order.

        Returns
        -------
        np.ndarray
            Shape (4, 2), columns are (row, col).
        """
        return np.array([
            [self.top, self.left],
            [self.top, self.right],
            [self.bottom, self.right],
            [self.bottom, self.left],
        ], dtype=np.float64)

    def contains(self, points: np.ndarray) -> np.ndarray:
        """Inclusive containment test for a set of points.

        Parameters
        ----------
        points : np.ndarray
            Shape (N, 2), columns are (row, col).

        Returns
        -------
        np.ndarray
            Boolean mask of shape (N,).
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        return (
            (pts[:, 0] >= self.top) & (pts[:, 0] <= self.bottom)
            & (pts[:, 1] >= self.left) & (pts[:, 1] <= self.right)
        )

    def is_within(self, image_shape: Tuple[int, ...]) -> bool:
        """Whether the rectangle lies inside an image of *image_shape*."""
        rows, cols = int(image_shape[0]), int(image_shape[1])
        return (
            self.top >= 0 and self.left >= 0
            and self.bottom <= rows and self.right <= cols
        )

    def validate_within(self, image_shape: Tuple[int, ...]) -> 'Rectangle':
        """Return ``self`` if it lies inside the image, otherwise raise.

        Raises
        ------
        InvalidRegionError
            If the rectangle exits the image bounds.
        """
        if not self.is_within(image_shape):
            raise InvalidRegionError(
                f"{self!r} exits image bounds "
                f"(rows={int(image_shape[0])}, cols={int(image_shape[1])})"
            )
        return self

    def to_slices(self) -> Tuple[slice, slice]:
        """Integer (row, col) slices covering every pixel the rectangle touches."""
        return (
            slice(int(math.floor(self.top)), int(math.ceil(self.bottom)) + 1),
            slice(int(math.floor(self.left)), int(math.ceil(self.right)) + 1),
        )

    def mask(self, image_shape: Tuple[int, ...]) -> np.ndarray:
        """Detection mask for OpenCV: 255 inside the rectangle, 0 elsewhere.

        Returns
        -------
        np.ndarray
            ``uint8`` array of shape ``image_shape[:2]``.
        """
        mask = np.zeros((int(image_shape[0]), int(image_shape[1])), dtype=np.uint8)
        mask[self.to_slices()] = 255
        return mask


@dataclass(frozen=True)
class Quadrilateral:
    """Four ordered (row, col) points, e.g. a previously detected surface.

    Parameters
    ----------
    points : Sequence
        Four (row, col) pairs. Stored as a tuple of float tuples.

    Raises
    ------
    InvalidRegionError
        If there are not exactly four finite points.
    """

    points: Tuple[Tuple[float, float], ...]

    def __post_init__(self) -> None:
        arr = np.asarray(self.points, dtype=np.float64)
        if arr.shape != (4, 2):
            raise InvalidRegionError(
                f"Quadrilateral requires 4 (row, col) points, got shape {arr.shape}"
            )
        if not np.all(np.isfinite(arr)):
            raise InvalidRegionError("Quadrilateral points must be finite")
        object.__setattr__(
            self, 'points', tuple((float(r), float(c)) for r, c in arr)
        )

    def as_array(self) -> np.ndarray:
        """Points as a (4, 2) float64 array of (row, col)."""
        return np.array(self.points, dtype=np.float64)

    def bounding_rectangle(self) -> Rectangle:
        return bounding_rectangle(self.as_array())


Region = Union[Rectangle, Quadrilateral, np.ndarray, Sequence[float]]


def _as_point(point: Sequence[float]) -> Tuple[float, float]:
    """Coerce a (row, col) pair, raising ``InvalidRegionError`` if malformed."""
    try:
        arr = np.asarray(point, dtype=np.float64).ravel()
    except (TypeError, ValueError):
        raise InvalidRegionError(f"Expected a (row, col) point, got {point!r}") from None
    if arr.shape != (2,) or not np.all(np.isfinite(arr)):
        raise InvalidRegionError(f"Expected a finite (row, col) point, got {point!r}")
    return float(arr[0]), float(arr[1])


def rectangle_from_point_and_size(
    origin: Sequence[float],
    height: float,
    width: float,
    image_shape: Optional[Tuple[int, ...]] = None,
) -> Rectangle:
    """Build a rectangle from its top-left point and size.

    Parameters
    ----------
    origin : Sequence[float]
        (row, col) of the top-left corner.
    height : float
        Extent in rows.
    width : float
        Extent in columns.
    image_shape : Tuple[int, ...], optional
        When given, the rectangle must lie within these image bounds.

    Returns
    -------
    Rectangle

    Raises
    ------
    InvalidRegionError
        If height or width is negative, or the rectangle exits the image.
    """
    top, left = _as_point(origin)
    rect = Rectangle(top, left, height, width)
    if image_shape is not None:
        rect.validate_within(image_shape)
    return rect


def bounding_rectangle(points: Union[np.ndarray, Quadrilateral]) -> Rectangle:
    """Minimal axis-aligned rectangle containing a set of points.

    Parameters
    ----------
    points : np.ndarray or Quadrilateral
        Shape (N, 2) (row, col) points; typically the four corners of a
        quadrilateral.

    Returns
    -------
    Rectangle

    Raises
    ------
    InvalidRegionError
        If no points are given or any point is not finite.
    """
    if isinstance(points, Quadrilateral):
        pts = points.as_array()
    else:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if pts.shape[0] == 0:
        raise InvalidRegionError("Cannot bound an empty point set")
    if not np.all(np.isfinite(pts)):
        raise InvalidRegionError("Cannot bound non-finite points")
    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    return Rectangle(lo[0], lo[1], hi[0] - lo[0], hi[1] - lo[1])


def full_image_rectangle(image_shape: Tuple[int, ...]) -> Rectangle:
    """Rectangle covering an entire image."""
    return Rectangle(0.0, 0.0, float(image_shape[0]), float(image_shape[1]))


def resolve_region(
    image_shape: Tuple[int, ...],
    region: Optional[Region] = None,
    height: Optional[float] = None,
    width: Optional[float] = None,
) -> Rectangle:
    """Fold every accepted region form into one validated rectangle.

    Accepted forms:

    - ``region=None``: the whole image.
    - ``region=(row, col)`` with ``height`` and ``width``: origin plus size.
    - ``region=Rectangle``: used as given.
    - ``region=Quadrilateral`` or a (4, 2) array: its bounding rectangle.

    Parameters
    ----------
    image_shape : Tuple[int, ...]
        Shape of the image the region applies to.
    region : Rectangle, Quadrilateral, np.ndarray or (row, col), optional
        Region specification.
    height, width : float, optional
        Size, only with an origin point.

    Returns
    -------
    Rectangle
        A rectangle guaranteed to lie within ``image_shape``.

    Raises
    ------
    InvalidRegionError
        For malformed or out-of-bounds regions, or when a size is given
        together with a region that already has one.
    """
    sized = height is not None or width is not None

    if region is None:
        if sized:
            raise InvalidRegionError("height and width require an origin point")
        return full_image_rectangle(image_shape)

    if isinstance(region, Rectangle):
        if sized:
            raise InvalidRegionError("height and width cannot be combined with a Rectangle")
        return region.validate_within(image_shape)

    if isinstance(region, Quadrilateral):
        if sized:
            raise InvalidRegionError("height and width cannot be combined with a Quadrilateral")
        return region.bounding_rectangle().validate_within(image_shape)

    try:
        arr = np.asarray(region, dtype=np.float64)
    except (TypeError, ValueError):
        raise InvalidRegionError(f"Unsupported region specification: {region!r}") from None
    if arr.shape == (4, 2):
        if sized:
            raise InvalidRegionError("height and width cannot be combined with corner points")
        return bounding_rectangle(arr).validate_within(image_shape)
    if arr.size == 2:
        if height is None or width is None:
            raise InvalidRegionError("An origin point requires both height and width")
        return rectangle_from_point_and_size(arr, height, width, image_shape)

    raise InvalidRegionError(f"Unsupported region specification: {region!r}")
