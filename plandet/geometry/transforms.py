# -*- coding: utf-8 -*-
"""
Geometric Transforms - Point transforms, residuals, and image warping.

Provides helpers for applying homographies to (row, col) point sets,
computing reprojection residuals, converting between plandet's canonical
(row, col) form and the OpenCV (x, y) form at the edge of an OpenCV call,
and warping an image through a homography.

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

# Standard library
from typing import Optional, Tuple

# Third-party
import numpy as np
from scipy.ndimage import map_coordinates

# plandet internal
from plandet.exceptions import ValidationError

# Swaps (row, col) <-> (x, y) in homogeneous coordinates. Self-inverse.
_SWAP = np.array([[0, 1, 0], [1, 0, 0], [0, 0, 1]], dtype=np.float64)


def apply_transform_to_points(
    points: np.ndarray,
    transform_matrix: np.ndarray,
) -> np.ndarray:
    """Apply an affine or projective transform to a set of 2D points.

    Parameters
    ----------
    points : np.ndarray
        Points to transform. Shape (N, 2), columns are (row, col).
    transform_matrix : np.ndarray
        Affine (2, 3) or projective (3, 3) transform matrix.

    Returns
    -------
    np.ndarray
        Transformed points. Shape (N, 2), columns are (row, col).

    Raises
    ------
    ValidationError
        If the matrix is neither (2, 3) nor (3, 3).
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    matrix = np.asarray(transform_matrix, dtype=np.float64)
    pts_h = np.hstack([pts, np.ones((pts.shape[0], 1))])

    if matrix.shape == (2, 3):
        return pts_h @ matrix.T

    if matrix.shape == (3, 3):
        result_h = pts_h @ matrix.T
        w = result_h[:, 2:3]
        w = np.where(np.abs(w) < 1e-12, 1e-12, w)
        return result_h[:, :2] / w

    raise ValidationError(
        f"Transform matrix must be (2, 3) or (3, 3), got {matrix.shape}"
    )


def compute_residuals(
    target_points: np.ndarray,
    source_points: np.ndarray,
    transform_matrix: np.ndarray,
) -> np.ndarray:
    """Per-point Euclidean error after mapping *source_points*.

    Parameters
    ----------
    target_points : np.ndarray
        Expected positions. Shape (N, 2), (row, col).
    source_points : np.ndarray
        Positions to transform. Shape (N, 2), (row, col).
    transform_matrix : np.ndarray
        Transform mapping source to target frame.

    Returns
    -------
    np.ndarray
        Residuals in pixels. Shape (N,).
    """
    transformed = apply_transform_to_points(source_points, transform_matrix)
    diff = np.asarray(target_points, dtype=np.float64).reshape(-1, 2) - transformed
    return np.sqrt(np.sum(diff ** 2, axis=1))


def compute_rms(residuals: np.ndarray) -> float:
    """Root mean square of residual errors; 0.0 for an empty array."""
    residuals = np.asarray(residuals, dtype=np.float64)
    if residuals.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(residuals ** 2)))


def normalize_homography(matrix: np.ndarray) -> np.ndarray:
    """Scale a homography so that ``H[2, 2] == 1`` when possible."""
    H = np.asarray(matrix, dtype=np.float64)
    if abs(H[2, 2]) > 1e-12:
        H = H / H[2, 2]
    return H


# ---------------------------------------------------------------------------
# OpenCV boundary conversion
# ---------------------------------------------------------------------------

def rc_to_xy(points: np.ndarray) -> np.ndarray:
    """(row, col) points to OpenCV (x, y) float32 points. Shape (N, 2)."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    return np.ascontiguousarray(pts[:, ::-1], dtype=np.float32)


def xy_to_rc(points: np.ndarray) -> np.ndarray:
    """OpenCV (x, y) points of any (N, 1, 2) or (N, 2) shape to (row, col)."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    return pts[:, ::-1].copy()


def homography_xy_to_rc(matrix_xy: np.ndarray) -> np.ndarray:
    """Convert a homography acting on (x, y) into one acting on (row, col)."""
    return normalize_homography(_SWAP @ np.asarray(matrix_xy, dtype=np.float64) @ _SWAP)


# ---------------------------------------------------------------------------
# Warping
# ---------------------------------------------------------------------------

def warp_image(
    image: np.ndarray,
    transform_matrix: np.ndarray,
    output_shape: Optional[Tuple[int, int]] = None,
    order: int = 1,
    fill_value: float = 0.0,
) -> np.ndarray:
    """Warp an image through a homography via inverse mapping.

    Output pixel ``p`` takes the value of the input at ``H^-1 p``, so the
    result is the input image seen in the frame the transform maps into.
    Uses scipy's ``map_coordinates`` for interpolation.

    Parameters
    ----------
    image : np.ndarray
        Input image. Shape (rows, cols) or (rows, cols, bands).
    transform_matrix : np.ndarray
        Forward transform (input frame -> output frame). Shape (3, 3).
    output_shape : Optional[Tuple[int, int]]
        Output (rows, cols). If None, uses the input image shape.
    order : int
        Interpolation order: 0=nearest, 1=bilinear, 3=bicubic.
    fill_value : float
        Value for pixels mapped from outside the input image.

    Returns
    -------
    np.ndarray
        Warped image with the same dtype and band count as the input.

    Raises
    ------
    ValidationError
        If the transform is not (3, 3) or is singular.
    """
    matrix = np.asarray(transform_matrix, dtype=np.float64)
    if matrix.shape != (3, 3):
        raise ValidationError(f"Homography must be (3, 3), got {matrix.shape}")
    try:
        inv_matrix = np.linalg.inv(matrix)
    except np.linalg.LinAlgError as exc:
        raise ValidationError("Homography is singular and cannot be inverted") from exc

    if output_shape is None:
        output_shape = image.shape[:2]
    out_rows, out_cols = int(output_shape[0]), int(output_shape[1])

    row_coords, col_coords = np.mgrid[0:out_rows, 0:out_cols]
    out_pts = np.stack([row_coords.ravel(), col_coords.ravel()], axis=1)
    src = apply_transform_to_points(out_pts, inv_matrix)
    src_rows = src[:, 0].reshape(out_rows, out_cols)
    src_cols = src[:, 1].reshape(out_rows, out_cols)

    if image.ndim == 3:
        result = np.empty((out_rows, out_cols, image.shape[2]), dtype=image.dtype)
        for b in range(image.shape[2]):
            result[:, :, b] = map_coordinates(
                image[:, :, b], [src_rows, src_cols],
                order=order, mode='constant', cval=fill_value,
            )
        return result

    return map_coordinates(
        image, [src_rows, src_cols],
        order=order, mode='constant', cval=fill_value,
    )
