# -*- coding: utf-8 -*-
"""
Homography Estimation - Robust planar transform fitting from correspondences.

Provides the normalized Direct Linear Transform (DLT), the collinearity
checks that keep degenerate configurations away from the solver, the
``DetectionResult`` container, and ``RansacHomographyEstimator``, which
fits a homography robustly and decides acceptance from the inlier count.

The built-in RANSAC keeps the candidate with the most inliers. Among
candidates with equal inlier counts the one with the lowest summed inlier
reprojection error wins, and an exact tie keeps the candidate found
first. The random generator is seeded from the ``seed`` parameter on
every call, so a fit is reproducible.

All points and matrices are in (row, col) form. A homography maps
reference coordinates to query coordinates and is normalized so that
``H[2, 2] == 1``.

Dependencies
------------
opencv-python-headless (for ``method='opencv'``)

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
import math
from itertools import combinations
from typing import Annotated, Any, Dict, Optional, Tuple

# Third-party
import numpy as np

try:
    import cv2
except ImportError:
    from plandet.exceptions import DependencyError
    raise DependencyError(
        "plandet.homography requires opencv-python-headless. "
        "Install with: pip install opencv-python-headless>=4.5"
    )

# plandet internal
from plandet.base import TunableComponent
from plandet.exceptions import InsufficientGeometryError
from plandet.geometry.transforms import (
    apply_transform_to_points,
    compute_residuals,
    compute_rms,
    homography_xy_to_rc,
    normalize_homography,
    rc_to_xy,
)
from plandet.matching import CorrespondenceSet
from plandet.params import Desc, Options, Range
from plandet.versioning import component_version
from plandet.vocabulary import HomographyMethod

logger = logging.getLogger(__name__)

#: Minimum number of correspondences that constrain a homography.
MIN_CORRESPONDENCES = 4

_COLLINEAR_TOL = 1e-6
_SAMPLE_AREA_TOL = 1e-3


# ---------------------------------------------------------------------------
# DLT
# ---------------------------------------------------------------------------

def normalize_points(points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Normalize points for numerical stability in DLT.

    Translates the centroid to the origin and scales so the mean distance
    from the origin is sqrt(2).

    Parameters
    ----------
    points : np.ndarray
        Points to normalize. Shape (N, 2).

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        (normalized_points, normalization_matrix) where the matrix is
        3x3 and can be used to denormalize results.
    """
    centroid = np.mean(points, axis=0)
    shifted = points - centroid
    mean_dist = np.mean(np.sqrt(np.sum(shifted ** 2, axis=1)))

    scale = 1.0 if mean_dist < 1e-12 else np.sqrt(2.0) / mean_dist

    T = np.array([
        [scale, 0, -scale * centroid[0]],
        [0, scale, -scale * centroid[1]],
        [0, 0, 1],
    ])
    return shifted * scale, T


def fit_homography(source: np.ndarray, target: np.ndarray) -> np.ndarray:
    """Least-squares homography from point pairs by normalized DLT.

    Parameters
    ----------
    source : np.ndarray
        Shape (N, 2) (row, col) points, N >= 4.
    target : np.ndarray
        Shape (N, 2) corresponding (row, col) points.

    Returns
    -------
    np.ndarray
        (3, 3) homography mapping *source* to *target*, ``H[2, 2] == 1``
        when representable.

    Raises
    ------
    InsufficientGeometryError
        If fewer than four pairs are given.
    """
    source = np.asarray(source, dtype=np.float64).reshape(-1, 2)
    target = np.asarray(target, dtype=np.float64).reshape(-1, 2)
    n = source.shape[0]
    if n < MIN_CORRESPONDENCES or target.shape[0] != n:
        raise InsufficientGeometryError(
            f"A homography needs at least {MIN_CORRESPONDENCES} point pairs, got {n}"
        )

    src_norm, T_src = normalize_points(source)
    dst_norm, T_dst = normalize_points(target)

    r_s, c_s = src_norm[:, 0], src_norm[:, 1]
    r_d, c_d = dst_norm[:, 0], dst_norm[:, 1]
    zeros = np.zeros(n)
    ones = np.ones(n)
    A = np.empty((2 * n, 9))
    A[0::2] = np.stack(
        [r_s, c_s, ones, zeros, zeros, zeros, -r_d * r_s, -r_d * c_s, -r_d], axis=1,
    )
    A[1::2] = np.stack(
        [zeros, zeros, zeros, r_s, c_s, ones, -c_d * r_s, -c_d * c_s, -c_d], axis=1,
    )

    _, _, Vt = np.linalg.svd(A)
    H_norm = Vt[-1].reshape(3, 3)
    return normalize_homography(np.linalg.inv(T_dst) @ H_norm @ T_src)


# ---------------------------------------------------------------------------
# Degeneracy
# ---------------------------------------------------------------------------

def is_collinear(points: np.ndarray, tol: float = _COLLINEAR_TOL) -> bool:
    """Whether all points lie on one line (or coincide).

    Uses the ratio of the singular values of the centred point cloud.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if pts.shape[0] < 3:
        return True
    s = np.linalg.svd(pts - pts.mean(axis=0), compute_uv=False)
    return bool(s[0] <= 1e-12 or s[1] <= tol * s[0])


def check_geometry(source: np.ndarray, target: np.ndarray) -> None:
    """Raise unless the pairs can constrain a homography.

    Raises
    ------
    InsufficientGeometryError
        If there are fewer than four pairs, or either side is collinear.
    """
    n = len(source)
    if n < MIN_CORRESPONDENCES:
        raise InsufficientGeometryError(
            f"A homography needs at least {MIN_CORRESPONDENCES} correspondences, got {n}"
        )
    if is_collinear(source) or is_collinear(target):
        raise InsufficientGeometryError("Correspondences are collinear")


def _sample_is_degenerate(points: np.ndarray) -> bool:
    """Whether any three of four sample points are (nearly) collinear."""
    normalized, _ = normalize_points(points)
    for i, j, k in combinations(range(len(normalized)), 3):
        a, b, c = normalized[i], normalized[j], normalized[k]
        area = abs((b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0]))
        if area < _SAMPLE_AREA_TOL:
            return True
    return False


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

class DetectionResult:
    """Outcome of fitting a homography to one correspondence set.

    Parameters
    ----------
    accepted : bool
        Whether the inlier count reached the acceptance threshold.
    homography : np.ndarray or None
        (3, 3) reference -> query homography in (row, col) form. ``None``
        unless ``accepted``.
    corners : np.ndarray or None
        (4, 2) reference corners reprojected into the query image, in
        top-left, top-right, bottom-right, bottom-left order. ``None``
        unless ``accepted``.
    num_inliers : int
        Inliers of the final fit; 0 when no fit was made.
    correspondences : CorrespondenceSet
        The correspondences the fit was attempted on.
    inlier_mask : np.ndarray, optional
        Boolean mask over ``correspondences``.
    residual_rms : float
        RMS inlier reprojection error in pixels.
    metadata : Dict[str, Any], optional
        Solver details (method, threshold, iterations).
    """

    def __init__(
        self,
        accepted: bool,
        homography: Optional[np.ndarray],
        corners: Optional[np.ndarray],
        num_inliers: int,
        correspondences: CorrespondenceSet,
        inlier_mask: Optional[np.ndarray] = None,
        residual_rms: float = 0.0,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.accepted = bool(accepted)
        self.homography = homography
        self.corners = corners
        self.num_inliers = int(num_inliers)
        self.correspondences = correspondences
        if inlier_mask is None:
            inlier_mask = np.zeros(len(correspondences), dtype=bool)
        self.inlier_mask = inlier_mask
        self.residual_rms = float(residual_rms)
        self.metadata = metadata or {}

    @classmethod
    def rejected(
        cls,
        correspondences: Optional[CorrespondenceSet] = None,
        reason: str = '',
    ) -> 'DetectionResult':
        """A result for which no homography was fit."""
        if correspondences is None:
            correspondences = CorrespondenceSet.empty()
        return cls(False, None, None, 0, correspondences, metadata={'reason': reason})

    @property
    def num_correspondences(self) -> int:
        return len(self.correspondences)

    @property
    def inlier_ratio(self) -> float:
        n = len(self.correspondences)
        return self.num_inliers / n if n else 0.0

    def __repr__(self) -> str:
        return (
            f"DetectionResult(accepted={self.accepted}, "
            f"inliers={self.num_inliers}/{self.num_correspondences}, "
            f"rms={self.residual_rms:.4f}px)"
        )


# ---------------------------------------------------------------------------
# Estimator
# ---------------------------------------------------------------------------

def _adaptive_iterations(inlier_ratio: float, confidence: float, cap: int) -> int:
    """RANSAC trials needed to draw one all-inlier sample with *confidence*."""
    p_good = inlier_ratio ** MIN_CORRESPONDENCES
    if p_good >= 1.0:
        return 1
    if p_good <= 0.0:
        return cap
    needed = math.log(1.0 - confidence) / math.log(1.0 - p_good)
    return int(min(cap, max(1, math.ceil(needed))))


@component_version('1.0.0')
class RansacHomographyEstimator(TunableComponent):
    """Fit a homography robustly and decide acceptance by inlier count.

    Parameters
    ----------
    ransac_threshold : float
        Forward reprojection error below which a correspondence is an
        inlier, px. Default 10.0.
    max_iterations : int
        Upper bound on RANSAC trials. Default 2000.
    confidence : float
        Probability of drawing at least one all-inlier sample, used to
        stop early. Default 0.995.
    seed : int
        Seed of the sampling generator, reset on every call. Default 0.
    method : str
        ``'ransac'`` for the built-in estimator, ``'opencv'`` to delegate
        to ``cv2.findHomography``. Default ``'ransac'``.
    refine : bool
        Refit the best candidate on all its inliers. Default True.

    Examples
    --------
    >>> estimator = RansacHomographyEstimator(ransac_threshold=5.0)
    >>> result = estimator.estimate(correspondences, corners, min_inlier_count=10)
    >>> result.accepted
    True
    """

    ransac_threshold: Annotated[float, Range(min=1e-6), Desc('Inlier distance (px)')] = 10.0
    max_iterations: Annotated[int, Range(min=1), Desc('Maximum RANSAC trials')] = 2000
    confidence: Annotated[float, Range(min=0.0, max=0.999999),
                          Desc('Early stopping confidence')] = 0.995
    seed: Annotated[int, Range(min=0), Desc('Sampling seed')] = 0
    method: Annotated[str, Options(*[m.value for m in HomographyMethod]),
                      Desc('Robust solver')] = 'ransac'
    refine: Annotated[bool, Desc('Refit on all inliers')] = True

    def fit(
        self,
        source: np.ndarray,
        target: np.ndarray,
    ) -> Tuple[Optional[np.ndarray], np.ndarray]:
        """Robustly fit a homography mapping *source* to *target*.

        Parameters
        ----------
        source : np.ndarray
            Shape (N, 2) (row, col) reference points.
        target : np.ndarray
            Shape (N, 2) (row, col) query points.

        Returns
        -------
        Tuple[Optional[np.ndarray], np.ndarray]
            ``(H, inlier_mask)``. ``H`` is ``None`` when the OpenCV solver
            finds no model.

        Raises
        ------
        InsufficientGeometryError
            For fewer than four pairs, collinear points, or when every
            minimal sample drawn is degenerate.
        """
        source = np.asarray(source, dtype=np.float64).reshape(-1, 2)
        target = np.asarray(target, dtype=np.float64).reshape(-1, 2)
        check_geometry(source, target)

        if self.method == HomographyMethod.OPENCV.value:
            return self._fit_opencv(source, target)
        return self._fit_ransac(source, target)

    def _fit_ransac(
        self,
        source: np.ndarray,
        target: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        rng = np.random.default_rng(self.seed)
        n = source.shape[0]

        best_H = None
        best_mask = None
        best_count = -1
        best_error = np.inf
        iterations = self.max_iterations
        trial = 0
        degenerate = 0

        while trial < iterations:
            trial += 1
            sample = rng.choice(n, MIN_CORRESPONDENCES, replace=False)
            if _sample_is_degenerate(source[sample]) or _sample_is_degenerate(target[sample]):
                degenerate += 1
                continue

            H = fit_homography(source[sample], target[sample])
            if not np.all(np.isfinite(H)):
                degenerate += 1
                continue

            errors = compute_residuals(target, source, H)
            mask = errors < self.ransac_threshold
            count = int(np.count_nonzero(mask))
            error = float(errors[mask].sum())

            if count > best_count or (count == best_count and error < best_error):
                best_H, best_mask = H, mask
                best_count, best_error = count, error
                iterations = min(
                    iterations,
                    max(trial, _adaptive_iterations(count / n, self.confidence,
                                                    self.max_iterations)),
                )

        if best_H is None:
            raise InsufficientGeometryError(
                f"All {degenerate} minimal samples were degenerate"
            )

        if self.refine and best_count >= MIN_CORRESPONDENCES:
            refined = fit_homography(source[best_mask], target[best_mask])
            if np.all(np.isfinite(refined)):
                refined_mask = compute_residuals(target, source, refined) < self.ransac_threshold
                if np.count_nonzero(refined_mask) >= best_count:
                    best_H, best_mask = refined, refined_mask

        logger.debug(
            "RANSAC: %d/%d inliers after %d trials (%d degenerate)",
            int(np.count_nonzero(best_mask)), n, trial, degenerate,
        )
        return best_H, best_mask

    def _fit_opencv(
        self,
        source: np.ndarray,
        target: np.ndarray,
    ) -> Tuple[Optional[np.ndarray], np.ndarray]:
        cv2.setRNGSeed(self.seed)
        H_xy, mask = cv2.findHomography(
            rc_to_xy(source), rc_to_xy(target),
            cv2.RANSAC, self.ransac_threshold,
            maxIters=self.max_iterations, confidence=self.confidence,
        )
        if H_xy is None:
            return None, np.zeros(source.shape[0], dtype=bool)
        H = homography_xy_to_rc(H_xy)
        inlier_mask = compute_residuals(target, source, H) < self.ransac_threshold
        return H, inlier_mask

    def estimate(
        self,
        correspondences: CorrespondenceSet,
        reference_corners: np.ndarray,
        min_inlier_count: int,
    ) -> DetectionResult:
        """Fit, decide acceptance, and reproject the reference corners.

        Parameters
        ----------
        correspondences : CorrespondenceSet
            Reference / query point pairs.
        reference_corners : np.ndarray
            (4, 2) corners of the reference region.
        min_inlier_count : int
            Acceptance threshold on the number of inliers.

        Returns
        -------
        DetectionResult
            ``homography`` and ``corners`` are set only when accepted; the
            corners are exactly the reference corners mapped by the
            reported homography.

        Raises
        ------
        InsufficientGeometryError
            For degenerate correspondence sets (see ``fit``).
        """
        H, mask = self.fit(correspondences.reference_points, correspondences.query_points)
        metadata = {
            'method': self.method,
            'ransac_threshold': self.ransac_threshold,
            'min_inlier_count': int(min_inlier_count),
        }
        if H is None:
            metadata['reason'] = 'solver found no model'
            return DetectionResult(False, None, None, 0, correspondences, mask, metadata=metadata)

        num_inliers = int(np.count_nonzero(mask))
        rms = compute_rms(compute_residuals(
            correspondences.query_points[mask], correspondences.reference_points[mask], H,
        ))
        accepted = num_inliers >= min_inlier_count
        corners = apply_transform_to_points(reference_corners, H) if accepted else None

        logger.debug(
            "Homography %s: %d inliers of %d (threshold %d), rms %.3f px",
            'accepted' if accepted else 'rejected',
            num_inliers, len(correspondences), min_inlier_count, rms,
        )
        return DetectionResult(
            accepted,
            H if accepted else None,
            corners,
            num_inliers,
            correspondences,
            mask,
            rms,
            metadata,
        )
