# -*- coding: utf-8 -*-
"""
Fern Classifier - Random-fern statistical classifier for reference points.

Implements the semi-naive Bayesian "fern" classifier used for planar
object recognition. Every reference interest point is one class. A fern
is a small, fixed set of binary intensity comparisons between two pixel
offsets around a point; the outcomes of its ``depth`` comparisons form a
leaf index. Training synthesizes many random affine views of the
reference patch and counts, per fern and class, how often each leaf is
reached. Classification sums the per-fern log-probabilities of the leaves
a query point reaches and picks the most probable class.

Views are synthesized by sampling the reference image through the inverse
of each random affine map, so no warped image is ever materialized.

Dependencies
------------
scipy
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
from typing import Annotated, Any, Tuple

# Third-party
import numpy as np
from scipy.ndimage import map_coordinates

try:
    import cv2
except ImportError:
    from plandet.exceptions import DependencyError
    raise DependencyError(
        "FernClassifier requires opencv-python-headless. "
        "Install with: pip install opencv-python-headless>=4.5"
    )

# plandet internal
from plandet.classifiers.base import UNLABELLED, PointClassifier, register_classifier
from plandet.exceptions import ModelNotBuiltError, PersistenceError, ValidationError
from plandet.features.keypoints import to_uint8
from plandet.params import Desc, Range
from plandet.versioning import component_version

logger = logging.getLogger(__name__)


@component_version('1.0.0')
class FernClassifier(PointClassifier):
    """Random-fern classifier trained on synthesized affine views.

    Parameters
    ----------
    num_ferns : int
        Number of independent ferns. Default 40.
    fern_depth : int
        Binary tests per fern; each fern has ``2 ** fern_depth`` leaves.
        Default 8.
    patch_size : int
        Side of the square neighbourhood the test offsets are drawn from.
        Default 32.
    num_views : int
        Random affine views synthesized during training. Default 400.
    blur_sigma : float
        Gaussian pre-smoothing applied to reference and query images.
        Default 1.5.
    max_rotation : float
        Largest in-plane rotation of a synthesized view, degrees.
        Default 30. Queries rotated further than this are rarely
        recognized.
    min_scale, max_scale : float
        Scale range of synthesized views. Defaults 0.8 and 1.3.
    max_anisotropy : float
        Largest axis ratio of the synthesized affine squeeze. Default 1.1.
    position_jitter : float
        Standard deviation of point position noise during training, px.
        Default 0.5.
    noise_sigma : float
        Standard deviation of intensity noise during training, grey
        levels. Default 4.0.
    min_margin : float
        Minimum log-probability gap between the best and second-best
        class; points below it are left unlabelled. Default 0.0.
    seed : int
        Seed of the random tests and views. Default 0.

    Examples
    --------
    >>> clf = FernClassifier(num_views=200, seed=3)
    >>> clf.train(reference, reference_points)
    124
    >>> labels, scores = clf.classify(query, query_points)
    """

    num_ferns: Annotated[int, Range(min=1, max=512), Desc('Number of ferns')] = 40
    fern_depth: Annotated[int, Range(min=1, max=16), Desc('Binary tests per fern')] = 8
    patch_size: Annotated[int, Range(min=4, max=256), Desc('Test neighbourhood side (px)')] = 32
    num_views: Annotated[int, Range(min=1), Desc('Synthesized training views')] = 400
    blur_sigma: Annotated[float, Range(min=0.0), Desc('Gaussian pre-smoothing sigma')] = 1.5
    max_rotation: Annotated[float, Range(min=0.0, max=180.0),
                            Desc('Largest view rotation (deg)')] = 30.0
    min_scale: Annotated[float, Range(min=0.05), Desc('Smallest view scale')] = 0.8
    max_scale: Annotated[float, Range(min=0.05), Desc('Largest view scale')] = 1.3
    max_anisotropy: Annotated[float, Range(min=1.0), Desc('Largest view axis ratio')] = 1.1
    position_jitter: Annotated[float, Range(min=0.0), Desc('Training position noise (px)')] = 0.5
    noise_sigma: Annotated[float, Range(min=0.0), Desc('Training intensity noise')] = 4.0
    min_margin: Annotated[float, Range(min=0.0), Desc('Best-to-second log-prob gap')] = 0.0
    seed: Annotated[int, Range(min=0), Desc('Random seed')] = 0

    def __post_init__(self) -> None:
        if self.min_scale > self.max_scale:
            raise ValidationError(
                f"min_scale ({self.min_scale}) must not exceed max_scale ({self.max_scale})"
            )
        self._offsets = None
        self._log_probs = None

    @property
    def num_classes(self) -> int:
        if self._log_probs is None:
            return 0
        return int(self._log_probs.shape[2])

    def _prepare(self, image: np.ndarray) -> np.ndarray:
        """Grey float32 image smoothed by ``blur_sigma``."""
        gray = to_uint8(image).astype(np.float32)
        if self.blur_sigma > 0:
            gray = cv2.GaussianBlur(gray, (0, 0), self.blur_sigma)
        return gray

    def _leaves(
        self,
        image: np.ndarray,
        centers: np.ndarray,
        offsets: np.ndarray,
        rng: np.random.Generator = None,
    ) -> np.ndarray:
        """Leaf index reached by every point in every fern.

        Parameters
        ----------
        image : np.ndarray
            Prepared (smoothed float) image.
        centers : np.ndarray
            Shape (N, 2) (row, col) test centres.
        offsets : np.ndarray
            Shape (F, D, 2, 2) test offsets, possibly already warped.
        rng : np.random.Generator, optional
            When given, intensity noise is added to the samples.

        Returns
        -------
        np.ndarray
            Shape (N, F) int64 leaf indices.
        """
        coords = centers[:, None, None, None, :] + offsets[None]
        samples = map_coordinates(
            image,
            [coords[..., 0].ravel(), coords[..., 1].ravel()],
            order=1, mode='nearest',
        ).reshape(coords.shape[:-1])
        if rng is not None and self.noise_sigma > 0:
            samples = samples + rng.normal(0.0, self.noise_sigma, samples.shape)
        bits = samples[..., 0] < samples[..., 1]
        weights = 1 << np.arange(self.fern_depth, dtype=np.int64)
        return bits.astype(np.int64) @ weights

    def _random_affine(self, rng: np.random.Generator) -> np.ndarray:
        """Random 2x2 view map: rotation, anisotropic scale, rotation back."""
        theta = np.deg2rad(rng.uniform(-self.max_rotation, self.max_rotation))
        phi = rng.uniform(-np.pi, np.pi)
        scale = rng.uniform(self.min_scale, self.max_scale)
        squeeze = rng.uniform(1.0, self.max_anisotropy)

        def rot(a):
            return np.array([[np.cos(a), -np.sin(a)], [np.sin(a), np.cos(a)]])

        return rot(theta) @ rot(-phi) @ np.diag([scale * squeeze, scale / squeeze]) @ rot(phi)

    def train(self, image: np.ndarray, points: np.ndarray) -> int:
        """Train one class per reference point.

        Parameters
        ----------
        image : np.ndarray
            Reference image.
        points : np.ndarray
            Shape (K, 2) (row, col) reference points.

        Returns
        -------
        int
            Number of trained classes ``K``.

        Raises
        ------
        ValidationError
            If no points are given.
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        num_points = points.shape[0]
        if num_points == 0:
            raise ValidationError("FernClassifier.train requires at least one point")

        rng = np.random.default_rng(self.seed)
        half = self.patch_size / 2.0
        offsets = rng.uniform(-half, half, size=(self.num_ferns, self.fern_depth, 2, 2))

        prepared = self._prepare(image)
        num_leaves = 1 << self.fern_depth
        visits = []
        fern_base = (np.arange(self.num_ferns) * num_leaves)[None, :]
        class_index = np.arange(num_points)[:, None]

        for _ in range(self.num_views):
            inverse = np.linalg.inv(self._random_affine(rng))
            warped = offsets @ inverse.T
            centers = points + rng.normal(0.0, self.position_jitter, points.shape)
            leaves = self._leaves(prepared, centers, warped, rng)
            flat = (fern_base + leaves) * num_points + class_index
            visits.append(flat.ravel())

        counts = np.bincount(
            np.concatenate(visits), minlength=self.num_ferns * num_leaves * num_points,
        ).reshape(self.num_ferns, num_leaves, num_points)
        self._log_probs = np.log(
            (counts + 1.0) / (self.num_views + num_leaves)
        ).astype(np.float32)
        self._offsets = offsets

        logger.info(
            "Trained %d ferns (depth %d) on %d points from %d views",
            self.num_ferns, self.fern_depth, num_points, self.num_views,
        )
        return num_points

    def classify(
        self,
        image: np.ndarray,
        points: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Label query points with the most probable reference point.

        Returns
        -------
        Tuple[np.ndarray, np.ndarray]
            ``(labels, scores)``; scores are summed log-probabilities.

        Raises
        ------
        ModelNotBuiltError
            If the classifier has not been trained.
        """
        if not self.is_trained:
            raise ModelNotBuiltError("FernClassifier has not been trained")

        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if points.shape[0] == 0:
            return np.empty(0, dtype=np.int64), np.empty(0, dtype=np.float64)

        leaves = self._leaves(self._prepare(image), points, self._offsets)
        fern_index = np.arange(self.num_ferns)[None, :]
        posterior = self._log_probs[fern_index, leaves].sum(axis=1, dtype=np.float64)

        labels = np.argmax(posterior, axis=1).astype(np.int64)
        scores = posterior[np.arange(points.shape[0]), labels]

        if self.min_margin > 0 and posterior.shape[1] > 1:
            second = np.partition(posterior, -2, axis=1)[:, -2]
            labels[scores - second < self.min_margin] = UNLABELLED

        logger.debug(
            "Classified %d points, %d labelled",
            points.shape[0], int(np.count_nonzero(labels != UNLABELLED)),
        )
        return labels, scores

    def _write_state(self, group: Any) -> None:
        group.create_dataset('offsets', data=self._offsets)
        group.create_dataset('log_probs', data=self._log_probs, compression='gzip')

    def _read_state(self, group: Any) -> None:
        offsets = np.asarray(group['offsets'][()], dtype=np.float64)
        log_probs = np.asarray(group['log_probs'][()], dtype=np.float32)
        expected = (self.num_ferns, self.fern_depth, 2, 2)
        if offsets.shape != expected or log_probs.shape[:2] != (
            self.num_ferns, 1 << self.fern_depth,
        ):
            raise PersistenceError(
                f"Stored fern tables {offsets.shape} / {log_probs.shape} do not "
                f"match {self.num_ferns} ferns of depth {self.fern_depth}"
            )
        self._offsets = offsets
        self._log_probs = log_probs


register_classifier('fern', FernClassifier)
