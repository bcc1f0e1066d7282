# -*- coding: utf-8 -*-
"""
Descriptor Classifier - Nearest-neighbour point labelling with ORB or SIFT.

An alternative to the fern classifier that labels query points by
brute-force matching of local descriptors computed at the given interest
points. Training stores one descriptor per reference point; classifying
matches each query descriptor to its two nearest reference descriptors
and keeps the label when Lowe's ratio test passes.

Descriptors are computed at caller-supplied points rather than at points
found by the descriptor's own detector, so the classifier labels exactly
the interest points the pipeline detected. Orientation is assigned from
the intensity centroid of a circular patch, as in ORB.

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
from typing import Annotated, Any, Optional, Tuple

# Third-party
import numpy as np

try:
    import cv2
except ImportError:
    from plandet.exceptions import DependencyError
    raise DependencyError(
        "DescriptorClassifier requires opencv-python-headless. "
        "Install with: pip install opencv-python-headless>=4.5"
    )

# plandet internal
from plandet.classifiers.base import UNLABELLED, PointClassifier, register_classifier
from plandet.exceptions import ModelNotBuiltError, ValidationError
from plandet.features.keypoints import to_uint8
from plandet.params import Desc, Options, Range
from plandet.versioning import component_version
from plandet.vocabulary import DescriptorMethod

logger = logging.getLogger(__name__)


@component_version('1.0.0')
class DescriptorClassifier(PointClassifier):
    """Label points by ratio-tested nearest-neighbour descriptor matching.

    Parameters
    ----------
    method : str
        Descriptor type, ``'orb'`` or ``'sift'``. Default ``'orb'``.
    patch_size : int
        Keypoint diameter handed to the descriptor, px. Default 31.
    match_ratio : float
        Lowe's ratio test threshold. Default 0.8.

    Examples
    --------
    >>> clf = DescriptorClassifier(method='orb')
    >>> clf.train(reference, reference_points)
    >>> labels, scores = clf.classify(query, query_points)
    """

    method: Annotated[str, Options(*[m.value for m in DescriptorMethod]),
                      Desc('Descriptor type')] = 'orb'
    patch_size: Annotated[int, Range(min=7, max=127), Desc('Keypoint diameter (px)')] = 31
    match_ratio: Annotated[float, Range(min=0.01, max=1.0), Desc('Ratio test threshold')] = 0.8

    def __post_init__(self) -> None:
        self._descriptors = None
        self._labels = None
        self._num_classes = 0

    @property
    def num_classes(self) -> int:
        return self._num_classes

    @property
    def _border(self) -> int:
        return self.patch_size + 16

    def _create_extractor(self) -> cv2.Feature2D:
        if self.method == DescriptorMethod.ORB.value:
            return cv2.ORB_create(edgeThreshold=self.patch_size, patchSize=self.patch_size)
        return cv2.SIFT_create()

    def _orientations(self, padded: np.ndarray, centers: np.ndarray) -> np.ndarray:
        """Intensity-centroid angle in degrees for each (row, col) centre."""
        radius = self.patch_size // 2
        dy, dx = np.mgrid[-radius:radius + 1, -radius:radius + 1]
        inside = dx ** 2 + dy ** 2 <= radius ** 2
        dy, dx = dy[inside], dx[inside]

        rows = np.rint(centers[:, 0]).astype(np.int64)
        cols = np.rint(centers[:, 1]).astype(np.int64)
        values = padded[rows[:, None] + dy[None, :], cols[:, None] + dx[None, :]]
        values = values.astype(np.float64)
        m01 = values @ dy
        m10 = values @ dx
        return np.degrees(np.arctan2(m01, m10)) % 360.0

    def _describe(
        self,
        image: np.ndarray,
        points: np.ndarray,
    ) -> Tuple[Optional[np.ndarray], np.ndarray]:
        """Descriptors at *points* and the input index of each descriptor.

        Points the extractor rejects get no descriptor.
        """
        gray = to_uint8(image)
        border = self._border
        padded = cv2.copyMakeBorder(gray, border, border, border, border, cv2.BORDER_REFLECT)
        centers = points + border
        angles = self._orientations(padded, centers)

        keypoints = [
            cv2.KeyPoint(
                float(c), float(r), float(self.patch_size),
                float(a), 0.0, 0, int(i),
            )
            for i, ((r, c), a) in enumerate(zip(centers, angles))
        ]
        keypoints, descriptors = self._create_extractor().compute(padded, keypoints)
        if descriptors is None or len(keypoints) == 0:
            return None, np.empty(0, dtype=np.int64)
        index = np.array([kp.class_id for kp in keypoints], dtype=np.int64)
        return descriptors, index

    def train(self, image: np.ndarray, points: np.ndarray) -> int:
        """Compute and store one descriptor per reference point.

        Returns
        -------
        int
            Number of classes, equal to the number of points given.

        Raises
        ------
        ValidationError
            If no points are given or no descriptor could be computed.
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if points.shape[0] == 0:
            raise ValidationError("DescriptorClassifier.train requires at least one point")

        descriptors, index = self._describe(image, points)
        if descriptors is None:
            raise ValidationError("No descriptors could be computed at the reference points")

        self._descriptors = descriptors
        self._labels = index
        self._num_classes = points.shape[0]
        logger.info(
            "Stored %d %s descriptors for %d reference points",
            len(index), self.method, self._num_classes,
        )
        return self._num_classes

    def classify(
        self,
        image: np.ndarray,
        points: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Label query points with their nearest reference descriptor.

        Returns
        -------
        Tuple[np.ndarray, np.ndarray]
            ``(labels, scores)``; scores are negated descriptor distances.

        Raises
        ------
        ModelNotBuiltError
            If the classifier has not been trained.
        """
        if not self.is_trained:
            raise ModelNotBuiltError("DescriptorClassifier has not been trained")

        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        labels = np.full(points.shape[0], UNLABELLED, dtype=np.int64)
        scores = np.full(points.shape[0], -np.inf, dtype=np.float64)
        if points.shape[0] == 0:
            return labels, scores

        descriptors, index = self._describe(image, points)
        if descriptors is None:
            return labels, scores

        norm_type = cv2.NORM_HAMMING if self.method == DescriptorMethod.ORB.value else cv2.NORM_L2
        matcher = cv2.BFMatcher(norm_type)
        for pair in matcher.knnMatch(descriptors, self._descriptors, k=2):
            if not pair:
                continue
            best = pair[0]
            if len(pair) == 2 and not best.distance < self.match_ratio * pair[1].distance:
                continue
            query = index[best.queryIdx]
            labels[query] = self._labels[best.trainIdx]
            scores[query] = -float(best.distance)

        logger.debug(
            "Classified %d points, %d labelled",
            points.shape[0], int(np.count_nonzero(labels != UNLABELLED)),
        )
        return labels, scores

    def _write_state(self, group: Any) -> None:
        group.attrs['num_classes'] = self._num_classes
        group.create_dataset('descriptors', data=self._descriptors)
        group.create_dataset('labels', data=self._labels)

    def _read_state(self, group: Any) -> None:
        self._num_classes = int(group.attrs['num_classes'])
        self._descriptors = np.asarray(group['descriptors'][()])
        self._labels = np.asarray(group['labels'][()], dtype=np.int64)


register_classifier('descriptor', DescriptorClassifier)
