# -*- coding: utf-8 -*-
"""
Point Matching - Correspondences between reference points and query points.

Provides ``CorrespondenceSet``, the paired reference / query points
produced by one match, and the two steps that build it: running the
trained classifier over the interest points of a query region, and
reducing its labels to at most one query point per reference point.

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
from typing import Optional

# Third-party
import numpy as np

# plandet internal
from plandet.classifiers.base import PointClassifier
from plandet.exceptions import ValidationError
from plandet.features.keypoints import InterestPointDetector
from plandet.geometry.roi import Rectangle

logger = logging.getLogger(__name__)


class CorrespondenceSet:
    """Paired reference and query points from a single match.

    Row ``i`` pairs reference point ``reference_indices[i]`` (located at
    ``reference_points[i]`` in the reference image) with query point
    ``query_indices[i]`` (located at ``query_points[i]`` in the query
    image). A reference point appears at most once.

    Parameters
    ----------
    reference_indices : np.ndarray
        Shape (N,) indices into the reference model's points.
    query_indices : np.ndarray
        Shape (N,) indices into the query interest points.
    reference_points : np.ndarray
        Shape (N, 2) (row, col) in the reference image.
    query_points : np.ndarray
        Shape (N, 2) (row, col) in the query image.
    scores : np.ndarray, optional
        Shape (N,) classifier confidence. Zeros if omitted.

    Raises
    ------
    ValidationError
        If the arrays disagree in length or a reference index repeats.
    """

    def __init__(
        self,
        reference_indices: np.ndarray,
        query_indices: np.ndarray,
        reference_points: np.ndarray,
        query_points: np.ndarray,
        scores: Optional[np.ndarray] = None,
    ) -> None:
        self.reference_indices = np.asarray(reference_indices, dtype=np.int64).ravel()
        self.query_indices = np.asarray(query_indices, dtype=np.int64).ravel()
        self.reference_points = np.asarray(reference_points, dtype=np.float64).reshape(-1, 2)
        self.query_points = np.asarray(query_points, dtype=np.float64).reshape(-1, 2)
        n = len(self.reference_indices)
        if scores is None:
            scores = np.zeros(n, dtype=np.float64)
        self.scores = np.asarray(scores, dtype=np.float64).ravel()

        lengths = {
            n, len(self.query_indices), len(self.reference_points),
            len(self.query_points), len(self.scores),
        }
        if len(lengths) != 1:
            raise ValidationError(
                f"Correspondence arrays disagree in length: {sorted(lengths)}"
            )
        if len(np.unique(self.reference_indices)) != n:
            raise ValidationError("A reference point may appear only once per correspondence set")

    @classmethod
    def empty(cls) -> 'CorrespondenceSet':
        return cls(
            np.empty(0, dtype=np.int64), np.empty(0, dtype=np.int64),
            np.empty((0, 2)), np.empty((0, 2)),
        )

    @classmethod
    def from_points(
        cls,
        reference_points: np.ndarray,
        query_points: np.ndarray,
    ) -> 'CorrespondenceSet':
        """Pair two equally long point arrays row by row."""
        reference_points = np.asarray(reference_points, dtype=np.float64).reshape(-1, 2)
        indices = np.arange(len(reference_points))
        return cls(indices, indices, reference_points, query_points)

    def __len__(self) -> int:
        return len(self.reference_indices)

    def subset(self, mask: np.ndarray) -> 'CorrespondenceSet':
        """Rows selected by a boolean mask or index array."""
        return CorrespondenceSet(
            self.reference_indices[mask],
            self.query_indices[mask],
            self.reference_points[mask],
            self.query_points[mask],
            self.scores[mask],
        )

    def __repr__(self) -> str:
        return f"CorrespondenceSet(n={len(self)})"


def build_correspondences(
    labels: np.ndarray,
    scores: np.ndarray,
    query_points: np.ndarray,
    reference_points: np.ndarray,
) -> CorrespondenceSet:
    """Reduce classifier output to one query point per reference point.

    Unlabelled points (negative labels) are discarded. When several query
    points carry the same label, the one with the highest score is kept;
    equal scores keep the lower query index.

    Parameters
    ----------
    labels : np.ndarray
        Shape (N,) reference index per query point, negative if none.
    scores : np.ndarray
        Shape (N,) classifier confidence per query point.
    query_points : np.ndarray
        Shape (N, 2) (row, col) query points.
    reference_points : np.ndarray
        Shape (K, 2) (row, col) reference points of the model.

    Returns
    -------
    CorrespondenceSet
        Rows ordered by reference index. May be empty.
    """
    labels = np.asarray(labels, dtype=np.int64).ravel()
    scores = np.asarray(scores, dtype=np.float64).ravel()
    query_points = np.asarray(query_points, dtype=np.float64).reshape(-1, 2)
    reference_points = np.asarray(reference_points, dtype=np.float64).reshape(-1, 2)

    candidates = np.flatnonzero((labels >= 0) & (labels < len(reference_points)))
    if candidates.size == 0:
        return CorrespondenceSet.empty()

    # Sort by label, then score descending, then query index; first per label wins.
    order = np.lexsort((candidates, -scores[candidates], labels[candidates]))
    ranked = candidates[order]
    first = np.ones(ranked.size, dtype=bool)
    first[1:] = labels[ranked[1:]] != labels[ranked[:-1]]
    best = ranked[first]

    ref_idx = labels[best]
    return CorrespondenceSet(
        ref_idx, best, reference_points[ref_idx], query_points[best], scores[best],
    )


def match_points(
    image: np.ndarray,
    region: Rectangle,
    keypoints: InterestPointDetector,
    classifier: PointClassifier,
    reference_points: np.ndarray,
) -> CorrespondenceSet:
    """Detect, classify, and pair the interest points of a query region.

    Parameters
    ----------
    image : np.ndarray
        Query image.
    region : Rectangle
        Validated query region.
    keypoints : InterestPointDetector
        Detector for the query interest points.
    classifier : PointClassifier
        Trained classifier of the reference model.
    reference_points : np.ndarray
        Shape (K, 2) reference points the classifier was trained on.

    Returns
    -------
    CorrespondenceSet
        May be empty.
    """
    query_points = keypoints.detect(image, region)
    if len(query_points) == 0:
        logger.debug("No interest points in query region %r", region)
        return CorrespondenceSet.empty()

    labels, scores = classifier.classify(image, query_points)
    correspondences = build_correspondences(labels, scores, query_points, reference_points)
    logger.debug(
        "%d query points gave %d correspondences",
        len(query_points), len(correspondences),
    )
    return correspondences
