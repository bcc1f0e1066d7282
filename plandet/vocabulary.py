# -*- coding: utf-8 -*-
"""
Vocabulary - Canonical enums for the plandet package.

Defines the single source of truth for controlled vocabularies used across
plandet: detector lifecycle states and the method names accepted by the
point classifier registry, keypoint detector, descriptor classifier, and
homography estimator.

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

from enum import Enum


class DetectorState(Enum):
    """Lifecycle state of a ``PlanarObjectDetector``.

    ``UNINITIALIZED`` until a reference model exists, ``READY`` while a
    model is held without a valid match, ``MATCHED`` after the most recent
    ``match_point`` call was accepted.
    """

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    MATCHED = "matched"


class KeypointMethod(Enum):
    """Interest point detectors available to ``InterestPointDetector``."""

    GFTT = "gftt"
    HARRIS = "harris"
    FAST = "fast"


class DescriptorMethod(Enum):
    """Binary or float descriptors available to ``DescriptorClassifier``."""

    ORB = "orb"
    SIFT = "sift"


class HomographyMethod(Enum):
    """Robust solvers available to ``RansacHomographyEstimator``.

    ``RANSAC`` is the built-in estimator with a documented tie-break rule.
    ``OPENCV`` delegates to ``cv2.findHomography``, whose tie-break is
    solver-dependent.
    """

    RANSAC = "ransac"
    OPENCV = "opencv"


class ClassifierMethod(Enum):
    """Point classifiers registered with ``plandet.classifiers``.

    ``FERN`` is the random-fern statistical classifier trained on
    synthesized views of the reference patch. ``DESCRIPTOR`` labels points
    by nearest-neighbour matching of ORB or SIFT descriptors.
    """

    FERN = "fern"
    DESCRIPTOR = "descriptor"
