# -*- coding: utf-8 -*-
"""
plandet - Planar object detection from a trained reference patch.

Builds a recognizable model of a flat object from a region of a reference
image, then finds it in query images: interest points are labelled by a
trained point classifier, a homography is fit robustly to the resulting
correspondences, and the reference corners are reprojected into the query
image.

Dependencies
------------
numpy
scipy
opencv-python-headless
h5py
pyyaml

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

__version__ = "0.1.0"
__author__ = "Duane Smalley"

from plandet.exceptions import (
    PlandetError,
    ValidationError,
    InvalidRegionError,
    ModelNotBuiltError,
    InsufficientGeometryError,
    PersistenceError,
    DependencyError,
)
from plandet.vocabulary import (
    DetectorState,
    ClassifierMethod,
    KeypointMethod,
    DescriptorMethod,
    HomographyMethod,
)
from plandet.geometry import (
    Rectangle,
    Quadrilateral,
    bounding_rectangle,
    rectangle_from_point_and_size,
    resolve_region,
)
from plandet.classifiers import (
    PointClassifier,
    FernClassifier,
    DescriptorClassifier,
    create_classifier,
    register_classifier,
)
from plandet.features import InterestPointDetector
from plandet.matching import CorrespondenceSet
from plandet.homography import DetectionResult, RansacHomographyEstimator
from plandet.detector import PlanarObjectDetector, ReferenceModel
from plandet.config import load_config

__all__ = [
    '__version__',
    # Exceptions
    'PlandetError',
    'ValidationError',
    'InvalidRegionError',
    'ModelNotBuiltError',
    'InsufficientGeometryError',
    'PersistenceError',
    'DependencyError',
    # Vocabulary
    'DetectorState',
    'ClassifierMethod',
    'KeypointMethod',
    'DescriptorMethod',
    'HomographyMethod',
    # Geometry
    'Rectangle',
    'Quadrilateral',
    'bounding_rectangle',
    'rectangle_from_point_and_size',
    'resolve_region',
    # Pipeline
    'PointClassifier',
    'FernClassifier',
    'DescriptorClassifier',
    'create_classifier',
    'register_classifier',
    'InterestPointDetector',
    'CorrespondenceSet',
    'DetectionResult',
    'RansacHomographyEstimator',
    'PlanarObjectDetector',
    'ReferenceModel',
    'load_config',
]
