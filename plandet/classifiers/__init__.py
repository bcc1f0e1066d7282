# -*- coding: utf-8 -*-
"""
Classifiers Module - Point classifiers that label query points by reference index.

Key Classes
-----------
- PointClassifier: Abstract ``{train, classify}`` capability interface
- FernClassifier: Random-fern classifier trained on synthesized views
- DescriptorClassifier: ORB / SIFT nearest-neighbour classifier

Usage
-----
    >>> from plandet.classifiers import create_classifier
    >>> clf = create_classifier('fern', num_views=200)
    >>> clf.train(reference, reference_points)
    >>> labels, scores = clf.classify(query, query_points)

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

from plandet.classifiers.base import (
    UNLABELLED,
    PointClassifier,
    create_classifier,
    get_classifier_class,
    register_classifier,
)
from plandet.classifiers.fern import FernClassifier
from plandet.classifiers.descriptor import DescriptorClassifier

__all__ = [
    'UNLABELLED',
    'PointClassifier',
    'FernClassifier',
    'DescriptorClassifier',
    'create_classifier',
    'get_classifier_class',
    'register_classifier',
]
