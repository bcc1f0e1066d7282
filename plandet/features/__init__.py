# -*- coding: utf-8 -*-
"""
Features Module - Interest point detection for reference and query images.

Key Classes
-----------
- InterestPointDetector: Shi-Tomasi, Harris, or FAST corners inside a region

Usage
-----
    >>> from plandet.features import InterestPointDetector
    >>> detector = InterestPointDetector(method='gftt', max_points=200)
    >>> points = detector.detect(image)

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

from plandet.features.keypoints import InterestPointDetector, to_uint8

__all__ = [
    'InterestPointDetector',
    'to_uint8',
]
