# -*- coding: utf-8 -*-
"""
plandet Exception Hierarchy - Domain-specific exceptions for planar detection.

Provides a small exception hierarchy that lets callers catch plandet errors
distinctly from Python built-in exceptions. All plandet exceptions subclass
both ``PlandetError`` and the appropriate built-in exception so existing
``except ValueError`` / ``except IOError`` handlers keep working.

Only programmer-error-class conditions are exceptions. A planar object that
is simply not visible in a frame is reported as an ordinary ``False`` result,
never raised.

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


class PlandetError(Exception):
    """Base exception for all plandet errors."""


class ValidationError(PlandetError, ValueError):
    """Invalid input data, parameters, or configuration.

    Raised for shape mismatches, out-of-range parameters, unknown method
    names, and other input validation failures.
    """


class InvalidRegionError(ValidationError):
    """Malformed or out-of-bounds region of interest.

    Raised for negative heights or widths, quadrilaterals that do not have
    exactly four points, and regions that exit the image bounds. Regions
    are never silently clamped.
    """


class ModelNotBuiltError(PlandetError, RuntimeError):
    """Operation requires a reference model that does not exist yet.

    Raised when matching or recording is attempted before
    ``build_reference`` or ``load`` produced a model. Recoverable by
    building a reference first.
    """


class InsufficientGeometryError(PlandetError, RuntimeError):
    """Correspondences cannot constrain a homography.

    Raised by the homography estimator for fewer than four
    correspondences or a degenerate (collinear) configuration. The
    detector facade converts it into a "not detected" result.
    """


class PersistenceError(PlandetError, IOError):
    """Reading or writing a trained reference model failed.

    Raised for missing files, missing records, and format or version
    mismatches in stored models.
    """


class DependencyError(PlandetError, ImportError):
    """Missing optional dependency required for a specific module.

    Raised when a module requires an optional package (opencv, h5py)
    that is not installed.
    """
