# -*- coding: utf-8 -*-
"""
Component Versioning - Version decorator for tunable components.

Provides the ``@component_version`` class decorator that stamps a semantic
version string on keypoint detectors, classifiers, and estimators. For
classifiers the version doubles as the storage-format version written next
to a trained model, so a model saved by an incompatible classifier release
is refused on load.

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

# Standard library
from typing import Optional, Type, TypeVar
import importlib.metadata

T = TypeVar('T')


def component_version(version: Optional[str] = None):
    """Class decorator that stamps ``__component_version__`` on a class.

    If a version is not provided, it is inferred from the installed
    ``plandet`` package metadata.

    Parameters
    ----------
    version : str, optional
        Semantic version string (e.g., ``'1.0.0'``).

    Returns
    -------
    Callable
        Class decorator that sets ``__component_version__`` on the class.

    Examples
    --------
    >>> @component_version('1.0.0')
    ... class MyClassifier(PointClassifier):
    ...     ...
    >>> MyClassifier.__component_version__
    '1.0.0'
    """
    def decorator(cls: Type[T]) -> Type[T]:
        if version:
            cls.__component_version__ = version
        else:
            try:
                cls.__component_version__ = importlib.metadata.version('plandet')
            except importlib.metadata.PackageNotFoundError:
                cls.__component_version__ = "unknown"
        return cls
    return decorator


def major_version(version: str) -> str:
    """Return the major component of a semantic version string.

    Parameters
    ----------
    version : str
        Version such as ``'1.4.2'``.

    Returns
    -------
    str
        ``'1'`` for ``'1.4.2'``; the whole string when it has no dots.
    """
    return str(version).split('.', 1)[0]
