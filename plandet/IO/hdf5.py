# -*- coding: utf-8 -*-
"""
HDF5 Model Store - Save and restore trained reference models.

Each trained reference model is one HDF5 group named after the object it
recognizes, so a single file can hold models for several objects. A group
holds the reference geometry as datasets (``corners``,
``reference_points``, ``roi``, ``image_shape``) and a ``classifier``
subgroup whose content is written by the classifier itself.

Writing a model replaces any existing group of the same name and leaves
the other groups of the file untouched.

Dependencies
------------
h5py

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
from pathlib import Path
from typing import Any, Dict, List, Union

# Third-party
import numpy as np

try:
    import h5py
    _HAS_H5PY = True
except ImportError:
    _HAS_H5PY = False

# plandet internal
from plandet.classifiers.base import PointClassifier
from plandet.exceptions import DependencyError, PersistenceError
from plandet.geometry.roi import Rectangle

logger = logging.getLogger(__name__)

#: File-level attribute identifying a plandet model store.
FORMAT_NAME = 'plandet-reference'
#: Layout version of a model group.
FORMAT_VERSION = 1


def _require_h5py() -> None:
    if not _HAS_H5PY:
        raise DependencyError(
            "h5py is required for model persistence. "
            "Install with: pip install h5py"
        )


def write_model(
    filepath: Union[str, Path],
    object_name: str,
    classifier: PointClassifier,
    reference_points: np.ndarray,
    corners: np.ndarray,
    roi: Rectangle,
    image_shape: tuple,
) -> None:
    """Write one reference model to the group *object_name* of *filepath*.

    The file is created when missing. An existing group of the same name
    is replaced.

    Parameters
    ----------
    filepath : str or Path
        HDF5 file.
    object_name : str
        Group name, the name the model is stored under.
    classifier : PointClassifier
        Trained classifier.
    reference_points : np.ndarray
        (K, 2) (row, col) reference points.
    corners : np.ndarray
        (4, 2) reference corners.
    roi : Rectangle
        Reference region.
    image_shape : tuple
        Shape of the reference image.

    Raises
    ------
    PersistenceError
        If *object_name* is empty or the file cannot be written.
    """
    _require_h5py()
    if not object_name or '/' in object_name:
        raise PersistenceError(f"Invalid object name {object_name!r}")

    filepath = Path(filepath)
    try:
        with h5py.File(str(filepath), 'a') as f:
            f.attrs['format'] = FORMAT_NAME
            if object_name in f:
                del f[object_name]
            group = f.create_group(object_name)
            group.attrs['format_version'] = FORMAT_VERSION
            group.create_dataset('corners', data=np.asarray(corners, dtype=np.float64))
            group.create_dataset(
                'reference_points', data=np.asarray(reference_points, dtype=np.float64),
            )
            group.create_dataset(
                'roi', data=np.array([roi.top, roi.left, roi.height, roi.width]),
            )
            group.create_dataset(
                'image_shape', data=np.asarray(image_shape, dtype=np.int64),
            )
            classifier.save(group.create_group('classifier'))
    except OSError as exc:
        raise PersistenceError(f"Cannot write model to {filepath}: {exc}") from exc

    logger.info(
        "Recorded model %r (%d points, %s) to %s",
        object_name, len(reference_points), type(classifier).__name__, filepath,
    )


def read_model(filepath: Union[str, Path], object_name: str) -> Dict[str, Any]:
    """Read the reference model stored under *object_name*.

    Parameters
    ----------
    filepath : str or Path
        HDF5 file written by ``write_model``.
    object_name : str
        Name the model was stored under.

    Returns
    -------
    Dict[str, Any]
        Keys ``classifier``, ``reference_points``, ``corners``, ``roi``,
        ``image_shape``.

    Raises
    ------
    PersistenceError
        If the file is missing or unreadable, holds no such record, or the
        record is malformed or of an incompatible version.
    """
    _require_h5py()
    filepath = Path(filepath)
    if not filepath.exists():
        raise PersistenceError(f"Model file not found: {filepath}")

    try:
        with h5py.File(str(filepath), 'r') as f:
            if object_name not in f:
                raise PersistenceError(
                    f"No model named {object_name!r} in {filepath}. "
                    f"Available: {sorted(f.keys())}"
                )
            group = f[object_name]
            version = int(group.attrs.get('format_version', -1))
            if version != FORMAT_VERSION:
                raise PersistenceError(
                    f"Model {object_name!r} has layout version {version}, "
                    f"expected {FORMAT_VERSION}"
                )
            try:
                corners = np.asarray(group['corners'][()], dtype=np.float64)
                points = np.asarray(group['reference_points'][()], dtype=np.float64)
                roi_values = np.asarray(group['roi'][()], dtype=np.float64)
                image_shape = tuple(int(v) for v in group['image_shape'][()])
                classifier_group = group['classifier']
            except KeyError as exc:
                raise PersistenceError(
                    f"Model {object_name!r} in {filepath} is incomplete: {exc}"
                ) from exc
            classifier = PointClassifier.from_group(classifier_group)
    except PersistenceError:
        raise
    except OSError as exc:
        raise PersistenceError(f"Cannot read model file {filepath}: {exc}") from exc

    if corners.shape != (4, 2) or roi_values.shape != (4,) or points.ndim != 2:
        raise PersistenceError(f"Model {object_name!r} in {filepath} has malformed geometry")
    if classifier.num_classes != points.shape[0]:
        raise PersistenceError(
            f"Model {object_name!r}: classifier has {classifier.num_classes} classes "
            f"but {points.shape[0]} reference points are stored"
        )

    logger.info("Loaded model %r (%d points) from %s", object_name, len(points), filepath)
    return {
        'classifier': classifier,
        'reference_points': points,
        'corners': corners,
        'roi': Rectangle(*roi_values),
        'image_shape': image_shape,
    }


def list_models(filepath: Union[str, Path]) -> List[str]:
    """Names of the reference models stored in *filepath*, sorted.

    Raises
    ------
    PersistenceError
        If the file is missing or unreadable.
    """
    _require_h5py()
    filepath = Path(filepath)
    if not filepath.exists():
        raise PersistenceError(f"Model file not found: {filepath}")
    try:
        with h5py.File(str(filepath), 'r') as f:
            return sorted(
                name for name, item in f.items()
                if isinstance(item, h5py.Group) and 'classifier' in item
            )
    except OSError as exc:
        raise PersistenceError(f"Cannot read model file {filepath}: {exc}") from exc
