# -*- coding: utf-8 -*-
"""
Point Classifier Base - Capability interface and registry for point classifiers.

Defines ``PointClassifier``, the narrow ``{train, classify}`` contract the
detection pipeline consumes. A classifier is trained on the interest
points of a reference image (one class per point) and labels interest
points of a query image with the index of the reference point they most
likely depict, together with a confidence score.

The module-level registry maps classifier names to classes so the
detector, the configuration loader, and the model loader can construct
classifiers by name. Built-in classifiers are imported lazily on first
use.

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
import importlib
import logging
from abc import abstractmethod
from typing import Any, Dict, Tuple, Type, Union

# Third-party
import numpy as np

# plandet internal
from plandet.base import TunableComponent
from plandet.exceptions import PersistenceError, ValidationError
from plandet.versioning import major_version

logger = logging.getLogger(__name__)

#: Label given to query points that match no reference point.
UNLABELLED = -1


class PointClassifier(TunableComponent):
    """Abstract base class for reference-point classifiers.

    Subclasses implement ``train`` and ``classify`` plus the two
    state-persistence hooks ``_write_state`` and ``_read_state``. Tunable
    parameters are declared with ``typing.Annotated`` markers and are
    stored alongside the trained state by ``save``.

    Class ``k`` of a trained classifier is reference point ``k`` of the
    ``points`` array given to ``train``.
    """

    #: Registry name, set by ``register_classifier``.
    name: str = ''

    @abstractmethod
    def train(self, image: np.ndarray, points: np.ndarray) -> int:
        """Train one class per reference point.

        Parameters
        ----------
        image : np.ndarray
            Reference image.
        points : np.ndarray
            Reference interest points. Shape (K, 2), (row, col).

        Returns
        -------
        int
            Number of trained classes.
        """
        ...

    @abstractmethod
    def classify(
        self,
        image: np.ndarray,
        points: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Label query points with reference point indices.

        Parameters
        ----------
        image : np.ndarray
            Query image.
        points : np.ndarray
            Query interest points. Shape (N, 2), (row, col).

        Returns
        -------
        Tuple[np.ndarray, np.ndarray]
            ``(labels, scores)``, both shape (N,). ``labels`` are int64
            reference indices or ``UNLABELLED``; higher ``scores`` mean
            more confident labels and are comparable within one call.
        """
        ...

    @property
    @abstractmethod
    def num_classes(self) -> int:
        """Number of trained classes; 0 before training."""
        ...

    @property
    def is_trained(self) -> bool:
        return self.num_classes > 0

    @abstractmethod
    def _write_state(self, group: Any) -> None:
        """Write trained arrays into an HDF5 group."""
        ...

    @abstractmethod
    def _read_state(self, group: Any) -> None:
        """Restore trained arrays from an HDF5 group."""
        ...

    def save(self, group: Any) -> None:
        """Write this classifier into an HDF5 group.

        Stores the registry name, component version, and every non-None
        tunable parameter as group attributes, then the trained state.

        Parameters
        ----------
        group : h5py.Group
            Destination group. Must be empty.
        """
        group.attrs['classifier'] = type(self).name
        group.attrs['version'] = getattr(type(self), '__component_version__', 'unknown')
        for key, value in self.get_params().items():
            if value is not None:
                group.attrs[f'param_{key}'] = value
        self._write_state(group)

    @classmethod
    def from_group(cls, group: Any) -> 'PointClassifier':
        """Restore a classifier written by ``save``.

        Called on ``PointClassifier`` itself, the concrete class is looked
        up in the registry from the stored name.

        Parameters
        ----------
        group : h5py.Group
            Group written by ``save``.

        Returns
        -------
        PointClassifier
            A trained classifier.

        Raises
        ------
        PersistenceError
            If the group lacks a classifier record, names an unknown
            classifier, or was written by an incompatible major version.
        """
        if 'classifier' not in group.attrs:
            raise PersistenceError(f"Group {group.name!r} holds no classifier record")
        stored_name = _attr_value(group.attrs['classifier'])

        if cls is PointClassifier:
            try:
                klass = get_classifier_class(stored_name)
            except ValidationError as exc:
                raise PersistenceError(str(exc)) from exc
        else:
            klass = cls
            if stored_name != klass.name:
                raise PersistenceError(
                    f"Group {group.name!r} holds a {stored_name!r} classifier, "
                    f"not {klass.name!r}"
                )

        stored_version = str(_attr_value(group.attrs.get('version', 'unknown')))
        current_version = getattr(klass, '__component_version__', 'unknown')
        if major_version(stored_version) != major_version(current_version):
            raise PersistenceError(
                f"{klass.__name__} record version {stored_version} is not "
                f"compatible with installed version {current_version}"
            )

        params = {
            key[len('param_'):]: _attr_value(value)
            for key, value in group.attrs.items()
            if key.startswith('param_')
        }
        try:
            classifier = klass(**params)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(
                f"Stored parameters of {klass.__name__} are invalid: {exc}"
            ) from exc

        try:
            classifier._read_state(group)
        except KeyError as exc:
            raise PersistenceError(
                f"{klass.__name__} record in {group.name!r} is incomplete: {exc}"
            ) from exc
        logger.debug("Restored %s with %d classes", klass.__name__, classifier.num_classes)
        return classifier


def _attr_value(value: Any) -> Any:
    """HDF5 attribute value as a plain Python object."""
    if isinstance(value, bytes):
        return value.decode('utf-8')
    if isinstance(value, np.generic):
        return value.item()
    return value


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

# Maps classifier names to a class or a lazily imported (module_path, class_name)
_CLASSIFIER_REGISTRY: Dict[str, Union[Type[PointClassifier], Tuple[str, str]]] = {
    'fern': ('plandet.classifiers.fern', 'FernClassifier'),
    'descriptor': ('plandet.classifiers.descriptor', 'DescriptorClassifier'),
}


def register_classifier(name: str, cls: Type[PointClassifier]) -> Type[PointClassifier]:
    """Register a classifier class under *name*.

    Parameters
    ----------
    name : str
        Registry key, case-insensitive.
    cls : Type[PointClassifier]
        Concrete ``PointClassifier`` subclass.

    Returns
    -------
    Type[PointClassifier]
        *cls*, with ``cls.name`` set to the registry key.

    Raises
    ------
    ValidationError
        If *cls* is not a ``PointClassifier`` subclass.
    """
    if not (isinstance(cls, type) and issubclass(cls, PointClassifier)):
        raise ValidationError(f"{cls!r} is not a PointClassifier subclass")
    key = name.lower()
    cls.name = key
    _CLASSIFIER_REGISTRY[key] = cls
    return cls


def get_classifier_class(name: str) -> Type[PointClassifier]:
    """Look up a registered classifier class by name.

    Raises
    ------
    ValidationError
        If *name* is not registered.
    """
    key = str(name).lower()
    if key not in _CLASSIFIER_REGISTRY:
        raise ValidationError(
            f"Unknown classifier: {name!r}. "
            f"Registered classifiers: {sorted(_CLASSIFIER_REGISTRY.keys())}"
        )
    entry = _CLASSIFIER_REGISTRY[key]
    if isinstance(entry, tuple):
        module_path, class_name = entry
        module = importlib.import_module(module_path)
        entry = getattr(module, class_name)
        _CLASSIFIER_REGISTRY[key] = entry
    return entry


def create_classifier(name: str, **params: Any) -> PointClassifier:
    """Construct an untrained classifier by registry name.

    Parameters
    ----------
    name : str
        Registry key, e.g. ``'fern'`` or ``'descriptor'``.
    **params
        Tunable parameters forwarded to the classifier constructor.

    Examples
    --------
    >>> clf = create_classifier('fern', num_ferns=30, seed=7)
    """
    return get_classifier_class(name)(**params)
