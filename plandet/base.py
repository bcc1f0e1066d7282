# -*- coding: utf-8 -*-
"""
Tunable Component Base - Common base class for configurable pipeline parts.

Defines ``TunableComponent``, the base of every configurable part of the
detection pipeline (keypoint detector, point classifiers, homography
estimator, detector facade). It provides ``typing.Annotated``-based
tunable parameter declarations with automatic ``__init__`` generation,
a one-time warning for concrete classes without a declared version, and
runtime parameter resolution.

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
import warnings
from abc import ABC
from typing import Any, Dict, Tuple

# plandet internal
from plandet.params import ParamSpec, collect_param_specs, _make_init

logger = logging.getLogger(__name__)


class TunableComponent(ABC):
    """Common base class for configurable pipeline components.

    Subclasses declare tunable parameters as ``typing.Annotated`` class-body
    fields using the markers from :mod:`plandet.params`.
    ``__init_subclass__`` collects them into ``__param_specs__`` and
    generates a keyword-only ``__init__`` unless the subclass defines its
    own. Concrete subclasses without ``@component_version`` trigger a
    ``UserWarning`` at first instantiation.
    """

    _version_warned_classes: set = set()

    #: Built by ``__init_subclass__`` from ``Annotated`` fields.
    __param_specs__: Tuple[ParamSpec, ...] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__param_specs__ = collect_param_specs(cls)
        if cls.__param_specs__ and '__init__' not in cls.__dict__:
            cls.__init__ = _make_init(cls.__param_specs__)

    def __new__(cls, *args: Any, **kwargs: Any) -> 'TunableComponent':
        if cls not in TunableComponent._version_warned_classes:
            TunableComponent._version_warned_classes.add(cls)
            if (
                not getattr(cls, '__component_version__', None)
                and not getattr(cls, '__abstractmethods__', None)
            ):
                warnings.warn(
                    f"{cls.__qualname__} does not declare a component version. "
                    f"Use @component_version('x.y.z') to declare one.",
                    UserWarning,
                    stacklevel=2,
                )
        logger.debug("Instantiating %s", cls.__qualname__)
        return super().__new__(cls)

    @classmethod
    def param_spec(cls, name: str) -> ParamSpec:
        """Return the ``ParamSpec`` declared under *name*.

        Raises
        ------
        KeyError
            If the class declares no such parameter.
        """
        for spec in cls.__param_specs__:
            if spec.name == name:
                return spec
        raise KeyError(f"{cls.__qualname__} has no tunable parameter '{name}'")

    def get_params(self) -> Dict[str, Any]:
        """Current values of every declared tunable parameter.

        Returns
        -------
        Dict[str, Any]
            ``{param_name: value}`` in declaration order.
        """
        return {
            spec.name: getattr(self, spec.name)
            for spec in type(self).__param_specs__
        }

    def set_param(self, name: str, value: Any) -> None:
        """Validate and assign a single tunable parameter.

        Raises
        ------
        KeyError
            If *name* is not a declared parameter.
        TypeError
            If *value* has the wrong type.
        ValidationError
            If *value* violates range or choices constraints.
        """
        self.param_spec(name).validate(value)
        setattr(self, name, value)

    def __repr__(self) -> str:
        params = ', '.join(f"{k}={v!r}" for k, v in self.get_params().items())
        return f"{type(self).__name__}({params})"
