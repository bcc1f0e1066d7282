# -*- coding: utf-8 -*-
"""
Tunable Parameters - Annotated constraints for detector components.

``Range``, ``Options`` and ``Desc`` are placed inside ``typing.Annotated``
on the class body of a ``TunableComponent``. ``collect_param_specs`` turns
those annotations into ``ParamSpec`` records and ``_make_init`` builds the
keyword-only constructor that validates them.

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
import inspect
import numbers
from typing import (
    Annotated,
    Any,
    Optional,
    Tuple,
    Union,
    get_origin,
    get_type_hints,
)

# plandet internal
from plandet.exceptions import ValidationError

Number = Union[int, float]


# =====================================================================
# Markers
# =====================================================================

class ParamMeta:
    """Base marker for parameter metadata."""


class Range(ParamMeta):
    """Inclusive bounds on a numeric parameter. Either side may be open."""

    __slots__ = ('min', 'max')

    def __init__(self, min: Optional[Number] = None,
                 max: Optional[Number] = None) -> None:
        self.min = min
        self.max = max

    def __repr__(self) -> str:
        bounds = [f"{k}={v!r}" for k, v in (('min', self.min), ('max', self.max))
                  if v is not None]
        return f"Range({', '.join(bounds)})"


class Options(ParamMeta):
    """Fixed set of allowed values."""

    __slots__ = ('choices',)

    def __init__(self, *choices: Any) -> None:
        if not choices:
            raise ValueError("Options needs at least one choice")
        self.choices = choices

    def __repr__(self) -> str:
        return f"Options{self.choices!r}"


class Desc(ParamMeta):
    __slots__ = ('text',)

    def __init__(self, text: str) -> None:
        self.text = text

    def __repr__(self) -> str:
        return f"Desc({self.text!r})"


# =====================================================================
# ParamSpec
# =====================================================================

_MISSING = object()


def _is_number(value: Any, kind: type) -> bool:
    if isinstance(value, bool):
        return False
    base = numbers.Integral if kind is int else numbers.Real
    return isinstance(value, base)


class ParamSpec:
    """One tunable parameter: its type, default and constraints.

    ``default`` is ``None`` when the parameter is required; check
    ``required`` rather than the default itself.
    """

    __slots__ = (
        'name', 'param_type', 'default', '_has_default',
        'description', 'min_value', 'max_value', 'choices',
    )

    def __init__(self, name: str, param_type: type, default: Any,
                 has_default: bool, description: str = '',
                 min_value: Optional[Number] = None,
                 max_value: Optional[Number] = None,
                 choices: Optional[Tuple] = None) -> None:
        self.name = name
        self.param_type = param_type
        self.default = default
        self._has_default = has_default
        self.description = description
        self.min_value = min_value
        self.max_value = max_value
        self.choices = choices

    @property
    def required(self) -> bool:
        return not self._has_default

    def validate(self, value: Any) -> None:
        """Check *value* against the declared type and constraints.

        Numpy scalars count as numbers, ints are fine for float parameters
        and bools never count as numbers. ``None`` passes only when it is
        the default.

        Raises
        ------
        TypeError
            Wrong type.
        ValidationError
            Out of range or not one of the options.
        """
        if value is None and self._has_default and self.default is None:
            return

        kind = self.param_type
        if kind in (int, float):
            ok = _is_number(value, kind)
        else:
            ok = kind is object or isinstance(value, kind)
        if not ok:
            raise TypeError(
                f"Parameter '{self.name}' must be {kind.__name__}, "
                f"got {type(value).__name__}"
            )

        if self.min_value is not None and value < self.min_value:
            raise ValidationError(
                f"Parameter '{self.name}' value {value!r} "
                f"is below minimum {self.min_value!r}"
            )
        if self.max_value is not None and value > self.max_value:
            raise ValidationError(
                f"Parameter '{self.name}' value {value!r} "
                f"is above maximum {self.max_value!r}"
            )
        if self.choices is not None and value not in self.choices:
            raise ValidationError(
                f"Parameter '{self.name}' value {value!r} "
                f"is not one of {self.choices!r}"
            )

    def __repr__(self) -> str:
        fields = [f"{self.name!r}", self.param_type.__name__]
        if not self.required:
            fields.append(f"default={self.default!r}")
        for label in ('min_value', 'max_value', 'choices'):
            value = getattr(self, label)
            if value is not None:
                fields.append(f"{label}={value!r}")
        return f"ParamSpec({', '.join(fields)})"


# =====================================================================
# Collection and __init__ generation
# =====================================================================

def _declared_names(cls: type, hints: dict) -> list:
    # Base classes first, declaration order inside each class.
    names: list = []
    for klass in reversed(cls.__mro__):
        for name in getattr(klass, '__annotations__', {}):
            if name in hints and name not in names:
                names.append(name)
    return names


def collect_param_specs(cls: type) -> Tuple[ParamSpec, ...]:
    """Return a ``ParamSpec`` for every annotated field carrying a marker.

    Raises
    ------
    TypeError
        If one field declares both ``Range`` and ``Options``.
    """
    hints = get_type_hints(cls, include_extras=True)
    specs = []
    for name in _declared_names(cls, hints):
        hint = hints[name]
        if get_origin(hint) is not Annotated:
            continue
        markers = {type(m): m for m in hint.__metadata__
                   if isinstance(m, ParamMeta)}
        if not markers:
            continue
        bounds = markers.get(Range)
        options = markers.get(Options)
        if bounds and options:
            raise TypeError(
                f"{cls.__qualname__}.{name}: Range and Options "
                f"cannot be combined"
            )
        desc = markers.get(Desc)
        default = getattr(cls, name, _MISSING)
        specs.append(ParamSpec(
            name,
            hint.__args__[0],
            None if default is _MISSING else default,
            default is not _MISSING,
            description=desc.text if desc else '',
            min_value=bounds.min if bounds else None,
            max_value=bounds.max if bounds else None,
            choices=options.choices if options else None,
        ))
    return tuple(specs)


def _make_init(param_specs: Tuple[ParamSpec, ...]):
    """Build a keyword-only ``__init__`` that validates and assigns every
    parameter, then runs ``__post_init__`` if the class defines one."""
    known = {s.name for s in param_specs}

    def __init__(self, **kwargs):
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise TypeError(
                f"{type(self).__name__}() got unexpected "
                f"keyword arguments: {', '.join(unknown)}"
            )
        for spec in param_specs:
            if spec.name in kwargs:
                value = kwargs[spec.name]
            elif spec.required:
                raise TypeError(
                    f"{type(self).__name__}() missing required "
                    f"keyword argument: '{spec.name}'"
                )
            else:
                value = spec.default
            spec.validate(value)
            object.__setattr__(self, spec.name, value)
        if hasattr(self, '__post_init__'):
            self.__post_init__()

    __init__.__signature__ = inspect.Signature(
        [inspect.Parameter('self', inspect.Parameter.POSITIONAL_OR_KEYWORD)]
        + [inspect.Parameter(
            s.name, inspect.Parameter.KEYWORD_ONLY,
            default=inspect.Parameter.empty if s.required else s.default,
        ) for s in param_specs]
    )
    __init__.__qualname__ = '__init__'
    return __init__
