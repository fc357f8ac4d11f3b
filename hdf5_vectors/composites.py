"""Composite layouts: how a record type splits into ordered fields and back.

A ``CompositeLayout`` is an explicit builder pair. ``deconstruct`` turns a
value into a field-ordered sequence; ``construct`` rebuilds the value from
that sequence. ``construct(deconstruct(v)) == v`` must hold for every value.

Layouts are either registered explicitly (``StyleRegistry.register_composite``)
or derived from a type's own declaration for tuples, ``NamedTuple`` classes,
dataclasses and pydantic models.
"""

from __future__ import annotations

import dataclasses
import typing
from dataclasses import dataclass
from fractions import Fraction
from typing import Annotated, Any, Callable, Optional, Sequence, Tuple

from pydantic import BaseModel

from .types import Dims, fixed_tuple_args

__all__ = ["CompositeLayout", "derive_layout", "BUILTIN_LAYOUTS"]


@dataclass(frozen=True)
class CompositeLayout:
    """Ordered field list plus the deconstruct/construct pair for a type."""

    fields: Tuple[Tuple[str, Any], ...]
    deconstruct: Callable[[Any], Sequence[Any]]
    construct: Callable[[Sequence[Any]], Any]

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.fields)

    @property
    def types(self) -> Tuple[Any, ...]:
        return tuple(tp for _, tp in self.fields)


def _tuple_layout(args: Tuple[Any, ...]) -> CompositeLayout:
    return CompositeLayout(
        fields=tuple((str(i), arg) for i, arg in enumerate(args)),
        deconstruct=tuple,
        construct=tuple,
    )


def _namedtuple_layout(cls: type) -> CompositeLayout:
    hints = typing.get_type_hints(cls, include_extras=True)
    return CompositeLayout(
        fields=tuple((name, hints.get(name, Any)) for name in cls._fields),
        deconstruct=tuple,
        construct=lambda values: cls(*values),
    )


def _dataclass_layout(cls: type) -> Optional[CompositeLayout]:
    fields = dataclasses.fields(cls)
    if any(not f.init for f in fields):
        # Cannot be rebuilt from its fields alone.
        return None
    hints = typing.get_type_hints(cls, include_extras=True)
    names = tuple(f.name for f in fields)
    return CompositeLayout(
        fields=tuple((name, hints.get(name, Any)) for name in names),
        deconstruct=lambda value: tuple(getattr(value, name) for name in names),
        construct=lambda values: cls(**dict(zip(names, values))),
    )


def _pydantic_layout(cls: type) -> CompositeLayout:
    fields = []
    for name, info in cls.model_fields.items():
        annotation = info.annotation
        declared = next((m for m in info.metadata if isinstance(m, Dims)), None)
        if declared is not None:
            annotation = Annotated[annotation, declared]
        fields.append((name, annotation))
    names = tuple(name for name, _ in fields)
    return CompositeLayout(
        fields=tuple(fields),
        deconstruct=lambda value: tuple(getattr(value, name) for name in names),
        construct=lambda values: cls(**dict(zip(names, values))),
    )


def derive_layout(tp: Any) -> Optional[CompositeLayout]:
    """Derive a layout from the type's declaration, or None if it has none."""
    args = fixed_tuple_args(tp)
    if args is not None:
        return _tuple_layout(args)
    if not isinstance(tp, type):
        return None
    if issubclass(tp, tuple) and hasattr(tp, "_fields"):
        return _namedtuple_layout(tp)
    if dataclasses.is_dataclass(tp):
        return _dataclass_layout(tp)
    if issubclass(tp, BaseModel):
        return _pydantic_layout(tp)
    return None


BUILTIN_LAYOUTS = {
    complex: CompositeLayout(
        fields=(("re", float), ("im", float)),
        deconstruct=lambda z: (z.real, z.imag),
        construct=lambda values: complex(*values),
    ),
    Fraction: CompositeLayout(
        fields=(("numerator", int), ("denominator", int)),
        deconstruct=lambda q: (q.numerator, q.denominator),
        construct=lambda values: Fraction(*values),
    ),
}
