"""Type descriptors and introspection helpers for element types.

Element types are ordinary Python annotations: builtin scalars, numpy scalar
types, ``tuple[...]``/``list[...]`` aliases, ``NamedTuple`` classes,
dataclasses and pydantic models. Two descriptors are added here for things
Python annotations cannot express on their own:

* ``Char`` - a single character, stored as a 32-bit code point.
* ``Dims`` - ``Annotated`` metadata declaring the fixed shape of an array
  type, e.g. ``Annotated[NDArray[np.float64], Dims(3, 3)]``. ``fixed_array``
  builds that annotation.
"""

from __future__ import annotations

import typing
from typing import Annotated, Any, Optional, Tuple

import numpy as np
import numpy.typing as npt

__all__ = [
    "Char",
    "Dims",
    "fixed_array",
    "type_name",
    "unwrap_annotated",
    "ndarray_scalar_type",
    "fixed_tuple_args",
    "is_type_like",
]


class Char(str):
    """A single Unicode character."""

    __slots__ = ()

    def __new__(cls, value: Any) -> "Char":
        if isinstance(value, (int, np.integer)):
            value = chr(int(value))
        text = str.__new__(cls, value)
        if len(text) != 1:
            raise ValueError(f"Char requires exactly one character, got {value!r}")
        return text


class Dims(tuple):
    """Fixed per-element shape attached to an array type via ``Annotated``."""

    def __new__(cls, *shape: int) -> "Dims":
        if not shape:
            raise ValueError("Dims requires at least one dimension")
        dims = tuple(int(d) for d in shape)
        if any(d <= 0 for d in dims):
            raise ValueError(f"Dims must be positive, got {dims}")
        return super().__new__(cls, dims)

    def __getnewargs__(self) -> Tuple[int, ...]:
        return tuple(self)

    def __repr__(self) -> str:
        return f"Dims{tuple(self)!r}"


def fixed_array(dtype: Any, *dims: int) -> Any:
    """Return ``Annotated[NDArray[dtype], Dims(*dims)]``."""
    scalar = np.dtype(dtype).type
    return Annotated[npt.NDArray[scalar], Dims(*dims)]


def is_type_like(tp: Any) -> bool:
    """True for classes and typing/generic aliases."""
    if isinstance(tp, type):
        return True
    return typing.get_origin(tp) is not None


def type_name(tp: Any) -> str:
    """Human readable name recorded in vector metadata."""
    if isinstance(tp, type) and typing.get_origin(tp) is None:
        if tp.__module__ == "builtins":
            return tp.__qualname__
        return f"{tp.__module__}.{tp.__qualname__}"
    return repr(tp)


def unwrap_annotated(tp: Any) -> Tuple[Any, Optional[Dims]]:
    """Split ``Annotated[T, Dims(...)]`` into ``(T, Dims)``."""
    if typing.get_origin(tp) is Annotated:
        base, *extras = typing.get_args(tp)
        declared = next((e for e in extras if isinstance(e, Dims)), None)
        return base, declared
    return tp, None


def ndarray_scalar_type(tp: Any) -> Optional[type]:
    """Numpy scalar type of an ``NDArray[...]`` alias, if it names one."""
    if typing.get_origin(tp) is not np.ndarray:
        return None
    args = typing.get_args(tp)
    if len(args) < 2:
        return None
    dtype_args = typing.get_args(args[1])
    if not dtype_args:
        return None
    scalar = dtype_args[0]
    if isinstance(scalar, type) and issubclass(scalar, np.generic):
        return scalar
    return None


def fixed_tuple_args(tp: Any) -> Optional[Tuple[Any, ...]]:
    """Member types of a fixed-length ``tuple[A, B, ...]`` alias.

    Returns None for bare ``tuple``, variadic ``tuple[T, ...]`` and non-tuples.
    ``tuple[()]`` yields an empty tuple.
    """
    if typing.get_origin(tp) is not tuple:
        return None
    args = typing.get_args(tp)
    if len(args) == 2 and args[1] is Ellipsis:
        return None
    if args == ((),):
        return ()
    return tuple(args)
