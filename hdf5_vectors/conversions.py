"""Conversions between logical element values and HDF5-native scalars.

Every elemental type is described by an ``ElementalConversion``: the numpy
dtype the dataset is created with, and a ``to_native``/``from_native`` pair
that must be inverses of each other. Native scalars use type-checked casts
that never truncate or parse; enums and characters are stored as 32-bit
integers.
"""

from __future__ import annotations

import enum
import functools
import math
import numbers
import operator
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import h5py
import numpy as np

from .exceptions import DimensionMismatchError
from .types import Char

__all__ = [
    "ElementalConversion",
    "NATIVE_CONVERSIONS",
    "BUILTIN_SCALARS",
    "STRING_DTYPE",
    "BYTES_DTYPE",
    "enum_conversion",
    "char_conversion",
    "native_conversion",
    "flatten_nested",
    "nest_flat",
]

STRING_DTYPE = h5py.string_dtype(encoding="utf-8")
BYTES_DTYPE = h5py.vlen_dtype(np.dtype("uint8"))

# Logical types whose values come back as the right Python type from
# ``ndarray.tolist()`` without any per-element conversion.
BUILTIN_SCALARS = (int, float, bool, str)

_NUMPY_SCALARS = (
    np.int8,
    np.uint8,
    np.int16,
    np.uint16,
    np.int32,
    np.uint32,
    np.int64,
    np.uint64,
    np.float32,
    np.float64,
    np.bool_,
    np.complex64,
    np.complex128,
)


@dataclass(frozen=True)
class ElementalConversion:
    """How one logical type maps onto a native HDF5 datatype."""

    datatype: np.dtype
    to_native: Callable[[Any], Any]
    from_native: Callable[[Any], Any]

    @property
    def is_fixed_size(self) -> bool:
        """True when values are fixed-width (usable inside compound types)."""
        return self.datatype.kind not in "OSUV"


def _bytes_from_native(raw: Any) -> bytes:
    return np.asarray(raw, dtype=np.uint8).tobytes()


def _str_from_native(raw: Any) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return str(raw)


def _reject(value: Any, expected: str) -> TypeError:
    return TypeError(f"Expected {expected}, got {type(value).__name__} {value!r}")


def _checked_to_native(cast: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Wrap a numpy/builtin cast so it only accepts values of a compatible kind.

    A float is never truncated into an integer dataset and text is never
    parsed into a number.
    """
    kind = np.dtype(cast).kind
    if kind in "iu":

        def to_native(value: Any) -> Any:
            try:
                return cast(operator.index(value))
            except TypeError:
                raise _reject(value, "an integer") from None

    elif kind == "b":

        def to_native(value: Any) -> Any:
            if not isinstance(value, (bool, np.bool_)):
                raise _reject(value, "a bool")
            return cast(value)

    elif kind == "f":

        def to_native(value: Any) -> Any:
            if not isinstance(value, numbers.Real):
                raise _reject(value, "a real number")
            return cast(value)

    else:

        def to_native(value: Any) -> Any:
            if not isinstance(value, numbers.Complex):
                raise _reject(value, "a complex number")
            return cast(value)

    return to_native


def _str_to_native(value: Any) -> str:
    if not isinstance(value, str):
        raise _reject(value, "a str")
    return value


def _bytes_to_native(value: Any) -> np.ndarray:
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise _reject(value, "bytes")
    return np.frombuffer(bytes(value), dtype=np.uint8)


NATIVE_CONVERSIONS: Dict[Any, ElementalConversion] = {
    int: ElementalConversion(np.dtype(np.int64), _checked_to_native(int), int),
    float: ElementalConversion(np.dtype(np.float64), _checked_to_native(float), float),
    bool: ElementalConversion(np.dtype(np.bool_), _checked_to_native(bool), bool),
    str: ElementalConversion(STRING_DTYPE, _str_to_native, _str_from_native),
    bytes: ElementalConversion(BYTES_DTYPE, _bytes_to_native, _bytes_from_native),
}
NATIVE_CONVERSIONS.update(
    {t: ElementalConversion(np.dtype(t), _checked_to_native(t), t) for t in _NUMPY_SCALARS}
)


def native_conversion(tp: Any) -> Optional[ElementalConversion]:
    """Conversion for container-native scalar types, else None."""
    try:
        return NATIVE_CONVERSIONS.get(tp)
    except TypeError:  # unhashable annotation
        return None


@functools.lru_cache(maxsize=None)
def enum_conversion(cls: type) -> ElementalConversion:
    """Store enum members as int32.

    Integer enums store their value; other enums store the member's position
    in declaration order.
    """
    if issubclass(cls, int):
        return ElementalConversion(
            np.dtype(np.int32), lambda member: int(member), lambda raw: cls(int(raw))
        )
    members = list(cls)
    positions = {member: i for i, member in enumerate(members)}
    return ElementalConversion(
        np.dtype(np.int32),
        lambda member: positions[member],
        lambda raw: members[int(raw)],
    )


def char_conversion() -> ElementalConversion:
    """Store a ``Char`` as its Unicode code point."""
    return ElementalConversion(
        np.dtype(np.int32), lambda c: ord(c), lambda raw: Char(chr(int(raw)))
    )


def is_enum_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, enum.Enum)


def flatten_nested(value: Any, dims: Tuple[int, ...]) -> List[Any]:
    """Row-major flattening of nested sequences, checking every level's length."""
    if not dims:
        return [value]
    if len(value) != dims[0]:
        raise DimensionMismatchError(
            f"Expected {dims[0]} entries along a dimension, got {len(value)}"
        )
    flat: List[Any] = []
    for item in value:
        flat.extend(flatten_nested(item, dims[1:]))
    return flat


def nest_flat(flat: Sequence[Any], dims: Tuple[int, ...]) -> List[Any]:
    """Inverse of ``flatten_nested``: rebuild nested lists from a flat sequence."""
    if len(dims) == 1:
        return list(flat)
    step = math.prod(dims[1:])
    return [nest_flat(flat[i * step : (i + 1) * step], dims[1:]) for i in range(dims[0])]
