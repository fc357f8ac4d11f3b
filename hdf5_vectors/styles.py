"""Storage styles: the on-disk representation families for element types.

A style is chosen by ``StyleRegistry.resolve`` and names how the element
type is laid out inside an HDF5 group. Styles compare equal on their
structural fields only (datatype, dimensions); the converters and codecs
they carry are excluded so that resolving the same type twice always
yields equal styles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Literal, Optional, Tuple

import numpy as np

if TYPE_CHECKING:
    from .composites import CompositeLayout
    from .serialization import ByteCodec, TextCodec

__all__ = [
    "AbstractHDF5VectorStorageStyle",
    "ElementalStorageStyle",
    "ArrayStorageStyle",
    "CompositeStorageStyle",
    "ByteArrayStorageStyle",
    "JSONStorageStyle",
]

ArrayKind = Literal["tuple", "list", "ndarray"]


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class AbstractHDF5VectorStorageStyle:
    """Parent of all storage styles."""


@dataclass(frozen=True)
class ElementalStorageStyle(AbstractHDF5VectorStorageStyle):
    """Types HDF5 stores natively, one scalar (or compound record) per element.

    Covers fixed-width integers and floats, bools, UTF-8 strings, opaque
    bytes, enums and characters (as int32), and fixed-layout composites
    stored as compound types when ``portable=False``.
    """

    datatype: np.dtype
    to_native: Callable[[Any], Any] = field(
        default=_identity, compare=False, repr=False
    )
    from_native: Callable[[Any], Any] = field(
        default=_identity, compare=False, repr=False
    )


@dataclass(frozen=True)
class ArrayStorageStyle(AbstractHDF5VectorStorageStyle):
    """Fixed-shape arrays of an elemental type, stacked on a trailing axis.

    An element of shape ``dims`` is stored at ``data[..., k]`` of a dataset
    shaped ``(*dims, n)``.
    """

    datatype: np.dtype
    dims: Tuple[int, ...]
    kind: ArrayKind = field(default="ndarray", compare=False)
    element_to_native: Optional[Callable[[Any], Any]] = field(
        default=None, compare=False, repr=False
    )
    element_from_native: Optional[Callable[[Any], Any]] = field(
        default=None, compare=False, repr=False
    )


@dataclass(frozen=True)
class CompositeStorageStyle(AbstractHDF5VectorStorageStyle):
    """One child vector per field, each styled on its own.

    For ``MyType(a: int, b: float)`` the file holds::

        /group/name/data/a   # vector of int64
        /group/name/data/b   # vector of float64
    """

    layout: Optional["CompositeLayout"] = field(
        default=None, compare=False, repr=False
    )


@dataclass(frozen=True)
class ByteArrayStorageStyle(AbstractHDF5VectorStorageStyle):
    """Serialized payloads in a growable byte vector plus cumulative stops.

    The fallback for anything without a native layout, including arrays
    whose shape varies from element to element.
    """

    codec: Optional["ByteCodec"] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class JSONStorageStyle(AbstractHDF5VectorStorageStyle):
    """Like ``ByteArrayStorageStyle`` but the payload is UTF-8 JSON text.

    Only selected when the registry has a text codec installed.
    """

    codec: Optional["TextCodec"] = field(default=None, compare=False, repr=False)
