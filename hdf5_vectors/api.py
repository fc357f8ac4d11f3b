"""Public entry points: create, load and copy vectors.

Example:
    >>> import h5py
    >>> from hdf5_vectors import create_hdf5_vector, load_hdf5_vector
    >>>
    >>> with h5py.File("vectors.h5", "w") as f:
    ...     v = create_hdf5_vector(f, "counts", int)
    ...     v.extend([1, 2, 3])
    ...     load_hdf5_vector(f["counts"]).collect()
    [1, 2, 3]
"""

from __future__ import annotations

import logging
import typing
from typing import Any, Dict, Iterable, Optional, Sequence, Type

import h5py
import numpy as np
import numpy.typing as npt

from .config import DEFAULT_CHUNK_LENGTH, VectorOptions
from .exceptions import StorageStyleResolutionError
from .metadata import read_metadata
from .registry import StyleRegistry, default_registry
from .styles import (
    AbstractHDF5VectorStorageStyle,
    ArrayStorageStyle,
    ByteArrayStorageStyle,
    CompositeStorageStyle,
    ElementalStorageStyle,
    JSONStorageStyle,
)
from .types import type_name
from .vectors import (
    AbstractHDF5Vector,
    HDF5VectorOfArrayishTypes,
    HDF5VectorOfCompositeTypes,
    HDF5VectorOfElementalTypes,
    HDF5VectorWithByteArrayStorage,
    HDF5VectorWithJSONStorage,
)

__all__ = [
    "create_hdf5_vector",
    "load_hdf5_vector",
    "copy_to_hdf5_vector",
    "register_vector_class",
    "vector_class",
]

logger = logging.getLogger(__name__)

_VECTOR_CLASSES: Dict[type, Type[AbstractHDF5Vector]] = {
    ElementalStorageStyle: HDF5VectorOfElementalTypes,
    ArrayStorageStyle: HDF5VectorOfArrayishTypes,
    CompositeStorageStyle: HDF5VectorOfCompositeTypes,
    ByteArrayStorageStyle: HDF5VectorWithByteArrayStorage,
    JSONStorageStyle: HDF5VectorWithJSONStorage,
}


def register_vector_class(
    style_cls: type, vector_cls: Type[AbstractHDF5Vector]
) -> None:
    """Plug a vector implementation in for a (third-party) style class."""
    if not issubclass(style_cls, AbstractHDF5VectorStorageStyle):
        raise TypeError(f"{style_cls!r} is not a storage style class")
    _VECTOR_CLASSES[style_cls] = vector_cls


def vector_class(style: AbstractHDF5VectorStorageStyle) -> Type[AbstractHDF5Vector]:
    for cls in type(style).__mro__:
        if cls in _VECTOR_CLASSES:
            return _VECTOR_CLASSES[cls]
    raise StorageStyleResolutionError(
        f"No vector class registered for {type(style).__name__}"
    )


def create_hdf5_vector(
    group: h5py.Group,
    name: str,
    el_type: Any,
    *,
    dims: Optional[Sequence[int]] = None,
    chunk_length: int = DEFAULT_CHUNK_LENGTH,
    portable: bool = True,
    registry: Optional[StyleRegistry] = None,
) -> AbstractHDF5Vector:
    """Create an empty vector of ``el_type`` at ``group/name``.

    Args:
        group: Parent group (an open ``h5py.File`` works too).
        name: Name of the new subgroup holding the vector.
        el_type: Element type, e.g. ``int``, ``tuple[float, float]``,
            ``list[float]`` (with ``dims``), a dataclass or a pydantic model.
        dims: Per-element shape for array types that do not declare one.
        chunk_length: Elements per HDF5 chunk.
        portable: Prefer one-dataset-per-field layouts for composites.
        registry: Style registry; the default registry when omitted.

    Raises:
        pydantic.ValidationError: invalid options; nothing is written.
        StorageStyleResolutionError: ``el_type`` has no storage style.
        DimensionMismatchError: ``dims`` conflicts with the type's own shape.
    """
    options = VectorOptions(
        dims=None if dims is None else tuple(dims),
        chunk_length=chunk_length,
        portable=portable,
    )
    registry = registry or default_registry()
    style = registry.resolve(el_type, portable=options.portable, dims=options.dims)
    logger.debug(
        "Resolved %s to %s for %s/%s",
        type_name(el_type),
        type(style).__name__,
        group.name,
        name,
    )
    return vector_class(style).create(style, group, name, el_type, options, registry)


def load_hdf5_vector(
    group: h5py.Group,
    el_type: Any = None,
    *,
    registry: Optional[StyleRegistry] = None,
) -> AbstractHDF5Vector:
    """Bind to the vector stored in ``group``.

    The element type is read from the stored metadata unless ``el_type`` is
    given; ``portable`` and ``dims`` always come from the metadata so the
    storage style resolves the same way it did at creation.
    """
    metadata = read_metadata(group)
    if el_type is None:
        el_type = metadata.el_type()
    options = VectorOptions(dims=metadata.dims, portable=metadata.portable)
    registry = registry or default_registry()
    style = registry.resolve(el_type, portable=options.portable, dims=options.dims)
    logger.debug(
        "Loading %s as %s from %s",
        metadata.type_name,
        type(style).__name__,
        group.name,
    )
    return vector_class(style).load(style, group, el_type, options, registry)


def _infer_element_type(values: Sequence[Any]) -> Any:
    if not values:
        raise ValueError("Cannot infer the element type of an empty collection")
    first = values[0]
    if type(first) is tuple:
        return typing.Tuple[tuple(type(item) for item in first)]
    return type(first)


def copy_to_hdf5_vector(
    group: h5py.Group,
    name: str,
    collection: Iterable[Any],
    el_type: Any = None,
    **options: Any,
) -> AbstractHDF5Vector:
    """Create ``group/name`` and append every element of ``collection``.

    ``el_type`` defaults to the type of the first element. A numpy array of
    rank two or more becomes a vector of its rows, typed
    ``NDArray[dtype]`` with ``dims`` set to the row shape.
    """
    if isinstance(collection, np.ndarray):
        if collection.ndim > 1:
            if el_type is None:
                el_type = npt.NDArray[collection.dtype.type]
            options.setdefault("dims", collection.shape[1:])
            values = list(collection)
        else:
            if el_type is None:
                el_type = collection.dtype.type
            values = collection.tolist() if el_type in (int, float, bool) else list(collection)
    else:
        values = list(collection)
        if el_type is None:
            el_type = _infer_element_type(values)
    vector = create_hdf5_vector(group, name, el_type, **options)
    vector.extend(values)
    return vector
