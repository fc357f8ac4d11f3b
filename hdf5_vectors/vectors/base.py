"""Common handle behaviour shared by every vector storage style."""

from __future__ import annotations

import collections.abc
import logging
from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, List, Optional

import h5py

from ..metadata import VectorMetadata, write_metadata
from ..types import type_name

if TYPE_CHECKING:
    from ..config import VectorOptions
    from ..registry import StyleRegistry
    from ..styles import AbstractHDF5VectorStorageStyle

__all__ = ["DATA", "AbstractHDF5Vector", "HDF5VectorIterator", "iterable"]

logger = logging.getLogger(__name__)

DATA = "data"


def normalize_index(index: int, length: int) -> int:
    """Map a possibly negative index into ``range(length)``."""
    index = int(index)
    if index < 0:
        index += length
    if not 0 <= index < length:
        raise IndexError("vector index out of range")
    return index


class AbstractHDF5Vector(collections.abc.Sequence):
    """A growable sequence backed by an HDF5 group.

    Subclasses implement one storage style each. They provide ``create`` and
    ``load`` classmethods plus ``__len__``, ``append``, ``_read_one``,
    ``_read_range`` and ``_stage_write``; bulk reads (``collect``, iteration,
    slicing) all go through ``_read_range`` so a full pass costs a constant
    number of HDF5 reads.
    """

    def __init__(
        self,
        group: h5py.Group,
        el_type: Any,
        style: "AbstractHDF5VectorStorageStyle",
        options: "VectorOptions",
        registry: "StyleRegistry",
    ) -> None:
        self._group = group
        self._el_type = el_type
        self._style = style
        self._options = options
        self._registry = registry

    @classmethod
    @abstractmethod
    def create(cls, style, group, name, el_type, options, registry):
        """Create the HDF5 layout for a new vector ``group/name``."""

    @classmethod
    @abstractmethod
    def load(cls, style, group, el_type, options, registry):
        """Bind to an existing vector group."""

    @staticmethod
    def _create_group(
        group: h5py.Group,
        name: str,
        el_type: Any,
        options: "VectorOptions",
        dims: Optional[tuple] = None,
    ) -> h5py.Group:
        metadata = VectorMetadata.for_type(el_type, dims=dims, portable=options.portable)
        vgroup = group.create_group(name)
        write_metadata(vgroup, metadata)
        return vgroup

    @property
    def group(self) -> h5py.Group:
        return self._group

    @property
    def el_type(self) -> Any:
        return self._el_type

    @property
    def style(self) -> "AbstractHDF5VectorStorageStyle":
        return self._style

    @property
    def options(self) -> "VectorOptions":
        return self._options

    @abstractmethod
    def __len__(self) -> int: ...

    @abstractmethod
    def append(self, value: Any) -> None:
        """Push ``value`` onto the end of the vector."""

    def extend(self, values: Iterable[Any]) -> None:
        for value in values:
            self.append(value)

    @abstractmethod
    def _read_one(self, index: int) -> Any: ...

    @abstractmethod
    def _read_range(self, start: int, stop: int) -> List[Any]: ...

    @abstractmethod
    def _stage_write(self, index: int, value: Any) -> Callable[[], None]:
        """Convert and check ``value`` for slot ``index`` without writing it.

        Returns a callable that performs the write. Everything that can fail
        on a bad value fails here, so composites can stage every field before
        committing any.
        """

    def _write_one(self, index: int, value: Any) -> None:
        self._stage_write(index, value)()

    def collect(self) -> List[Any]:
        """All elements as a list, read in bulk."""
        return self._read_range(0, len(self))

    def __getitem__(self, index):
        length = len(self)
        if isinstance(index, slice):
            start, stop, step = index.indices(length)
            if step == 1:
                return self._read_range(start, max(start, stop))
            positions = range(start, stop, step)
            if not positions:
                return []
            lo, hi = min(positions), max(positions) + 1
            block = self._read_range(lo, hi)
            return [block[k - lo] for k in positions]
        return self._read_one(normalize_index(index, length))

    def __setitem__(self, index: int, value: Any) -> None:
        if isinstance(index, slice):
            raise TypeError(f"{type(self).__name__} does not support slice assignment")
        self._write_one(normalize_index(index, len(self)), value)

    def __iter__(self) -> Iterator[Any]:
        return iterable(self)

    def __reversed__(self) -> Iterator[Any]:
        return reversed(self.collect())

    def __contains__(self, value: Any) -> bool:
        return any(item == value for item in iterable(self))

    def index(self, value: Any, start: int = 0, stop: Optional[int] = None) -> int:
        values = self.collect()
        if stop is None:
            stop = len(values)
        return values.index(value, start, stop)

    def count(self, value: Any) -> int:
        return sum(1 for item in iterable(self) if item == value)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self._group.name!r}, "
            f"el_type={type_name(self._el_type)}, length={len(self)})"
        )


class HDF5VectorIterator(collections.abc.Iterator):
    """One-pass iterator over a point-in-time snapshot of a vector.

    The element count is fixed when the iterator is created; the elements
    themselves are read with a single bulk ``collect`` on the first
    ``next()``. Elements appended to the vector afterwards are not seen.
    """

    def __init__(self, vector: AbstractHDF5Vector) -> None:
        self._vector = vector
        self._length = len(vector)
        self._values: Optional[List[Any]] = None
        self._position = 0

    def _snapshot(self) -> List[Any]:
        if self._values is None:
            self._values = self._vector._read_range(0, self._length)
            logger.debug(
                "Materialized %d element(s) of %s", self._length, self._vector.group.name
            )
        return self._values

    def __next__(self) -> Any:
        values = self._snapshot()
        if self._position >= self._length:
            raise StopIteration
        value = values[self._position]
        self._position += 1
        return value

    def __len__(self) -> int:
        return self._length


def iterable(vector: AbstractHDF5Vector) -> HDF5VectorIterator:
    """Bulk-read iterator over ``vector``; see ``HDF5VectorIterator``."""
    return HDF5VectorIterator(vector)
