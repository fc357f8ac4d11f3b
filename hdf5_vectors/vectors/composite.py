"""Vectors of composite types: one child vector per field."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Sequence

from ..composites import CompositeLayout
from ..styles import CompositeStorageStyle
from ..types import type_name
from .base import DATA, AbstractHDF5Vector

__all__ = ["HDF5VectorOfCompositeTypes"]

logger = logging.getLogger(__name__)


class HDF5VectorOfCompositeTypes(AbstractHDF5Vector):
    """Composite vector laid out as ``group/data/<field>``.

    Every child is a complete vector of its own (with its own metadata), so
    each field can be read by tools that know nothing about the composite
    type. Children are created with this vector's ``portable`` and
    ``chunk_length``; ``dims`` applies to the composite itself only.

    Appends are not transactional. When a child rejects its field the
    children already written keep the new element, the counts are logged
    and the error propagates; ``len`` then reports the shortest child.
    Overwrites are all or nothing: every field is converted (and serialized
    fields rejected) before any child is written.
    """

    def __init__(
        self, group, el_type, style, options, registry, children: Dict[str, AbstractHDF5Vector]
    ) -> None:
        super().__init__(group, el_type, style, options, registry)
        self._layout: CompositeLayout = style.layout
        self._children = children

    @classmethod
    def create(
        cls, style: CompositeStorageStyle, group, name, el_type, options, registry
    ) -> "HDF5VectorOfCompositeTypes":
        from ..api import create_hdf5_vector

        vgroup = cls._create_group(group, name, el_type, options)
        data = vgroup.create_group(DATA)
        children = {
            field: create_hdf5_vector(
                data,
                field,
                ftype,
                chunk_length=options.chunk_length,
                portable=options.portable,
                registry=registry,
            )
            for field, ftype in style.layout.fields
        }
        logger.debug(
            "Created composite vector %s with fields %s",
            vgroup.name,
            list(style.layout.names),
        )
        return cls(vgroup, el_type, style, options, registry, children)

    @classmethod
    def load(
        cls, style: CompositeStorageStyle, group, el_type, options, registry
    ) -> "HDF5VectorOfCompositeTypes":
        from ..api import load_hdf5_vector

        data = group[DATA]
        children = {
            field: load_hdf5_vector(data[field], ftype, registry=registry)
            for field, ftype in style.layout.fields
        }
        counts = {field: len(child) for field, child in children.items()}
        if len(set(counts.values())) > 1:
            logger.warning(
                "Composite vector %s has fields of unequal length %s; "
                "using the shortest",
                group.name,
                counts,
            )
        return cls(group, el_type, style, options, registry, children)

    @property
    def children(self) -> Dict[str, AbstractHDF5Vector]:
        return dict(self._children)

    def __len__(self) -> int:
        return min(len(child) for child in self._children.values())

    def _deconstruct(self, value: Any) -> Sequence[Any]:
        fields = self._layout.deconstruct(value)
        if len(fields) != len(self._children):
            raise ValueError(
                f"{type_name(self._el_type)} value has {len(fields)} field(s), "
                f"expected {len(self._children)}"
            )
        return fields

    def _push_fields(self, method: str, columns: Sequence[Any]) -> None:
        for (field, child), column in zip(self._children.items(), columns):
            try:
                getattr(child, method)(column)
            except Exception:
                logger.error(
                    "Field %r of %s failed during %s; field lengths are now %s",
                    field,
                    self._group.name,
                    method,
                    {f: len(c) for f, c in self._children.items()},
                )
                raise

    def append(self, value: Any) -> None:
        self._push_fields("append", self._deconstruct(value))

    def extend(self, values: Iterable[Any]) -> None:
        rows = [self._deconstruct(value) for value in values]
        if not rows:
            return
        self._push_fields("extend", [list(column) for column in zip(*rows)])

    def _read_one(self, index: int) -> Any:
        return self._layout.construct(
            [child._read_one(index) for child in self._children.values()]
        )

    def _read_range(self, start: int, stop: int) -> List[Any]:
        if stop <= start:
            return []
        columns = [child._read_range(start, stop) for child in self._children.values()]
        construct = self._layout.construct
        return [construct(list(row)) for row in zip(*columns)]

    def _stage_write(self, index: int, value: Any) -> Callable[[], None]:
        commits = [
            child._stage_write(index, field_value)
            for child, field_value in zip(
                self._children.values(), self._deconstruct(value)
            )
        ]

        def commit() -> None:
            for write in commits:
                write()

        return commit
