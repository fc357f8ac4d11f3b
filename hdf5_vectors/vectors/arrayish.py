"""Vectors of fixed-shape arrays stacked along a trailing growable axis."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Tuple

import h5py
import numpy as np

from ..conversions import flatten_nested, nest_flat
from ..exceptions import DimensionMismatchError
from ..styles import ArrayStorageStyle
from .base import DATA, AbstractHDF5Vector

__all__ = ["HDF5VectorOfArrayishTypes"]

logger = logging.getLogger(__name__)


class HDF5VectorOfArrayishTypes(AbstractHDF5Vector):
    """Vector stored as ``group/data`` shaped ``(*dims, n)``.

    Element ``k`` is ``data[..., k]``. Values come back in the kind they were
    declared as: tuples for tuple types, nested lists for list types, and
    owned ``ndarray`` copies for numpy array types.
    """

    def __init__(self, group, el_type, style, options, registry) -> None:
        super().__init__(group, el_type, style, options, registry)
        self._data: h5py.Dataset = group[DATA]
        if h5py.check_string_dtype(self._data.dtype) is not None:
            self._reader = self._data.asstr()
        else:
            self._reader = self._data
        self._dims: Tuple[int, ...] = tuple(style.dims)
        self._size = int(np.prod(self._dims))
        self._length = self._data.shape[-1]

    @classmethod
    def create(
        cls, style: ArrayStorageStyle, group, name, el_type, options, registry
    ) -> "HDF5VectorOfArrayishTypes":
        dims = tuple(style.dims)
        vgroup = cls._create_group(group, name, el_type, options, dims=dims)
        vgroup.create_dataset(
            DATA,
            shape=dims + (0,),
            maxshape=dims + (None,),
            dtype=style.datatype,
            chunks=dims + (options.chunk_length,),
        )
        logger.debug(
            "Created array vector %s with element shape %s", vgroup.name, dims
        )
        return cls(vgroup, el_type, style, options, registry)

    @classmethod
    def load(
        cls, style: ArrayStorageStyle, group, el_type, options, registry
    ) -> "HDF5VectorOfArrayishTypes":
        data = group[DATA]
        if tuple(data.shape[:-1]) != tuple(style.dims):
            raise DimensionMismatchError(
                f"Stored element shape {tuple(data.shape[:-1])} at {group.name} does "
                f"not match the expected {tuple(style.dims)}"
            )
        if data.chunks is not None:
            options = options.model_copy(update={"chunk_length": data.chunks[-1]})
        return cls(group, el_type, style, options, registry)

    @property
    def dims(self) -> Tuple[int, ...]:
        return self._dims

    @property
    def dataset(self) -> h5py.Dataset:
        return self._data

    def __len__(self) -> int:
        return self._length

    def _resize(self, length: int) -> None:
        self._data.resize(self._dims + (length,))
        self._length = length

    def _to_native(self, value: Any) -> np.ndarray:
        style = self._style
        if style.kind == "ndarray":
            arr = np.asarray(value)
            if arr.shape != self._dims:
                raise DimensionMismatchError(
                    f"Array of shape {arr.shape} does not fit element shape {self._dims}"
                )
            return arr
        flat = flatten_nested(value, self._dims)
        native = np.empty(len(flat), dtype=style.datatype)
        convert = style.element_to_native
        for i, item in enumerate(flat):
            native[i] = item if convert is None else convert(item)
        return native.reshape(self._dims)

    def _from_native(self, raw: np.ndarray) -> Any:
        style = self._style
        if style.kind == "ndarray":
            return np.array(raw)
        flat = raw.reshape(self._size)
        if style.element_from_native is None:
            values = flat.tolist()
        else:
            values = [style.element_from_native(item) for item in flat]
        if style.kind == "tuple":
            return tuple(values)
        return nest_flat(values, self._dims)

    def _native_block(self, values: List[Any]) -> np.ndarray:
        block = np.empty(self._dims + (len(values),), dtype=self._style.datatype)
        for k, value in enumerate(values):
            block[..., k] = self._to_native(value)
        return block

    def append(self, value: Any) -> None:
        native = self._to_native(value)
        n = self._length
        self._resize(n + 1)
        self._data[..., n] = native

    def extend(self, values: Iterable[Any]) -> None:
        values = list(values)
        if not values:
            return
        block = self._native_block(values)
        n = self._length
        self._resize(n + len(values))
        self._data[..., n:] = block

    def _read_one(self, index: int) -> Any:
        return self._from_native(np.asarray(self._reader[..., index]))

    def _read_range(self, start: int, stop: int) -> List[Any]:
        if stop <= start:
            return []
        block = np.asarray(self._reader[..., start:stop])
        return [self._from_native(block[..., k]) for k in range(stop - start)]

    def _stage_write(self, index: int, value: Any) -> Callable[[], None]:
        native = self._to_native(value)

        def commit() -> None:
            self._data[..., index] = native

        return commit
