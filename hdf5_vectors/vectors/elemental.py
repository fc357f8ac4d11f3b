"""Vectors of elemental types: one extendable 1-D dataset."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional

import h5py
import numpy as np

from ..conversions import BUILTIN_SCALARS
from ..styles import ElementalStorageStyle
from .base import DATA, AbstractHDF5Vector

__all__ = ["HDF5VectorOfElementalTypes"]

logger = logging.getLogger(__name__)


class HDF5VectorOfElementalTypes(AbstractHDF5Vector):
    """Vector stored as ``group/data``, shape ``(n,)``, growable along axis 0.

    The element count is cached on the handle and updated by every resize
    made through it. Appends made through another handle on the same group
    are seen after reloading.
    """

    def __init__(self, group, el_type, style, options, registry) -> None:
        super().__init__(group, el_type, style, options, registry)
        self._data: h5py.Dataset = group[DATA]
        if h5py.check_string_dtype(self._data.dtype) is not None:
            self._reader = self._data.asstr()
        else:
            self._reader = self._data
        self._plain = el_type in BUILTIN_SCALARS
        self._length = self._data.shape[0]

    @classmethod
    def create(
        cls, style: ElementalStorageStyle, group, name, el_type, options, registry
    ) -> "HDF5VectorOfElementalTypes":
        vgroup = cls._create_group(group, name, el_type, options)
        vgroup.create_dataset(
            DATA,
            shape=(0,),
            maxshape=(None,),
            dtype=style.datatype,
            chunks=(options.chunk_length,),
        )
        logger.debug("Created elemental vector %s (%s)", vgroup.name, style.datatype)
        return cls(vgroup, el_type, style, options, registry)

    @classmethod
    def load(
        cls, style: ElementalStorageStyle, group, el_type, options, registry
    ) -> "HDF5VectorOfElementalTypes":
        data = group[DATA]
        if data.chunks is not None:
            options = options.model_copy(update={"chunk_length": data.chunks[-1]})
        return cls(group, el_type, style, options, registry)

    @property
    def dataset(self) -> h5py.Dataset:
        return self._data

    def __len__(self) -> int:
        return self._length

    def _resize(self, length: int) -> None:
        self._data.resize((length,))
        self._length = length

    def _native_block(self, values: List[Any]) -> np.ndarray:
        block = np.empty(len(values), dtype=self._style.datatype)
        to_native = self._style.to_native
        for i, value in enumerate(values):
            block[i] = to_native(value)
        return block

    def _from_native(self, raw: Any) -> Any:
        return self._style.from_native(raw)

    def append(self, value: Any) -> None:
        block = self._native_block([value])
        n = self._length
        self._resize(n + 1)
        self._data[n : n + 1] = block

    def extend(self, values: Iterable[Any]) -> None:
        values = list(values)
        if values:
            self.extend_native(self._native_block(values))

    def extend_native(self, block: np.ndarray) -> None:
        """Append an array that is already in the dataset's datatype."""
        if len(block) == 0:
            return
        n = self._length
        self._resize(n + len(block))
        self._data[n:] = block

    def truncate(self, length: int) -> None:
        """Drop every element from position ``length`` on."""
        if length < self._length:
            self._resize(length)

    def read_native(self, start: int = 0, stop: Optional[int] = None) -> np.ndarray:
        """Raw contents of ``[start, stop)`` without element conversion."""
        if stop is None:
            stop = len(self)
        return self._reader[start:stop]

    def _read_one(self, index: int) -> Any:
        return self._from_native(self._reader[index])

    def _read_range(self, start: int, stop: int) -> List[Any]:
        if stop <= start:
            return []
        block = self._reader[start:stop]
        if self._plain:
            return block.tolist()
        return [self._from_native(raw) for raw in block]

    def _stage_write(self, index: int, value: Any) -> Callable[[], None]:
        block = self._native_block([value])

        def commit() -> None:
            self._data[index : index + 1] = block

        return commit
