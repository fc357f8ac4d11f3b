"""Vectors of serialized payloads: a byte store plus cumulative stop offsets.

Layout::

    /group/name/data/bytes   # uint8 elemental vector, all payloads back to back
    /group/name/data/stops   # int64 elemental vector, exclusive end of each payload

Element ``k`` is ``bytes[stops[k - 1]:stops[k]]`` with ``stops[-1]`` taken
as 0. Elements cannot be overwritten in place.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List

import numpy as np

from ..exceptions import UnsupportedOperationError
from ..styles import ElementalStorageStyle
from .base import DATA, AbstractHDF5Vector
from .elemental import HDF5VectorOfElementalTypes

__all__ = ["HDF5VectorWithByteArrayStorage", "HDF5VectorWithJSONStorage"]

logger = logging.getLogger(__name__)

BYTES = "bytes"
STOPS = "stops"

_BYTES_STYLE = ElementalStorageStyle(np.dtype(np.uint8), np.uint8, np.uint8)
_STOPS_STYLE = ElementalStorageStyle(np.dtype(np.int64), int, int)


class HDF5VectorWithByteArrayStorage(AbstractHDF5Vector):
    """Byte-serialized vector; payloads come from the style's ``ByteCodec``."""

    def __init__(
        self,
        group,
        el_type,
        style,
        options,
        registry,
        payload: HDF5VectorOfElementalTypes,
        stops: HDF5VectorOfElementalTypes,
    ) -> None:
        super().__init__(group, el_type, style, options, registry)
        self._bytes = payload
        self._stops = stops
        self._last_stop = int(stops.read_native(len(stops) - 1)[0]) if len(stops) else 0

    @classmethod
    def create(cls, style, group, name, el_type, options, registry):
        vgroup = cls._create_group(group, name, el_type, options)
        data = vgroup.create_group(DATA)
        payload = HDF5VectorOfElementalTypes.create(
            _BYTES_STYLE, data, BYTES, np.uint8, options, registry
        )
        stops = HDF5VectorOfElementalTypes.create(
            _STOPS_STYLE, data, STOPS, int, options, registry
        )
        logger.debug("Created %s at %s", cls.__name__, vgroup.name)
        return cls(vgroup, el_type, style, options, registry, payload, stops)

    @classmethod
    def load(cls, style, group, el_type, options, registry):
        data = group[DATA]
        payload = HDF5VectorOfElementalTypes.load(
            _BYTES_STYLE, data[BYTES], np.uint8, options, registry
        )
        stops = HDF5VectorOfElementalTypes.load(
            _STOPS_STYLE, data[STOPS], int, options, registry
        )
        return cls(group, el_type, style, options, registry, payload, stops)

    def _encode(self, value: Any) -> bytes:
        return self._style.codec.encode(value, self._el_type)

    def _decode(self, payload: bytes) -> Any:
        return self._style.codec.decode(payload, self._el_type)

    def __len__(self) -> int:
        return len(self._stops)

    def append(self, value: Any) -> None:
        self.extend([value])

    def extend(self, values: Iterable[Any]) -> None:
        payloads = [self._encode(value) for value in values]
        if not payloads:
            return
        lengths = np.fromiter((len(p) for p in payloads), dtype=np.int64, count=len(payloads))
        ends = self._last_stop + np.cumsum(lengths)
        count = len(self._stops)
        self._bytes.extend_native(np.frombuffer(b"".join(payloads), dtype=np.uint8))
        try:
            self._stops.extend_native(ends)
        except Exception:
            # the byte store must end at the last recorded stop
            self._stops.truncate(count)
            self._bytes.truncate(self._last_stop)
            raise
        self._last_stop = int(ends[-1])

    def _read_one(self, index: int) -> Any:
        if index == 0:
            start = 0
            stop = int(self._stops.read_native(0, 1)[0])
        else:
            start, stop = (int(s) for s in self._stops.read_native(index - 1, index + 1))
        return self._decode(self._bytes.read_native(start, stop).tobytes())

    def _read_range(self, start: int, stop: int) -> List[Any]:
        if stop <= start:
            return []
        if start == 0:
            ends = self._stops.read_native(0, stop)
            base = 0
        else:
            block = self._stops.read_native(start - 1, stop)
            base, ends = int(block[0]), block[1:]
        raw = self._bytes.read_native(base, int(ends[-1])).tobytes()
        values = []
        offset = 0
        for end in ends:
            end = int(end) - base
            values.append(self._decode(raw[offset:end]))
            offset = end
        return values

    def __setitem__(self, index: int, value: Any) -> None:
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support overwriting elements"
        )

    def _stage_write(self, index: int, value: Any) -> Callable[[], None]:
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support overwriting elements"
        )


class HDF5VectorWithJSONStorage(HDF5VectorWithByteArrayStorage):
    """Same layout as the byte vector, holding UTF-8 JSON from a ``TextCodec``."""

    def _encode(self, value: Any) -> bytes:
        return self._style.codec.encode(value, self._el_type).encode("utf-8")

    def _decode(self, payload: bytes) -> Any:
        return self._style.codec.decode(payload.decode("utf-8"), self._el_type)
