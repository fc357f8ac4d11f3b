"""Leaf codecs used by the serialized storage styles.

``PickleCodec`` backs the byte-array style and can encode any picklable
value. ``PydanticJSONCodec`` backs the optional JSON style; it uses a
pydantic ``TypeAdapter`` per element type so that dataclasses, pydantic
models and builtin containers are rebuilt as their declared type on read.
"""

from __future__ import annotations

import pickle
from typing import Any, Dict, Protocol, runtime_checkable

from pydantic import TypeAdapter

__all__ = ["ByteCodec", "TextCodec", "PickleCodec", "PydanticJSONCodec"]


@runtime_checkable
class ByteCodec(Protocol):
    """Encodes values of an element type to opaque bytes and back."""

    def encode(self, value: Any, el_type: Any) -> bytes: ...

    def decode(self, payload: bytes, el_type: Any) -> Any: ...


@runtime_checkable
class TextCodec(Protocol):
    """Encodes values of an element type to text and back."""

    def encode(self, value: Any, el_type: Any) -> str: ...

    def decode(self, text: str, el_type: Any) -> Any: ...


class PickleCodec:
    """Python pickle as the byte codec."""

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL) -> None:
        self.protocol = int(protocol)

    def encode(self, value: Any, el_type: Any) -> bytes:
        return pickle.dumps(value, protocol=self.protocol)

    def decode(self, payload: bytes, el_type: Any) -> Any:
        return pickle.loads(payload)

    def __repr__(self) -> str:
        return f"PickleCodec(protocol={self.protocol})"


class PydanticJSONCodec:
    """JSON text via pydantic ``TypeAdapter``s, cached per element type."""

    def __init__(self) -> None:
        self._adapters: Dict[Any, TypeAdapter] = {}

    def _adapter(self, el_type: Any) -> TypeAdapter:
        adapter = self._adapters.get(el_type)
        if adapter is None:
            adapter = TypeAdapter(el_type)
            self._adapters[el_type] = adapter
        return adapter

    def encode(self, value: Any, el_type: Any) -> str:
        return self._adapter(el_type).dump_json(value).decode("utf-8")

    def decode(self, text: str, el_type: Any) -> Any:
        return self._adapter(el_type).validate_json(text)

    def __repr__(self) -> str:
        return "PydanticJSONCodec()"
