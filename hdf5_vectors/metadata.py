"""Self-describing metadata stored next to every vector.

Each vector group carries a ``metadata`` subgroup::

    /group/name/metadata/type                     # type name, UTF-8 string
    /group/name/metadata/serialized_type          # pickled element type, uint8
    /group/name/metadata/dimensions_are_constant  # bool
    /group/name/metadata/dimensions               # int64, empty when not constant
    /group/name/metadata/portable                 # bool

The record is written once at creation and never rewritten.
"""

from __future__ import annotations

import logging
import pickle
from typing import Any, Optional, Sequence, Tuple

import h5py
import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .conversions import STRING_DTYPE
from .exceptions import MetadataError
from .types import type_name

__all__ = [
    "METADATA_GROUP",
    "VectorMetadata",
    "store_metadata",
    "write_metadata",
    "read_metadata",
]

logger = logging.getLogger(__name__)

METADATA_GROUP = "metadata"


class VectorMetadata(BaseModel):
    """Decoded contents of a vector's ``metadata`` subgroup."""

    type_name: str
    serialized_type: bytes = Field(repr=False)
    dimensions_are_constant: bool = False
    dimensions: Tuple[int, ...] = ()
    portable: bool = True

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_dimensions(self) -> "VectorMetadata":
        if self.dimensions_are_constant and not self.dimensions:
            raise ValueError("constant dimensions recorded without any dimension")
        if not self.dimensions_are_constant and self.dimensions:
            raise ValueError("dimensions recorded but not marked constant")
        if any(d <= 0 for d in self.dimensions):
            raise ValueError(f"dimensions must be positive, got {self.dimensions}")
        return self

    @property
    def dims(self) -> Optional[Tuple[int, ...]]:
        return self.dimensions if self.dimensions_are_constant else None

    def el_type(self) -> Any:
        """Unpickle the recorded element type."""
        try:
            return pickle.loads(self.serialized_type)
        except Exception as e:
            raise MetadataError(
                f"Cannot restore element type {self.type_name!r} from metadata"
            ) from e

    @classmethod
    def for_type(
        cls,
        el_type: Any,
        *,
        dims: Optional[Sequence[int]] = None,
        portable: bool = True,
    ) -> "VectorMetadata":
        try:
            payload = pickle.dumps(el_type, protocol=pickle.HIGHEST_PROTOCOL)
        except Exception as e:
            raise MetadataError(
                f"Element type {type_name(el_type)} cannot be pickled; define it "
                "at module level so it can be recorded in vector metadata"
            ) from e
        dimensions = tuple(int(d) for d in dims) if dims is not None else ()
        return cls(
            type_name=type_name(el_type),
            serialized_type=payload,
            dimensions_are_constant=dims is not None,
            dimensions=dimensions,
            portable=portable,
        )


def store_metadata(
    group: h5py.Group,
    el_type: Any,
    *,
    dims: Optional[Sequence[int]] = None,
    portable: bool = True,
) -> VectorMetadata:
    """Write the metadata subgroup for a freshly created vector group."""
    return write_metadata(
        group, VectorMetadata.for_type(el_type, dims=dims, portable=portable)
    )


def write_metadata(group: h5py.Group, metadata: VectorMetadata) -> VectorMetadata:
    meta = group.create_group(METADATA_GROUP)
    meta.create_dataset("type", data=metadata.type_name, dtype=STRING_DTYPE)
    meta.create_dataset(
        "serialized_type",
        data=np.frombuffer(metadata.serialized_type, dtype=np.uint8),
    )
    meta.create_dataset(
        "dimensions_are_constant", data=np.bool_(metadata.dimensions_are_constant)
    )
    meta.create_dataset(
        "dimensions", data=np.asarray(metadata.dimensions, dtype=np.int64)
    )
    meta.create_dataset("portable", data=np.bool_(metadata.portable))
    logger.debug("Stored metadata for %s at %s", metadata.type_name, group.name)
    return metadata


def read_metadata(group: h5py.Group) -> VectorMetadata:
    """Read back the metadata subgroup written by ``store_metadata``.

    Raises:
        KeyError: ``group`` has no metadata subgroup (h5py's own error).
        MetadataError: the subgroup exists but is incomplete or inconsistent.
    """
    meta = group[METADATA_GROUP]
    try:
        return VectorMetadata(
            type_name=meta["type"].asstr()[()],
            serialized_type=np.asarray(meta["serialized_type"][()], dtype=np.uint8).tobytes(),
            dimensions_are_constant=bool(meta["dimensions_are_constant"][()]),
            dimensions=tuple(int(d) for d in meta["dimensions"][()]),
            portable=bool(meta["portable"][()]),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise MetadataError(f"Malformed vector metadata at {meta.name}") from e
