"""
Pydantic configuration model for vector creation options.

Example:
    >>> from hdf5_vectors.config import VectorOptions
    >>>
    >>> opts = VectorOptions(dims=(3,), chunk_length=64)
    >>> opts.portable
    True
"""

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

__all__ = ["DEFAULT_CHUNK_LENGTH", "VectorOptions"]

DEFAULT_CHUNK_LENGTH = 1000


class VectorOptions(BaseModel):
    """Options recognized by ``create_hdf5_vector`` and ``load_hdf5_vector``.

    Attributes:
        portable: Favor layouts readable without this package's type machinery
            (one dataset per field) over compact compound datasets.
        dims: Per-element shape for array types whose shape is not part of the
            type itself. Ignored for other types.
        chunk_length: Number of elements per HDF5 chunk along the growable axis.
    """

    portable: bool = Field(
        default=True, description="Prefer one-dataset-per-field composite layout"
    )
    dims: Optional[Tuple[PositiveInt, ...]] = Field(
        default=None, description="Fixed per-element dimensions for array types"
    )
    chunk_length: PositiveInt = Field(
        default=DEFAULT_CHUNK_LENGTH, description="Chunk length along the growable axis"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("dims")
    @classmethod
    def _validate_dims(cls, v: Optional[Tuple[int, ...]]) -> Optional[Tuple[int, ...]]:
        if v is not None and len(v) == 0:
            raise ValueError("dims must name at least one dimension")
        return v
