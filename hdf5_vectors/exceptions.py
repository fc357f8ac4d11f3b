"""hdf5_vectors exception hierarchy.

Each failure class maps to one kind of misuse. Errors raised by h5py or the
operating system are never wrapped here and reach the caller unchanged.
"""

from __future__ import annotations

__all__ = [
    "HDF5VectorError",
    "StorageStyleResolutionError",
    "DimensionMismatchError",
    "UnsupportedOperationError",
    "MetadataError",
]


class HDF5VectorError(Exception):
    """Base exception for all hdf5_vectors failures."""


class StorageStyleResolutionError(HDF5VectorError, TypeError):
    """Raised when an element type cannot be mapped to any storage style."""


class DimensionMismatchError(HDF5VectorError, ValueError):
    """Raised when element dimensions disagree with the declared dimensions."""


class UnsupportedOperationError(HDF5VectorError, NotImplementedError):
    """Raised for operations a storage style rejects outright."""


class MetadataError(HDF5VectorError):
    """Raised when a vector's persisted metadata record is malformed."""
