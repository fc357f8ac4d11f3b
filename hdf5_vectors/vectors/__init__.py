"""Vector implementations, one per storage style."""

from .arrayish import HDF5VectorOfArrayishTypes
from .base import AbstractHDF5Vector, HDF5VectorIterator, iterable
from .composite import HDF5VectorOfCompositeTypes
from .elemental import HDF5VectorOfElementalTypes
from .serialized import HDF5VectorWithByteArrayStorage, HDF5VectorWithJSONStorage

__all__ = [
    "AbstractHDF5Vector",
    "HDF5VectorIterator",
    "iterable",
    "HDF5VectorOfElementalTypes",
    "HDF5VectorOfArrayishTypes",
    "HDF5VectorOfCompositeTypes",
    "HDF5VectorWithByteArrayStorage",
    "HDF5VectorWithJSONStorage",
]
