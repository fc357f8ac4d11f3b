"""Growable, self-describing vectors of typed elements stored in HDF5 files.

Each vector lives in its own HDF5 group. The element type is mapped to a
storage style (native datasets, fixed-shape array blocks, one child vector
per field, or serialized bytes) and recorded in the group's metadata so the
vector can be reloaded without knowing its type in advance.
"""

__version__ = "0.1.0"

from .api import (
    copy_to_hdf5_vector,
    create_hdf5_vector,
    load_hdf5_vector,
    register_vector_class,
    vector_class,
)
from .config import DEFAULT_CHUNK_LENGTH, VectorOptions
from .exceptions import (
    DimensionMismatchError,
    HDF5VectorError,
    MetadataError,
    StorageStyleResolutionError,
    UnsupportedOperationError,
)
from .registry import (
    StyleRegistry,
    default_registry,
    install_text_codec,
    is_elemental,
    register_composite,
    register_elemental_conversion,
    register_storage_style,
    storage_style,
)
from .serialization import PickleCodec, PydanticJSONCodec
from .styles import (
    AbstractHDF5VectorStorageStyle,
    ArrayStorageStyle,
    ByteArrayStorageStyle,
    CompositeStorageStyle,
    ElementalStorageStyle,
    JSONStorageStyle,
)
from .types import Char, Dims, fixed_array
from .vectors import (
    AbstractHDF5Vector,
    HDF5VectorIterator,
    HDF5VectorOfArrayishTypes,
    HDF5VectorOfCompositeTypes,
    HDF5VectorOfElementalTypes,
    HDF5VectorWithByteArrayStorage,
    HDF5VectorWithJSONStorage,
    iterable,
)

__all__ = [
    "__version__",
    # API
    "create_hdf5_vector",
    "load_hdf5_vector",
    "copy_to_hdf5_vector",
    "iterable",
    "register_vector_class",
    "vector_class",
    # Registry
    "StyleRegistry",
    "default_registry",
    "storage_style",
    "is_elemental",
    "register_storage_style",
    "register_elemental_conversion",
    "register_composite",
    "install_text_codec",
    # Styles
    "AbstractHDF5VectorStorageStyle",
    "ElementalStorageStyle",
    "ArrayStorageStyle",
    "CompositeStorageStyle",
    "ByteArrayStorageStyle",
    "JSONStorageStyle",
    # Vectors
    "AbstractHDF5Vector",
    "HDF5VectorIterator",
    "HDF5VectorOfElementalTypes",
    "HDF5VectorOfArrayishTypes",
    "HDF5VectorOfCompositeTypes",
    "HDF5VectorWithByteArrayStorage",
    "HDF5VectorWithJSONStorage",
    # Types and codecs
    "Char",
    "Dims",
    "fixed_array",
    "PickleCodec",
    "PydanticJSONCodec",
    # Config and errors
    "DEFAULT_CHUNK_LENGTH",
    "VectorOptions",
    "HDF5VectorError",
    "StorageStyleResolutionError",
    "DimensionMismatchError",
    "UnsupportedOperationError",
    "MetadataError",
]
