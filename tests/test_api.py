import zlib
from dataclasses import dataclass

import numpy as np
import pytest

from hdf5_vectors import (
    AbstractHDF5VectorStorageStyle,
    ByteArrayStorageStyle,
    HDF5VectorOfCompositeTypes,
    HDF5VectorWithByteArrayStorage,
    StorageStyleResolutionError,
    copy_to_hdf5_vector,
    create_hdf5_vector,
    load_hdf5_vector,
    register_vector_class,
)
from hdf5_vectors import api
from hdf5_vectors.api import vector_class
from tests.helpers.element_types import Point


@dataclass(frozen=True)
class CompressedStyle(ByteArrayStorageStyle):
    pass


class CompressedVector(HDF5VectorWithByteArrayStorage):
    def _encode(self, value):
        return zlib.compress(super()._encode(value))

    def _decode(self, payload):
        return super()._decode(zlib.decompress(payload))


@pytest.fixture
def vector_classes(monkeypatch):
    monkeypatch.setattr(api, "_VECTOR_CLASSES", dict(api._VECTOR_CLASSES))


def test_plugged_in_vector_class(h5file, registry, vector_classes):
    register_vector_class(CompressedStyle, CompressedVector)
    registry.register_storage_style(Point, CompressedStyle())

    v = copy_to_hdf5_vector(h5file, "points", [Point(1.0, 2.0)] * 50, registry=registry)
    assert isinstance(v, CompressedVector)
    assert v.collect() == [Point(1.0, 2.0)] * 50

    reloaded = load_hdf5_vector(h5file["points"], registry=registry)
    assert isinstance(reloaded, CompressedVector)
    assert reloaded[-1] == Point(1.0, 2.0)


def test_style_subclasses_use_parent_vector_class():
    assert vector_class(CompressedStyle()) is HDF5VectorWithByteArrayStorage


def test_unknown_style_class_is_rejected(vector_classes):
    @dataclass(frozen=True)
    class Unplugged(AbstractHDF5VectorStorageStyle):
        pass

    with pytest.raises(StorageStyleResolutionError):
        vector_class(Unplugged())
    with pytest.raises(TypeError):
        register_vector_class(int, CompressedVector)


def test_copy_infers_heterogeneous_tuple_types(h5file):
    v = copy_to_hdf5_vector(h5file, "rows", [(1, "a"), (2, "b")])
    assert isinstance(v, HDF5VectorOfCompositeTypes)
    assert v.collect() == [(1, "a"), (2, "b")]


def test_copy_from_generator(h5file):
    v = copy_to_hdf5_vector(h5file, "squares", (k * k for k in range(5)))
    assert v.collect() == [0, 1, 4, 9, 16]


def test_copy_of_empty_collection_needs_a_type(h5file):
    with pytest.raises(ValueError):
        copy_to_hdf5_vector(h5file, "empty", [])
    assert len(copy_to_hdf5_vector(h5file, "empty", [], float)) == 0


def test_copy_passes_options_through(h5file):
    v = copy_to_hdf5_vector(
        h5file, "vecs", np.zeros((3, 4)), chunk_length=2, portable=False
    )
    assert v.dims == (4,)
    assert h5file["vecs/data"].chunks == (4, 2)
    assert not v.options.portable


def test_create_in_nested_groups(h5file):
    grp = h5file.create_group("runs/run-1")
    v = create_hdf5_vector(grp, "ints", int)
    v.append(1)
    assert load_hdf5_vector(h5file["runs/run-1/ints"]).collect() == [1]


def test_duplicate_names_are_rejected_by_h5py(h5file):
    create_hdf5_vector(h5file, "ints", int)
    with pytest.raises(ValueError):
        create_hdf5_vector(h5file, "ints", int)


def test_repr(h5file):
    v = copy_to_hdf5_vector(h5file, "ints", [1, 2])
    assert repr(v) == "HDF5VectorOfElementalTypes('/ints', el_type=int, length=2)"
