from typing import Tuple

import numpy as np
import numpy.typing as npt
import pytest

from hdf5_vectors import (
    DimensionMismatchError,
    HDF5VectorOfArrayishTypes,
    copy_to_hdf5_vector,
    create_hdf5_vector,
    fixed_array,
    load_hdf5_vector,
)
from tests.helpers.collection_checks import check_collection
from tests.helpers.element_types import Color


def test_fixed_dims_scenario(h5file):
    v = create_hdf5_vector(h5file, "vecs", list[float], dims=(3,))
    v.append([1, 2, 3])
    v.append([4, 5, 6])

    assert isinstance(v, HDF5VectorOfArrayishTypes)
    assert v.collect() == [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]
    assert h5file["vecs/data"].shape == (3, 2)
    assert h5file["vecs/data"].maxshape == (3, None)
    np.testing.assert_array_equal(h5file["vecs/data"][:, 1], [4.0, 5.0, 6.0])


def test_homogeneous_tuples(h5file):
    source = [(1.0, 2.0, 3.0), (4.0, 5.0, 6.0), (-1.0, 0.0, 1.0)]
    reloaded = check_collection(h5file, "xyz", source, Tuple[float, float, float])
    assert reloaded.dims == (3,)
    assert h5file["xyz/data"].shape == (3, 6)


def test_single_element_tuples(h5file):
    check_collection(h5file, "singles", [(1.5,), (2.5,)], tuple[float])
    assert h5file["singles/data"].shape == (1, 4)


def test_tuples_inferred_from_first_element(h5file):
    v = copy_to_hdf5_vector(h5file, "pairs", [(1, 2), (3, 4)])
    assert isinstance(v, HDF5VectorOfArrayishTypes)
    assert v.collect() == [(1, 2), (3, 4)]


def test_fixed_array_vectors(h5file):
    source = [np.arange(3, dtype=np.float64) + k for k in range(4)]
    check_collection(h5file, "arrs", source, fixed_array(np.float64, 3))
    assert h5file["arrs/data"].shape == (3, 8)


def test_fixed_array_matrices(h5file):
    source = [np.arange(6, dtype=np.int32).reshape(2, 3) * k for k in range(3)]
    reloaded = check_collection(h5file, "mats", source, fixed_array(np.int32, 2, 3))
    assert reloaded.dims == (2, 3)
    assert h5file["mats/data"].shape == (2, 3, 6)
    np.testing.assert_array_equal(h5file["mats/data"][..., 2], source[2])


def test_ndarray_collection_becomes_row_vector(h5file):
    block = np.arange(24, dtype=np.int16).reshape(4, 3, 2)
    v = copy_to_hdf5_vector(h5file, "rows", block)
    assert v.dims == (3, 2)
    assert len(v) == 4
    np.testing.assert_array_equal(v[1], block[1])
    assert v[1].dtype == np.int16


def test_nested_lists_with_dims(h5file):
    source = [[[1, 2, 3], [4, 5, 6]], [[7, 8, 9], [10, 11, 12]]]
    check_collection(h5file, "grids", source, list[list[int]], dims=(2, 3))


def test_string_tuples(h5file):
    check_collection(h5file, "names", [("ada", "lovelace"), ("alan", "turing")], tuple[str, str])


def test_enum_tuples(h5file):
    source = [(Color.RED, Color.BLUE), (Color.GREEN, Color.GREEN)]
    check_collection(h5file, "color_pairs", source, tuple[Color, Color])
    assert h5file["color_pairs/data"].dtype == np.dtype(np.int32)


def test_wrong_shape_is_rejected(h5file):
    v = create_hdf5_vector(h5file, "vecs", list[float], dims=(3,))
    v.append([1.0, 2.0, 3.0])
    with pytest.raises(DimensionMismatchError):
        v.append([1.0, 2.0])
    with pytest.raises(DimensionMismatchError):
        v.append([1.0, 2.0, 3.0, 4.0])
    with pytest.raises(DimensionMismatchError):
        v.extend([[1.0, 2.0, 3.0], [1.0]])
    assert len(v) == 1

    arrs = create_hdf5_vector(h5file, "arrs", fixed_array(np.float64, 2, 2))
    with pytest.raises(DimensionMismatchError):
        arrs.append(np.zeros(4))
    assert len(arrs) == 0


def test_set_item(h5file):
    v = copy_to_hdf5_vector(h5file, "xy", [(0.0, 0.0), (1.0, 1.0)], tuple[float, float])
    v[0] = (5.0, 6.0)
    assert v.collect() == [(5.0, 6.0), (1.0, 1.0)]
    with pytest.raises(DimensionMismatchError):
        v[1] = (1.0,)


def test_returned_arrays_are_copies(h5file):
    v = copy_to_hdf5_vector(h5file, "arrs", [np.zeros(2), np.ones(2)], fixed_array(np.float64, 2))
    first = v.collect()
    first[0][:] = 9.0
    np.testing.assert_array_equal(v[0], [0.0, 0.0])
    assert first[0].base is None


def test_dims_are_stored_and_reused(h5file):
    create_hdf5_vector(h5file, "ndarrays", npt.NDArray[np.float32], dims=(2, 2))
    meta = h5file["ndarrays/metadata"]
    assert bool(meta["dimensions_are_constant"][()])
    assert meta["dimensions"][()].tolist() == [2, 2]

    v = load_hdf5_vector(h5file["ndarrays"])
    assert v.dims == (2, 2)
    v.append(np.eye(2, dtype=np.float32))
    np.testing.assert_array_equal(v[0], np.eye(2))


def test_stored_shape_mismatch_on_load(h5file):
    create_hdf5_vector(h5file, "vecs", list[float], dims=(3,))
    with pytest.raises(DimensionMismatchError):
        load_hdf5_vector(h5file["vecs"], tuple[float, float])


def test_packed_layout_keeps_tuples_arraylike(h5file):
    source = [(1.0, 2.0, 3.0), (4.0, 5.0, 6.0)]
    v = copy_to_hdf5_vector(h5file, "xyz", source, tuple[float, float, float], portable=False)

    assert isinstance(v, HDF5VectorOfArrayishTypes)
    ds = h5file["xyz/data"]
    assert ds.shape == (3, 2)
    assert ds.dtype == np.dtype(np.float64)
    assert ds.dtype.names is None
    assert load_hdf5_vector(h5file["xyz"]).collect() == source


def test_elements_are_type_checked(h5file):
    v = create_hdf5_vector(h5file, "ints", tuple[int, int])
    with pytest.raises(TypeError):
        v.append((1, 2.5))
    with pytest.raises(TypeError):
        v.extend([(1, 2), ("3", 4)])
    assert len(v) == 0
    v.append((1, 2))
    with pytest.raises(TypeError):
        v[0] = (1.5, 2)
    assert v.collect() == [(1, 2)]


def test_length_is_tracked_on_the_handle(h5file):
    v = create_hdf5_vector(h5file, "xy", tuple[float, float])
    v.append((0.0, 1.0))
    v.extend([(2.0, 3.0), (4.0, 5.0)])
    assert len(v) == h5file["xy/data"].shape[-1] == 3
    assert len(load_hdf5_vector(h5file["xy"])) == 3
