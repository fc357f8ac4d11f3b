import logging
from fractions import Fraction
from typing import Tuple

import numpy as np
import pytest

from hdf5_vectors import (
    DimensionMismatchError,
    HDF5VectorOfCompositeTypes,
    HDF5VectorWithByteArrayStorage,
    UnsupportedOperationError,
    HDF5VectorOfElementalTypes,
    copy_to_hdf5_vector,
    create_hdf5_vector,
    load_hdf5_vector,
)
from tests.helpers.collection_checks import check_collection
from tests.helpers.element_types import (
    Labeled,
    Measurement,
    Pair,
    Particle,
    Point,
    Segment,
    Tagged,
)

PORTABILITY = pytest.mark.parametrize("portable", [True, False], ids=["portable", "packed"])


def test_two_field_record_scenario(h5file):
    v = create_hdf5_vector(h5file, "pairs", Pair)
    v.append(Pair(a=1, b=2.0))
    v.append(Pair(a=3, b=4.0))

    assert isinstance(v, HDF5VectorOfCompositeTypes)
    assert list(v.children) == ["a", "b"]
    assert [len(child) for child in v.children.values()] == [2, 2]
    assert v[1] == Pair(a=3, b=4.0)
    assert h5file["pairs/data/a/data"][()].tolist() == [1, 3]
    assert h5file["pairs/data/b/data"][()].tolist() == [2.0, 4.0]


def test_children_are_standalone_vectors(h5file):
    copy_to_hdf5_vector(h5file, "pairs", [Pair(1, 2.0), Pair(3, 4.0)])
    assert load_hdf5_vector(h5file["pairs/data/a"]).collect() == [1, 3]
    meta = h5file["pairs/metadata"]
    assert not bool(meta["dimensions_are_constant"][()])


@PORTABILITY
def test_complex_numbers(h5file, portable):
    check_collection(h5file, "z", [1 + 2j, -0.5j, 3.0 + 0j], complex, portable=portable)


@PORTABILITY
def test_fractions(h5file, portable):
    source = [Fraction(1, 3), Fraction(-7, 2), Fraction(5)]
    check_collection(h5file, "q", source, portable=portable)


@PORTABILITY
def test_heterogeneous_tuples(h5file, portable):
    source = [(1, "one", 1.0), (2, "two", 2.0)]
    reloaded = check_collection(
        h5file, "rows", source, Tuple[int, str, float], portable=portable
    )
    assert isinstance(reloaded, HDF5VectorOfCompositeTypes)
    assert list(h5file["rows/data"]) == ["0", "1", "2"]


@PORTABILITY
def test_named_tuples(h5file, portable):
    check_collection(h5file, "points", [Point(0.0, 1.0), Point(2.5, -3.5)], portable=portable)


@PORTABILITY
def test_nested_records(h5file, portable):
    source = [
        Segment(Point(0.0, 0.0), Point(1.0, 1.0), 0.5),
        Segment(Point(-1.0, 2.0), Point(3.0, 4.0), 2.0),
    ]
    check_collection(h5file, "segments", source, portable=portable)


@PORTABILITY
def test_records_with_variable_width_fields(h5file, portable):
    source = [Labeled("first", 1), Labeled("second", 2)]
    reloaded = check_collection(h5file, "labeled", source, portable=portable)
    assert isinstance(reloaded, HDF5VectorOfCompositeTypes)


@PORTABILITY
def test_pydantic_models(h5file, portable):
    source = [
        Particle(name="e", position=(0.0, 1.0, 2.0), charge=-1),
        Particle(name="p", position=(3.0, 4.0, 5.0), charge=1),
    ]
    check_collection(h5file, "particles", source, portable=portable)


@PORTABILITY
def test_single_field_tuples(h5file, portable):
    check_collection(h5file, "t", [(1.0,), (2.0,)], tuple[float], portable=portable)


def test_packed_layout_is_one_compound_dataset(h5file):
    v = copy_to_hdf5_vector(h5file, "points", [Point(1.0, 2.0)], portable=False)
    assert isinstance(v, HDF5VectorOfElementalTypes)
    ds = h5file["points/data"]
    assert ds.dtype.names == ("x", "y")
    assert ds[0]["y"] == 2.0
    assert not bool(h5file["points/metadata/portable"][()])


def test_portable_flag_propagates_to_children(h5file):
    v = create_hdf5_vector(h5file, "segments", Segment, portable=True, chunk_length=8)
    start = v.children["start"]
    assert isinstance(start, HDF5VectorOfCompositeTypes)
    assert start.children["x"].options.chunk_length == 8

    mixed = create_hdf5_vector(h5file, "mixed", tuple[str, Point], portable=False)
    assert isinstance(mixed, HDF5VectorOfCompositeTypes)
    assert isinstance(mixed.children["1"], HDF5VectorOfElementalTypes)
    assert h5file["mixed/data/1/data"].dtype.names == ("x", "y")


def test_set_item(h5file):
    v = copy_to_hdf5_vector(h5file, "pairs", [Pair(1, 1.0), Pair(2, 2.0)])
    v[-1] = Pair(20, 20.0)
    assert v.collect() == [Pair(1, 1.0), Pair(20, 20.0)]


def test_malformed_value_mutates_nothing(h5file):
    v = copy_to_hdf5_vector(h5file, "rows", [(1, "a")], tuple[int, str])
    with pytest.raises(ValueError):
        v.append((2, "b", "extra"))
    with pytest.raises(ValueError):
        v.extend([(2, "b"), (3,)])
    assert [len(child) for child in v.children.values()] == [1, 1]


def test_partial_append_failure_is_logged_and_propagated(h5file, caplog):
    v = create_hdf5_vector(h5file, "measurements", Measurement)
    v.append(Measurement(1.0, (1.0, 2.0)))

    with caplog.at_level(logging.ERROR, logger="hdf5_vectors"):
        with pytest.raises(DimensionMismatchError):
            v.append(Measurement(2.0, (1.0, 2.0, 3.0)))

    assert "samples" in caplog.text
    assert len(v.children["value"]) == 2
    assert len(v.children["samples"]) == 1
    assert len(v) == 1
    assert v.collect() == [Measurement(1.0, (1.0, 2.0))]


def test_unequal_children_warn_on_load(h5file, caplog):
    v = copy_to_hdf5_vector(h5file, "pairs", [Pair(1, 1.0)])
    v.children["a"].append(2)

    with caplog.at_level(logging.WARNING, logger="hdf5_vectors"):
        reloaded = load_hdf5_vector(h5file["pairs"])
    assert "unequal length" in caplog.text
    assert len(reloaded) == 1


def test_collect_reads_each_child_once(h5file, monkeypatch):
    v = copy_to_hdf5_vector(h5file, "pairs", [Pair(k, float(k)) for k in range(5)])
    calls = []
    for child in v.children.values():
        original = child._read_range

        def counting(start, stop, _original=original):
            calls.append((start, stop))
            return _original(start, stop)

        monkeypatch.setattr(child, "_read_range", counting)

    assert v.collect() == [Pair(k, float(k)) for k in range(5)]
    assert calls == [(0, 5), (0, 5)]


def test_numpy_complex_stays_elemental(h5file):
    source = [np.complex128(1 + 1j), np.complex128(2 - 1j)]
    v = copy_to_hdf5_vector(h5file, "z", source)
    assert isinstance(v, HDF5VectorOfElementalTypes)
    assert v.collect() == source


def test_set_item_with_serialized_field_writes_nothing(h5file):
    v = copy_to_hdf5_vector(h5file, "tagged", [Tagged(1, {1}), Tagged(2, {2})])
    assert isinstance(v.children["tags"], HDF5VectorWithByteArrayStorage)

    with pytest.raises(UnsupportedOperationError):
        v[0] = Tagged(99, {3})

    assert v.collect() == [Tagged(1, {1}), Tagged(2, {2})]
    assert h5file["tagged/data/a/data"][()].tolist() == [1, 2]


def test_set_item_with_nested_serialized_field_writes_nothing(h5file):
    source = [(Tagged(1, {1}), 1.0)]
    v = copy_to_hdf5_vector(h5file, "nested", source, tuple[Tagged, float])

    with pytest.raises(UnsupportedOperationError):
        v[0] = (Tagged(5, {5}), 5.0)
    assert v.collect() == source


def test_set_item_with_bad_later_field_writes_nothing(h5file):
    v = copy_to_hdf5_vector(h5file, "measurements", [Measurement(1.0, (1.0, 2.0))])

    with pytest.raises(DimensionMismatchError):
        v[0] = Measurement(9.0, (1.0, 2.0, 3.0))
    with pytest.raises(TypeError):
        v[0] = Measurement(9.0, (1.0, "two"))

    assert v.collect() == [Measurement(1.0, (1.0, 2.0))]
