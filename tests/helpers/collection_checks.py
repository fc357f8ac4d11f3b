"""Shared round-trip checks run against every storage style."""

from typing import Any, Sequence

import numpy as np

from hdf5_vectors import copy_to_hdf5_vector, iterable, load_hdf5_vector


def assert_same_values(actual: Sequence[Any], expected: Sequence[Any]) -> None:
    """Element-wise equality that also checks element types and ndarrays."""
    actual = list(actual)
    expected = list(expected)
    assert len(actual) == len(expected)
    for got, want in zip(actual, expected):
        assert_same_value(got, want)


def assert_same_value(got: Any, want: Any) -> None:
    if isinstance(want, np.ndarray):
        assert isinstance(got, np.ndarray)
        np.testing.assert_array_equal(got, want)
        return
    assert type(got) is type(want), f"{type(got)!r} != {type(want)!r}"
    assert got == want


def check_collection(group, name, source, el_type=None, **options):
    """Copy ``source`` into a vector and exercise every read path on it.

    Covers length, positive and negative indexing, ``collect``, ``iterable``,
    plain iteration, reload from metadata and appending after reload.
    Returns the reloaded vector.
    """
    source = list(source)
    registry = options.get("registry")
    vector = copy_to_hdf5_vector(group, name, source, el_type, **options)

    assert len(vector) == len(source)
    assert_same_values(vector.collect(), source)
    if source:
        assert_same_value(vector[0], source[0])
        assert_same_value(vector[-1], source[-1])
        for k in range(len(source)):
            assert_same_value(vector[k], vector.collect()[k])
    assert_same_values(list(iterable(vector)), source)
    assert_same_values(list(vector), source)

    reloaded = load_hdf5_vector(group[name], registry=registry)
    assert type(reloaded) is type(vector)
    assert reloaded.style == vector.style
    assert_same_values(reloaded.collect(), vector.collect())

    reloaded.extend(source)
    assert len(reloaded) == 2 * len(source)
    assert_same_values(reloaded.collect(), source + source)
    return reloaded
