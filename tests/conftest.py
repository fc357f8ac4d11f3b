"""Shared fixtures for the hdf5_vectors test suite."""

import itertools
import logging

import h5py
import pytest

from hdf5_vectors import StyleRegistry

_memory_files = itertools.count()


@pytest.fixture
def h5_path(tmp_path):
    return tmp_path / "vectors.h5"


@pytest.fixture
def h5file(h5_path):
    with h5py.File(h5_path, "w") as f:
        yield f


@pytest.fixture
def registry():
    """A private registry so registrations never leak into other tests."""
    return StyleRegistry.with_defaults()


def memory_file() -> h5py.File:
    """In-memory HDF5 file, usable inside hypothesis tests."""
    return h5py.File(
        f"memory-{next(_memory_files)}.h5", "w", driver="core", backing_store=False
    )


@pytest.fixture
def package_logger_state():
    """Restore the ``hdf5_vectors`` logger after tests that reconfigure it."""
    package_logger = logging.getLogger("hdf5_vectors")
    saved = (list(package_logger.handlers), package_logger.level, package_logger.propagate)
    yield package_logger
    package_logger.handlers, package_logger.level, package_logger.propagate = (
        saved[0],
        saved[1],
        saved[2],
    )
