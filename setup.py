"""
setuptools script for the hdf5-vectors package.

The version is read from ``hdf5_vectors/__init__.py`` without importing the
package, and dependencies come from ``requirements.txt`` (runtime) and
``requirements-dev.txt`` (the ``test`` and ``dev`` extras).
"""

import pathlib
import re

import setuptools

HERE = pathlib.Path(__file__).parent
PACKAGE_DIR = HERE / 'hdf5_vectors'
README_PATH = HERE / 'README.md'
REQUIREMENTS_PATH = HERE / 'requirements.txt'
DEV_REQUIREMENTS_PATH = HERE / 'requirements-dev.txt'

PACKAGE_NAME = 'hdf5-vectors'
DESCRIPTION = 'Growable, self-describing vectors of typed elements stored in HDF5 files'
LICENSE = 'MIT'

KEYWORDS = ['hdf5', 'h5py', 'serialization', 'storage', 'scientific computing']

CLASSIFIERS = [
    'Development Status :: 3 - Alpha',
    'Intended Audience :: Science/Research',
    'Topic :: Scientific/Engineering',
    'License :: OSI Approved :: MIT License',
    'Programming Language :: Python :: 3',
    'Programming Language :: Python :: 3.11',
    'Programming Language :: Python :: 3.12',
    'Programming Language :: Python :: 3.13',
]


def read_requirements(requirements_file: pathlib.Path) -> list:
    """
    Parse a requirements file into setuptools requirement strings.

    Blank lines and comments (whole-line or inline) are dropped. A missing
    file yields an empty list.
    """
    if not requirements_file.exists():
        return []

    requirements = []
    for line in requirements_file.read_text(encoding='utf-8').splitlines():
        line = line.split('#')[0].strip()
        if line:
            requirements.append(line)
    return requirements


def read_long_description() -> str:
    if README_PATH.exists():
        return README_PATH.read_text(encoding='utf-8')
    return DESCRIPTION


def get_version_from_package() -> str:
    """Extract ``__version__`` from the package ``__init__.py`` source."""
    source = (PACKAGE_DIR / '__init__.py').read_text(encoding='utf-8')
    match = re.search(r'^__version__\s*=\s*[\'"]([^\'"]+)[\'"]', source, re.MULTILINE)
    if match is None:
        raise RuntimeError('Unable to find __version__ in hdf5_vectors/__init__.py')
    return match.group(1)


def setup_package():
    install_requires = read_requirements(REQUIREMENTS_PATH)
    dev_requirements = read_requirements(DEV_REQUIREMENTS_PATH)

    setuptools.setup(
        name=PACKAGE_NAME,
        version=get_version_from_package(),
        description=DESCRIPTION,
        long_description=read_long_description(),
        long_description_content_type='text/markdown',
        license=LICENSE,
        keywords=KEYWORDS,
        classifiers=CLASSIFIERS,
        packages=setuptools.find_packages(include=['hdf5_vectors', 'hdf5_vectors.*']),
        install_requires=install_requires,
        extras_require={
            'test': dev_requirements,
            'dev': dev_requirements,
        },
        python_requires='>=3.11',
        zip_safe=False,
    )


if __name__ == '__main__':
    setup_package()
