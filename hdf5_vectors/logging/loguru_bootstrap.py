from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger as _logger

PACKAGE_LOGGER = "hdf5_vectors"


class InterceptHandler(logging.Handler):
    """Forward ``hdf5_vectors.*`` records to loguru.

    The record's logger name is bound as ``vector_module`` so sinks can
    filter on the library module that emitted it.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        # step past the logging module's own frames to the calling site
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        _logger.bind(vector_module=record.name).opt(
            depth=depth, exception=record.exc_info
        ).log(level, record.getMessage())


def _sink_options(level: str, serialize: bool) -> Dict[str, Any]:
    return {
        "level": level,
        "backtrace": False,
        "diagnose": False,
        "serialize": serialize,
    }


def setup_logging(
    *,
    level: str = "INFO",
    console: bool = True,
    file_path: Optional[str | Path] = None,
    rotation: Optional[str | int] = None,
    retention: Optional[str | int] = None,
    serialize: bool = False,
) -> None:
    """Show the library's create/load/resolution logs through loguru.

    Existing loguru sinks are replaced by a stderr sink (unless ``console`` is
    False) and, when ``file_path`` is given, a file sink with the given
    ``rotation`` and ``retention``. Only the ``hdf5_vectors`` logger tree is
    redirected, so applications keep their own stdlib handlers.
    """
    lvl = level.upper()
    options = _sink_options(lvl, serialize)
    _logger.remove()
    if console:
        _logger.add(sys.stderr, **options)
    if file_path:
        _logger.add(str(file_path), rotation=rotation, retention=retention, **options)
    _bridge_stdlib(level=lvl)


def _bridge_stdlib(level: str = "INFO", name: str = PACKAGE_LOGGER) -> None:
    """Attach exactly one ``InterceptHandler`` to the ``name`` logger."""
    package_logger = logging.getLogger(name)
    package_logger.handlers = [
        h for h in package_logger.handlers if not isinstance(h, InterceptHandler)
    ]
    package_logger.addHandler(InterceptHandler())
    package_logger.setLevel(getattr(logging, level, logging.INFO))
    package_logger.propagate = False
    prefix = name + "."
    for child in list(logging.Logger.manager.loggerDict):
        if child.startswith(prefix):
            child_logger = logging.getLogger(child)
            child_logger.handlers = []
            child_logger.propagate = True


def get_logger():
    """The loguru logger behind ``setup_logging``."""
    return _logger
