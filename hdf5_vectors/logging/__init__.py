"""Optional loguru sinks for the library's stdlib log records.

The library itself only logs through ``logging.getLogger(__name__)`` and
never configures handlers on import. Applications that want loguru output
call ``setup_logging`` once.
"""

from .loguru_bootstrap import InterceptHandler, get_logger, setup_logging

__all__ = ["InterceptHandler", "get_logger", "setup_logging"]
