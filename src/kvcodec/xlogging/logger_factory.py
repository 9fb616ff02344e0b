# File: src/kvcodec/xlogging/logger_factory.py
"""
Logger factory for creating and configuring CoreLogger instances.
"""

import logging
import sys
from pathlib import Path

from kvcodec.xlogging.core_logger import CoreLogger


def create_logger(
    name: str | None,
    *,
    level: int | str | None = None,
) -> CoreLogger:
    """
    Return a CoreLogger with a consistent name.

    Handles:
    - Normal imports (uses given name)
    - Direct script execution (__main__ becomes the script stem)
    - Loggers already registered under the name (reused; replaced if they are
      plain logging.Logger instances)
    """
    logger_name: str = name or ""
    if logger_name == "__main__" or not logger_name:
        arg0 = Path(sys.argv[0]) if sys.argv and sys.argv[0] else None
        logger_name = arg0.stem if arg0 else "kvcodec"

    existing = logging.Logger.manager.loggerDict.get(logger_name)
    if isinstance(existing, CoreLogger):
        if level is not None:
            existing.setLevel(level)
        return existing

    logger = _get_core_logger_from_logging(logger_name, replace=existing is not None)
    if level is not None:
        logger.setLevel(level)
    return logger


def _get_core_logger_from_logging(name: str, *, replace: bool = False) -> CoreLogger:
    """
    Create a CoreLogger through logging.getLogger().

    Temporarily sets CoreLogger as the logger class so the new logger joins
    the logging hierarchy (parent relationships, propagation). Without this,
    manually created loggers would have parent=None and break caplog.

    :param name: Logger name.
    :param replace: Drop a non-CoreLogger already registered under `name` first.
    :raises TypeError: If getLogger() returns wrong type.
    """
    if replace:
        logging.Logger.manager.loggerDict.pop(name, None)
    logging_class = logging.getLoggerClass()
    logging.setLoggerClass(CoreLogger)
    try:
        logger = logging.getLogger(name)
    finally:
        logging.setLoggerClass(logging_class)
    if not isinstance(logger, CoreLogger):
        raise TypeError(f"Failed to create CoreLogger: {logger!r}")
    return logger


# End of file: src/kvcodec/xlogging/logger_factory.py
