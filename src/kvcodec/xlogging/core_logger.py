# File: src/kvcodec/xlogging/core_logger.py
"""
Structured logging with environment-driven configuration.

Example:
    >>> from kvcodec.xlogging.logger_factory import create_logger
    >>> LOG = create_logger(__name__)
    >>> with LOG.prefix_with("[decode]"):
    ...     LOG.debug("root kind %s", "NESTED")

Design:
- Only the root logger owns handlers/formatters; CoreLogger instances propagate.
- Log levels are controlled per-logger (via environment and LogLevelConfig).
- initialize_root() is the only supported entry point for root setup; the
  codec never calls it, applications and tests do.
"""

from __future__ import annotations

import contextvars
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

from kvcodec.xlogging.logger_constants import TRACE, initialize_logger_constants
from kvcodec.xlogging.logger_formatter import CoreFormatter
from kvcodec.xlogging.logger_util import LogLevelConfig


__all__: list[str] = [
    "CoreLogger",
    "initialize_root",
]

_LOG_ROOT_ATTR_NAME = "_kvcodec_corelogger_initialized"

_log_prefix: contextvars.ContextVar[str] = contextvars.ContextVar("log_prefix", default="")


class CoreLogger(logging.Logger):
    """
    Application logger that extends logging.Logger with:

    - A TRACE level below DEBUG.
    - Levels resolved from the environment when none is given.
    - A prefix context manager for scoped message prefixes.

    Handlers are not attached directly; all CoreLogger instances propagate
    to the root logger, which holds a single stderr handler per initialize_root().
    """

    def __init__(
        self,
        name: str,
        level: int | str | None = logging.NOTSET,
    ) -> None:
        """
        Initialize the CoreLogger with a name and log level.

        :param name: The name of the logger, typically the module name.
        :param level: The initial log level. NOTSET means "ask LogLevelConfig".
        """
        initialize_logger_constants()
        if level in {logging.NOTSET, "NOTSET", "", None}:
            level = LogLevelConfig.get_instance().get_effective_level(name)
        super().__init__(name, level)

    def __repr__(self) -> str:
        level = self.getEffectiveLevel()
        return f"<{self.__class__.__name__} '{self.name}' {logging.getLevelName(level)}={level}>"

    def _log(self, level: int, msg: object, args: Any, **kwargs: Any) -> None:  # type: ignore[override]
        prefix = _log_prefix.get()
        if prefix:
            msg = f"{prefix}{msg}"
        kwargs["stacklevel"] = kwargs.get("stacklevel", 1) + 1
        super()._log(level, msg, args, **kwargs)

    def trace(self, msg: object, *args: Any, **kwargs: Any) -> None:
        """Log a message at TRACE level (below DEBUG)."""
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    @contextmanager
    def prefix_with(self, prefix: str) -> Iterator[None]:
        """
        Context manager to prefix all log messages within the current context.

        Supports nesting. Uses contextvars so concurrent calls keep their own
        prefixes.
        """
        formatted_prefix = prefix + " > "
        current_prefix = _log_prefix.get()
        token = _log_prefix.set(current_prefix + formatted_prefix)
        try:
            yield
        finally:
            _log_prefix.reset(token)


def initialize_root(
    fmt: str | None = None,
    datefmt: str | None = None,
    level: int | str | None = None,
    force: bool = False,
    stream: TextIO | None = None,
) -> None:
    """
    Idempotently configure the root logger for CoreLogger.

    Behavior:
    - Ensures exactly one stream handler with CoreFormatter exists for `stream`
      (default: sys.stderr).
    - If `force=True`, removes and recreates that handler.
    - Sets root level to `level` if provided, otherwise WARNING if NOTSET.
    - Does not modify other handlers owned by the host application.

    :param fmt: Format string. Defaults to LOG_FORMAT or CoreFormatter.DEFAULT_FORMAT.
    :param datefmt: Date format. Defaults to LOG_DATEFMT or CoreFormatter.DEFAULT_DATEFMT.
    :param level: Root logger level (int or name).
    :param force: Reinitialize even if already initialized.
    :param stream: Stream for the managed handler.
    """
    root: logging.Logger = logging.getLogger()
    if getattr(root, _LOG_ROOT_ATTR_NAME, False) and not force:
        return
    setattr(root, _LOG_ROOT_ATTR_NAME, True)

    initialize_logger_constants()
    target = stream or sys.stderr

    root.handlers = [
        h
        for h in root.handlers
        if not (isinstance(h, logging.StreamHandler) and isinstance(h.formatter, CoreFormatter))
    ]
    handler: logging.StreamHandler[TextIO] = logging.StreamHandler(target)
    handler.setFormatter(
        CoreFormatter(
            fmt or os.environ.get("LOG_FORMAT"),
            datefmt or os.environ.get("LOG_DATEFMT"),
        )
    )
    root.addHandler(handler)

    if level is not None:
        if isinstance(level, str):
            level = logging.getLevelNamesMapping().get(level.upper(), logging.WARNING)
        root.setLevel(level)
    elif root.getEffectiveLevel() == logging.NOTSET:
        root.setLevel(logging.WARNING)


# End of file: src/kvcodec/xlogging/core_logger.py
