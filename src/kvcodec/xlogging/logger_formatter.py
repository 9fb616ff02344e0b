# File: src/kvcodec/xlogging/logger_formatter.py

import logging
import os
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, Literal

import pytz
from colorama import Fore, Style

import kvcodec.base.config as cfg

from .logger_constants import K_COLOR, TRACE


__all__ = ["CoreFormatter", "get_color_code"]


FormatStyle = Literal["%", "{", "$"]
"""Format string style accepted by `CoreFormatter` (and `logging.Formatter`)."""


COLOR_MAP: dict[Any, str] = {
    "fileAndLine": Fore.CYAN,
    "TRACE": Fore.MAGENTA,
    "DEBUG": Style.DIM,
    "INFO": Fore.LIGHTWHITE_EX,
    "WARNING": Fore.YELLOW,
    "ERROR": Fore.LIGHTRED_EX,
    "CRITICAL": Fore.RED + Style.BRIGHT,
    None: Fore.RESET + Style.RESET_ALL,
}


def get_color_code(key: Any = None) -> str:
    """Return the colorama escape for a level name or role, or "" outside desktop mode."""
    if not cfg.in_desktop_mode():
        return ""
    if key in {"", "RESET"} or key is None:
        return COLOR_MAP[None]
    if key in COLOR_MAP:
        return COLOR_MAP[key]
    clean_key = str(key).upper()
    if clean_key in dir(Fore):
        return getattr(Fore, clean_key)
    return COLOR_MAP[None]


class CoreFormatter(logging.Formatter):
    """
    Formatter for CoreLogger records: coloured level names, project-relative
    file locations and timezone-aware timestamps.

    The timezone comes from the LOG_TIMEZONE environment variable (any pytz
    name) and defaults to UTC.
    """

    DEFAULT_FORMAT = "%(levelName)s %(asctime)s %(fileAndLine)s [%(name)s] %(message)s"
    DEFAULT_DATEFMT = "%H:%M:%S"

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: FormatStyle = "%",
        validate: bool = True,
        *,
        timezone: str | None = None,
    ) -> None:
        super().__init__(
            fmt=fmt or self.DEFAULT_FORMAT,
            datefmt=datefmt or self.DEFAULT_DATEFMT,
            style=style,
            validate=validate,
        )
        self.tz: tzinfo = pytz.timezone(timezone or os.environ.get("LOG_TIMEZONE", "UTC"))

    def format(self, record: logging.LogRecord) -> str:
        record.fileAndLine = self.format_fileAndLine(record.pathname, record.lineno)
        record.levelName = self.format_levelName(record.levelname)
        message = super().format(record)
        color_key = getattr(record, K_COLOR, record.levelname)
        if record.levelno <= TRACE or record.levelno >= logging.WARNING:
            message = get_color_code(color_key) + message + get_color_code()
        return message

    @staticmethod
    def format_file(file: str) -> str:
        """Return `file` relative to the working directory when possible."""
        if not file:
            return "<unknown file>"
        path = Path(file)
        try:
            return path.resolve().relative_to(Path.cwd().resolve()).as_posix()
        except (OSError, ValueError):
            return path.as_posix()

    def format_fileAndLine(self, file: str, lineno: int) -> str:
        return get_color_code("fileAndLine") + f"{self.format_file(file)}:{lineno}" + get_color_code()

    @staticmethod
    def format_levelName(levelname: str) -> str:
        return get_color_code(levelname) + levelname + get_color_code()

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = datetime.fromtimestamp(record.created, self.tz)
        if datefmt:
            return stamp.strftime(datefmt)
        return stamp.isoformat()


# End of file: src/kvcodec/xlogging/logger_formatter.py
