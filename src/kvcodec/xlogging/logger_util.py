# File: src/kvcodec/xlogging/logger_util.py
"""
Log levels taken from the environment.

Two kinds of variable are read:

- ``LOG_LEVEL`` / ``LOG_LEVELS`` hold a list of ``pattern=level`` assignments,
  for example ``LOG_LEVELS="warning; kvcodec.text.*=debug; kvcodec.mapper=trace"``.
  A bare level sets the default.
- ``LOG_LEVEL_<MODULE>`` sets one logger subtree, e.g. ``LOG_LEVEL_KVCODEC_TEXT_PARSER``.
  In the suffix ``_`` stands for ``.`` and ``__`` for a literal underscore.

A ``.env`` file found from the working directory is loaded first with
python-dotenv; variables already set in the process win.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import ClassVar, Final, NamedTuple

import dotenv

from kvcodec.xlogging.logger_constants import initialize_logger_constants


__all__ = ["LogEnvVar", "LogLevelConfig", "reset_log_level_config"]

_ASSIGNMENT_SPLIT_RX: Final[re.Pattern[str]] = re.compile(r"[;, ]+")
_ASSIGNMENT_RX: Final[re.Pattern[str]] = re.compile(r"^(?:(?P<pattern>[^:=]*)[:=]+)?(?P<level>.*)$")
_GLOB_CHARS: Final = "*?["

_log_level_config_instance: LogLevelConfig | None = None


def load_dotenv_once() -> bool:
    """Load a ``.env`` file found from the working directory, if any."""
    path = dotenv.find_dotenv(usecwd=True)
    return bool(path) and dotenv.load_dotenv(dotenv_path=path, override=False)


def _level_from_text(text: str) -> int | None:
    if text.isdigit():
        return int(text) or None
    initialize_logger_constants()
    level = logging.getLevelNamesMapping().get(text.upper())
    return level or None


def _unquote(text: str) -> str:
    return text.strip().strip("'\"")


@dataclass(slots=True)
class LogEnvVar:
    """One ``LOG_LEVEL*`` variable with the logger subtree its name targets."""

    NAME_RX: ClassVar[re.Pattern[str]] = re.compile(r"^LOG_LEVELS?(?P<suffix>(?:_[A-Z][A-Z0-9_]*)?)$")

    name: str = field(default="", repr=False)
    module: str = ""
    value: str = field(default="", repr=False)

    @classmethod
    def from_env_var(cls, name: str, value: str) -> LogEnvVar | None:
        """Return the parsed variable, or None when `name` is not a log-level variable."""
        m = cls.NAME_RX.match(name)
        if m is None:
            return None
        suffix = m["suffix"].lstrip("_")
        module = ""
        if suffix and suffix.upper() != "ROOT":
            module = ".".join(part.lower() for part in suffix.split("__")[0].split("_"))
            for rest in suffix.split("__")[1:]:
                module += "_" + ".".join(part.lower() for part in rest.split("_"))
        return cls(name=name, module=module, value=value)

    @classmethod
    def from_environ(cls) -> Iterator[LogEnvVar]:
        """Yield every log-level variable in the environment."""
        load_dotenv_once()
        for name in sorted(os.environ, reverse=True):
            var = cls.from_env_var(name, os.environ[name])
            if var is not None:
                yield var


class LogEnvPatternLevel(NamedTuple):
    pattern: str
    level: int


@dataclass(slots=True)
class LogLevelConfig:
    """
    Logger-name patterns mapped to levels.

    Lookup order: exact name, nearest ancestor, the glob with the longest
    fixed prefix, the default pattern ``""``, then the caller's default.
    Names compare case-insensitively.
    """

    pattern_to_level: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.pattern_to_level:
            self.update_from_environment()

    def update_from_environment(self) -> None:
        self.pattern_to_level.clear()
        for var in LogEnvVar.from_environ():
            self.pattern_to_level.update(self.parse_log_var(var))

    def parse_log_var(self, var: LogEnvVar) -> Iterator[LogEnvPatternLevel]:
        """Yield the assignments of one variable; unknown level names are dropped."""
        for fragment in _ASSIGNMENT_SPLIT_RX.split(var.value.strip()):
            m = _ASSIGNMENT_RX.match(fragment)
            if not fragment or m is None:
                continue
            pattern = _unquote(m["pattern"] or "")
            level = _level_from_text(_unquote(m["level"]))
            if level is None:
                continue
            if var.module:
                pattern = var.module if pattern in ("", "root") else f"{var.module}.{pattern}"
            yield LogEnvPatternLevel("" if pattern.lower() == "root" else pattern, level)

    def get_effective_level(self, logger_name: str, *, default: int = logging.WARNING) -> int:
        levels = {k.lower(): v for k, v in self.pattern_to_level.items()}
        name = logger_name.lower()

        candidate: str | None = name
        while candidate:
            if candidate in levels:
                return levels[candidate]
            candidate = candidate.rpartition(".")[0] or None

        globs = [p for p in levels if p and any(ch in p for ch in _GLOB_CHARS) and fnmatch.fnmatch(name, p)]
        if globs:
            return levels[max(globs, key=self._fixed_prefix_length)]
        return levels.get("", default)

    @staticmethod
    def _fixed_prefix_length(pattern: str) -> int:
        return min((i for i, ch in enumerate(pattern) if ch in _GLOB_CHARS), default=len(pattern))

    @classmethod
    def get_instance(cls) -> LogLevelConfig:
        """Return the process-wide configuration, reading the environment on first use."""
        global _log_level_config_instance
        if _log_level_config_instance is None:
            _log_level_config_instance = cls()
        return _log_level_config_instance


def reset_log_level_config() -> None:
    """Forget the shared configuration so the next lookup re-reads the environment."""
    global _log_level_config_instance
    _log_level_config_instance = None


# End of file: src/kvcodec/xlogging/logger_util.py
