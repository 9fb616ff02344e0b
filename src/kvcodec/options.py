# File: src/kvcodec/options.py
"""
Immutable option objects for encoding (style) and decoding (policy).

No process-wide defaults exist: callers pass an options object, or the entry
points build a fresh default one per call. The default ``max_depth`` is read
from ``KVCODEC_MAX_DEPTH`` when the object is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Self

from kvcodec.base.config import env_int


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "BraceStyle",
    "DecodeOptions",
    "FormatOptions",
    "Quoting",
    "UnknownFields",
    "default_max_depth",
]


DEFAULT_MAX_DEPTH = 256


def default_max_depth() -> int:
    return env_int("KVCODEC_MAX_DEPTH", DEFAULT_MAX_DEPTH)


class BraceStyle(Enum):
    NEW_LINE = "new_line"
    """Opening brace on its own line at the current indent (Allman)."""

    SAME_LINE = "same_line"
    """Opening brace after the key, separated by one space (K&R)."""


class Quoting(Enum):
    ALWAYS = "always"
    WHEN_REQUIRED = "when_required"


class UnknownFields(Enum):
    IGNORE = "ignore"
    REJECT = "reject"


@dataclass(frozen=True, kw_only=True)
class FormatOptions:
    """
    Style policy for the text encoder.

    The defaults produce the conventional layout: four-space indent, braces
    on their own lines, every key and value quoted.
    """

    indent: str = "    "
    separator: str = " "
    brace_style: BraceStyle = BraceStyle.NEW_LINE
    quote_keys: Quoting = Quoting.ALWAYS
    quote_values: Quoting = Quoting.ALWAYS
    quote_macro_keys: Quoting = Quoting.ALWAYS
    max_depth: int = field(default_factory=default_max_depth)

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if not self.separator:
            raise ValueError("separator must not be empty")

    @classmethod
    def compact(cls, **overrides: object) -> Self:
        """Quote only when required, braces on the key's line."""
        base = cls(
            brace_style=BraceStyle.SAME_LINE,
            quote_keys=Quoting.WHEN_REQUIRED,
            quote_values=Quoting.WHEN_REQUIRED,
            quote_macro_keys=Quoting.WHEN_REQUIRED,
        )
        return replace(base, **overrides) if overrides else base


@dataclass(frozen=True, kw_only=True)
class DecodeOptions:
    """Policy for the parser and the type mapper."""

    unknown_fields: UnknownFields = UnknownFields.IGNORE
    max_depth: int = field(default_factory=default_max_depth)

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")


# End of file: src/kvcodec/options.py
