# File: src/kvcodec/text/formatter.py
"""
Token rendering for KeyValues text.

The Formatter contract is a handful of structural calls (keys, values,
braces, conditional tags, comments) that each write to a sink. The
serializer decides which call comes next; the formatter only decides how
each one looks: indentation, brace placement and quoting.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Final, Protocol

from kvcodec.options import BraceStyle, FormatOptions, Quoting


__all__ = [
    "Formatter",
    "PrettyFormatter",
    "TextSink",
    "escape",
    "is_macro_key",
    "needs_quotes",
]


MACRO_KEYS: Final[frozenset[str]] = frozenset({"#base", "#include"})

_ESCAPES: Final[dict[str, str]] = {
    "\t": "\\t",
    "\n": "\\n",
    "\\": "\\\\",
    '"': '\\"',
}
_ESCAPE_RX: Final[re.Pattern[str]] = re.compile(r'[\t\n\\"]')
_NEEDS_QUOTES_RX: Final[re.Pattern[str]] = re.compile(r'^\[|[{}"\s]|//')


class TextSink(Protocol):
    """Anything with ``write(str)``: a text file, ``io.StringIO``, a socket wrapper."""

    def write(self, s: str, /) -> object: ...


def escape(text: str) -> str:
    """Replace tab, newline, backslash and double quote with their escapes."""
    return _ESCAPE_RX.sub(lambda m: _ESCAPES[m.group()], text)


def needs_quotes(text: str) -> bool:
    """
    True when `text` cannot be written bare and read back unchanged.

    That is: empty, starting with ``[``, containing a brace, a double quote,
    whitespace, or a ``//`` comment marker.
    """
    return not text or _NEEDS_QUOTES_RX.search(text) is not None


def is_macro_key(key: str) -> bool:
    return key.lower() in MACRO_KEYS


def render(text: str, quoting: Quoting) -> str:
    escaped = escape(text)
    if quoting is Quoting.ALWAYS or needs_quotes(text):
        return f'"{escaped}"'
    return escaped


class Formatter:
    """
    Rendering contract used by the serializer.

    Every method takes the sink as its first argument. Subclasses choose the
    layout; this base class renders the most compact form the grammar allows.
    """

    def begin_object(self, w: TextSink) -> None:
        w.write(" {\n")

    def end_object(self, w: TextSink) -> None:
        w.write("}\n")

    def write_key(self, w: TextSink, key: str) -> None:
        w.write(render(key, Quoting.WHEN_REQUIRED))

    def write_macro_key(self, w: TextSink, key: str) -> None:
        self.write_key(w, key)

    def write_value(self, w: TextSink, value: str) -> None:
        w.write(" " + render(value, Quoting.WHEN_REQUIRED) + "\n")

    def write_root_value(self, w: TextSink, value: str) -> None:
        w.write(render(value, Quoting.WHEN_REQUIRED))

    def write_conditional(self, w: TextSink, condition: str) -> None:
        w.write(f" [{condition}]")

    def write_line_comment(self, w: TextSink, comment: str) -> None:
        w.write(f"// {comment}\n")


@dataclass(kw_only=True)
class PrettyFormatter(Formatter):
    """
    Indenting formatter driven by FormatOptions.

    With the default options:

        "Root"
        {
            "Key" "Value"
        }
    """

    options: FormatOptions = field(default_factory=FormatOptions)
    """Style policy: indent, separator, brace style, quoting."""

    depth: int = 0
    """Current indentation level; root entries are at level 0."""

    def _indentation(self) -> str:
        return self.options.indent * self.depth

    def begin_object(self, w: TextSink) -> None:
        if self.options.brace_style is BraceStyle.NEW_LINE:
            w.write("\n" + self._indentation() + "{\n")
        else:
            w.write(" {\n")
        self.depth += 1

    def end_object(self, w: TextSink) -> None:
        self.depth -= 1
        w.write(self._indentation() + "}\n")

    def write_key(self, w: TextSink, key: str) -> None:
        w.write(self._indentation() + render(key, self.options.quote_keys))

    def write_macro_key(self, w: TextSink, key: str) -> None:
        w.write(self._indentation() + render(key, self.options.quote_macro_keys))

    def write_value(self, w: TextSink, value: str) -> None:
        w.write(self.options.separator + render(value, self.options.quote_values) + "\n")

    def write_root_value(self, w: TextSink, value: str) -> None:
        w.write(render(value, self.options.quote_values))

    def write_line_comment(self, w: TextSink, comment: str) -> None:
        w.write(self._indentation() + f"// {comment}\n")


# End of file: src/kvcodec/text/formatter.py
