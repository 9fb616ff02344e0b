# File: src/kvcodec/text/lexer.py
"""
Tokenizer for KeyValues text.

Whitespace and line breaks only separate tokens. ``//`` outside a quoted
string starts a comment that runs to the end of the line. Tokens are the two
braces, quoted strings, unquoted runs, and ``[conditional]`` tags.

Escapes ``\\t``, ``\\n``, ``\\\\`` and ``\\"`` are decoded in quoted and
unquoted strings alike; any other backslash sequence is kept verbatim.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Final

from kvcodec.errors import KeyValuesSyntaxError
from kvcodec.model import Position


__all__ = [
    "Lexer",
    "Position",
    "Token",
    "TokenKind",
    "unescape",
]


class TokenKind(Enum):
    STRING = "string"
    OPEN = "open"
    CLOSE = "close"
    CONDITIONAL = "conditional"
    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str
    position: Position
    quoted: bool = False

    def describe(self) -> str:
        """Human-readable form used in syntax error messages."""
        match self.kind:
            case TokenKind.EOF:
                return "end of input"
            case TokenKind.OPEN:
                return "'{'"
            case TokenKind.CLOSE:
                return "'}'"
            case TokenKind.CONDITIONAL:
                return f"conditional [{self.text}]"
            case _:
                return f"string {self.text!r}"


_UNESCAPES: Final[dict[str, str]] = {"t": "\t", "n": "\n", "\\": "\\", '"': '"'}
_UNESCAPE_RX: Final[re.Pattern[str]] = re.compile(r'\\([tn\\"])')

_SKIP_RX: Final[re.Pattern[str]] = re.compile(r"(?:\s+|//[^\n]*)*")
_QUOTED_RX: Final[re.Pattern[str]] = re.compile(r'"((?:[^"\\]|\\.)*)"', re.DOTALL)
_UNQUOTED_RX: Final[re.Pattern[str]] = re.compile(r'(?:[^\s{}"\\/]|/(?!/)|\\[tn\\"]|\\)+')
_CONDITIONAL_RX: Final[re.Pattern[str]] = re.compile(r"\[([^\]\n]*)\]")


def unescape(raw: str) -> str:
    return _UNESCAPE_RX.sub(lambda m: _UNESCAPES[m.group(1)], raw)


class Lexer:
    """
    Iterate the tokens of `text`, ending with exactly one EOF token.

    :raises KeyValuesSyntaxError: On an unterminated string or conditional tag.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self._offset = 0
        self._line = 1
        self._column = 1

    @property
    def position(self) -> Position:
        return Position(self._offset, self._line, self._column)

    def _advance_to(self, end: int) -> None:
        newlines = self.text.count("\n", self._offset, end)
        if newlines:
            self._line += newlines
            self._column = end - self.text.rfind("\n", self._offset, end)
        else:
            self._column += end - self._offset
        self._offset = end

    def _skip_insignificant(self) -> None:
        m = _SKIP_RX.match(self.text, self._offset)
        if m and m.end() > self._offset:
            self._advance_to(m.end())

    def __iter__(self) -> Iterator[Token]:
        text = self.text
        while True:
            self._skip_insignificant()
            start = self.position
            if self._offset >= len(text):
                yield Token(TokenKind.EOF, "", start)
                return

            ch = text[self._offset]
            if ch == "{":
                self._advance_to(self._offset + 1)
                yield Token(TokenKind.OPEN, ch, start)
            elif ch == "}":
                self._advance_to(self._offset + 1)
                yield Token(TokenKind.CLOSE, ch, start)
            elif ch == '"':
                m = _QUOTED_RX.match(text, self._offset)
                if m is None:
                    self._advance_to(len(text))
                    raise KeyValuesSyntaxError(self.position, "closing '\"'", "end of input")
                self._advance_to(m.end())
                yield Token(TokenKind.STRING, unescape(m.group(1)), start, quoted=True)
            elif ch == "[":
                m = _CONDITIONAL_RX.match(text, self._offset)
                if m is None:
                    newline = text.find("\n", self._offset)
                    self._advance_to(len(text) if newline < 0 else newline)
                    found = "end of input" if newline < 0 else "end of line"
                    raise KeyValuesSyntaxError(self.position, "closing ']'", found)
                self._advance_to(m.end())
                yield Token(TokenKind.CONDITIONAL, m.group(1).strip(), start)
            else:
                m = _UNQUOTED_RX.match(text, self._offset)
                if m is None:
                    raise KeyValuesSyntaxError(start, "a token", repr(ch))
                self._advance_to(m.end())
                yield Token(TokenKind.STRING, unescape(m.group()), start)


# End of file: src/kvcodec/text/lexer.py
