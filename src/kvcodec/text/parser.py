# File: src/kvcodec/text/parser.py
"""
Recursive-descent reader turning KeyValues text into a KvObject tree.

The grammar needs one token of lookahead (to see whether a conditional tag
follows a value), which PeekableIterator provides. Nesting is tracked with
an explicit stack of open objects rather than Python recursion, so deep
input is bounded by ``max_depth`` and never by the interpreter's stack.
"""

from __future__ import annotations

from dataclasses import dataclass

from kvcodec.base.types import PeekableIterator
from kvcodec.errors import KeyValuesSyntaxError, RecursionLimitExceeded
from kvcodec.model import KvObject
from kvcodec.options import default_max_depth
from kvcodec.text.lexer import Lexer, Token, TokenKind
from kvcodec.xlogging.logger_factory import create_logger


__all__ = ["Parser", "parse_text"]

LOG = create_logger(__name__)


@dataclass(slots=True)
class _OpenObject:
    parent: KvObject
    key: str
    condition: str | None


class Parser:
    """
    Parse a whole document.

    Keys may be followed by a ``[conditional]`` tag. A tag directly after a
    string value is also accepted and attaches to the same entry when the key
    carried none. Repeated keys append; nothing is overwritten.

    :param text: Source text.
    :param max_depth: Maximum brace nesting; defaults to KVCODEC_MAX_DEPTH or 256.
    """

    def __init__(self, text: str, max_depth: int | None = None) -> None:
        self.max_depth = max_depth if max_depth is not None else default_max_depth()
        self._tokens: PeekableIterator[Token] = PeekableIterator(Lexer(text))

    def parse(self) -> KvObject:
        """
        :return: The implicit root object.
        :raises KeyValuesSyntaxError: On any structural violation.
        :raises RecursionLimitExceeded: When braces nest deeper than max_depth.
        """
        stack: list[_OpenObject] = []
        current = KvObject()
        while True:
            token = next(self._tokens)
            if token.kind is TokenKind.EOF:
                if stack:
                    raise KeyValuesSyntaxError(token.position, "'}'", token.describe())
                LOG.trace("parsed %d root keys", len(current))
                return current
            if token.kind is TokenKind.CLOSE:
                if not stack:
                    raise KeyValuesSyntaxError(token.position, "a key", token.describe())
                frame = stack.pop()
                frame.parent.add(frame.key, current, frame.condition)
                current = frame.parent
                continue
            if token.kind is not TokenKind.STRING:
                raise KeyValuesSyntaxError(token.position, "a key", token.describe())

            key = token.text
            condition: str | None = None
            token = next(self._tokens)
            if token.kind is TokenKind.CONDITIONAL:
                condition = token.text
                token = next(self._tokens)

            if token.kind is TokenKind.OPEN:
                if len(stack) >= self.max_depth:
                    raise RecursionLimitExceeded(self.max_depth)
                stack.append(_OpenObject(current, key, condition))
                current = KvObject()
            elif token.kind is TokenKind.STRING:
                if condition is None and self._tokens.peek().kind is TokenKind.CONDITIONAL:
                    condition = next(self._tokens).text
                current.add(key, token.text, condition)
            else:
                raise KeyValuesSyntaxError(
                    token.position, f"a value or '{{' for key {key!r}", token.describe()
                )


def parse_text(text: str, max_depth: int | None = None) -> KvObject:
    """Parse `text` and return its root object."""
    return Parser(text, max_depth).parse()


# End of file: src/kvcodec/text/parser.py
