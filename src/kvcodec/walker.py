# File: src/kvcodec/walker.py
"""
Context-stack state machine shared by the text serializer and the tree builder.

The walker receives shape events from ``describe`` and keeps an explicit
stack of contexts telling it what the next event means:

- ``Root``: nothing is pending; a scalar here is a bare scalar document.
- ``AwaitingKey``: inside an object, the next event must be a map entry.
- ``BoundKey``: a key was chosen; the next value belongs to it.
- ``InSequence``: every element is written as a sibling pair under the key.

Every push and pop is checked; a transition the grammar cannot produce
raises SerializerStateError. The walk recurses through ``describe``, so each
walk raises the interpreter recursion limit by enough frames for
``max_depth`` braced objects before it starts. Subclasses supply the output side through the
``_emit_*``, ``_open_object`` and ``_close_object`` hooks.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final

from kvcodec.base.config import recursion_headroom
from kvcodec.errors import (
    KeyMustBeAString,
    NestedSequence,
    NonFiniteFloat,
    RecursionLimitExceeded,
    RootLevelSequence,
    SerializerStateError,
    UnsupportedType,
)
from kvcodec.model import RootKind
from kvcodec.shape import VariantKind, describe, type_config
from kvcodec.xlogging.logger_factory import create_logger


__all__ = [
    "AwaitingKey",
    "BoundKey",
    "Context",
    "InSequence",
    "Root",
    "ValueWalker",
    "format_scalar",
    "key_to_text",
    "stack_frames_for",
]

LOG = create_logger(__name__)

INT_MIN: Final = -(2**63)
INT_MAX: Final = 2**64 - 1
_FLOAT_INTEGRAL_LIMIT: Final = 1e16

# Upper bound on interpreter frames spent per nesting level by describe and TypeMapper.
FRAMES_PER_LEVEL: Final = 8


def stack_frames_for(max_depth: int) -> int:
    return FRAMES_PER_LEVEL * (max_depth + 2)


@dataclass(frozen=True, slots=True)
class Root:
    pass


@dataclass(frozen=True, slots=True)
class AwaitingKey:
    braced: bool


@dataclass(frozen=True, slots=True)
class BoundKey:
    key: str
    condition: str | None = None


@dataclass(frozen=True, slots=True)
class InSequence:
    key: str
    condition: str | None = None


type Context = Root | AwaitingKey | BoundKey | InSequence


def _int_text(value: int) -> str:
    if not INT_MIN <= value <= INT_MAX:
        raise UnsupportedType(f"integer {value} outside the 64-bit range")
    return str(value)


def format_scalar(value: str | bool | int | float) -> str:
    """
    Canonical, locale-independent text of a scalar.

    :raises NonFiniteFloat: For NaN and the infinities.
    :raises UnsupportedType: For integers outside [-2**63, 2**64 - 1].
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return _int_text(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise NonFiniteFloat(value)
        if value.is_integer() and abs(value) < _FLOAT_INTEGRAL_LIMIT:
            return str(int(value))
        return repr(value)
    raise UnsupportedType(type(value).__qualname__)


def key_to_text(key: Any) -> str:
    """
    Text form of a map key.

    :raises KeyMustBeAString: When the key has no lossless text form.
    """
    if isinstance(key, Enum):
        return key.name
    if isinstance(key, str):
        return key
    if isinstance(key, bool):
        return "1" if key else "0"
    if isinstance(key, int):
        try:
            return _int_text(key)
        except UnsupportedType as e:
            raise KeyMustBeAString(f"integer {key} outside the 64-bit range") from e
    raise KeyMustBeAString(type(key).__qualname__)


class ValueWalker:
    """
    ShapeVisitor that validates the event stream against the context stack.

    :param max_depth: Maximum object nesting before RecursionLimitExceeded.
    """

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self._stack: list[Context] = [Root()]
        self._depth = 0

    # -- output hooks --------------------------------------------------------

    def _emit_root_scalar(self, text: str) -> None:
        raise NotImplementedError

    def _emit_scalar(self, key: str, condition: str | None, text: str) -> None:
        raise NotImplementedError

    def _open_object(self, key: str | None, condition: str | None) -> None:
        """Start an object; `key` is None for the unbraced root object."""
        raise NotImplementedError

    def _close_object(self, braced: bool) -> None:
        raise NotImplementedError

    # -- stack ---------------------------------------------------------------

    @property
    def top(self) -> Context:
        return self._stack[-1]

    def _pop[C](self, expected: type[C]) -> C:
        top = self._stack[-1]
        if not isinstance(top, expected):
            raise SerializerStateError(f"cannot pop {expected.__name__}, top of stack is {top!r}")
        self._stack.pop()
        return top

    def walk(self, value: Any) -> None:
        """Describe `value` into this walker and check the stack unwound."""
        with recursion_headroom(stack_frames_for(self.max_depth)):
            describe(value, self)
        self._check_unwound()

    def walk_document(self, value: Any) -> None:
        """Walk `value` as a whole document, under its declared root key when it has one."""
        config = type_config(type(value))
        if config.root is RootKind.NESTED and config.key is not None:
            self.walk_with_key(config.key, value)
        else:
            self.walk(value)

    def walk_with_key(self, key: str, value: Any) -> None:
        """Describe `value` as the single entry of an unbraced root object under `key`."""
        self.begin_map()
        with recursion_headroom(stack_frames_for(self.max_depth)):
            self.visit_map_entry(key, value)
        self.end_map()
        self._check_unwound()

    def _check_unwound(self) -> None:
        if self._stack != [Root()]:
            raise SerializerStateError(f"walk ended with pending contexts {self._stack[1:]!r}")

    # -- ShapeVisitor --------------------------------------------------------

    def visit_scalar(self, value: str | bool | int | float) -> None:
        text = format_scalar(value)
        match self.top:
            case Root():
                self._emit_root_scalar(text)
            case BoundKey(key, condition):
                self._stack.pop()
                self._emit_scalar(key, condition, text)
            case InSequence(key, condition):
                self._emit_scalar(key, condition, text)
            case AwaitingKey():
                raise SerializerStateError(f"scalar {text!r} written where a key was expected")

    def visit_absent(self) -> None:
        match self.top:
            case Root():
                self._emit_root_scalar("")
            case BoundKey():
                self._stack.pop()
            case InSequence():
                pass
            case AwaitingKey():
                raise SerializerStateError("absent value written where a key was expected")

    def visit_bytes(self, value: bytes | bytearray | memoryview) -> None:
        raise UnsupportedType(type(value).__name__)

    def begin_sequence(self) -> None:
        match self.top:
            case Root():
                raise RootLevelSequence()
            case BoundKey(key, condition):
                self._stack.pop()
                self._stack.append(InSequence(key, condition))
            case InSequence(key, _):
                raise NestedSequence(key)
            case AwaitingKey():
                raise SerializerStateError("sequence written where a key was expected")

    def visit_sequence_element(self, value: Any) -> None:
        if not isinstance(self.top, InSequence):
            raise SerializerStateError(f"sequence element outside a sequence: {self.top!r}")
        describe(value, self)

    def end_sequence(self) -> None:
        self._pop(InSequence)

    def _enter_braced(self) -> None:
        if self._depth >= self.max_depth:
            raise RecursionLimitExceeded(self.max_depth)
        self._depth += 1

    def begin_map(self) -> None:
        match self.top:
            case Root():
                self._stack.append(AwaitingKey(braced=False))
                self._open_object(None, None)
            case BoundKey(key, condition):
                self._enter_braced()
                self._stack.pop()
                self._stack.append(AwaitingKey(braced=True))
                self._open_object(key, condition)
            case InSequence(key, condition):
                self._enter_braced()
                self._stack.append(AwaitingKey(braced=True))
                self._open_object(key, condition)
            case AwaitingKey():
                raise SerializerStateError("object written where a key was expected")

    def visit_map_entry(self, key: Any, value: Any, *, condition: str | None = None) -> None:
        awaiting = self.top
        if not isinstance(awaiting, AwaitingKey):
            raise SerializerStateError(f"map entry outside an object: {awaiting!r}")
        self._stack.append(BoundKey(key_to_text(key), condition))
        describe(value, self)
        if self.top is not awaiting:
            raise SerializerStateError(f"no value was written for key {key!r}")

    def end_map(self) -> None:
        awaiting = self._pop(AwaitingKey)
        if awaiting.braced:
            self._depth -= 1
        self._close_object(awaiting.braced)

    def visit_variant(self, name: str, kind: VariantKind, payload: Any) -> None:
        if kind is VariantKind.UNIT:
            self.visit_scalar(name)
            return
        if kind is VariantKind.TUPLE:
            payload = list(payload)
        LOG.trace("variant %s (%s)", name, kind.value)
        self.begin_map()
        self.visit_map_entry(name, payload)
        self.end_map()


# End of file: src/kvcodec/walker.py
