# File: src/kvcodec/errors.py
"""
Exception hierarchy for the KeyValues codec.

Every failure raised by the encoder, the parser and the type mapper derives
from KeyValuesError, so callers can catch the whole family with one clause.
The first error wins: nothing is retried and no partial result is returned.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from kvcodec.model import Position


__all__ = [
    "DecodeError",
    "InvalidScalar",
    "KeyMustBeAString",
    "KeyValuesError",
    "KeyValuesSyntaxError",
    "KvIoError",
    "MissingField",
    "MultipleRootKeys",
    "NestedSequence",
    "NonFiniteFloat",
    "RecursionLimitExceeded",
    "RootLevelSequence",
    "SerializerStateError",
    "ShapeMismatch",
    "UnknownField",
    "UnknownVariant",
    "UnsupportedKey",
    "UnsupportedType",
]


class KeyValuesError(Exception):
    """Base class of all codec errors."""


class KvIoError(KeyValuesError, OSError):
    """The caller's sink or source failed; the original exception is chained as __cause__."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        self.operation = operation
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"I/O error while {operation}{detail}")


class UnsupportedType(KeyValuesError):
    """A value has no KeyValues representation (bytes, huge integers, opaque objects)."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"unsupported type: {description}")


class RootLevelSequence(KeyValuesError):
    """A sequence was written where no key is pending (at the document root)."""

    def __init__(self) -> None:
        super().__init__("a sequence cannot be written at the document root without a key")


class NestedSequence(KeyValuesError):
    """A sequence appeared directly inside another sequence."""

    def __init__(self, key: str | None = None) -> None:
        self.key = key
        where = f" under key {key!r}" if key is not None else ""
        super().__init__(f"sequences cannot be nested directly inside sequences{where}")


class NonFiniteFloat(KeyValuesError):
    """NaN and the infinities have no canonical text form."""

    def __init__(self, value: float) -> None:
        self.value = value
        super().__init__(f"non-finite float {value!r} cannot be encoded")


class KeyMustBeAString(KeyValuesError):
    """A map key has no lossless textual form."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"map key must be string-like, got {description}")


class MultipleRootKeys(KeyValuesError):
    """A nested document was expected but the text has several top-level entries."""

    def __init__(self, keys: Sequence[str]) -> None:
        self.keys = list(keys)
        super().__init__(f"expected a single root entry, found {len(self.keys)}: {self.keys!r}")


class UnsupportedKey(KeyValuesError):
    """The single root key of a nested document is not the declared one."""

    def __init__(self, found: str, expected: str | None = None) -> None:
        self.found = found
        self.expected = expected
        if expected is None:
            super().__init__(f"unsupported root key {found!r}")
        else:
            super().__init__(f"unsupported root key {found!r}, expected {expected!r}")


class KeyValuesSyntaxError(KeyValuesError):
    """The text does not follow the KeyValues grammar."""

    def __init__(self, position: Position, expectation: str, found: str) -> None:
        self.position = position
        self.expectation = expectation
        self.found = found
        super().__init__(f"line {position.line}, column {position.column}: expected {expectation}, found {found}")


class RecursionLimitExceeded(KeyValuesError):
    """Nesting went deeper than the configured max_depth."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"nesting exceeds the maximum depth of {limit}")


class SerializerStateError(KeyValuesError):
    """The encoder context stack was asked for a transition that cannot happen."""


class DecodeError(KeyValuesError):
    """
    A value tree does not fit the requested target type.

    :param path: Key path to the offending value, e.g. ``Cats.Cat[1].Age``.
    :param message: What went wrong at that path.
    """

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path or '<root>'}: {message}")


class MissingField(DecodeError):
    """A required struct field has no entry."""

    def __init__(self, path: str, field: str) -> None:
        self.field = field
        super().__init__(path, f"missing field {field!r}")


class UnknownField(DecodeError):
    """An entry has no matching field and unknown fields are rejected."""

    def __init__(self, path: str, field: str, expected: Sequence[str] = ()) -> None:
        self.field = field
        self.expected = list(expected)
        super().__init__(path, f"unknown field {field!r}, expected one of {self.expected!r}")


class UnknownVariant(DecodeError):
    """The text names no case of the target enum or variant type."""

    def __init__(self, path: str, variant: str, expected: Sequence[str] = ()) -> None:
        self.variant = variant
        self.expected = list(expected)
        super().__init__(path, f"unknown variant {variant!r}, expected one of {self.expected!r}")


class InvalidScalar(DecodeError):
    """Text cannot be converted to the requested scalar type."""

    def __init__(self, path: str, text: Any, target: str) -> None:
        self.text = text
        self.target = target
        super().__init__(path, f"invalid {target}: {text!r}")


class ShapeMismatch(DecodeError):
    """The tree has the wrong shape (object vs. text, or the wrong number of entries)."""

    def __init__(self, path: str, expected: str, found: str) -> None:
        self.expected = expected
        self.found = found
        super().__init__(path, f"expected {expected}, found {found}")


# End of file: src/kvcodec/errors.py
