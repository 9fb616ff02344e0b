# File: src/kvcodec/model.py
"""
Generic value tree for KeyValues documents.

A Value is either text (``str``) or a KvObject, an ordered multimap in which
repeating a key is how a sequence is represented.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple, Self

from kvcodec.base.types import MISSING


__all__ = [
    "KeyValues",
    "KvObject",
    "Position",
    "RootKind",
    "Value",
]


type Value = str | KvObject
"""A node of the value tree: text or an object."""


class Position(NamedTuple):
    """Location in source text: 0-based offset, 1-based line and column."""

    offset: int
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class RootKind(Enum):
    """How a document's top level relates to the value it holds."""

    NESTED = "nested"
    """Exactly one top-level key bound to the value."""

    FLATTENED = "flattened"
    """The value's entries are the document's top-level entries."""


class _Slot:
    """All values (and their conditional tags) stored under one key."""

    __slots__ = ("values", "conditions")

    def __init__(self) -> None:
        self.values: list[Value] = []
        self.conditions: list[str | None] = []


class KvObject:
    """
    Ordered multimap from string keys to non-empty lists of values.

    ``add`` never overwrites: each call appends one entry. Keys keep the order
    of their first insertion, values keep their insertion order per key. Each
    entry may carry a conditional tag (the text inside ``[...]``).
    """

    __slots__ = ("_slots",)

    def __init__(self, entries: Iterable[tuple[str, Value]] | None = None) -> None:
        self._slots: dict[str, _Slot] = {}
        if entries is not None:
            for key, value in entries:
                self.add(key, value)

    def add(self, key: str, value: Value, condition: str | None = None) -> Self:
        """
        Append one entry.

        :param key: Entry key.
        :param value: ``str`` or ``KvObject``.
        :param condition: Optional conditional tag without brackets.
        :return: self, so calls can be chained.
        :raises TypeError: If key is not a str or value is not a Value.
        """
        if not isinstance(key, str):
            raise TypeError(f"KvObject keys must be str, got {type(key).__name__}")
        if not isinstance(value, (str, KvObject)):
            raise TypeError(f"KvObject values must be str or KvObject, got {type(value).__name__}")
        slot = self._slots.get(key)
        if slot is None:
            slot = self._slots[key] = _Slot()
        slot.values.append(value)
        slot.conditions.append(condition)
        return self

    def __getitem__(self, key: str) -> list[Value]:
        return list(self._slots[key].values)

    def __contains__(self, key: object) -> bool:
        return key in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[str]:
        return iter(self._slots)

    def get_all(self, key: str) -> list[Value]:
        """Return every value under `key`, or an empty list."""
        slot = self._slots.get(key)
        return list(slot.values) if slot else []

    def first(self, key: str, default: Any = MISSING) -> Any:
        """
        Return the first value under `key`.

        :raises KeyError: If the key is absent and no default was given.
        """
        slot = self._slots.get(key)
        if slot:
            return slot.values[0]
        if default is MISSING:
            raise KeyError(key)
        return default

    def condition(self, key: str, index: int = 0) -> str | None:
        """Return the conditional tag attached to one entry, if any."""
        return self._slots[key].conditions[index]

    def keys(self) -> list[str]:
        return list(self._slots)

    def items(self) -> Iterator[tuple[str, list[Value]]]:
        for key, slot in self._slots.items():
            yield key, list(slot.values)

    def entries(self) -> Iterator[tuple[str, Value, str | None]]:
        """Yield (key, value, condition) for every entry, grouped by key."""
        for key, slot in self._slots.items():
            for value, condition in zip(slot.values, slot.conditions, strict=True):
                yield key, value, condition

    def entry_count(self) -> int:
        return sum(len(slot.values) for slot in self._slots.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KvObject):
            return NotImplemented
        return list(self.entries()) == list(other.entries())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        parts = []
        for key, value, condition in self.entries():
            tag = f" [{condition}]" if condition else ""
            parts.append(f"{key!r}{tag}: {value!r}")
        return "KvObject({" + ", ".join(parts) + "})"


@dataclass(frozen=True, slots=True)
class KeyValues:
    """
    A whole document: the root object plus how it should be read.

    For a NESTED document the root holds exactly one key bound to one value.
    """

    root: KvObject
    kind: RootKind = RootKind.FLATTENED

    @classmethod
    def nested(cls, key: str, value: Value) -> KeyValues:
        return cls(KvObject([(key, value)]), RootKind.NESTED)

    @classmethod
    def flattened(cls, root: KvObject) -> KeyValues:
        return cls(root, RootKind.FLATTENED)

    @property
    def root_key(self) -> str:
        """
        The single top-level key.

        :raises ValueError: If the root does not hold exactly one entry.
        """
        if len(self.root) != 1 or self.root.entry_count() != 1:
            raise ValueError(f"document has {self.root.entry_count()} top-level entries, not one")
        return self.root.keys()[0]

    @property
    def root_value(self) -> Value:
        return self.root.first(self.root_key)


# End of file: src/kvcodec/model.py
