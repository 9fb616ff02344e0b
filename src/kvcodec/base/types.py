# File: src/kvcodec/base/types.py

from collections.abc import Iterable, Iterator
from typing import Final, Self


class Sentinel:
    """
    Falsy singleton marker, distinct from None.

    Each subclass has exactly one instance, which survives copy, deepcopy and
    pickling. Subclasses set ``_repr_name``.
    """

    __slots__ = ()

    _repr_name: str = "SENTINEL"

    def __new__(cls) -> Self:
        instance = cls.__dict__.get("_instance")
        if instance is None:
            instance = super().__new__(cls)
            setattr(cls, "_instance", instance)
        return instance

    def __repr__(self) -> str:
        return self._repr_name

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> tuple[type, tuple[()]]:
        return (type(self), ())

    def __copy__(self) -> Self:
        return self

    def __deepcopy__(self, _memo: dict[int, object]) -> Self:
        return self


class Missing(Sentinel):
    """No value was supplied, e.g. a field without a default."""

    _repr_name = "MISSING"


MISSING: Final[Missing] = Missing()


class Unit(Sentinel):
    """A value that carries no data; encodes like an absent value."""

    _repr_name = "UNIT"


UNIT: Final[Unit] = Unit()


class PeekableIterator[T](Iterator[T]):
    """
    Iterator with one item of lookahead.

    :param iterable: Source of items; str and bytes are rejected.
    :raises TypeError: If `iterable` is str or bytes.
    """

    __slots__ = ("_it", "_buffer")

    def __init__(self, iterable: Iterable[T]) -> None:
        if isinstance(iterable, (str, bytes)):
            raise TypeError(f"PeekableIterator does not support str or bytes (got {type(iterable)})")
        self._it: Iterator[T] = iter(iterable)
        self._buffer: list[T] = []

    def __next__(self) -> T:
        if self._buffer:
            return self._buffer.pop()
        return next(self._it)

    def __bool__(self) -> bool:
        try:
            self.peek()
        except StopIteration:
            return False
        return True

    def peek(self) -> T:
        """
        Return the next item without consuming it.

        :raises StopIteration: If exhausted.
        """
        if not self._buffer:
            self._buffer.append(next(self._it))
        return self._buffer[0]


# End of file: src/kvcodec/base/types.py
