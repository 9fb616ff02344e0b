# File: src/kvcodec/shape.py
"""
Type-shape dispatch: the visitor protocol and the reflection layer that drives it.

``describe(value, visitor)`` looks at one level of a Python value and reports
its shape to a ShapeVisitor: a scalar, an absent value, a sequence, a map, or
a variant case. Visitors recurse by calling ``describe`` on the children they
are handed, so they own the traversal order and the depth count.

Types opt out of reflection by defining ``__kv_describe__(self, visitor)``.

Declarations that shape a type's text form also live here:

- ``@keyvalues(...)`` sets the root kind, root key, field renaming rule and
  unknown-field policy of a dataclass or NamedTuple.
- ``kv_field(key=...)`` renames a single dataclass field.
- ``Variant`` is the base class of sum types whose cases are dataclasses.

Example:
    >>> @keyvalues(key="Cat", rename_all=RenameRule.PASCAL)
    ... @dataclass
    ... class Cat:
    ...     name: str
    ...     likes_catnip: bool = False
"""

from __future__ import annotations

import dataclasses
import functools
import typing
from collections.abc import Callable, Iterator, Mapping, Sequence, Set
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Final, Protocol, runtime_checkable

from kvcodec.base.types import MISSING, Unit
from kvcodec.errors import UnsupportedType
from kvcodec.model import KeyValues, KvObject, RootKind


__all__ = [
    "FieldInfo",
    "KvTypeConfig",
    "RenameRule",
    "ShapeVisitor",
    "StructFields",
    "Variant",
    "VariantKind",
    "describe",
    "is_struct_type",
    "keyvalues",
    "kv_field",
    "struct_fields",
    "type_config",
    "variant_cases",
    "variant_kind",
    "variant_name",
]


KV_KEY_METADATA: Final = "kv_key"
KV_CONFIG_ATTR: Final = "__kv_config__"


class VariantKind(Enum):
    """Payload shape of one case of a sum type."""

    UNIT = "unit"
    NEWTYPE = "newtype"
    TUPLE = "tuple"
    STRUCT = "struct"


@runtime_checkable
class ShapeVisitor(Protocol):
    """
    Receiver of shape events from ``describe``.

    Container events are bracketed: ``begin_sequence`` / ``end_sequence`` and
    ``begin_map`` / ``end_map``. Children arrive unvisited; the visitor calls
    ``describe`` on them when it is ready.
    """

    def visit_scalar(self, value: str | bool | int | float) -> None: ...

    def visit_absent(self) -> None: ...

    def visit_bytes(self, value: bytes | bytearray | memoryview) -> None: ...

    def begin_sequence(self) -> None: ...

    def visit_sequence_element(self, value: Any) -> None: ...

    def end_sequence(self) -> None: ...

    def begin_map(self) -> None: ...

    def visit_map_entry(self, key: Any, value: Any, *, condition: str | None = None) -> None: ...

    def end_map(self) -> None: ...

    def visit_variant(self, name: str, kind: VariantKind, payload: Any) -> None: ...


class RenameRule(Enum):
    """How snake_case Python field names become KeyValues keys."""

    NONE = "none"
    LOWER = "lowercase"
    UPPER = "UPPERCASE"
    PASCAL = "PascalCase"
    CAMEL = "camelCase"
    KEBAB = "kebab-case"

    def apply(self, name: str) -> str:
        if self is RenameRule.NONE:
            return name
        if self is RenameRule.LOWER:
            return name.lower()
        if self is RenameRule.UPPER:
            return name.upper()
        words = [w for w in name.split("_") if w]
        if not words:
            return name
        if self is RenameRule.KEBAB:
            return "-".join(words)
        pascal = [w[:1].upper() + w[1:] for w in words]
        if self is RenameRule.CAMEL:
            return words[0][:1].lower() + words[0][1:] + "".join(pascal[1:])
        return "".join(pascal)


@dataclass(frozen=True, slots=True)
class KvTypeConfig:
    """Per-type declarations attached by ``@keyvalues``."""

    key: str | None = None
    root: RootKind = RootKind.FLATTENED
    rename_all: RenameRule = RenameRule.NONE
    deny_unknown_fields: bool = False


_DEFAULT_CONFIG: Final = KvTypeConfig()


def keyvalues[C: type](
    cls: C | None = None,
    *,
    key: str | None = None,
    root: RootKind | None = None,
    rename_all: RenameRule = RenameRule.NONE,
    deny_unknown_fields: bool = False,
) -> Any:
    """
    Class decorator declaring how a type maps onto a document.

    Giving a ``key`` implies ``RootKind.NESTED``; a NESTED type without a key
    uses its class name. Undecorated types are FLATTENED.

    :param key: Root key of the nested document.
    :param root: Explicit root kind.
    :param rename_all: Rule applied to field names without an explicit key.
    :param deny_unknown_fields: Reject entries that match no field.
    """

    def wrap(klass: C) -> C:
        kind = root if root is not None else (RootKind.NESTED if key is not None else RootKind.FLATTENED)
        root_key = key
        if kind is RootKind.NESTED and root_key is None:
            root_key = klass.__name__
        setattr(
            klass,
            KV_CONFIG_ATTR,
            KvTypeConfig(
                key=root_key,
                root=kind,
                rename_all=rename_all,
                deny_unknown_fields=deny_unknown_fields,
            ),
        )
        struct_fields.cache_clear()
        return klass

    if cls is None:
        return wrap
    return wrap(cls)


def type_config(tp: Any) -> KvTypeConfig:
    """Return the declarations of `tp`, or the defaults when it was not decorated."""
    config = getattr(tp, KV_CONFIG_ATTR, None) if isinstance(tp, type) else None
    return config if isinstance(config, KvTypeConfig) else _DEFAULT_CONFIG


def kv_field(*, key: str | None = None, **kwargs: Any) -> Any:
    """
    ``dataclasses.field`` with an explicit KeyValues key.

    All other keyword arguments go to ``dataclasses.field`` unchanged.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[KV_KEY_METADATA] = key
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclass(frozen=True, slots=True)
class FieldInfo:
    """One field of a struct type as the codec sees it."""

    name: str
    key: str
    hint: Any = Any
    default: Any = MISSING
    default_factory: Callable[[], Any] | Any = MISSING

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING or self.default_factory is not MISSING

    def default_value(self) -> Any:
        if self.default_factory is not MISSING:
            return self.default_factory()
        return self.default


def is_namedtuple_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, tuple) and hasattr(tp, "_fields")


def is_struct_type(tp: Any) -> bool:
    """True for dataclass types and NamedTuple types."""
    return isinstance(tp, type) and (dataclasses.is_dataclass(tp) or is_namedtuple_type(tp))


def _type_hints(tp: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(tp)
    except (NameError, TypeError) as e:
        raise UnsupportedType(f"cannot resolve the field types of {tp.__qualname__}: {e}") from e


@functools.cache
def struct_fields(tp: type) -> tuple[FieldInfo, ...]:
    """
    Return the fields of a dataclass or NamedTuple type in declaration order.

    :raises TypeError: If `tp` is neither.
    :raises UnsupportedType: If an annotation of `tp` cannot be resolved.
    """
    if not is_struct_type(tp):
        raise TypeError(f"{tp!r} is not a dataclass or NamedTuple type")
    rule = type_config(tp).rename_all
    hints = _type_hints(tp)
    if dataclasses.is_dataclass(tp):
        infos = []
        for f in dataclasses.fields(tp):
            explicit = f.metadata.get(KV_KEY_METADATA)
            infos.append(
                FieldInfo(
                    name=f.name,
                    key=explicit if explicit is not None else rule.apply(f.name),
                    hint=hints.get(f.name, Any),
                    default=MISSING if f.default is dataclasses.MISSING else f.default,
                    default_factory=(
                        MISSING if f.default_factory is dataclasses.MISSING else f.default_factory
                    ),
                )
            )
        return tuple(infos)
    defaults: dict[str, Any] = getattr(tp, "_field_defaults", {})
    return tuple(
        FieldInfo(
            name=name,
            key=rule.apply(name),
            hint=hints.get(name, Any),
            default=defaults.get(name, MISSING),
        )
        for name in tp._fields  # type: ignore[attr-defined]
    )


class Variant:
    """
    Base class for sum types.

    Each case is a dataclass subclass. The case kind is taken from
    ``__kv_variant__`` when set; otherwise a case without fields is a unit
    case and any other case is a struct case. ``__kv_name__`` overrides the
    case name, which defaults to the class name.

    Example:
        >>> class Shape(Variant): ...
        >>> @dataclass
        ... class Circle(Shape):
        ...     __kv_variant__ = VariantKind.NEWTYPE
        ...     radius: float
    """

    __kv_variant__: ClassVar[VariantKind | None] = None
    __kv_name__: ClassVar[str | None] = None


def variant_name(case: type) -> str:
    explicit = case.__dict__.get("__kv_name__")
    return explicit if isinstance(explicit, str) else case.__name__


def variant_kind(case: type) -> VariantKind:
    """
    Return the payload shape of a Variant case class.

    :raises TypeError: If a NEWTYPE case does not have exactly one field.
    """
    fields = struct_fields(case) if dataclasses.is_dataclass(case) else ()
    declared = case.__dict__.get("__kv_variant__")
    if declared is None:
        return VariantKind.STRUCT if fields else VariantKind.UNIT
    if declared is VariantKind.NEWTYPE and len(fields) != 1:
        raise TypeError(f"newtype variant {case.__name__} must have exactly one field")
    return declared


def _walk_subclasses(base: type) -> Iterator[type]:
    for sub in base.__subclasses__():
        yield sub
        yield from _walk_subclasses(sub)


def variant_cases(tp: type) -> dict[str, type]:
    """
    Return {case name: case class} for a Variant base.

    A case class passed directly yields just itself.
    """
    if dataclasses.is_dataclass(tp):
        return {variant_name(tp): tp}
    cases: dict[str, type] = {}
    for sub in _walk_subclasses(tp):
        if dataclasses.is_dataclass(sub):
            cases.setdefault(variant_name(sub), sub)
    return cases


class StructFields:
    """Describes a struct's fields as a map, bypassing variant dispatch."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def __kv_describe__(self, visitor: ShapeVisitor) -> None:
        visitor.begin_map()
        for info in struct_fields(type(self.value)):
            visitor.visit_map_entry(info.key, getattr(self.value, info.name))
        visitor.end_map()


def _describe_variant(value: Variant, visitor: ShapeVisitor) -> None:
    case = type(value)
    kind = variant_kind(case)
    fields = struct_fields(case)
    payload: Any
    if kind is VariantKind.UNIT:
        payload = None
    elif kind is VariantKind.NEWTYPE:
        payload = getattr(value, fields[0].name)
    elif kind is VariantKind.TUPLE:
        payload = tuple(getattr(value, f.name) for f in fields)
    else:
        payload = StructFields(value)
    visitor.visit_variant(variant_name(case), kind, payload)


def describe(value: Any, visitor: ShapeVisitor) -> None:
    """
    Report the shape of one level of `value` to `visitor`.

    :raises UnsupportedType: If the value has no KeyValues shape.
    """
    hook = getattr(type(value), "__kv_describe__", None)
    if hook is not None:
        hook(value, visitor)
    elif value is None or isinstance(value, Unit):
        visitor.visit_absent()
    elif isinstance(value, Enum):
        visitor.visit_variant(value.name, VariantKind.UNIT, None)
    elif isinstance(value, Variant):
        _describe_variant(value, visitor)
    elif isinstance(value, (str, bool, int, float)):
        visitor.visit_scalar(value)
    elif isinstance(value, (bytes, bytearray, memoryview)):
        visitor.visit_bytes(value)
    elif isinstance(value, KvObject):
        visitor.begin_map()
        for key, child, condition in value.entries():
            visitor.visit_map_entry(key, child, condition=condition)
        visitor.end_map()
    elif isinstance(value, KeyValues):
        describe(value.root, visitor)
    elif is_struct_type(type(value)):
        StructFields(value).__kv_describe__(visitor)
    elif isinstance(value, Mapping):
        visitor.begin_map()
        for key, child in value.items():
            visitor.visit_map_entry(key, child)
        visitor.end_map()
    elif isinstance(value, (Sequence, Set)):
        visitor.begin_sequence()
        for child in value:
            visitor.visit_sequence_element(child)
        visitor.end_sequence()
    else:
        raise UnsupportedType(type(value).__qualname__)


# End of file: src/kvcodec/shape.py
