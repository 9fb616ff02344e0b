# File: src/kvcodec/mapper.py
"""
Typed mapping between value trees and Python values.

TypeMapper walks a KvObject tree against a target type and builds the typed
value; TreeBuilder goes the other way, producing a KvObject from a typed
value with exactly the serializer's rules.

Values under a key always arrive as a list, because a key may repeat.
Sequence targets take the whole list; every other target needs exactly one
entry. Decode errors carry the key path to the offending value, for example
``Cats.Cat[1].Age``.
"""

from __future__ import annotations

import collections.abc as cabc
import contextlib
import math
import re
import types
import typing
from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from typing import Any, Final

from kvcodec.base.config import recursion_headroom
from kvcodec.base.types import UNIT, Unit
from kvcodec.errors import (
    DecodeError,
    InvalidScalar,
    MissingField,
    MultipleRootKeys,
    RecursionLimitExceeded,
    ShapeMismatch,
    UnknownField,
    UnknownVariant,
    UnsupportedKey,
    UnsupportedType,
)
from kvcodec.model import KeyValues, KvObject, RootKind, Value
from kvcodec.options import DecodeOptions, UnknownFields
from kvcodec.shape import (
    Variant,
    VariantKind,
    is_struct_type,
    struct_fields,
    type_config,
    variant_cases,
    variant_kind,
)
from kvcodec.walker import INT_MAX, INT_MIN, ValueWalker, stack_frames_for
from kvcodec.xlogging.logger_factory import create_logger


__all__ = ["TreeBuilder", "TypeMapper"]

LOG = create_logger(__name__)

_INT_RX: Final[re.Pattern[str]] = re.compile(r"[+-]?[0-9]+")

_SEQUENCE_BUILDERS: Final[dict[Any, Callable[[Iterable[Any]], Any]]] = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    cabc.Sequence: list,
    cabc.MutableSequence: list,
    cabc.Collection: list,
    cabc.Iterable: list,
    cabc.Set: frozenset,
    cabc.MutableSet: set,
}

_MAPPING_ORIGINS: Final = (dict, cabc.Mapping, cabc.MutableMapping)


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _describe_value(value: Value) -> str:
    return "an object" if isinstance(value, KvObject) else f"text {value!r}"


def _strip(tp: Any) -> Any:
    """Unwrap NewType, Annotated and `type` aliases down to the type that shapes the text."""
    while True:
        if hasattr(tp, "__supertype__"):
            tp = tp.__supertype__
        elif isinstance(tp, typing.TypeAliasType):
            tp = tp.__value__
        elif typing.get_origin(tp) is typing.Annotated:
            tp = typing.get_args(tp)[0]
        else:
            return tp


def _is_union(tp: Any) -> bool:
    return typing.get_origin(tp) in (typing.Union, types.UnionType)


def _split_optional(tp: Any) -> tuple[bool, Any]:
    """Return (accepts None, the type without None)."""
    if not _is_union(tp):
        return tp in (None, types.NoneType), tp
    args = [a for a in typing.get_args(tp) if a is not types.NoneType]
    if len(args) == len(typing.get_args(tp)):
        return False, tp
    if len(args) == 1:
        return True, args[0]
    return True, typing.Union[tuple(args)]


def _sequence_origin(tp: Any) -> Any:
    origin = typing.get_origin(tp) or tp
    return origin if origin in _SEQUENCE_BUILDERS else None


def _is_unit(tp: Any) -> bool:
    return tp is Unit or tp is UNIT


def _is_variant_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, Variant)


class TypeMapper:
    """
    Decode value trees into typed Python values.

    :param options: Unknown-field policy and depth limit.

    The root object of a document is level 0, matching the parser; every
    object entered below it counts one level against ``options.max_depth``.
    """

    def __init__(self, options: DecodeOptions | None = None) -> None:
        self.options = options or DecodeOptions()
        self._depth = 0

    @contextlib.contextmanager
    def _entering_object(self) -> Iterator[None]:
        if self._depth > self.options.max_depth:
            raise RecursionLimitExceeded(self.options.max_depth)
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1

    # -- documents -----------------------------------------------------------

    def decode_document(self, root: KvObject, tp: Any) -> Any:
        """
        Decode a parsed document according to the root kind `tp` declares.

        :raises MultipleRootKeys: NESTED type, several top-level entries.
        :raises UnsupportedKey: NESTED type, single key differing from the declared one.
        :raises RecursionLimitExceeded: Objects nest deeper than ``options.max_depth``.
        """
        config = type_config(_strip(tp))
        LOG.debug("decoding %s as %s document", getattr(tp, "__name__", tp), config.root.name)
        if config.root is RootKind.NESTED:
            return self.decode_document_expecting_key(root, tp)[1]
        with recursion_headroom(stack_frames_for(self.options.max_depth)):
            return self.decode_value(root, tp, "")

    def decode_document_expecting_key(self, root: KvObject, tp: Any) -> tuple[str, Any]:
        """Decode the value under the document's single root key and return (key, value)."""
        if root.entry_count() != 1:
            if not len(root):
                raise ShapeMismatch("", "a single root key", "an empty document")
            raise MultipleRootKeys([key for key, _, _ in root.entries()])
        key = root.keys()[0]
        expected = type_config(_strip(tp)).key
        if expected is not None and key != expected:
            raise UnsupportedKey(key, expected)
        with recursion_headroom(stack_frames_for(self.options.max_depth)), self._entering_object():
            return key, self.decode_values(root[key], tp, key)

    # -- value lists ---------------------------------------------------------

    def decode_values(self, values: list[Value], tp: Any, path: str) -> Any:
        """Decode every entry found under one key into `tp`."""
        tp = _strip(tp)
        if tp is Any or tp is object:
            if not values:
                return None
            return values[0] if len(values) == 1 else list(values)

        optional, inner = _split_optional(tp)
        if optional:
            return self.decode_values(values, inner, path) if values else None
        if _is_unit(tp) and not values:
            return UNIT

        origin = _sequence_origin(tp)
        if origin is not None:
            return self._decode_sequence(values, tp, origin, path)

        if not values:
            raise ShapeMismatch(path, "a value", "no entries")
        if len(values) > 1:
            raise ShapeMismatch(path, "a single entry", f"{len(values)} entries")
        return self.decode_value(values[0], tp, path)

    def _decode_sequence(self, values: list[Value], tp: Any, origin: Any, path: str) -> Any:
        args = typing.get_args(tp)
        if origin is tuple and args and args[-1] is not Ellipsis:
            if len(values) != len(args):
                raise ShapeMismatch(path, f"{len(args)} entries", f"{len(values)} entries")
            return tuple(
                self.decode_value(value, arg, f"{path}[{i}]")
                for i, (value, arg) in enumerate(zip(values, args, strict=True))
            )
        element = args[0] if args else Any
        if _sequence_origin(_split_optional(_strip(element))[1]) is not None:
            raise ShapeMismatch(path, "a sequence of non-sequence values", f"nested sequence {tp!r}")
        items = [self.decode_value(value, element, f"{path}[{i}]") for i, value in enumerate(values)]
        return _SEQUENCE_BUILDERS[origin](items)

    # -- single values -------------------------------------------------------

    def decode_value(self, value: Value, tp: Any, path: str) -> Any:
        """Decode one tree value into `tp`."""
        tp = _strip(tp)
        if tp is Any or tp is object:
            return value
        if tp is KvObject:
            return self._require_object(value, path)
        if tp is KeyValues:
            return KeyValues.flattened(self._require_object(value, path))
        if _is_unit(tp):
            if value == "" or (isinstance(value, KvObject) and not len(value)):
                return UNIT
            raise ShapeMismatch(path, "an empty value", _describe_value(value))
        if tp in (str, bool, int, float):
            return self._decode_scalar(value, tp, path)

        if _is_union(tp):
            return self._decode_union(value, tp, path)
        if isinstance(tp, type) and issubclass(tp, Enum):
            return self._decode_enum(value, tp, path)
        if _is_variant_type(tp):
            return self._decode_variant(value, variant_cases(tp), path)
        if is_struct_type(tp):
            return self._decode_struct(self._require_object(value, path), tp, path)

        origin = typing.get_origin(tp) or tp
        if origin in _MAPPING_ORIGINS:
            return self._decode_mapping(self._require_object(value, path), tp, path)
        if origin in _SEQUENCE_BUILDERS:
            raise ShapeMismatch(path, "a single value", f"sequence type {tp!r}")
        raise UnsupportedType(f"cannot decode into {tp!r}")

    @staticmethod
    def _require_object(value: Value, path: str) -> KvObject:
        if not isinstance(value, KvObject):
            raise ShapeMismatch(path, "an object", _describe_value(value))
        return value

    @staticmethod
    def _require_text(value: Value, path: str) -> str:
        if not isinstance(value, str):
            raise ShapeMismatch(path, "text", _describe_value(value))
        return value

    def _decode_scalar(self, value: Value, tp: type, path: str) -> Any:
        text = self._require_text(value, path)
        if tp is str:
            return text
        if tp is bool or tp is int:
            if not _INT_RX.fullmatch(text):
                raise InvalidScalar(path, text, tp.__name__)
            number = int(text)
            if tp is bool:
                return number != 0
            if not INT_MIN <= number <= INT_MAX:
                raise InvalidScalar(path, text, "int")
            return number
        try:
            number_f = float(text)
        except ValueError as e:
            raise InvalidScalar(path, text, "float") from e
        if not math.isfinite(number_f):
            raise InvalidScalar(path, text, "float")
        return number_f

    def _decode_enum(self, value: Value, tp: type[Enum], path: str) -> Enum:
        text = self._require_text(value, path)
        try:
            return tp[text]
        except KeyError:
            raise UnknownVariant(path, text, list(tp.__members__)) from None

    def _decode_union(self, value: Value, tp: Any, path: str) -> Any:
        members = [_strip(a) for a in typing.get_args(tp) if a is not types.NoneType]
        if members and all(_is_variant_type(m) for m in members):
            cases: dict[str, type] = {}
            for member in members:
                for name, case in variant_cases(member).items():
                    cases.setdefault(name, case)
            return self._decode_variant(value, cases, path)
        errors: list[DecodeError] = []
        for member in members:
            try:
                return self.decode_value(value, member, path)
            except DecodeError as e:
                errors.append(e)
        raise ShapeMismatch(path, f"one of {tp!r}", "; ".join(e.message for e in errors))

    def _decode_variant(self, value: Value, cases: dict[str, type], path: str) -> Any:
        if isinstance(value, str):
            case = cases.get(value)
            if case is None:
                unit_names = [n for n, c in cases.items() if variant_kind(c) is VariantKind.UNIT]
                raise UnknownVariant(path, value, unit_names)
            if variant_kind(case) is not VariantKind.UNIT:
                raise ShapeMismatch(path, f"an object for variant {value!r}", f"text {value!r}")
            return case()
        with self._entering_object():
            return self._decode_variant_object(value, cases, path)

    def _decode_variant_object(self, value: KvObject, cases: dict[str, type], path: str) -> Any:
        if len(value) != 1:
            raise ShapeMismatch(path, "an object with a single variant key", f"{len(value)} keys")
        name = value.keys()[0]
        case = cases.get(name)
        if case is None:
            raise UnknownVariant(path, name, list(cases))
        entries = value[name]
        case_path = _join(path, name)
        kind = variant_kind(case)
        fields = struct_fields(case)
        if kind is VariantKind.UNIT:
            raise ShapeMismatch(case_path, f"bare text {name!r}", "an object")
        if kind is VariantKind.NEWTYPE:
            return self._construct(case, {fields[0].name: self.decode_values(entries, fields[0].hint, case_path)}, path)
        if kind is VariantKind.TUPLE:
            if len(entries) > len(fields):
                raise ShapeMismatch(case_path, f"at most {len(fields)} entries", f"{len(entries)} entries")
            kwargs: dict[str, Any] = {}
            for i, info in enumerate(fields):
                if i < len(entries):
                    kwargs[info.name] = self.decode_value(entries[i], info.hint, f"{case_path}[{i}]")
                elif not info.has_default:
                    if not _split_optional(_strip(info.hint))[0]:
                        raise ShapeMismatch(case_path, f"{len(fields)} entries", f"{len(entries)} entries")
                    kwargs[info.name] = None
            return self._construct(case, kwargs, path)
        if len(entries) != 1:
            raise ShapeMismatch(case_path, "a single entry", f"{len(entries)} entries")
        return self._decode_struct(self._require_object(entries[0], case_path), case, case_path)

    def _decode_struct(self, obj: KvObject, tp: type, path: str) -> Any:
        with self._entering_object():
            return self._decode_struct_fields(obj, tp, path)

    def _decode_struct_fields(self, obj: KvObject, tp: type, path: str) -> Any:
        fields = struct_fields(tp)
        by_key = {info.key: info for info in fields}
        deny = type_config(tp).deny_unknown_fields or self.options.unknown_fields is UnknownFields.REJECT
        for key in obj:
            if key not in by_key:
                if deny:
                    raise UnknownField(path, key, list(by_key))
                LOG.trace("ignoring unknown field %s", _join(path, key))

        kwargs: dict[str, Any] = {}
        for info in fields:
            field_path = _join(path, info.key)
            values = obj.get_all(info.key)
            if values:
                kwargs[info.name] = self.decode_values(values, info.hint, field_path)
                continue
            if info.has_default:
                continue
            hint = _strip(info.hint)
            if _split_optional(hint)[0] or _sequence_origin(hint) is not None or _is_unit(hint):
                kwargs[info.name] = self.decode_values([], hint, field_path)
            else:
                raise MissingField(path, info.key)
        return self._construct(tp, kwargs, path)

    @staticmethod
    def _construct(tp: type, kwargs: dict[str, Any], path: str) -> Any:
        try:
            return tp(**kwargs)
        except (TypeError, ValueError) as e:
            raise DecodeError(path, f"cannot construct {tp.__name__}: {e}") from e

    def _decode_mapping(self, obj: KvObject, tp: Any, path: str) -> dict[Any, Any]:
        args = typing.get_args(tp)
        key_tp, value_tp = args if len(args) == 2 else (Any, Any)
        result: dict[Any, Any] = {}
        with self._entering_object():
            for key, values in obj.items():
                child = _join(path, key)
                result[self.decode_value(key, key_tp, child)] = self.decode_values(values, value_tp, child)
        return result

    # -- encoding direction --------------------------------------------------

    def to_tree(self, value: Any) -> KvObject:
        """Build the KvObject a value serializes to."""
        tree = TreeBuilder(self.options.max_depth).build(value)
        if not isinstance(tree, KvObject):
            raise UnsupportedType(f"{type(value).__qualname__} encodes to bare text, not an object")
        return tree


class TreeBuilder(ValueWalker):
    """
    ValueWalker that builds a value tree instead of text.

    Omission of absent values, sequence flattening and variant encoding follow
    the same transitions as the text serializer.
    """

    def __init__(self, max_depth: int | None = None) -> None:
        super().__init__(max_depth if max_depth is not None else DecodeOptions().max_depth)
        self._objects: list[KvObject] = []
        self._result: Value | None = None

    def _emit_root_scalar(self, text: str) -> None:
        self._result = text

    def _emit_scalar(self, key: str, condition: str | None, text: str) -> None:
        self._objects[-1].add(key, text, condition)

    def _open_object(self, key: str | None, condition: str | None) -> None:
        obj = KvObject()
        if key is None:
            self._result = obj
        else:
            self._objects[-1].add(key, obj, condition)
        self._objects.append(obj)

    def _close_object(self, braced: bool) -> None:
        self._objects.pop()

    def build(self, value: Any) -> Value:
        self.walk_document(value)
        return self._result if self._result is not None else KvObject()

    def build_with_key(self, key: str, value: Any) -> KvObject:
        self.walk_with_key(key, value)
        return typing.cast(KvObject, self._result)


# End of file: src/kvcodec/mapper.py
