# File: src/kvcodec/text/test_serializer.py
"""
Serializer tests: one story per value shape.

- Root-level scalars, absence and unit values
- Sequences flattened into repeated keys, and the sequence errors
- Structs, maps and KvObjects with nested objects
- Unit, newtype, tuple and struct variants
- Atomic output and the depth limit
- Deep trees fail with RecursionLimitExceeded, never RecursionError
"""

import io
import math
from dataclasses import dataclass, field
from enum import Enum
from textwrap import dedent
from typing import NamedTuple

import pytest

from kvcodec.base.types import UNIT
from kvcodec.errors import (
    KeyMustBeAString,
    KvIoError,
    NestedSequence,
    NonFiniteFloat,
    RecursionLimitExceeded,
    RootLevelSequence,
    SerializerStateError,
    UnsupportedType,
)
from kvcodec.model import KvObject
from kvcodec.options import DEFAULT_MAX_DEPTH, FormatOptions, Quoting
from kvcodec.shape import Variant, VariantKind, describe, kv_field
from kvcodec.text.serializer import Serializer


WHEN_REQUIRED = FormatOptions(quote_keys=Quoting.WHEN_REQUIRED, quote_values=Quoting.WHEN_REQUIRED)


@dataclass
class Record:
    c: str
    i: int
    s: str
    b: bool


@dataclass
class Unitary:
    pass


class Shape(Variant):
    pass


@dataclass
class Point(Shape):
    pass


@dataclass
class Circle(Shape):
    __kv_variant__ = VariantKind.NEWTYPE
    radius: float


@dataclass
class Pair(Shape):
    __kv_variant__ = VariantKind.TUPLE
    first: bool
    second: str


@dataclass
class Rect(Shape):
    __kv_name__ = "Rectangle"
    w: int
    h: int


@dataclass
class Node:
    name: str
    children: list["Node"] = field(default_factory=list)


def chain(levels: int) -> Node:
    """Return a Node with `levels` single-child generations below it."""
    node = Node("leaf")
    for i in range(levels):
        node = Node(f"n{i}", [node])
    return node


class Color(Enum):
    RED = 1
    GREEN = 2


class Meters:
    """Newtype struct with a hand-written description."""

    def __init__(self, value: float) -> None:
        self.value = value

    def __kv_describe__(self, visitor: object) -> None:
        describe(self.value, visitor)  # type: ignore[arg-type]


def encode(value: object, options: FormatOptions | None = None) -> str:
    return Serializer(options).encode(value)


def encode_with_key(key: str, value: object, options: FormatOptions | None = None) -> str:
    return Serializer(options).encode_with_key(key, value)


# == Root-level values ==


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (False, "0"),
        (True, "1"),
        (17, "17"),
        (-843217, "-843217"),
        (2**64 - 1, "18446744073709551615"),
        (-(2**63), "-9223372036854775808"),
        (math.pi, repr(math.pi)),
        (1.0, "1"),
        (-2.5, "-2.5"),
        (1e20, "1e+20"),
        ("q", "q"),
        ("\t", '"\\t"'),
        ("simple", "simple"),
        ("Hello, world!", '"Hello, world!"'),
        (None, '""'),
        (UNIT, '""'),
        (Meters(100), "100"),
    ],
)
def test_root_level_scalars(value: object, expected: str) -> None:
    assert encode(value, WHEN_REQUIRED) == expected


def test_root_scalar_default_options_are_quoted() -> None:
    assert encode(0) == '"0"'


def test_unit_under_a_key_writes_nothing() -> None:
    assert encode_with_key("Unit", UNIT) == ""
    assert encode_with_key("Unit", None) == ""


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_non_finite_floats(value: float) -> None:
    with pytest.raises(NonFiniteFloat):
        encode_with_key("f", value)


@pytest.mark.parametrize("value", [2**64, -(2**63) - 1])
def test_integers_outside_64_bits(value: int) -> None:
    with pytest.raises(UnsupportedType):
        encode_with_key("n", value)


@pytest.mark.parametrize("value", [b"raw", bytearray(b"raw"), object(), 1 + 2j])
def test_unsupported_values(value: object) -> None:
    with pytest.raises(UnsupportedType):
        encode_with_key("v", value)


# == Sequences ==


def test_sequence_under_a_key_repeats_the_key() -> None:
    assert encode_with_key("nums", [1, 2, 3]) == '"nums" "1"\n"nums" "2"\n"nums" "3"\n'


def test_tuple_elements_skip_absent_values() -> None:
    value = ("foo", 123, False, "c", None)
    assert encode_with_key("value", value) == dedent(
        """\
        "value" "foo"
        "value" "123"
        "value" "0"
        "value" "c"
        """
    )


def test_embedded_json_is_quoted_and_escaped() -> None:
    value = (-36, True, '{"embeddedJson":"cursed"}')
    assert encode_with_key("value", value, WHEN_REQUIRED) == dedent(
        """\
        value -36
        value 1
        value "{\\"embeddedJson\\":\\"cursed\\"}"
        """
    )


def test_empty_sequence_writes_nothing() -> None:
    assert encode_with_key("empty", []) == ""
    assert encode({"items": [], "name": "x"}) == '"name" "x"\n'


def test_sequence_errors() -> None:
    with pytest.raises(RootLevelSequence):
        encode([1, 2])
    with pytest.raises(RootLevelSequence):
        encode([])
    with pytest.raises(NestedSequence):
        encode_with_key("element", (UNIT, 1, (2,)))
    with pytest.raises(NestedSequence):
        encode({"grid": [[1, 2], [3, 4]]})


def test_sequence_of_objects() -> None:
    value = {"Cat": [{"Name": "Boots"}, {"Name": "Mittens"}]}
    assert encode(value) == dedent(
        """\
        "Cat"
        {
            "Name" "Boots"
        }
        "Cat"
        {
            "Name" "Mittens"
        }
        """
    )


# == Structs and maps ==


def test_struct_flattened_and_under_a_key() -> None:
    s = Record(c="X", i=-123, s="Test data", b=True)
    assert encode(s) == '"c" "X"\n"i" "-123"\n"s" "Test data"\n"b" "1"\n'
    assert encode_with_key("data", s) == dedent(
        """\
        "data"
        {
            "c" "X"
            "i" "-123"
            "s" "Test data"
            "b" "1"
        }
        """
    )


def test_absent_fields_are_omitted() -> None:
    @dataclass
    class Partial:
        name: str
        nickname: str | None = None
        tags: list[str] = field(default_factory=list)
        key_name: str = kv_field(key="KeyName", default="k")

    assert encode(Partial("Boots")) == '"name" "Boots"\n"KeyName" "k"\n'


def test_named_tuple_is_a_struct() -> None:
    class Coord(NamedTuple):
        x: int
        y: int

    assert encode_with_key("at", Coord(1, 2), WHEN_REQUIRED) == "at\n{\n    x 1\n    y 2\n}\n"


def test_empty_maps() -> None:
    assert encode({}) == ""
    assert encode(Unitary()) == ""
    assert encode_with_key("empty", {}) == '"empty"\n{\n}\n'


def test_map_keys_must_be_string_like() -> None:
    assert encode({1: "a", False: "b", Color.RED: "c"}, WHEN_REQUIRED) == "1 a\n0 b\nRED c\n"
    with pytest.raises(KeyMustBeAString):
        encode({1.5: "x"})
    with pytest.raises(KeyMustBeAString):
        encode({(1, 2): "x"})
    with pytest.raises(KeyMustBeAString):
        encode({2**64: "x"})


def test_kv_object_keeps_repetition_and_conditions() -> None:
    obj = KvObject().add("#base", "panel.res").add("wide", "100", "$WIN32").add("wide", "200", "$X360")
    options = FormatOptions(quote_macro_keys=Quoting.WHEN_REQUIRED)
    assert encode(obj, options) == dedent(
        """\
        #base "panel.res"
        "wide" [$WIN32] "100"
        "wide" [$X360] "200"
        """
    )


# == Variants ==


def test_unit_variants() -> None:
    assert encode_with_key("Variant", Point()) == '"Variant" "Point"\n'
    assert encode_with_key("Variant", Color.GREEN) == '"Variant" "GREEN"\n'


def test_newtype_variant() -> None:
    assert encode_with_key("Variant", Circle(2.5)) == dedent(
        """\
        "Variant"
        {
            "Circle" "2.5"
        }
        """
    )


def test_tuple_variant() -> None:
    assert encode_with_key("Variant", Pair(False, "data")) == dedent(
        """\
        "Variant"
        {
            "Pair" "0"
            "Pair" "data"
        }
        """
    )


def test_struct_variant_uses_declared_name() -> None:
    assert encode_with_key("Variant", Rect(w=1_000_000, h=2)) == dedent(
        """\
        "Variant"
        {
            "Rectangle"
            {
                "w" "1000000"
                "h" "2"
            }
        }
        """
    )


# == Output handling ==


def test_header_comments() -> None:
    serializer = Serializer()
    serializer.write_header("generated\nby tests")
    assert serializer.encode_with_key("k", "v") == '// generated\n// by tests\n"k" "v"\n'


def test_failed_walk_leaves_no_partial_text() -> None:
    serializer = Serializer()
    with pytest.raises(NonFiniteFloat):
        serializer.encode({"ok": 1, "bad": math.nan})
    sink = io.StringIO()
    with pytest.raises(NonFiniteFloat):
        Serializer.flush_to(sink, Serializer().encode({"ok": 1, "bad": math.nan}))
    assert sink.getvalue() == ""


def test_sink_failure_is_chained() -> None:
    class BrokenSink:
        def write(self, s: str) -> int:
            raise BrokenPipeError("gone")

    with pytest.raises(KvIoError) as exc_info:
        Serializer.flush_to(BrokenSink(), "text")
    assert isinstance(exc_info.value.__cause__, BrokenPipeError)
    assert isinstance(exc_info.value, OSError)


def test_depth_limit() -> None:
    value: dict[str, object] = {}
    node = value
    for _ in range(10):
        child: dict[str, object] = {}
        node["a"] = child
        node = child
    assert Serializer(FormatOptions(max_depth=10)).encode(value).count("{") == 10
    with pytest.raises(RecursionLimitExceeded):
        Serializer(FormatOptions(max_depth=9)).encode(value)


def test_deep_struct_within_the_default_limit() -> None:
    text = Serializer().encode(chain(DEFAULT_MAX_DEPTH))
    assert text.count("{") == DEFAULT_MAX_DEPTH
    assert text.count('"name" "leaf"') == 1


def test_deep_struct_beyond_the_default_limit() -> None:
    with pytest.raises(RecursionLimitExceeded) as exc_info:
        Serializer().encode(chain(300))
    assert exc_info.value.limit == DEFAULT_MAX_DEPTH


def test_unbalanced_events_are_rejected() -> None:
    serializer = Serializer()
    with pytest.raises(SerializerStateError):
        serializer.end_map()
    with pytest.raises(SerializerStateError):
        serializer.visit_map_entry("k", "v")


# End of file: src/kvcodec/text/test_serializer.py
