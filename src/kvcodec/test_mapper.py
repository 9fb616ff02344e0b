# File: src/kvcodec/test_mapper.py
"""
TypeMapper and TreeBuilder tests: scalars, collections, structs, variants,
unknown-field policies and key paths in errors.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, NewType

import pytest

from kvcodec.base.types import UNIT, Unit
from kvcodec.errors import (
    DecodeError,
    InvalidScalar,
    MissingField,
    RecursionLimitExceeded,
    ShapeMismatch,
    UnknownField,
    UnknownVariant,
    UnsupportedType,
)
from kvcodec.mapper import TreeBuilder, TypeMapper
from kvcodec.model import KvObject
from kvcodec.options import DEFAULT_MAX_DEPTH, DecodeOptions, UnknownFields
from kvcodec.shape import RenameRule, Variant, VariantKind, keyvalues, kv_field
from kvcodec.text.parser import parse_text


UserId = NewType("UserId", int)


class Mood(Enum):
    CALM = "calm"
    GRUMPY = "grumpy"


@keyvalues(rename_all=RenameRule.PASCAL)
@dataclass
class Cat:
    name: str
    age: int
    mood: Mood = Mood.CALM
    toys: list[str] = field(default_factory=list)


@dataclass
class Cats:
    cat: list[Cat] = kv_field(key="Cat")


@keyvalues(deny_unknown_fields=True)
@dataclass
class Strict:
    a: int


class Coord(NamedTuple):
    x: float
    y: float = 0.0


class Command(Variant):
    pass


@dataclass
class Stop(Command):
    pass


@dataclass
class Say(Command):
    __kv_variant__ = VariantKind.NEWTYPE
    text: str


@dataclass
class Move(Command):
    __kv_variant__ = VariantKind.TUPLE
    dx: int
    dy: int
    speed: float | None = None


@dataclass
class Spawn(Command):
    entity: str
    at: Coord


@dataclass
class Link:
    child: "Link | None" = None


@dataclass
class Dangling:
    age: int
    owner: "Owner"  # noqa: F821


def values(text: str, key: str = "v") -> list[Any]:
    return parse_text(text).get_all(key)


def decode(text: str, tp: Any, key: str = "v", options: DecodeOptions | None = None) -> Any:
    return TypeMapper(options).decode_values(values(text, key), tp, key)


def nested_tree(levels: int) -> KvObject:
    tree = KvObject()
    for _ in range(levels):
        tree = KvObject().add("child", tree)
    return tree


def link_depth(link: Link) -> int:
    depth = 0
    while link.child is not None:
        link, depth = link.child, depth + 1
    return depth


# == Scalars ==


@pytest.mark.parametrize(
    ("text", "tp", "expected"),
    [
        ('v "hello"', str, "hello"),
        ('v ""', str, ""),
        ("v 0", bool, False),
        ("v 1", bool, True),
        ("v 7", bool, True),
        ("v -42", int, -42),
        ("v 18446744073709551615", int, 2**64 - 1),
        ("v 2.5", float, 2.5),
        ("v 1e+20", float, 1e20),
        ("v 3", UserId, 3),
        ("v GRUMPY", Mood, Mood.GRUMPY),
        ('v ""', Unit, UNIT),
        ("v anything", Any, "anything"),
    ],
)
def test_scalars(text: str, tp: Any, expected: Any) -> None:
    assert decode(text, tp) == expected


@pytest.mark.parametrize(
    ("text", "tp"),
    [
        ("v yes", bool),
        ("v 1.0", int),
        ("v 1_000", int),
        ("v 18446744073709551616", int),
        ("v nan", float),
        ("v inf", float),
        ("v abc", float),
    ],
)
def test_invalid_scalars(text: str, tp: type) -> None:
    with pytest.raises(InvalidScalar) as exc_info:
        decode(text, tp)
    assert exc_info.value.path == "v"


def test_scalar_from_object_is_a_shape_mismatch() -> None:
    with pytest.raises(ShapeMismatch):
        decode('v { a b }', str)


def test_unknown_enum_member() -> None:
    with pytest.raises(UnknownVariant) as exc_info:
        decode("v SLEEPY", Mood)
    assert exc_info.value.expected == ["CALM", "GRUMPY"]


# == Collections ==


def test_sequences_take_every_entry() -> None:
    text = "v 1 v 2 v 2"
    assert decode(text, list[int]) == [1, 2, 2]
    assert decode(text, tuple[int, ...]) == (1, 2, 2)
    assert decode(text, set[int]) == {1, 2}
    assert decode(text, frozenset[int]) == frozenset({1, 2})
    assert decode(text, Sequence[int]) == [1, 2, 2]
    assert decode(text, tuple[int, str, float]) == (1, "2", 2.0)


def test_fixed_tuple_arity() -> None:
    with pytest.raises(ShapeMismatch):
        decode("v 1 v 2", tuple[int, int, int])


def test_more_than_one_entry_for_a_single_value() -> None:
    with pytest.raises(ShapeMismatch) as exc_info:
        decode("v 1 v 2", int)
    assert exc_info.value.found == "2 entries"


def test_sequence_of_sequences_is_rejected() -> None:
    with pytest.raises(ShapeMismatch):
        decode("v 1", list[list[int]])


def test_optional_values() -> None:
    assert decode("other 1", int | None) is None
    assert decode("v 5", int | None) == 5
    assert decode("v 5 v 6", list[int] | None) == [5, 6]


def test_unions_try_members_in_order() -> None:
    assert decode("v 5", int | str) == 5
    assert decode("v five", int | str) == "five"


def test_mappings() -> None:
    text = 'v { "1" "a" "2" "b" "2" "c" }'
    assert decode(text, dict[int, list[str]]) == {1: ["a"], 2: ["b", "c"]}
    assert decode('v { CALM 1 }', Mapping[Mood, bool]) == {Mood.CALM: True}
    assert decode('v { x { y 1 } }', dict[str, dict[str, int]]) == {"x": {"y": 1}}


# == Structs ==


def test_struct_with_renamed_fields_and_defaults() -> None:
    cat = decode('v { Name Boots Age 3 Toys mouse Toys string }', Cat)
    assert cat == Cat(name="Boots", age=3, toys=["mouse", "string"])


def test_repeated_objects_become_a_sequence_field() -> None:
    root = parse_text('Cat { Name Boots Age 3 } Cat { Name Mittens Age 5 Mood GRUMPY }')
    cats = TypeMapper().decode_value(root, Cats, "")
    assert cats == Cats(cat=[Cat("Boots", 3), Cat("Mittens", 5, Mood.GRUMPY)])


def test_missing_field_reports_the_path() -> None:
    root = parse_text('Cat { Name Boots Age 3 } Cat { Name Mittens }')
    with pytest.raises(MissingField) as exc_info:
        TypeMapper().decode_value(root, Cats, "")
    assert exc_info.value.path == "Cat[1]"
    assert exc_info.value.field == "Age"


def test_nested_error_path() -> None:
    root = parse_text('Cats { Cat { Name Boots Age 3 } Cat { Name Mittens Age old } }')
    with pytest.raises(InvalidScalar) as exc_info:
        TypeMapper().decode_values(root["Cats"], Cats, "Cats")
    assert exc_info.value.path == "Cats.Cat[1].Age"
    assert "Cats.Cat[1].Age" in str(exc_info.value)


def test_unknown_fields_policy() -> None:
    text = "v { a 1 b 2 }"
    assert decode(text, dict[str, int]) == {"a": 1, "b": 2}

    @dataclass
    class Loose:
        a: int

    assert decode(text, Loose) == Loose(1)
    with pytest.raises(UnknownField) as exc_info:
        decode(text, Loose, options=DecodeOptions(unknown_fields=UnknownFields.REJECT))
    assert exc_info.value.field == "b"
    with pytest.raises(UnknownField):
        decode(text, Strict)


def test_named_tuple_struct() -> None:
    assert decode("v { x 1.5 }", Coord) == Coord(1.5, 0.0)


def test_absent_sequence_and_optional_fields() -> None:
    @dataclass
    class Bag:
        items: list[int]
        label: str | None
        marker: Unit

    assert decode("v { }", Bag) == Bag(items=[], label=None, marker=UNIT)


def test_constructor_errors_become_decode_errors() -> None:
    @dataclass
    class Positive:
        n: int

        def __post_init__(self) -> None:
            if self.n <= 0:
                raise ValueError("n must be positive")

    with pytest.raises(DecodeError, match="n must be positive"):
        decode("v { n -1 }", Positive)


def test_unsupported_target_type() -> None:
    with pytest.raises(UnsupportedType):
        decode("v 1", complex)


def test_unresolvable_field_annotation_is_unsupported() -> None:
    with pytest.raises(UnsupportedType, match="Dangling"):
        decode("v { age 22 owner x }", Dangling)


# == Variants ==


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("v Stop", Stop()),
        ('v { Say "hello there" }', Say("hello there")),
        ("v { Move 1 Move -2 }", Move(1, -2)),
        ("v { Move 1 Move -2 Move 0.5 }", Move(1, -2, 0.5)),
        ("v { Spawn { entity npc at { x 1 y 2 } } }", Spawn("npc", Coord(1.0, 2.0))),
    ],
)
def test_variants(text: str, expected: Command) -> None:
    assert decode(text, Command) == expected


def test_union_of_variant_cases() -> None:
    assert decode("v Stop", Stop | Say) == Stop()
    with pytest.raises(UnknownVariant):
        decode("v { Move 1 Move 2 }", Stop | Say)


@pytest.mark.parametrize(
    ("text", "error"),
    [
        ("v Jump", UnknownVariant),
        ("v Say", ShapeMismatch),
        ("v Spawn", ShapeMismatch),
        ("v { Jump 1 }", UnknownVariant),
        ("v { Say a Stop b }", ShapeMismatch),
        ("v { Move 1 }", ShapeMismatch),
        ("v { Move 1 Move 2 Move 3 Move 4 }", ShapeMismatch),
        ("v { Stop x }", ShapeMismatch),
    ],
)
def test_variant_errors(text: str, error: type[Exception]) -> None:
    with pytest.raises(error):
        decode(text, Command)


def test_bare_text_naming_an_object_case() -> None:
    with pytest.raises(ShapeMismatch, match="an object for variant 'Spawn'") as exc_info:
        decode("v Spawn", Command)
    assert exc_info.value.path == "v"


# == Depth ==


def test_deep_tree_within_the_default_limit() -> None:
    link = TypeMapper().decode_document(nested_tree(DEFAULT_MAX_DEPTH), Link)
    assert link_depth(link) == DEFAULT_MAX_DEPTH


def test_deep_tree_beyond_the_default_limit() -> None:
    with pytest.raises(RecursionLimitExceeded) as exc_info:
        TypeMapper().decode_document(nested_tree(300), Link)
    assert exc_info.value.limit == DEFAULT_MAX_DEPTH


def test_depth_counts_objects_below_the_root() -> None:
    mapper = TypeMapper(DecodeOptions(max_depth=3))
    assert link_depth(mapper.decode_document(nested_tree(3), Link)) == 3
    with pytest.raises(RecursionLimitExceeded):
        mapper.decode_document(nested_tree(4), Link)
    five_levels = dict[str, dict[str, dict[str, dict[str, dict[str, int]]]]]
    with pytest.raises(RecursionLimitExceeded):
        mapper.decode_document(parse_text("a { b { c { d { } } } }"), five_levels)


# == Tree building ==


def test_tree_builder_matches_serializer_rules() -> None:
    tree = TypeMapper().to_tree(Cats(cat=[Cat("Boots", 3, toys=["mouse"]), Cat("Tom", 1)]))
    expected = (
        KvObject()
        .add("Cat", KvObject().add("Name", "Boots").add("Age", "3").add("Mood", "CALM").add("Toys", "mouse"))
        .add("Cat", KvObject().add("Name", "Tom").add("Age", "1").add("Mood", "CALM"))
    )
    assert tree == expected


def test_tree_builder_roots() -> None:
    assert TreeBuilder().build(5) == "5"
    assert TreeBuilder().build(None) == ""
    assert TreeBuilder().build_with_key("k", [1, 2]) == KvObject().add("k", "1").add("k", "2")
    with pytest.raises(UnsupportedType):
        TypeMapper().to_tree("bare")


def test_tree_round_trip_through_mapper() -> None:
    value = Cats(cat=[Cat("Boots", 3, Mood.GRUMPY, ["a", "b"])])
    tree = TypeMapper().to_tree(value)
    assert TypeMapper().decode_value(tree, Cats, "") == value


# End of file: src/kvcodec/test_mapper.py
