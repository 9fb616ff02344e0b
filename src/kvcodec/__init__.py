"""
package: kvcodec

Bidirectional codec for KeyValues (VDF) text.
"""

from kvcodec.api import (
    decode,
    decode_expecting_key,
    decode_expecting_key_from,
    decode_from,
    encode,
    encode_to,
    encode_with_key,
    encode_with_key_to,
    parse,
    parse_from,
    to_tree,
)
from kvcodec.base.types import UNIT, Unit
from kvcodec.errors import (
    DecodeError,
    InvalidScalar,
    KeyMustBeAString,
    KeyValuesError,
    KeyValuesSyntaxError,
    KvIoError,
    MissingField,
    MultipleRootKeys,
    NestedSequence,
    NonFiniteFloat,
    RecursionLimitExceeded,
    RootLevelSequence,
    SerializerStateError,
    ShapeMismatch,
    UnknownField,
    UnknownVariant,
    UnsupportedKey,
    UnsupportedType,
)
from kvcodec.model import KeyValues, KvObject, Position, RootKind, Value
from kvcodec.options import BraceStyle, DecodeOptions, FormatOptions, Quoting, UnknownFields
from kvcodec.shape import (
    RenameRule,
    ShapeVisitor,
    Variant,
    VariantKind,
    describe,
    keyvalues,
    kv_field,
)


__version__ = "0.1.0"

# <AUTOGEN_INIT>
from kvcodec import (
    api,
    base,
    errors,
    mapper,
    model,
    options,
    shape,
    text,
    walker,
    xlogging,
)


__all__ = [
    "UNIT",
    "BraceStyle",
    "DecodeError",
    "DecodeOptions",
    "FormatOptions",
    "InvalidScalar",
    "KeyMustBeAString",
    "KeyValues",
    "KeyValuesError",
    "KeyValuesSyntaxError",
    "KvIoError",
    "KvObject",
    "MissingField",
    "MultipleRootKeys",
    "NestedSequence",
    "NonFiniteFloat",
    "Position",
    "Quoting",
    "RecursionLimitExceeded",
    "RenameRule",
    "RootKind",
    "RootLevelSequence",
    "SerializerStateError",
    "ShapeMismatch",
    "ShapeVisitor",
    "Unit",
    "UnknownField",
    "UnknownFields",
    "UnknownVariant",
    "UnsupportedKey",
    "UnsupportedType",
    "Value",
    "Variant",
    "VariantKind",
    "api",
    "base",
    "decode",
    "decode_expecting_key",
    "decode_expecting_key_from",
    "decode_from",
    "describe",
    "encode",
    "encode_to",
    "encode_with_key",
    "encode_with_key_to",
    "errors",
    "keyvalues",
    "kv_field",
    "mapper",
    "model",
    "options",
    "parse",
    "parse_from",
    "shape",
    "text",
    "to_tree",
    "walker",
    "xlogging",
]
# </AUTOGEN_INIT>
