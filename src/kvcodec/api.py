# File: src/kvcodec/api.py
"""
Library entry points for encoding and decoding KeyValues text.

Encoding:

- ``encode(value)`` renders a document whose top-level entries are the value's
  own entries (or a bare scalar).
- ``encode_with_key(key, value)`` renders ``value`` under a single root key.
- ``encode_to`` / ``encode_with_key_to`` write the finished text to a sink.

Decoding:

- ``decode(text, tp)`` reads a document into ``tp``, honouring the root kind
  the type declares with ``@keyvalues``.
- ``decode_expecting_key(text, tp)`` returns ``(root key, value)``.
- ``parse(text)`` returns the generic KeyValues document without typing it.

Options objects are built per call when the caller passes none.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

from kvcodec.errors import KvIoError
from kvcodec.mapper import TypeMapper
from kvcodec.model import KeyValues, KvObject
from kvcodec.options import DecodeOptions, FormatOptions
from kvcodec.text.formatter import TextSink
from kvcodec.text.parser import Parser
from kvcodec.text.serializer import Serializer
from kvcodec.xlogging.logger_factory import create_logger


__all__ = [
    "decode",
    "decode_expecting_key",
    "decode_expecting_key_from",
    "decode_from",
    "encode",
    "encode_to",
    "encode_with_key",
    "encode_with_key_to",
    "parse",
    "parse_from",
    "to_tree",
]

LOG = create_logger(__name__)

type Header = str | Iterable[str] | None


class TextSource(Protocol):
    """Anything with ``read()`` returning the whole input: an open file, ``io.StringIO``."""

    def read(self) -> str | bytes: ...


def encode(value: Any, options: FormatOptions | None = None, *, header: Header = None) -> str:
    """
    Encode `value` as a KeyValues document.

    Args:
        value: A struct, mapping, KvObject, variant or scalar.
        options: Style policy. Defaults to quoted keys and values, braces on their own lines.
        header: Comment lines written before the document.

    Returns:
        str: The document text.
    """
    LOG.debug("encode %s", type(value).__name__)
    serializer = Serializer(options)
    serializer.write_header(header)
    return serializer.encode(value)


def encode_with_key(
    key: str,
    value: Any,
    options: FormatOptions | None = None,
    *,
    header: Header = None,
) -> str:
    """Encode `value` as the single entry of a document under `key`."""
    LOG.debug("encode %s under key %r", type(value).__name__, key)
    serializer = Serializer(options)
    serializer.write_header(header)
    return serializer.encode_with_key(key, value)


def encode_to(
    writer: TextSink,
    value: Any,
    options: FormatOptions | None = None,
    *,
    header: Header = None,
) -> None:
    """
    Encode `value` and write the text to `writer`.

    Nothing is written unless encoding succeeds.

    :raises KvIoError: If `writer` fails.
    """
    Serializer.flush_to(writer, encode(value, options, header=header))


def encode_with_key_to(
    writer: TextSink,
    key: str,
    value: Any,
    options: FormatOptions | None = None,
    *,
    header: Header = None,
) -> None:
    """Write `encode_with_key(key, value)` to `writer`."""
    Serializer.flush_to(writer, encode_with_key(key, value, options, header=header))


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)


def _read_all(reader: TextSource) -> str:
    try:
        data = reader.read()
        return data.decode("utf-8-sig") if isinstance(data, bytes) else data
    except (OSError, UnicodeDecodeError) as e:
        raise KvIoError("reading from the input source", e) from e


def parse(text: str, *, max_depth: int | None = None) -> KeyValues:
    """Parse `text` into a generic document without mapping it to a type."""
    return KeyValues.flattened(Parser(text, max_depth).parse())


def parse_from(reader: TextSource, *, max_depth: int | None = None) -> KeyValues:
    return parse(_read_all(reader), max_depth=max_depth)


def decode[T](text: str, tp: type[T], options: DecodeOptions | None = None) -> T:
    """
    Decode `text` into an instance of `tp`.

    Types decorated with ``@keyvalues(key=...)`` are read from under their
    single root key; all other types take the document's top-level entries.

    :raises KeyValuesSyntaxError: If the text is malformed.
    :raises MultipleRootKeys: If a nested type meets several top-level keys.
    :raises DecodeError: If the tree does not fit `tp`.
    """
    opts = options or DecodeOptions()
    with LOG.prefix_with(f"[decode {_type_name(tp)}]"):
        root = Parser(text, opts.max_depth).parse()
        return TypeMapper(opts).decode_document(root, tp)


def decode_expecting_key[T](
    text: str,
    tp: type[T],
    options: DecodeOptions | None = None,
) -> tuple[str, T]:
    """Decode the value under the document's single root key; return the key with it."""
    opts = options or DecodeOptions()
    with LOG.prefix_with(f"[decode {_type_name(tp)}]"):
        root = Parser(text, opts.max_depth).parse()
        return TypeMapper(opts).decode_document_expecting_key(root, tp)


def decode_from[T](reader: TextSource, tp: type[T], options: DecodeOptions | None = None) -> T:
    return decode(_read_all(reader), tp, options)


def decode_expecting_key_from[T](
    reader: TextSource,
    tp: type[T],
    options: DecodeOptions | None = None,
) -> tuple[str, T]:
    return decode_expecting_key(_read_all(reader), tp, options)


def to_tree(value: Any) -> KvObject:
    """Build the KvObject that `value` encodes to."""
    return TypeMapper().to_tree(value)


# End of file: src/kvcodec/api.py
