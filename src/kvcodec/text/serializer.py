# File: src/kvcodec/text/serializer.py
"""
Text encoder: a ValueWalker whose output hooks drive a Formatter.

The whole document is rendered into an in-memory buffer first; the caller's
sink only sees text once the walk has succeeded, so a failed encode never
leaves partial output behind.
"""

from __future__ import annotations

import io
from collections.abc import Iterable
from typing import Any

from kvcodec.errors import KvIoError
from kvcodec.options import FormatOptions
from kvcodec.text.formatter import Formatter, PrettyFormatter, TextSink, is_macro_key
from kvcodec.walker import ValueWalker
from kvcodec.xlogging.logger_factory import create_logger


__all__ = ["Serializer"]

LOG = create_logger(__name__)


class Serializer(ValueWalker):
    """
    Encode Python values to KeyValues text.

    :param options: Style policy; a fresh FormatOptions() when omitted.
    :param formatter: Rendering strategy; a PrettyFormatter over `options` when omitted.
    """

    def __init__(
        self,
        options: FormatOptions | None = None,
        formatter: Formatter | None = None,
    ) -> None:
        self.options = options or FormatOptions()
        super().__init__(self.options.max_depth)
        self.formatter = formatter or PrettyFormatter(options=self.options)
        self._buffer = io.StringIO()

    def _emit_root_scalar(self, text: str) -> None:
        self.formatter.write_root_value(self._buffer, text)

    def _write_key(self, key: str, condition: str | None) -> None:
        if is_macro_key(key):
            self.formatter.write_macro_key(self._buffer, key)
        else:
            self.formatter.write_key(self._buffer, key)
        if condition:
            self.formatter.write_conditional(self._buffer, condition)

    def _emit_scalar(self, key: str, condition: str | None, text: str) -> None:
        self._write_key(key, condition)
        self.formatter.write_value(self._buffer, text)

    def _open_object(self, key: str | None, condition: str | None) -> None:
        if key is None:
            return
        self._write_key(key, condition)
        self.formatter.begin_object(self._buffer)

    def _close_object(self, braced: bool) -> None:
        if braced:
            self.formatter.end_object(self._buffer)

    def write_header(self, header: str | Iterable[str] | None) -> None:
        """Write one line comment per header line."""
        if header is None:
            return
        lines = header.splitlines() if isinstance(header, str) else list(header)
        for line in lines:
            self.formatter.write_line_comment(self._buffer, line)

    def encode(self, value: Any) -> str:
        """Render `value` as a document and return the text."""
        self.walk_document(value)
        return self._buffer.getvalue()

    def encode_with_key(self, key: str, value: Any) -> str:
        """Render `value` as the single entry of a document under `key`."""
        self.walk_with_key(key, value)
        return self._buffer.getvalue()

    @staticmethod
    def flush_to(w: TextSink, text: str) -> None:
        """
        Write finished text to the caller's sink.

        :raises KvIoError: If the sink fails; the original error is chained.
        """
        try:
            w.write(text)
        except OSError as e:
            raise KvIoError("writing to the output sink", e) from e
        LOG.debug("wrote %d characters", len(text))


# End of file: src/kvcodec/text/serializer.py
