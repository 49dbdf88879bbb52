"""Response body access: transparent decompression, the raw body stream, and charsets.

``Content-Encoding: gzip`` and ``deflate`` are decoded on the fly; any other
encoding passes through untouched.  :class:`BodyStream` presents the decoded
bytes as a readable binary stream that can also report how many bytes are
ready without blocking on more than one network read.
"""

from __future__ import annotations

import codecs
import io
import logging
import zlib
from typing import Callable, Iterable, Iterator, Optional

from .errors import UnknownCharsetError
from .network.policy import DEFLATE_ENCODING, GZIP_ENCODING

logger = logging.getLogger(__name__)

__all__ = [
    "ContentDecoder",
    "GzipDecoder",
    "DeflateDecoder",
    "get_decoder",
    "decode_chunks",
    "BodyStream",
    "charset_from_content_type",
    "resolve_charset",
]


class ContentDecoder:
    """Pass-through decoder for unrecognised or absent content encodings."""

    def decompress(self, data: bytes) -> bytes:
        return data

    def flush(self) -> bytes:
        return b""


class GzipDecoder(ContentDecoder):
    """Incremental gzip decoder; concatenated gzip members are all decoded."""

    def __init__(self) -> None:
        self._obj = zlib.decompressobj(16 + zlib.MAX_WBITS)
        self._seen_member = False

    def decompress(self, data: bytes) -> bytes:
        out = bytearray()
        while data:
            try:
                out += self._obj.decompress(data)
            except zlib.error:
                # Trailing garbage after a complete member is tolerated
                if self._seen_member:
                    return bytes(out)
                raise
            data = self._obj.unused_data
            if not data:
                break
            self._seen_member = True
            self._obj = zlib.decompressobj(16 + zlib.MAX_WBITS)
        return bytes(out)

    def flush(self) -> bytes:
        return self._obj.flush()


class DeflateDecoder(ContentDecoder):
    """Incremental deflate decoder accepting zlib-wrapped or raw deflate data."""

    def __init__(self) -> None:
        self._obj = zlib.decompressobj()
        self._first_try = True
        self._data = b""

    def decompress(self, data: bytes) -> bytes:
        if not data:
            return data
        if not self._first_try:
            return self._obj.decompress(data)

        self._data += data
        try:
            decompressed = self._obj.decompress(data)
        except zlib.error:
            # Not zlib-wrapped; replay everything seen so far as raw deflate
            self._first_try = False
            self._obj = zlib.decompressobj(-zlib.MAX_WBITS)
            buffered, self._data = self._data, b""
            return self._obj.decompress(buffered)
        if decompressed:
            self._first_try = False
            self._data = b""
        return decompressed

    def flush(self) -> bytes:
        return self._obj.flush()


def get_decoder(content_encoding: Optional[str]) -> ContentDecoder:
    encoding = (content_encoding or "").strip().lower()
    if encoding == GZIP_ENCODING:
        return GzipDecoder()
    if encoding == DEFLATE_ENCODING:
        return DeflateDecoder()
    return ContentDecoder()


def decode_chunks(chunks: Iterable[bytes], decoder: ContentDecoder) -> Iterator[bytes]:
    """Decode ``chunks`` lazily, skipping chunks that decode to nothing."""
    for chunk in chunks:
        data = decoder.decompress(chunk)
        if data:
            yield data
    tail = decoder.flush()
    if tail:
        yield tail


class BodyStream(io.RawIOBase):
    """Readable binary stream over an iterator of byte chunks.

    :meth:`available` reports the bytes buffered and ready to read, pulling one
    more chunk from the source only when the buffer is empty.  It returns ``0``
    only once the source is exhausted (or the stream is closed).
    """

    def __init__(
        self, chunks: Iterable[bytes], on_close: Optional[Callable[[], None]] = None
    ) -> None:
        super().__init__()
        self._chunks = iter(chunks)
        self._buffer = bytearray()
        self._exhausted = False
        self._on_close = on_close

    @classmethod
    def from_bytes(cls, data: bytes) -> "BodyStream":
        return cls((data,) if data else ())

    def readable(self) -> bool:
        return True

    def available(self) -> int:
        if self.closed:
            return 0
        while not self._buffer and not self._exhausted:
            try:
                chunk = next(self._chunks)
            except StopIteration:
                self._exhausted = True
                break
            self._buffer += chunk
        return len(self._buffer)

    def readinto(self, buffer) -> int:  # type: ignore[override]
        if self.closed:
            raise ValueError("I/O operation on closed body stream")
        size = min(len(buffer), self.available())
        buffer[:size] = self._buffer[:size]
        del self._buffer[:size]
        return size

    def close(self) -> None:
        if self.closed:
            return
        try:
            if self._on_close is not None:
                self._on_close()
        finally:
            self._buffer.clear()
            super().close()


def charset_from_content_type(content_type: Optional[str]) -> Optional[str]:
    """Extract the ``charset`` parameter from a ``Content-Type`` value.

    Examples:
        >>> charset_from_content_type("text/html; Charset=ISO-8859-1")
        'ISO-8859-1'
    """
    if not content_type:
        return None
    for parameter in content_type.split(";"):
        key, sep, value = parameter.partition("=")
        if sep and key.strip().lower() == "charset":
            value = value.strip().strip("\"'")
            if value:
                return value
    return None


def resolve_charset(name: str) -> str:
    """Return the canonical codec name for ``name`` (case-insensitive).

    Raises:
        UnknownCharsetError: If no codec is registered under ``name``.
    """
    try:
        return codecs.lookup(name.strip()).name
    except LookupError as exc:
        raise UnknownCharsetError(name) from exc
