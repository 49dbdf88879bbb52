"""Lazy resegmentation of a response body into chunks or delimited lines."""

from __future__ import annotations

import codecs
import logging
import re
from collections import deque
from typing import Callable, Deque, Iterator, List, Pattern, Union

import httpx

from .content import BodyStream

logger = logging.getLogger(__name__)

__all__ = ["ChunkIterator", "LineIterator"]


class ChunkIterator(Iterator[bytes]):
    """Forward-only chunks of a :class:`BodyStream`.

    Each step returns the bytes that are ready, up to ``chunk_size``; it never
    waits to fill a whole chunk.  The stream is closed when it reports nothing
    available, and an I/O failure while probing is treated as the end of the
    body.  Not restartable.
    """

    def __init__(self, stream: BodyStream, chunk_size: int) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._stream = stream
        self._chunk_size = chunk_size
        self._done = False

    def __iter__(self) -> "ChunkIterator":
        return self

    def __next__(self) -> bytes:
        if self._done:
            raise StopIteration
        try:
            ready = self._stream.available()
        except (OSError, httpx.TransportError, httpx.StreamError) as exc:
            logger.debug("Body stream failed while probing; ending iteration", extra={"error": repr(exc)})
            ready = 0
        if ready <= 0:
            self._done = True
            self._stream.close()
            raise StopIteration
        return self._stream.read(min(self._chunk_size, ready))


class LineIterator(Iterator[bytes]):
    """Delimiter-bounded segments built on top of a chunk iterator.

    Accumulated bytes are decoded incrementally with the charset returned by
    ``charset`` at each step and searched for ``delimiter`` (a regular
    expression).  Segments are sliced from the original bytes, never
    re-encoded, so they round-trip exactly: a code unit cut by a chunk
    boundary stays undecoded until its remaining bytes arrive, and no byte
    order mark is added.  Fully delimited segments that are not returned
    immediately wait in an overflow queue; the unterminated tail is carried
    forward and returned once the chunks run out, unless it is empty.
    """

    def __init__(
        self,
        chunks: Iterator[bytes],
        delimiter: Union[str, Pattern[str]],
        charset: Callable[[], str],
    ) -> None:
        self._chunks = chunks
        self._delimiter = re.compile(delimiter) if isinstance(delimiter, str) else delimiter
        self._charset = charset
        self._leftover = b""
        self._overflow: Deque[bytes] = deque()

    def __iter__(self) -> "LineIterator":
        return self

    def __next__(self) -> bytes:
        if self._overflow:
            return self._overflow.popleft()
        for chunk in self._chunks:
            self._leftover += chunk
            segments = self._split(self._leftover)
            if len(segments) >= 2:
                self._leftover = segments[-1]
                self._overflow.extend(segments[1:-1])
                return segments[0]
        if self._leftover:
            leftover, self._leftover = self._leftover, b""
            return leftover
        raise StopIteration

    def _split(self, content: bytes) -> List[bytes]:
        """Split ``content`` at delimiter matches, keeping undecoded trailing bytes last."""
        charset = self._charset()
        decoder = codecs.getincrementaldecoder(charset)("surrogateescape")
        text = decoder.decode(content, final=False)
        pending = len(decoder.getstate()[0])

        encoder = codecs.getincrementalencoder(charset)("surrogateescape")
        # Emit any byte order mark up front so measured lengths exclude it
        encoder.encode("")

        def size(piece: str) -> int:
            return len(encoder.encode(piece))

        # Bytes consumed without producing text (a leading byte order mark)
        position = len(content) - pending - size(text)
        start = 0
        cursor = 0
        segments: List[bytes] = []
        for match in self._delimiter.finditer(text):
            position += size(text[cursor : match.start()])
            segments.append(content[start:position])
            position += size(match.group())
            start = position
            cursor = match.end()
        segments.append(content[start:])
        return segments
