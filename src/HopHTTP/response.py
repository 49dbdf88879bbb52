# === NAVMAP v1 ===
# {
#   "module": "HopHTTP.response",
#   "purpose": "One hop of a redirect chain: lazy connection, redirect resolution, and body access",
#   "sections": [
#     {"id": "response", "name": "Response", "anchor": "class-response", "kind": "class"},
#     {"id": "connection", "name": "Connection & redirects", "anchor": "section-connection", "kind": "section"},
#     {"id": "content", "name": "Content access", "anchor": "section-content", "kind": "section"},
#     {"id": "iteration", "name": "Chunk & line iteration", "anchor": "section-iteration", "kind": "section"}
#   ]
# }
# === /NAVMAP ===

"""One hop of a redirect chain.

A :class:`Response` owns at most one :class:`~HopHTTP.network.connection.Connection`,
opened lazily the first time anything connection-derived is read (status,
headers, cookies, url, body).  Opening it runs the hop's preparation pipeline,
captures cookies, and, when the chain root allows it and the status is a
followed redirect, resolves the next hop eagerly.  The chain is a simple
linked sequence: each hop knows its prior hops (``history``) and the hop it
spawned (``next_hop``).

Body access is memoised: the decoded raw stream is created once, and reading
``content`` drains and closes it exactly once.  ``encoding`` can be changed at
any time; it only affects later text decoding.

A response has a single owner.  No locking is done; sharing one response
between threads is unsupported.
"""

from __future__ import annotations

import json as jsonlib
import logging
from typing import Any, Dict, List, Optional, Pattern, Sequence, Tuple, Union

import httpx

from .content import (
    BodyStream,
    charset_from_content_type,
    decode_chunks,
    get_decoder,
    resolve_charset,
)
from .cookies import CookieJar
from .errors import MaxRedirectsExceeded, MissingLocationHeader
from .iterators import ChunkIterator, LineIterator
from .network.client import get_http_client
from .network.connection import Connection
from .network.instrumentation import redact_url
from .network.pipeline import DEFAULT_PIPELINE, PreparationPipeline, Step
from .network.policy import (
    DEFAULT_CHARSET,
    DEFAULT_CONTENT_CHUNK_SIZE,
    DEFAULT_LINE_CHUNK_SIZE,
    DEFAULT_LINE_DELIMITER,
)
from .request import Request
from .settings import ClientSettings, get_settings

logger = logging.getLogger(__name__)

__all__ = ["Response"]


class Response:
    """The response to one hop of a (possibly redirected) request."""

    def __init__(
        self,
        request: Request,
        *,
        client: Optional[httpx.Client] = None,
        history: Sequence["Response"] = (),
        cookies: Optional[CookieJar] = None,
        pipeline: PreparationPipeline = DEFAULT_PIPELINE,
        steps: Sequence[Step] = (),
        settings: Optional[ClientSettings] = None,
    ) -> None:
        self.request = request
        self._client = client
        self._history: Tuple[Response, ...] = tuple(history)
        self._cookies = cookies if cookies is not None else CookieJar()
        self._pipeline = pipeline.with_custom(*steps) if steps else pipeline
        self._settings = settings
        self._connection: Optional[Connection] = None
        self._raw: Optional[BodyStream] = None
        self._content: Optional[bytes] = None
        self._encoding: Optional[str] = None
        self.next_hop: Optional[Response] = None

    # ------------------------------------------------------------------
    # Chain
    # ------------------------------------------------------------------

    @property
    def history(self) -> Tuple["Response", ...]:
        """Prior hops, oldest first; empty for the chain root."""
        return self._history

    @property
    def root(self) -> "Response":
        return self._history[0] if self._history else self

    @property
    def last_hop(self) -> "Response":
        """The terminal hop reachable from this one (``self`` if it did not redirect)."""
        hop = self
        while hop.next_hop is not None:
            hop = hop.next_hop
        return hop

    @property
    def pipeline(self) -> PreparationPipeline:
        return self._pipeline

    @property
    def jar(self) -> CookieJar:
        """Cookies accumulated so far, without forcing a connection."""
        return self._cookies

    def merge_cookies(self, jar: CookieJar) -> None:
        self._cookies = self._cookies.merge(jar)

    # ------------------------------------------------------------------
    # Connection & redirects
    # ------------------------------------------------------------------

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            self._establish()
        return self._connection  # type: ignore[return-value]

    def _establish(self) -> None:
        settings = self._settings or get_settings()
        client = self._client or get_http_client()
        connection = Connection(
            self.request.url,
            client=client,
            params=self.request.params,
            auth=self.request.auth,
            user_agent=settings.user_agent,
        )
        self._pipeline.prepare(self, connection)
        connection.connect()
        self._connection = connection
        self._pipeline.finish(self, connection)
        self._follow_redirect(connection, settings)

    def _follow_redirect(self, connection: Connection, settings: ClientSettings) -> None:
        root = self.root
        if not root.request.follows_redirects:
            return
        status = connection.status_code
        if status not in settings.redirect_status_codes:
            if self._history:
                logger.debug(
                    "Redirect following complete",
                    extra={"final_status": status, "hops": len(self._history)},
                )
            return

        location = connection.headers.get("location")
        if not location:
            connection.close()
            raise MissingLocationHeader(str(connection.url), status)
        if len(self._history) >= settings.max_redirects:
            connection.close()
            visited = [str(hop.connection.url) for hop in self._history]
            raise MaxRedirectsExceeded(settings.max_redirects, visited + [str(connection.url)])

        target = str(connection.url.join(location))
        carried = self._cookies.merge(CookieJar.from_mapping(root.request.cookies))
        next_request = root.request.replace(
            url=target, allow_redirects=False, cookies=carried.as_dict()
        )
        logger.debug(
            "Following redirect",
            extra={
                "from": redact_url(str(connection.url)),
                "to": redact_url(target),
                "status": status,
                "hop": len(self._history) + 1,
            },
        )

        # Release this hop's connection before the next one is opened
        _ = self.content
        hop = Response(
            next_request,
            client=self._client,
            history=self._history + (self,),
            cookies=self._cookies,
            pipeline=self._pipeline,
            settings=self._settings,
        )
        self.next_hop = hop
        hop.load()

    def load(self) -> "Response":
        """Connect (streaming) or download the body (buffered) now."""
        if self.root.request.stream:
            _ = self.connection
        else:
            self.content
        return self

    @property
    def status_code(self) -> int:
        return self.connection.status_code

    @property
    def headers(self) -> httpx.Headers:
        """Response headers; case-insensitive, repeated values joined with ``", "``."""
        return self.connection.headers

    @property
    def url(self) -> str:
        return str(self.connection.url)

    @property
    def cookies(self) -> CookieJar:
        _ = self.connection
        return self._cookies

    # ------------------------------------------------------------------
    # Content access
    # ------------------------------------------------------------------

    @property
    def raw(self) -> BodyStream:
        """The decompressed body stream (memoised)."""
        if self._raw is None:
            connection = self.connection
            encoding = None if connection.preloaded else connection.headers.get("content-encoding")
            decoder = get_decoder(encoding)
            self._raw = BodyStream(
                decode_chunks(connection.input_stream(), decoder), on_close=connection.close
            )
        return self._raw

    @property
    def content(self) -> bytes:
        """The whole decompressed body, read and cached on first access."""
        if self._content is None:
            with self.raw as stream:
                self._content = stream.read()
        return self._content

    @property
    def encoding(self) -> str:
        """Charset used by :attr:`text`: override, else ``Content-Type`` charset, else UTF-8."""
        if self._encoding is not None:
            return self._encoding
        charset = charset_from_content_type(self.headers.get("content-type"))
        if charset:
            return resolve_charset(charset)
        return DEFAULT_CHARSET

    @encoding.setter
    def encoding(self, value: Optional[str]) -> None:
        self._encoding = resolve_charset(value) if value is not None else None

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding, errors="replace")

    def json(self, **kwargs: Any) -> Any:
        return jsonlib.loads(self.text, **kwargs)

    @property
    def json_object(self) -> Dict[str, Any]:
        document = self.json()
        if not isinstance(document, dict):
            raise TypeError(f"expected a JSON object, got {type(document).__name__}")
        return document

    @property
    def json_array(self) -> List[Any]:
        document = self.json()
        if not isinstance(document, list):
            raise TypeError(f"expected a JSON array, got {type(document).__name__}")
        return document

    # ------------------------------------------------------------------
    # Chunk & line iteration
    # ------------------------------------------------------------------

    def iter_content(self, chunk_size: int = DEFAULT_CONTENT_CHUNK_SIZE) -> ChunkIterator:
        """Iterate the body in chunks of at most ``chunk_size`` bytes.

        Streaming requests read the live connection unless the body was
        already buffered; buffered content is replayed.
        """
        if self.request.stream and self._content is None:
            stream = self.raw
        else:
            stream = BodyStream.from_bytes(self.content)
        return ChunkIterator(stream, chunk_size)

    def iter_lines(
        self,
        chunk_size: int = DEFAULT_LINE_CHUNK_SIZE,
        delimiter: Union[str, Pattern[str]] = DEFAULT_LINE_DELIMITER,
    ) -> LineIterator:
        """Iterate the body as byte segments split on ``delimiter``."""
        return LineIterator(self.iter_content(chunk_size), delimiter, lambda: self.encoding)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._raw is not None:
            self._raw.close()
        elif self._connection is not None:
            self._connection.close()

    def __enter__(self) -> "Response":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}]>"
