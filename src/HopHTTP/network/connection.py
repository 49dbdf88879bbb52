"""Transport handle for one HTTP exchange.

A :class:`Connection` is configured first (verb, headers, timeouts, redirect
mode, body) and then sent exactly once through an ``httpx.Client`` in stream
mode.  Reading the status, headers, or body connects implicitly, so a
connection behaves the same whether the caller connects explicitly or not.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, List, Mapping, Optional

import httpx

from HopHTTP.errors import ConnectionStateError, UnsupportedSchemeError, VerbOverrideError
from HopHTTP.network.policy import DEFLATE_ENCODING, GZIP_ENCODING, SUPPORTED_SCHEMES

logger = logging.getLogger(__name__)

__all__ = ["Connection"]


class Connection:
    """A configurable, send-once HTTP exchange."""

    def __init__(
        self,
        url: str,
        *,
        client: httpx.Client,
        params: Optional[Mapping[str, Any]] = None,
        auth: Any = None,
        user_agent: Optional[str] = None,
    ) -> None:
        target = httpx.URL(url)
        if target.scheme not in SUPPORTED_SCHEMES:
            raise UnsupportedSchemeError(url, target.scheme)
        if params:
            target = target.copy_merge_params(params)
        self.url = target
        self.auth = auth
        self._client = client
        self._method = "GET"
        self.request_headers = httpx.Headers(
            {
                "Accept": "*/*",
                "Accept-Encoding": f"{GZIP_ENCODING}, {DEFLATE_ENCODING}",
                "User-Agent": user_agent or client.headers.get("User-Agent", "HopHTTP"),
            }
        )
        self.connect_timeout: Optional[float] = None
        self.read_timeout: Optional[float] = None
        self.follow_redirects: bool = client.follow_redirects
        self.do_output = False
        self._outgoing: List[bytes] = []
        self._outgoing_stream: Optional[Iterable[bytes]] = None
        self._files: Optional[Mapping[str, Any]] = None
        self._form: Optional[Mapping[str, Any]] = None
        self._response: Optional[httpx.Response] = None
        self._streaming = False

    # ------------------------------------------------------------------
    # Configuration (before connect)
    # ------------------------------------------------------------------

    @property
    def method(self) -> str:
        return self._method

    def force_method(self, method: str) -> None:
        """Set the request verb verbatim, including non-standard verbs."""
        self._ensure_unconnected()
        self._method = method

    def set_request_property(self, key: str, value: str) -> None:
        self._ensure_unconnected()
        self.request_headers[key] = value

    def write(self, data: bytes) -> None:
        """Append ``data`` to the request body."""
        self._ensure_writable()
        self._outgoing.append(bytes(data))

    def write_stream(self, chunks: Iterable[bytes]) -> None:
        """Send the request body from ``chunks`` without buffering it."""
        self._ensure_writable()
        self._outgoing_stream = chunks

    def attach_multipart(
        self, files: Mapping[str, Any], fields: Optional[Mapping[str, Any]] = None
    ) -> None:
        self._ensure_writable()
        self._files = files
        self._form = fields

    def _ensure_unconnected(self) -> None:
        if self._response is not None:
            raise ConnectionStateError("connection is already established")

    def _ensure_writable(self) -> None:
        self._ensure_unconnected()
        if not self.do_output:
            raise ConnectionStateError("output is disabled on this connection")

    # ------------------------------------------------------------------
    # Exchange
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._response is not None

    def connect(self) -> None:
        """Send the request and receive the status line and headers (once)."""
        if self._response is not None:
            return
        request = httpx.Request(
            self._method,
            self.url,
            headers=self.request_headers,
            content=self._content(),
            data=self._form,
            files=self._files,
            extensions={"timeout": self._timeout().as_dict()},
        )
        # httpx upper-cases verbs; restore the verb exactly as requested
        try:
            request.method = self._method
        except AttributeError as exc:
            raise VerbOverrideError(self._method, request.method) from exc
        if request.method != self._method:
            raise VerbOverrideError(self._method, request.method)
        logger.debug(
            "Opening connection",
            extra={"method": self._method, "url": str(self.url.copy_with(query=None))},
        )
        self._response = self._client.send(
            request,
            stream=True,
            auth=self.auth,
            follow_redirects=self.follow_redirects,
        )

    def _content(self) -> Any:
        if self._outgoing_stream is not None:
            return self._outgoing_stream
        if self._outgoing:
            return b"".join(self._outgoing)
        return None

    def _timeout(self) -> httpx.Timeout:
        if self.connect_timeout is None and self.read_timeout is None:
            return self._client.timeout
        base = self._client.timeout
        return httpx.Timeout(
            base.write,
            connect=self.connect_timeout if self.connect_timeout is not None else base.connect,
            read=self.read_timeout if self.read_timeout is not None else base.read,
            pool=base.pool,
        )

    @property
    def response(self) -> httpx.Response:
        self.connect()
        if self._response is None:
            raise ConnectionStateError("connection was reset by another owner")
        return self._response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers

    def header_fields(self, name: str) -> List[str]:
        """Every value of a possibly repeated response header, in order."""
        return self.response.headers.get_list(name)

    @property
    def preloaded(self) -> bool:
        """True when the transport handed over a body it already read and decoded."""
        return self.response.is_stream_consumed and not self._streaming

    def input_stream(self) -> Iterator[bytes]:
        """The response body as received (no content decoding).

        Error statuses carry their body on the same stream.
        """
        response = self.response
        if self.preloaded:
            return iter((response.content,))
        self._streaming = True
        return response.iter_raw()

    def close(self) -> None:
        if self._response is not None:
            self._response.close()

    def __repr__(self) -> str:
        state = f"[{self._response.status_code}]" if self._response is not None else "unconnected"
        return f"<Connection {self._method} {self.url} {state}>"

