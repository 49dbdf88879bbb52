"""Testing utilities for exercising the client core without a network.

Provides a scripted, recording HTTPX transport and a context manager that
installs a client backed by any transport as the shared client for the
duration of a test.
"""

from __future__ import annotations

import contextlib
import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import httpx

from ..network.client import configure_http_client, reset_http_client

__all__ = [
    "ResponseSpec",
    "RequestRecord",
    "RecordingTransport",
    "use_mock_http_client",
]

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def use_mock_http_client(transport: "httpx.BaseTransport", **client_kwargs):
    """Temporarily install an HTTPX client backed by ``transport``."""

    client = httpx.Client(transport=transport, **client_kwargs)
    configure_http_client(client=client)
    try:
        yield client
    finally:
        reset_http_client()
        client.close()


@dataclass
class ResponseSpec:
    """HTTP response definition served by :class:`RecordingTransport`."""

    status: int = 200
    body: Union[bytes, str, Any] = b""
    headers: Union[Mapping[str, str], List[Tuple[str, str]]] = field(default_factory=dict)
    stream: Optional[Iterable[bytes]] = None

    def serialise_body(self) -> bytes:
        if isinstance(self.body, bytes):
            return self.body
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return json.dumps(self.body).encode("utf-8")

    def build(self) -> httpx.Response:
        """Render as an unread, streamable HTTPX response."""
        if self.stream is not None:
            stream: httpx.SyncByteStream = _IterStream(self.stream)
        else:
            stream = httpx.ByteStream(self.serialise_body())
        return httpx.Response(self.status, headers=self.headers, stream=stream)


@dataclass
class RequestRecord:
    """Captured HTTP request seen by :class:`RecordingTransport`."""

    method: str
    url: str
    headers: Dict[str, str]
    body: bytes


class _IterStream(httpx.SyncByteStream):
    def __init__(self, chunks: Iterable[bytes]) -> None:
        self._chunks = chunks

    def __iter__(self):
        yield from self._chunks


Route = Union[ResponseSpec, Callable[[httpx.Request], ResponseSpec]]


class RecordingTransport(httpx.BaseTransport):
    """Transport serving scripted responses by URL and recording every request.

    Routes are keyed by full URL (query included, as sent).  A route may be a
    :class:`ResponseSpec` or a callable receiving the ``httpx.Request``.
    Unknown URLs get a 404.
    """

    def __init__(self, routes: Optional[Mapping[str, Route]] = None) -> None:
        self.routes: Dict[str, Route] = dict(routes or {})
        self.requests: List[RequestRecord] = []
        self._lock = threading.Lock()

    def add(self, url: str, route: Route) -> None:
        self.routes[url] = route

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        body = request.read()
        record = RequestRecord(
            method=request.method,
            url=str(request.url),
            headers=dict(request.headers.items()),
            body=body,
        )
        with self._lock:
            self.requests.append(record)
        route = self.routes.get(str(request.url))
        if route is None:
            logger.debug("No route for %s", request.url)
            return httpx.Response(404, stream=httpx.ByteStream(b""))
        spec = route(request) if callable(route) else route
        return spec.build()
