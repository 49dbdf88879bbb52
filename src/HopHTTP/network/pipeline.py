# === NAVMAP v1 ===
# {
#   "module": "HopHTTP.network.pipeline",
#   "purpose": "Ordered, immutable connection preparation steps applied once per hop",
#   "sections": [
#     {"id": "start-steps", "name": "Start steps", "anchor": "section-start-steps", "kind": "section"},
#     {"id": "end-steps", "name": "End steps", "anchor": "section-end-steps", "kind": "section"},
#     {"id": "connected-steps", "name": "Connected steps", "anchor": "section-connected-steps", "kind": "section"},
#     {"id": "preparationpipeline", "name": "PreparationPipeline", "anchor": "class-preparationpipeline", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Connection preparation pipeline.

Each hop runs one deterministic pass over an immutable sequence of steps:

1. start steps: verb, headers, cookies, timeouts, redirect mode
2. custom steps given to the response at construction
3. end steps: request body (in-memory, multipart, or streamed)
4. connect
5. connected steps: capture ``Set-Cookie`` into the hop's jar

A step is any callable ``step(response, connection) -> None``.  Pipelines are
values; composing custom steps returns a new pipeline and never touches
:data:`DEFAULT_PIPELINE`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO, Callable, Iterator, Mapping, Tuple, Union

from HopHTTP.cookies import CookieJar
from HopHTTP.network.connection import Connection
from HopHTTP.network.policy import STREAM_UPLOAD_CHUNK_BYTES

if TYPE_CHECKING:
    from HopHTTP.response import Response

Step = Callable[["Response", Connection], None]

__all__ = [
    "Step",
    "PreparationPipeline",
    "DEFAULT_PIPELINE",
    "DEFAULT_START_STEPS",
    "DEFAULT_END_STEPS",
    "DEFAULT_CONNECTED_STEPS",
    "iter_upload_chunks",
]


# ============================================================================
# Start steps
# ============================================================================


def force_method(response: "Response", connection: Connection) -> None:
    connection.force_method(response.request.method)


def apply_headers(response: "Response", connection: Connection) -> None:
    for key, value in response.request.headers.items():
        connection.set_request_property(key, value)


def apply_cookies(response: "Response", connection: Connection) -> None:
    """Send the cookies accumulated on the hop with the request's explicit cookies on top."""
    cookies = response.request.cookies
    if cookies is None:
        return
    jar = response.jar.merge(CookieJar.from_mapping(cookies))
    if jar:
        connection.set_request_property("Cookie", jar.serialize())


def apply_timeout(response: "Response", connection: Connection) -> None:
    timeout = response.request.timeout
    connection.connect_timeout = timeout
    connection.read_timeout = timeout


def disable_redirects(response: "Response", connection: Connection) -> None:
    connection.follow_redirects = False


# ============================================================================
# End steps
# ============================================================================


def write_body(response: "Response", connection: Connection) -> None:
    body = response.request.body
    if not body:
        return
    connection.do_output = True
    connection.write(body)


def attach_files(response: "Response", connection: Connection) -> None:
    request = response.request
    if not request.files:
        return
    fields = request.data if isinstance(request.data, Mapping) else None
    connection.do_output = True
    connection.attach_multipart(request.files, fields)


def stream_body(response: "Response", connection: Connection) -> None:
    """Stream a file or byte-stream payload; multipart requests are left alone."""
    request = response.request
    if request.files or not request.streams_body:
        return
    if not connection.do_output:
        connection.do_output = True
    connection.write_stream(iter_upload_chunks(request.data))


def iter_upload_chunks(
    source: Union[Path, BinaryIO, Any], chunk_size: int = STREAM_UPLOAD_CHUNK_BYTES
) -> Iterator[bytes]:
    """Yield ``source`` in chunks of at most ``chunk_size`` bytes.

    A :class:`~pathlib.Path` is opened and closed here.  A caller-owned handle
    is left open and, when seekable, rewound to where reading started so a
    redirect hop can send the same body again.
    """
    if isinstance(source, Path):
        with source.open("rb") as handle:
            yield from _read_chunks(handle, chunk_size)
        return

    start = source.tell() if _seekable(source) else None
    try:
        yield from _read_chunks(source, chunk_size)
    finally:
        if start is not None and not getattr(source, "closed", False):
            source.seek(start)


def _read_chunks(handle: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    while True:
        chunk = handle.read(chunk_size)
        if not chunk:
            break
        yield chunk


def _seekable(handle: Any) -> bool:
    seekable = getattr(handle, "seekable", None)
    return bool(seekable()) if callable(seekable) else False


# ============================================================================
# Connected steps
# ============================================================================


def capture_cookies(response: "Response", connection: Connection) -> None:
    lines = connection.header_fields("set-cookie")
    if lines:
        response.merge_cookies(CookieJar.from_set_cookie_headers(lines))


DEFAULT_START_STEPS: Tuple[Step, ...] = (
    force_method,
    apply_headers,
    apply_cookies,
    apply_timeout,
    disable_redirects,
)
DEFAULT_END_STEPS: Tuple[Step, ...] = (write_body, attach_files, stream_body)
DEFAULT_CONNECTED_STEPS: Tuple[Step, ...] = (capture_cookies,)


@dataclass(frozen=True)
class PreparationPipeline:
    """Immutable, ordered preparation steps for one hop's connection."""

    start: Tuple[Step, ...] = DEFAULT_START_STEPS
    custom: Tuple[Step, ...] = ()
    end: Tuple[Step, ...] = DEFAULT_END_STEPS
    connected: Tuple[Step, ...] = DEFAULT_CONNECTED_STEPS

    @property
    def steps(self) -> Tuple[Step, ...]:
        """Pre-connect steps in execution order."""
        return self.start + self.custom + self.end

    def with_custom(self, *steps: Step) -> "PreparationPipeline":
        return PreparationPipeline(
            start=self.start,
            custom=self.custom + tuple(steps),
            end=self.end,
            connected=self.connected,
        )

    def prepare(self, response: "Response", connection: Connection) -> None:
        for step in self.steps:
            step(response, connection)

    def finish(self, response: "Response", connection: Connection) -> None:
        for step in self.connected:
            step(response, connection)


DEFAULT_PIPELINE = PreparationPipeline()
