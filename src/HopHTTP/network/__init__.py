"""Network subsystem: HTTPX client lifecycle, connections, and preparation steps.

This package wraps a single HTTPX client and exposes the pieces a response hop
needs to talk to a server:

Modules:
- client: HTTPX client factory with lazy singleton pattern
- connection: send-once exchange with verb override and raw body access
- pipeline: immutable, ordered preparation steps applied per hop
- policy: protocol constants (schemes, encodings, chunk sizes)
- instrumentation: request/response hooks for structured telemetry

Redirects are never followed by the transport; see :mod:`HopHTTP.response`.

Example:
    >>> from HopHTTP.network import Connection, get_http_client
    >>> connection = Connection("https://example.org", client=get_http_client())
    >>> connection.status_code  # doctest: +SKIP
    200
"""

from HopHTTP.network.client import (
    close_http_client,
    configure_http_client,
    get_http_client,
    reset_http_client,
)
from HopHTTP.network.connection import Connection
from HopHTTP.network.instrumentation import create_http_event_hooks, redact_url
from HopHTTP.network.pipeline import (
    DEFAULT_CONNECTED_STEPS,
    DEFAULT_END_STEPS,
    DEFAULT_PIPELINE,
    DEFAULT_START_STEPS,
    PreparationPipeline,
    Step,
)

__all__ = [
    # Client lifecycle
    "get_http_client",
    "configure_http_client",
    "close_http_client",
    "reset_http_client",
    # Exchange
    "Connection",
    # Preparation
    "Step",
    "PreparationPipeline",
    "DEFAULT_PIPELINE",
    "DEFAULT_START_STEPS",
    "DEFAULT_END_STEPS",
    "DEFAULT_CONNECTED_STEPS",
    # Instrumentation
    "create_http_event_hooks",
    "redact_url",
]
