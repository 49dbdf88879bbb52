# === NAVMAP v1 ===
# {
#   "module": "HopHTTP.network.instrumentation",
#   "purpose": "HTTP network layer instrumentation and telemetry.",
#   "sections": [
#     {"id": "create-http-event-hooks", "name": "create_http_event_hooks", "anchor": "function-create-http-event-hooks", "kind": "function"},
#     {"id": "redact-url", "name": "redact_url", "anchor": "function-redact-url", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""HTTP network layer instrumentation and telemetry.

Logs a ``net.request`` record for every exchange made through the shared HTTPX
client, capturing method, redacted URL, status, and elapsed time.  Bodies are
never touched here: responses are opened in stream mode and reading them is the
caller's business.
"""

import logging
import time
from typing import Any, Callable, Dict, List
from urllib.parse import urlsplit, urlunsplit

logger = logging.getLogger(__name__)

#: Request extension carrying the perf-counter timestamp taken when the request was sent
START_TIME_EXTENSION = "hophttp_t0_perf"


def create_http_event_hooks() -> Dict[str, List[Callable[[Any], None]]]:
    """Create HTTPX event hooks for telemetry emission.

    Returns:
        Dict with 'request' and 'response' hooks for HTTPX client

    Usage:
        >>> import httpx
        >>> hooks = create_http_event_hooks()
        >>> client = httpx.Client(event_hooks=hooks)
    """

    def on_request(request: Any) -> None:
        request.extensions[START_TIME_EXTENSION] = time.perf_counter()

    def on_response(response: Any) -> None:
        start_time = response.request.extensions.get(START_TIME_EXTENSION)
        if start_time is None:
            return
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "net.request",
            extra={
                "method": response.request.method,
                "url_redacted": redact_url(str(response.request.url)),
                "host": response.request.url.host or "unknown",
                "status": response.status_code,
                "http_version": response.http_version,
                "elapsed_ms": round(elapsed_ms, 3),
            },
        )

    return {
        "request": [on_request],
        "response": [on_response],
    }


def redact_url(url: str) -> str:
    """Strip query string, fragment, and credentials, keeping scheme + host + path."""
    parsed = urlsplit(url)
    host = parsed.hostname or ""
    if parsed.port:
        host = f"{host}:{parsed.port}"
    return urlunsplit((parsed.scheme, host, parsed.path, "", ""))


__all__ = [
    "START_TIME_EXTENSION",
    "create_http_event_hooks",
    "redact_url",
]
