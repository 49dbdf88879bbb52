"""Synchronous entry point for issuing a request and resolving its redirect chain."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx

from .network.instrumentation import redact_url
from .network.pipeline import Step
from .request import Request
from .response import Response
from .settings import ClientSettings, get_settings

logger = logging.getLogger(__name__)

__all__ = ["request"]


def request(
    method: str,
    url: str,
    *,
    client: Optional[httpx.Client] = None,
    steps: Sequence[Step] = (),
    settings: Optional[ClientSettings] = None,
    **request_kwargs: Any,
) -> Response:
    """Send ``method url`` and return the terminal hop of its redirect chain.

    ``request_kwargs`` are :class:`~HopHTTP.request.Request` fields.  When
    ``timeout`` is omitted the configured default applies.  Buffered requests
    return with the body already read; streaming requests return once the
    status line and headers of the terminal hop are in.

    Args:
        method: HTTP verb, sent verbatim (non-standard verbs allowed).
        url: Absolute ``http`` or ``https`` URL.
        client: HTTPX client to send through; defaults to the shared client.
        steps: Extra preparation steps run after the default start steps.
        settings: Overrides the process-wide settings for this call.

    Raises:
        ConfigurationError: For invalid request inputs or an unsupported scheme.
        RedirectError: When the redirect chain is too long or malformed.
        httpx.HTTPError: Transport failures, unchanged.
    """
    effective = settings or get_settings()
    request_kwargs.setdefault("timeout", effective.timeout)
    prepared = Request(method=method, url=url, **request_kwargs)
    logger.debug(
        "Dispatching request",
        extra={"method": method, "url_redacted": redact_url(url), "stream": prepared.stream},
    )
    root = Response(prepared, client=client, steps=steps, settings=settings)
    return root.load().last_hop
