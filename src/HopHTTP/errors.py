"""Exception hierarchy shared across request preparation, redirects, and content access.

The client core spans request configuration, transport exchanges, redirect
resolution, and body decoding.  Transport failures raised by HTTPX are never
wrapped: callers receive ``httpx.ConnectError``, ``httpx.TimeoutException`` and
friends unchanged.  The classes below cover the failure modes the core itself
detects, grouped so callers can react to broad categories (configuration vs.
redirect policy) while still seeing the specialised subclass.
"""

from __future__ import annotations

from typing import Sequence

__all__ = [
    "HopHTTPError",
    "ConfigurationError",
    "UnsupportedSchemeError",
    "UnknownCharsetError",
    "RedirectError",
    "MaxRedirectsExceeded",
    "MissingLocationHeader",
    "ConnectionStateError",
    "VerbOverrideError",
]


class HopHTTPError(RuntimeError):
    """Base exception for failures detected by the client core."""


class ConfigurationError(HopHTTPError):
    """Raised when request inputs are invalid; detected before any network I/O."""


class UnsupportedSchemeError(ConfigurationError):
    """Raised when a URL uses a scheme the transport cannot open."""

    def __init__(self, url: str, scheme: str) -> None:
        super().__init__(f"Unsupported URL scheme {scheme!r} in {url}")
        self.url = url
        self.scheme = scheme


class UnknownCharsetError(ConfigurationError):
    """Raised when a charset name does not resolve to a known codec."""

    def __init__(self, charset: str) -> None:
        super().__init__(f"Unknown charset: {charset!r}")
        self.charset = charset


class RedirectError(HopHTTPError):
    """Base exception for redirect handling errors."""


class MaxRedirectsExceeded(RedirectError):
    """Redirect chain exceeds maximum allowed hops."""

    def __init__(self, max_hops: int, actual_hops: Sequence[str]) -> None:
        self.max_hops = max_hops
        self.actual_hops = list(actual_hops)
        super().__init__(
            f"Redirect chain exceeded {max_hops} hops. Hops: {' -> '.join(self.actual_hops)}"
        )


class MissingLocationHeader(RedirectError):
    """Redirect response missing Location header."""

    def __init__(self, url: str, status: int) -> None:
        super().__init__(f"Redirect response from {url} (status {status}) missing Location header")
        self.url = url
        self.status = status


class ConnectionStateError(HopHTTPError):
    """Raised when a connection or lazily-held field is used out of order.

    Indicates a single-owner violation or a programming error; not recoverable.
    """


class VerbOverrideError(HopHTTPError):
    """Raised when the effective request verb differs from the requested one."""

    def __init__(self, requested: str, effective: str) -> None:
        super().__init__(f"Request verb override failed: requested {requested!r}, got {effective!r}")
        self.requested = requested
        self.effective = effective
