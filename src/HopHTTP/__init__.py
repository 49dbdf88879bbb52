"""HopHTTP: a small HTTP client core with manual, cookie-aware redirect chains.

Example:
    >>> import HopHTTP
    >>> response = HopHTTP.request("GET", "https://example.org/start")  # doctest: +SKIP
    >>> [hop.status_code for hop in response.history]  # doctest: +SKIP
    [302]
    >>> response.text  # doctest: +SKIP
    '...'
"""

from .api import request
from .cookies import Cookie, CookieJar, parse_set_cookie
from .dispatch import async_request, run_async, shutdown_executor
from .errors import (
    ConfigurationError,
    ConnectionStateError,
    HopHTTPError,
    MaxRedirectsExceeded,
    MissingLocationHeader,
    RedirectError,
    UnknownCharsetError,
    UnsupportedSchemeError,
    VerbOverrideError,
)
from .iterators import ChunkIterator, LineIterator
from .request import Request
from .response import Response
from .settings import ClientSettings, get_settings, invalidate_settings_cache

__version__ = "0.1.0"

__all__ = [
    "request",
    "async_request",
    "run_async",
    "shutdown_executor",
    "Request",
    "Response",
    "Cookie",
    "CookieJar",
    "parse_set_cookie",
    "ChunkIterator",
    "LineIterator",
    "ClientSettings",
    "get_settings",
    "invalidate_settings_cache",
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
