# === NAVMAP v1 ===
# {
#   "module": "HopHTTP.network.client",
#   "purpose": "Shared HTTPX client factory with lazy singleton lifecycle.",
#   "sections": [
#     {"id": "get-http-client", "name": "get_http_client", "anchor": "function-get-http-client", "kind": "function"},
#     {"id": "configure-http-client", "name": "configure_http_client", "anchor": "function-configure-http-client", "kind": "function"},
#     {"id": "close-http-client", "name": "close_http_client", "anchor": "function-close-http-client", "kind": "function"},
#     {"id": "reset-http-client", "name": "reset_http_client", "anchor": "function-reset-http-client", "kind": "function"},
#     {"id": "create-http-client", "name": "_create_http_client", "anchor": "function-create-http-client", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Shared HTTPX client factory.

Every :class:`~HopHTTP.response.Response` that is not handed an explicit
client opens its connection through one process-wide ``httpx.Client``:

- **Lazy**: created on first use, not at import.
- **Bound**: remembers the settings hash and PID it was built with; a forked
  child rebuilds its own client, a settings change after creation is logged
  once and otherwise ignored.
- **No automatic redirects**: the transport never follows ``Location``;
  redirect hops are resolved by the response chain.
- **Replaceable**: tests install a MockTransport-backed client through
  :func:`configure_http_client`.

Example:
    >>> from HopHTTP.network import get_http_client, close_http_client
    >>> client = get_http_client()
    >>> close_http_client()  # at process shutdown or test cleanup
"""

import logging
import os
import ssl
import threading
from typing import Optional

import certifi
import httpx

from HopHTTP.network.instrumentation import create_http_event_hooks
from HopHTTP.network.policy import FOLLOW_REDIRECTS
from HopHTTP.settings import ClientSettings, get_settings

logger = logging.getLogger(__name__)


# ============================================================================
# Global Client State
# ============================================================================

_client: httpx.Client | None = None
_client_lock = threading.Lock()
_client_bind_hash: str | None = None
_client_bind_pid: int | None = None
_client_injected = False
_config_hash_mismatch_warned = False


# ============================================================================
# Public API
# ============================================================================


def get_http_client() -> httpx.Client:
    """Get or create the shared HTTPX client.

    Behavior:
        - First call: Creates client, binds to current config_hash and PID.
        - Subsequent calls: Returns same client (thread-safe).
        - Config changed after bind: Logs warning once, does not rebuild.
        - Process forked: Child detects PID change, rebuilds client on first call.
        - Injected client (see :func:`configure_http_client`): returned as is.
    """
    global _client, _client_bind_hash, _client_bind_pid, _config_hash_mismatch_warned

    # Quick path: already initialized, same PID, check hash
    if _client is not None and (_client_injected or _client_bind_pid == os.getpid()):
        if not _client_injected:
            current_hash = get_settings().config_hash()
            if current_hash != _client_bind_hash and not _config_hash_mismatch_warned:
                logger.warning(
                    "Settings config_hash changed after HTTP client was initialized. "
                    "Continuing with bound client; no hot-reload. "
                    "Reset via reset_http_client() if desired.",
                    extra={
                        "bind_hash": _client_bind_hash,
                        "current_hash": current_hash,
                    },
                )
                _config_hash_mismatch_warned = True
        return _client

    with _client_lock:
        # Double-check after lock acquired
        if _client is not None and (_client_injected or _client_bind_pid == os.getpid()):
            return _client

        if _client is not None:
            logger.debug("Process forked; closing old HTTP client and rebuilding.")
            _client.close()
            _client = None

        settings = get_settings()
        _client = _create_http_client(settings)
        _client_bind_hash = settings.config_hash()
        _client_bind_pid = os.getpid()
        _config_hash_mismatch_warned = False

        logger.debug(
            "HTTP client initialized",
            extra={"config_hash": _client_bind_hash, "pid": _client_bind_pid},
        )
        return _client


def configure_http_client(client: Optional[httpx.Client] = None) -> None:
    """Install ``client`` as the shared client, or drop back to the default.

    An injected client is never closed by :func:`close_http_client`; its owner
    closes it.
    """
    global _client, _client_injected, _client_bind_hash, _client_bind_pid

    with _client_lock:
        _close_client_unlocked()
        if client is not None:
            _client = client
            _client_injected = True
            _client_bind_hash = None
            _client_bind_pid = os.getpid()


def close_http_client() -> None:
    """Close the HTTP client and release resources.

    Safe to call multiple times or when no client has been created.
    """
    with _client_lock:
        _close_client_unlocked()


def reset_http_client() -> None:
    """Reset the HTTP client (primarily for testing).

    Call this between test cases to force creation of a fresh client
    with potentially different settings.
    """
    global _client_bind_hash, _client_bind_pid, _config_hash_mismatch_warned

    close_http_client()
    _client_bind_hash = None
    _client_bind_pid = None
    _config_hash_mismatch_warned = False


# ============================================================================
# Implementation Details
# ============================================================================


def _close_client_unlocked() -> None:
    global _client, _client_injected

    if _client is not None and not _client_injected:
        _client.close()
        logger.debug("HTTP client closed")
    _client = None
    _client_injected = False


def _create_ssl_context(settings: ClientSettings) -> ssl.SSLContext:
    """Create SSL context with secure defaults.

    Uses the certifi bundle; verification can only be disabled explicitly
    through settings (development only).
    """
    if not settings.verify_tls:
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        logger.warning("TLS verification DISABLED (development only!)")
        return ctx

    ctx = ssl.create_default_context(cafile=certifi.where())
    ctx.check_hostname = True
    ctx.verify_mode = ssl.CERT_REQUIRED
    return ctx


def _create_http_client(settings: ClientSettings) -> httpx.Client:
    """Create the HTTPX client.

    Configuration:
    - Timeouts: single budget from settings; each request overrides it.
    - Connection pooling: bounded.
    - Redirects: disabled (resolved hop by hop).
    - Hooks: ``net.request`` telemetry.
    """
    ssl_ctx = _create_ssl_context(settings)

    client = httpx.Client(
        timeout=httpx.Timeout(settings.timeout),
        limits=httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
            keepalive_expiry=settings.keepalive_expiry,
        ),
        http2=settings.http2,
        follow_redirects=FOLLOW_REDIRECTS,
        verify=ssl_ctx,
        event_hooks=create_http_event_hooks(),
    )

    logger.debug(
        "HTTPX client created",
        extra={"http2": settings.http2, "max_connections": settings.max_connections},
    )
    return client


__all__ = [
    "get_http_client",
    "configure_http_client",
    "close_http_client",
    "reset_http_client",
]
