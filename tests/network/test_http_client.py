"""Tests for the shared HTTP client factory.

Tests cover:
- Lazy singleton initialization
- Config binding and mismatch warnings
- PID-aware rebinding
- Thread safety
- SSL context creation
- Client injection and lifecycle (create, reuse, close, reset)
"""

import logging
import ssl
import threading
from unittest.mock import patch

import httpx
import pytest

from HopHTTP.network import client as client_module
from HopHTTP.network.client import (
    _create_http_client,
    _create_ssl_context,
    close_http_client,
    configure_http_client,
    get_http_client,
    reset_http_client,
)
from HopHTTP.settings import ClientSettings, invalidate_settings_cache
from HopHTTP.testing import use_mock_http_client


class TestClientSingleton:
    """Test lazy singleton initialization and reuse."""

    def test_lazy_initialization(self):
        """First call creates client; subsequent calls return same instance."""
        assert client_module._client is None
        client1 = get_http_client()
        client2 = get_http_client()
        assert client1 is client2
        assert isinstance(client1, httpx.Client)

    def test_close_releases_client(self):
        """close_http_client() releases and closes the singleton."""
        client1 = get_http_client()
        close_http_client()
        assert client1.is_closed
        client2 = get_http_client()
        assert client1 is not client2

    def test_close_is_idempotent(self):
        """close_http_client() safe to call multiple times."""
        get_http_client()
        close_http_client()
        close_http_client()
        close_http_client()

    def test_reset_forces_new_client(self):
        """reset_http_client() forces creation of new instance."""
        client1 = get_http_client()
        reset_http_client()
        assert get_http_client() is not client1


class TestConfigBinding:
    """Test client binding to config_hash."""

    def test_client_bound_to_initial_config_hash(self):
        get_http_client()
        assert client_module._client_bind_hash is not None

    def test_config_change_warns_once(self, monkeypatch, caplog):
        client1 = get_http_client()
        monkeypatch.setenv("HOPHTTP_TIMEOUT", "99")
        invalidate_settings_cache()
        with caplog.at_level(logging.WARNING, logger="HopHTTP.network.client"):
            assert get_http_client() is client1
            assert get_http_client() is client1
        warnings = [r for r in caplog.records if "config_hash changed" in r.getMessage()]
        assert len(warnings) == 1

    def test_pid_change_triggers_rebuild(self):
        """PID change triggers client rebuild."""
        client1 = get_http_client()
        pid1 = client_module._client_bind_pid

        with patch("HopHTTP.network.client.os.getpid") as mock_getpid:
            mock_getpid.return_value = pid1 + 9999
            client2 = get_http_client()
            assert client1 is not client2


class TestThreadSafety:
    """Test thread-safe client access."""

    def test_concurrent_get_returns_same_client(self):
        clients = []
        lock = threading.Lock()

        def get_client():
            client = get_http_client()
            with lock:
                clients.append(client)

        threads = [threading.Thread(target=get_client) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(clients) == 8
        assert all(c is clients[0] for c in clients)


class TestInjection:
    def test_injected_client_is_returned(self):
        injected = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(204)))
        configure_http_client(injected)
        try:
            assert get_http_client() is injected
        finally:
            reset_http_client()
        assert not injected.is_closed
        injected.close()

    def test_use_mock_http_client(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(204))
        with use_mock_http_client(transport) as client:
            assert get_http_client() is client
        assert client.is_closed
        assert get_http_client() is not client


class TestSSLContext:
    """Test SSL context creation."""

    def test_ssl_context_verification_enabled(self):
        ctx = _create_ssl_context(ClientSettings())
        assert isinstance(ctx, ssl.SSLContext)
        assert ctx.check_hostname is True
        assert ctx.verify_mode == ssl.CERT_REQUIRED

    def test_ssl_context_verification_disabled(self, caplog):
        with caplog.at_level(logging.WARNING):
            ctx = _create_ssl_context(ClientSettings(verify_tls=False))
        assert ctx.verify_mode == ssl.CERT_NONE
        assert "TLS verification DISABLED" in caplog.text


class TestClientCreation:
    """Test _create_http_client internals."""

    def test_client_no_auto_redirect(self):
        client = _create_http_client(ClientSettings())
        try:
            assert client.follow_redirects is False
        finally:
            client.close()

    def test_timeout_from_settings(self):
        client = _create_http_client(ClientSettings(timeout=12.0))
        try:
            assert client.timeout.read == 12.0
            assert client.timeout.connect == 12.0
        finally:
            client.close()

    def test_event_hooks_installed(self):
        client = _create_http_client(ClientSettings())
        try:
            assert len(client.event_hooks["request"]) == 1
            assert len(client.event_hooks["response"]) == 1
        finally:
            client.close()


@pytest.mark.parametrize("count", [1, 3])
def test_multiple_resets_safe(count):
    for _ in range(count):
        reset_http_client()
    assert isinstance(get_http_client(), httpx.Client)
