"""Tests for client settings and the memoised accessor."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from HopHTTP.settings import (
    DEFAULT_REDIRECT_STATUS_CODES,
    ClientSettings,
    LoggingConfiguration,
    get_settings,
    invalidate_settings_cache,
)


def test_defaults():
    settings = ClientSettings()
    assert settings.timeout == 30.0
    assert settings.max_redirects == 10
    assert settings.redirect_status_codes == DEFAULT_REDIRECT_STATUS_CODES
    assert settings.verify_tls is True
    assert settings.logging.level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("HOPHTTP_TIMEOUT", "2.5")
    monkeypatch.setenv("HOPHTTP_MAX_REDIRECTS", "3")
    monkeypatch.setenv("HOPHTTP_LOGGING__LEVEL", "debug")
    settings = ClientSettings()
    assert settings.timeout == 2.5
    assert settings.max_redirects == 3
    assert settings.logging.level == "DEBUG"


def test_redirect_codes_must_be_3xx():
    with pytest.raises(ValidationError):
        ClientSettings(redirect_status_codes=(301, 200))


def test_redirect_codes_are_normalised():
    assert ClientSettings(redirect_status_codes=(303, 301, 301)).redirect_status_codes == (301, 303)


def test_invalid_log_level():
    with pytest.raises(ValidationError):
        LoggingConfiguration(level="LOUD")


def test_non_positive_timeout_rejected():
    with pytest.raises(ValidationError):
        ClientSettings(timeout=0)


def test_config_hash_tracks_values():
    assert ClientSettings().config_hash() == ClientSettings().config_hash()
    assert ClientSettings().config_hash() != ClientSettings(timeout=5).config_hash()
    assert len(ClientSettings().config_hash()) == 16


def test_get_settings_is_memoised(monkeypatch):
    first = get_settings()
    assert get_settings() is first
    assert get_settings(copy=True) is not first
    monkeypatch.setenv("HOPHTTP_TIMEOUT", "9")
    assert get_settings().timeout == 30.0
    invalidate_settings_cache()
    assert get_settings().timeout == 9.0
