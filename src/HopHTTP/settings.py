# === NAVMAP v1 ===
# {
#   "module": "HopHTTP.settings",
#   "purpose": "Client configuration model, environment overrides, and the memoised settings accessor",
#   "sections": [
#     {"id": "loggingconfiguration", "name": "LoggingConfiguration", "anchor": "class-loggingconfiguration", "kind": "class"},
#     {"id": "clientsettings", "name": "ClientSettings", "anchor": "class-clientsettings", "kind": "class"},
#     {"id": "get-settings", "name": "get_settings", "anchor": "function-get-settings", "kind": "function"},
#     {"id": "invalidate-settings-cache", "name": "invalidate_settings_cache", "anchor": "function-invalidate-settings-cache", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Client configuration.

Settings are read once from ``HOPHTTP_``-prefixed environment variables (nested
fields use ``__``, e.g. ``HOPHTTP_LOGGING__LEVEL=DEBUG``) and memoised for the
life of the process.  The shared HTTPX client binds to :meth:`ClientSettings.config_hash`
so configuration drift after the client exists is detectable.
"""

from __future__ import annotations

import hashlib
import threading
from typing import Optional, Tuple

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "DEFAULT_REDIRECT_STATUS_CODES",
    "LoggingConfiguration",
    "ClientSettings",
    "get_settings",
    "invalidate_settings_cache",
]

DEFAULT_REDIRECT_STATUS_CODES: Tuple[int, ...] = (301, 302, 303, 307, 308)


class LoggingConfiguration(BaseModel):
    """Logging-related configuration for the client."""

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    max_log_size_mb: int = Field(default=100, gt=0, description="Maximum size of rotated log files")
    retention_days: int = Field(default=30, ge=1, description="Retention period for log files")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        """Normalise logging levels and ensure they match the supported set."""

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        upper = value.upper()
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return upper

    model_config = {"validate_assignment": True}


class ClientSettings(BaseSettings):
    """Transport, redirect, and dispatch settings for the client core."""

    timeout: float = Field(
        default=30.0, gt=0, description="Default connect/read timeout in seconds"
    )
    max_redirects: int = Field(
        default=10, ge=0, description="Maximum redirect hops followed before giving up"
    )
    redirect_status_codes: Tuple[int, ...] = Field(
        default=DEFAULT_REDIRECT_STATUS_CODES,
        description="Status codes that are followed automatically",
    )
    verify_tls: bool = Field(default=True, description="Verify TLS certificates")
    http2: bool = Field(default=False, description="Negotiate HTTP/2 (requires the h2 extra)")
    max_connections: int = Field(default=100, ge=1)
    max_keepalive_connections: int = Field(default=20, ge=0)
    keepalive_expiry: float = Field(default=5.0, ge=0)
    user_agent: Optional[str] = Field(
        default="HopHTTP/0.1.0", description="User-Agent sent when the request has none"
    )
    async_workers: int = Field(
        default=4, ge=1, description="Worker threads in the shared async dispatch pool"
    )
    logging: LoggingConfiguration = Field(default_factory=LoggingConfiguration)

    model_config = SettingsConfigDict(
        env_prefix="HOPHTTP_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("redirect_status_codes")
    @classmethod
    def validate_redirect_codes(cls, value: Tuple[int, ...]) -> Tuple[int, ...]:
        """Only 3xx statuses may be followed."""

        for code in value:
            if not 300 <= code <= 399:
                raise ValueError(f"redirect status codes must be 3xx, got {code}")
        return tuple(sorted(set(value)))

    def config_hash(self) -> str:
        """Return a short fingerprint of the effective configuration."""

        payload = self.model_dump_json().encode("utf-8")
        return hashlib.sha256(payload).hexdigest()[:16]


_SETTINGS_CACHE: Optional[ClientSettings] = None
_SETTINGS_LOCK = threading.Lock()


def get_settings(*, copy: bool = False) -> ClientSettings:
    """Return the memoised :class:`ClientSettings` built from the environment."""

    global _SETTINGS_CACHE  # noqa: PLW0603

    with _SETTINGS_LOCK:
        if _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = ClientSettings()
        cached = _SETTINGS_CACHE
    if copy:
        return cached.model_copy(deep=True)
    return cached


def invalidate_settings_cache() -> None:
    """Invalidate the cached settings so the next access re-reads the environment."""

    global _SETTINGS_CACHE  # noqa: PLW0603

    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None
