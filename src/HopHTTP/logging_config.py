"""
Structured Logging Utilities

This module centralizes structured logging setup for the client core. It
provides helpers for masking sensitive fields (cookies, authorization headers),
emitting JSON log records, managing correlation identifiers, and rolling log
files to maintain a clean retention window.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
installed exclusively through :func:`setup_logging`.
"""

from __future__ import annotations

import gzip
import json
import logging
import os
import sys
import uuid
from datetime import datetime, timedelta, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

from .settings import LoggingConfiguration

LOGGER_NAME = "HopHTTP"

_SENSITIVE_KEYS = {
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "api_key",
    "apikey",
    "token",
    "secret",
    "password",
}


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Remove secrets from structured payloads prior to logging.

    Args:
        payload: Arbitrary key-value pairs that may contain credentials,
            cookies, or tokens gathered from request/response headers.

    Returns:
        Copy of the payload where sensitive fields are replaced with
        `***masked***`. Nested mappings are masked recursively.

    Examples:
        >>> mask_sensitive_data({"Cookie": "session=abc", "status": 200})
        {'Cookie': '***masked***', 'status': 200}
    """
    masked: Dict[str, object] = {}
    for key, value in payload.items():
        lower = key.lower()
        if lower in _SENSITIVE_KEYS:
            masked[key] = "***masked***"
        elif isinstance(value, dict):
            masked[key] = mask_sensitive_data(value)
        elif isinstance(value, str) and "apikey" in value.lower():
            masked[key] = "***masked***"
        else:
            masked[key] = value
    return masked


def generate_correlation_id() -> str:
    """Create a short-lived identifier that links related log entries.

    Returns:
        Twelve character hexadecimal identifier suitable for correlating the
        log events of one redirect chain.

    Examples:
        >>> cid = generate_correlation_id()
        >>> len(cid)
        12
    """
    return uuid.uuid4().hex[:12]


class JSONFormatter(logging.Formatter):
    """Formatter emitting JSON structured logs.

    Fields passed through ``extra=`` that are not standard ``LogRecord``
    attributes are copied into the payload.
    """

    _RESERVED = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        """Serialize a logging record into a JSON line."""
        now = datetime.now(timezone.utc)
        log_obj: Dict[str, object] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None),
        }
        for key, value in record.__dict__.items():
            if key not in self._RESERVED and key not in log_obj:
                log_obj[key] = value
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(log_obj), default=str)


def _compress_old_log(path: Path) -> None:
    """Compress a log file in-place using gzip to reclaim disk space."""
    compressed_path = path.with_suffix(path.suffix + ".gz")
    with path.open("rb") as source, gzip.open(compressed_path, "wb") as target:
        target.write(source.read())
    path.unlink(missing_ok=True)


def _cleanup_logs(log_dir: Path, retention_days: int) -> None:
    """Apply rotation and retention policy to the log directory.

    Args:
        log_dir: Directory containing daily log files.
        retention_days: Number of days to keep uncompressed or compressed logs
            before deleting them.
    """
    now = datetime.now(timezone.utc)
    retention_delta = timedelta(days=retention_days)
    for file in log_dir.glob("*.jsonl"):
        mtime = datetime.fromtimestamp(file.stat().st_mtime, tz=timezone.utc)
        if now - mtime > retention_delta:
            _compress_old_log(file)
    for file in log_dir.glob("*.jsonl.gz"):
        mtime = datetime.fromtimestamp(file.stat().st_mtime, tz=timezone.utc)
        if now - mtime > retention_delta:
            file.unlink(missing_ok=True)


def setup_logging(
    config: Optional[LoggingConfiguration] = None, log_dir: Optional[Path] = None
) -> logging.Logger:
    """Configure structured logging handlers for the client.

    Args:
        config: Logging configuration containing level, size, and retention.
            Defaults to the ``logging`` section of the active settings.
        log_dir: Optional directory for JSONL log files. Falls back to
            ``HOPHTTP_LOG_DIR``; when neither is set only the console handler
            is installed.

    Returns:
        Configured logger instance scoped to the client package.

    Examples:
        >>> logger = setup_logging(LoggingConfiguration(level="INFO"))
        >>> logger.name
        'HopHTTP'
    """
    if config is None:
        from .settings import get_settings

        config = get_settings().logging

    env_dir = os.environ.get("HOPHTTP_LOG_DIR")
    if log_dir is None and env_dir:
        log_dir = Path(env_dir)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_hophttp_managed", False):
            logger.removeHandler(handler)
            handler.close()

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    stream_handler._hophttp_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        _cleanup_logs(log_dir, config.retention_days)
        today = datetime.now(timezone.utc).strftime("%Y%m%d")
        file_handler = RotatingFileHandler(
            log_dir / f"hophttp-{today}.jsonl",
            maxBytes=int(config.max_log_size_mb * 1024 * 1024),
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler._hophttp_managed = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    logger.propagate = True

    return logger


__all__ = [
    "LOGGER_NAME",
    "setup_logging",
    "mask_sensitive_data",
    "generate_correlation_id",
    "JSONFormatter",
]
