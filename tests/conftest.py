"""
Pytest Configuration

Adds ``src`` to ``sys.path`` so the suite runs against a plain checkout, and
resets process-wide state (shared HTTPX client, memoised settings, dispatch
executor) around every test.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Generator

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
for entry in (SRC, ROOT):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))

from HopHTTP.dispatch import shutdown_executor  # noqa: E402
from HopHTTP.network.client import reset_http_client  # noqa: E402
from HopHTTP.settings import invalidate_settings_cache  # noqa: E402

from tests.fixtures.http_mocking import (  # noqa: E402,F401
    http_mock,
    mock_routes,
    recording_transport,
)


@pytest.fixture(autouse=True)
def _isolated_client_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Give every test a fresh client, fresh settings, and no HOPHTTP_ environment."""

    for key in list(os.environ):
        if key.startswith("HOPHTTP_"):
            monkeypatch.delenv(key, raising=False)
    invalidate_settings_cache()
    reset_http_client()
    yield
    reset_http_client()
    invalidate_settings_cache()
    shutdown_executor()
