"""Immutable description of one HTTP call."""

from __future__ import annotations

import dataclasses
import io
import json as jsonlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

import httpx

from .errors import ConfigurationError

__all__ = ["Request", "DEFAULT_TIMEOUT"]

DEFAULT_TIMEOUT = 30.0

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
_JSON_CONTENT_TYPE = "application/json"


def _is_stream_source(data: Any) -> bool:
    return isinstance(data, (Path, io.IOBase)) or (
        hasattr(data, "read") and not isinstance(data, (bytes, bytearray, str))
    )


@dataclass(frozen=True)
class Request:
    """An HTTP request, constructed once and never mutated.

    ``data`` may be raw ``bytes``/``str``, a mapping (sent form-encoded), or a
    streaming source (:class:`pathlib.Path` or binary file object).  ``json``
    is only encoded when ``data`` is ``None``.  ``files`` enables multipart
    upload and may only be combined with a form mapping in ``data``.

    ``allow_redirects`` is tri-state: ``None`` defers to following redirects.
    """

    method: str
    url: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    params: Mapping[str, Any] = field(default_factory=dict)
    data: Any = None
    json: Any = None
    auth: Any = None
    cookies: Optional[Mapping[str, str]] = None
    timeout: float = DEFAULT_TIMEOUT
    allow_redirects: Optional[bool] = None
    stream: bool = False
    files: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        headers = httpx.Headers(self.headers)
        if self.files and self.data is not None and not isinstance(self.data, Mapping):
            raise ConfigurationError("files cannot be combined with a raw or streamed body")
        if self.timeout is None or self.timeout <= 0:
            raise ConfigurationError(f"timeout must be a positive number of seconds, got {self.timeout!r}")
        if not self.files and "content-type" not in headers:
            if isinstance(self.data, Mapping):
                headers["Content-Type"] = _FORM_CONTENT_TYPE
            elif self.data is None and self.json is not None:
                headers["Content-Type"] = _JSON_CONTENT_TYPE
        object.__setattr__(self, "headers", headers)
        object.__setattr__(self, "params", dict(self.params or {}))
        object.__setattr__(self, "files", dict(self.files or {}))
        if self.cookies is not None:
            object.__setattr__(self, "cookies", dict(self.cookies))

    @property
    def follows_redirects(self) -> bool:
        return True if self.allow_redirects is None else self.allow_redirects

    @property
    def body(self) -> bytes:
        """The in-memory request payload; empty for streamed or multipart bodies."""
        data = self.data
        if self.files:
            return b""
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        if isinstance(data, str):
            return data.encode("utf-8")
        if isinstance(data, Mapping):
            return urlencode(data, doseq=True).encode("ascii")
        if data is None and self.json is not None:
            return jsonlib.dumps(self.json).encode("utf-8")
        return b""

    @property
    def streams_body(self) -> bool:
        return _is_stream_source(self.data)

    def replace(self, **changes: Any) -> "Request":
        return dataclasses.replace(self, **changes)
