# === NAVMAP v1 ===
# {
#   "module": "HopHTTP.dispatch",
#   "purpose": "Callback-style asynchronous calling convention over a thread pool",
#   "sections": [
#     {"id": "run-async", "name": "run_async", "anchor": "function-run-async", "kind": "function"},
#     {"id": "async-request", "name": "async_request", "anchor": "function-async-request", "kind": "function"},
#     {"id": "shutdown-executor", "name": "shutdown_executor", "anchor": "function-shutdown-executor", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Asynchronous calling convention.

The client core is synchronous.  This module runs a unit of work on an
executor and reports the outcome through plain callbacks: ``on_response``
receives the result, ``on_error`` the exception.  The default ``on_error``
re-raises, so an unhandled failure still surfaces on the returned
:class:`~concurrent.futures.Future`.

Unless an executor is supplied, work runs on a lazily created, process-wide
``ThreadPoolExecutor`` sized by ``ClientSettings.async_workers``.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, TypeVar

from .api import request
from .response import Response
from .settings import get_settings

logger = logging.getLogger(__name__)

__all__ = ["run_async", "async_request", "shutdown_executor"]

T = TypeVar("T")

_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = threading.Lock()


def _raise(error: BaseException) -> None:
    raise error


def _get_executor() -> ThreadPoolExecutor:
    global _executor  # noqa: PLW0603

    with _executor_lock:
        if _executor is None:
            workers = get_settings().async_workers
            _executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="hophttp")
            logger.debug("Dispatch executor created", extra={"workers": workers})
        return _executor


def run_async(
    work: Callable[[], T],
    *,
    on_response: Callable[[T], Any],
    on_error: Callable[[BaseException], Any] = _raise,
    executor: Optional[Executor] = None,
) -> "Future[Any]":
    """Run ``work`` on ``executor`` and deliver its outcome to a callback.

    Exactly one of the callbacks is invoked per call.  The future resolves to
    the callback's return value, or to whatever the callback raised.
    """

    def invoke() -> Any:
        try:
            result = work()
        except Exception as exc:
            logger.debug("Asynchronous work failed", extra={"error": repr(exc)})
            return on_error(exc)
        return on_response(result)

    return (executor or _get_executor()).submit(invoke)


def async_request(
    method: str,
    url: str,
    *,
    on_response: Callable[[Response], Any],
    on_error: Callable[[BaseException], Any] = _raise,
    executor: Optional[Executor] = None,
    **request_kwargs: Any,
) -> "Future[Any]":
    """Issue :func:`~HopHTTP.api.request` in the background.

    Example:
        >>> future = async_request("GET", "https://example.org", on_response=print)
        >>> future.result()  # doctest: +SKIP
    """
    return run_async(
        lambda: request(method, url, **request_kwargs),
        on_response=on_response,
        on_error=on_error,
        executor=executor,
    )


def shutdown_executor(wait: bool = True) -> None:
    """Shut down the shared executor; the next call creates a fresh one."""

    global _executor  # noqa: PLW0603

    with _executor_lock:
        executor, _executor = _executor, None
    if executor is not None:
        executor.shutdown(wait=wait)
