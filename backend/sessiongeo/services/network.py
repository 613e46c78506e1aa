"""Network call logging for the recorder.

`instrument_fetch` wraps an async fetch-like callable (for instance
`httpx.AsyncClient.request`) and writes request/response records to the
network logger. The wrapped callable's result and exceptions pass through
untouched.
"""
import functools
import random
import string
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

from sessiongeo.constants import NET_REQUEST_MARKER, NET_RESPONSE_MARKER
from sessiongeo.utils.clock import now_ms
from sessiongeo.utils.logger import network_logger

Fetch = Callable[..., Awaitable[Any]]

_REQUEST_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_request_id() -> str:
    """Short random token correlating a request with its response."""
    return "".join(random.choice(_REQUEST_ID_ALPHABET) for _ in range(8))


def describe_request(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Tuple[str, str]:
    """
    Work out (url, method) from fetch-style arguments.

    Supports fetch(url, ...), fetch(method, url, ...) as httpx.AsyncClient.request
    takes them, and fetch(httpx.Request).
    """
    method = kwargs.get("method")
    url: Any = kwargs.get("url")

    if args and isinstance(args[0], httpx.Request):
        request = args[0]
        return str(request.url), request.method

    if url is None and args:
        if len(args) >= 2 and isinstance(args[0], str) and args[0].isalpha() and method is None:
            method, url = args[0], args[1]
        else:
            url = args[0]

    return str(url) if url is not None else "", (method or "GET").upper()


def log_network_record(marker: str, record: Dict[str, Any]) -> None:
    """Write one record to the network sink. Never raises."""
    try:
        network_logger.info("%s %s", marker, record)
    except Exception:
        # Logging must never break the wrapped call
        pass


def _status_of(response: Any) -> Tuple[Optional[int], Optional[str]]:
    status = getattr(response, "status_code", None)
    if status is None:
        status = getattr(response, "status", None)
    status_text = getattr(response, "reason_phrase", None)
    if status_text is None:
        status_text = getattr(response, "reason", None)
    return status, status_text


def _error_message(error: BaseException) -> str:
    try:
        return str(error) or type(error).__name__
    except Exception:
        return type(error).__name__


def instrument_fetch(fetch: Fetch) -> Fetch:
    """
    Return an instrumented version of an async fetch callable.

    Args:
        fetch: The real I/O function

    Returns:
        Async callable with the same signature that logs a request record,
        awaits the original, logs a response or error record and then
        returns/raises exactly what the original did
    """

    @functools.wraps(fetch)
    async def instrumented_fetch(*args: Any, **kwargs: Any) -> Any:
        try:
            url, method = describe_request(args, kwargs)
            request_id = new_request_id()
        except Exception:
            url, method, request_id = "", "GET", new_request_id()

        log_network_record(NET_REQUEST_MARKER, {
            "requestId": request_id,
            "url": url,
            "method": method,
            "timestamp": now_ms(),
        })

        try:
            response = await fetch(*args, **kwargs)
        except BaseException as error:
            log_network_record(NET_RESPONSE_MARKER, {
                "requestId": request_id,
                "url": url,
                "method": method,
                "error": _error_message(error),
                "timestamp": now_ms(),
            })
            raise

        try:
            status, status_text = _status_of(response)
        except Exception:
            status, status_text = None, None

        log_network_record(NET_RESPONSE_MARKER, {
            "requestId": request_id,
            "url": url,
            "method": method,
            "status": status,
            "statusText": status_text,
            "timestamp": now_ms(),
        })
        return response

    instrumented_fetch.__instrumented__ = True
    return instrumented_fetch
