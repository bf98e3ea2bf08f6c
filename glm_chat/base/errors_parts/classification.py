"""
Error classification helpers mapping exceptions to normalized ErrorCode values.

Transport failures raised by httpx are split into host resolution failures,
offline/connection failures and timeouts. Decode failures (bad JSON, schema
mismatch) map to ``DECODE``. Anything else is ``UNKNOWN``.
"""
from __future__ import annotations

import asyncio
import json
import socket
from typing import Optional

import httpx
from pydantic import ValidationError

from ..cancellation import is_cancellation
from .error_code import ErrorCode
from .provider_error import ProviderError

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
    "name resolution",
)


def _looks_like_dns(exc: BaseException) -> bool:
    cur: Optional[BaseException] = exc
    while cur is not None:
        if isinstance(cur, socket.gaierror):
            return True
        msg = str(cur).lower()
        if any(m in msg for m in _DNS_MARKERS):
            return True
        cur = cur.__cause__ or cur.__context__
    return False


def classify_exception(exc: BaseException) -> ErrorCode:
    """Classify an exception into a normalized :class:`ErrorCode`.

    Precedence:
        1. ProviderError passthrough.
        2. Cancellation (cooperative or asyncio).
        3. Timeouts (httpx, asyncio, builtin).
        4. Connection errors: DNS, else offline.
        5. Other httpx transport errors.
        6. HTTP status errors.
        7. Decode errors (JSON / pydantic).
        8. ``UNKNOWN`` fallback.
    """
    if isinstance(exc, ProviderError):
        return exc.code
    if is_cancellation(exc):
        return ErrorCode.CANCELLED
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return ErrorCode.NETWORK_TIMEOUT
    if isinstance(exc, httpx.ConnectError):
        return ErrorCode.DNS if _looks_like_dns(exc) else ErrorCode.OFFLINE
    if isinstance(exc, (httpx.NetworkError, httpx.TransportError)):
        return ErrorCode.TRANSPORT
    if isinstance(exc, httpx.HTTPStatusError):
        return ErrorCode.HTTP
    if isinstance(exc, (json.JSONDecodeError, ValidationError, httpx.DecodingError)):
        return ErrorCode.DECODE
    if isinstance(exc, socket.gaierror):
        return ErrorCode.DNS
    return ErrorCode.UNKNOWN


def to_provider_error(exc: BaseException, *, model: Optional[str] = None) -> ProviderError:
    """Wrap ``exc`` in a :class:`ProviderError` (passthrough when already one)."""
    if isinstance(exc, ProviderError):
        return exc
    code = classify_exception(exc)
    status = None
    body = None
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        body = exc.response.text
    return ProviderError(
        code=code,
        message=str(exc) or exc.__class__.__name__,
        model=model,
        status_code=status,
        body=body,
        raw=exc,
    )


__all__ = ["classify_exception", "to_provider_error"]
