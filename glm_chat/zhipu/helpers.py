"""Helpers for the Zhipu client.

Kept apart from :mod:`glm_chat.zhipu.client` so request header building,
status checking and decoding can be tested without a client instance.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Callable, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..base.errors import ErrorCode, ProviderError, to_provider_error, truncate_body
from ..base.logging import LogContext, get_logger, normalized_log_event

M = TypeVar("M", bound=BaseModel)

_logger = get_logger("glm_chat.zhipu")


def resolve_api_key(provider: Callable[[], Optional[str]]) -> str:
    """Return the trimmed key from ``provider`` or raise ``MISSING_API_KEY``."""
    key = (provider() or "").strip()
    if not key:
        raise ProviderError(code=ErrorCode.MISSING_API_KEY, message="no API key configured")
    return key


def build_headers(api_key: str, *, stream: bool = False) -> dict:
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    if stream:
        headers["Accept"] = "text/event-stream"
    return headers


def http_error(response: httpx.Response, body: Optional[str], *, model: Optional[str], ctx: LogContext | None) -> ProviderError:
    """Build (and log) the ``HTTP`` error for a non-2xx ``response``."""
    normalized_log_event(
        _logger,
        "http.error",
        ctx,
        phase="request",
        error_code=ErrorCode.HTTP.value,
        level=logging.WARNING,
        status_code=response.status_code,
        url=str(response.request.url),
        body=truncate_body(body),
    )
    return ProviderError(
        code=ErrorCode.HTTP,
        message=f"HTTP {response.status_code}",
        model=model,
        status_code=response.status_code,
        body=body or None,
    )


def ensure_success(response: httpx.Response, *, model: Optional[str] = None, ctx: LogContext | None = None) -> None:
    """Raise ``ProviderError(HTTP)`` unless ``response`` is 2xx (body must be read)."""
    if 200 <= response.status_code < 300:
        return
    raise http_error(response, response.text, model=model, ctx=ctx)


def decode_response(response: httpx.Response, model_cls: Type[M], *, model: Optional[str] = None) -> M:
    """Validate the JSON body of ``response`` as ``model_cls``; ``DECODE`` on failure."""
    try:
        return model_cls.model_validate_json(response.content)
    except ValidationError as exc:
        raise ProviderError(
            code=ErrorCode.DECODE,
            message=f"unexpected {model_cls.__name__} payload: {exc.error_count()} error(s)",
            model=model,
            raw=exc,
        ) from exc


async def classified_lines(response: httpx.Response, *, model: Optional[str] = None) -> AsyncIterator[str]:
    """Yield text lines of a streaming ``response``, mapping httpx failures to ``ProviderError``."""
    try:
        async for line in response.aiter_lines():
            yield line
    except httpx.HTTPError as exc:
        raise to_provider_error(exc, model=model) from exc


__all__ = [
    "resolve_api_key",
    "build_headers",
    "http_error",
    "ensure_success",
    "decode_response",
    "classified_lines",
]
