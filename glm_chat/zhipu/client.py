"""Zhipu open platform client.

Purpose:
    Stateless request/response mapping for the endpoints the chat session
    drives:

    ============================  =======================  ===================
    operation                     endpoint                 response
    ============================  =======================  ===================
    ``stream_chat``               POST chat/completions    SSE chunk stream
    ``submit_async_chat``         POST async/chat/...      async task ack
    ``submit_video_generation``   POST videos/generations  async task ack
    ``submit_image_generation``   POST images/generations  image urls (sync)
    ``fetch_async_result``        GET async-result/{id}    task status/result
    ============================  =======================  ===================

Credentials:
    The API key is obtained from ``api_key_provider`` on every call and sent
    as a bearer token. A missing key raises ``ProviderError(MISSING_API_KEY)``
    before any network I/O.

Errors:
    - non-2xx status: ``ProviderError(HTTP)`` with status code and truncated body
    - transport failure: ``DNS`` / ``OFFLINE`` / ``NETWORK_TIMEOUT`` / ``TRANSPORT``
    - undecodable body: ``DECODE``

HTTP clients come from the shared pool (:mod:`glm_chat.base.http`) unless one
is injected (tests pass an ``httpx.AsyncClient`` over ``httpx.MockTransport``).
"""

from __future__ import annotations

from typing import Callable, Optional

import httpx

from ..base.cancellation import CancellationToken
from ..base.errors import to_provider_error
from ..base.http import get_httpx_client
from ..base.logging import LogContext, get_logger, normalized_log_event
from ..base.streaming import StreamReassembler
from ..config.defaults import ZHIPU_DEFAULT_BASE_URL
from ..config.env import resolve_api_key_from_env
from .helpers import (
    build_headers,
    classified_lines,
    decode_response,
    ensure_success,
    http_error,
    resolve_api_key,
)
from .models import (
    AsyncChatRequest,
    AsyncResultResponse,
    AsyncTaskResponse,
    ImageGenerationRequest,
    ImageGenerationResponse,
    StreamChatRequest,
    VideoGenerationRequest,
)

ApiKeyProvider = Callable[[], Optional[str]]


def _env_api_key() -> Optional[str]:
    value, _ = resolve_api_key_from_env()
    return value


class ZhipuClient:
    """Thin async binding to the Zhipu v4 API."""

    def __init__(
        self,
        api_key_provider: ApiKeyProvider | None = None,
        *,
        base_url: str = ZHIPU_DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key_provider = api_key_provider or _env_api_key
        self._base_url = base_url.rstrip("/")
        self._http_client = http_client
        self._logger = get_logger("glm_chat.zhipu")

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _client(self, purpose: str) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return get_httpx_client(self._base_url, purpose)

    async def _send(
        self,
        method: str,
        path: str,
        *,
        payload: dict | None = None,
        model: Optional[str] = None,
        ctx: LogContext | None = None,
    ) -> httpx.Response:
        headers = build_headers(resolve_api_key(self._api_key_provider))
        try:
            response = await self._client("rest").request(method, self._url(path), json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise to_provider_error(exc, model=model) from exc
        ensure_success(response, model=model, ctx=ctx)
        return response

    # ---- async chat ----
    async def submit_async_chat(self, request: AsyncChatRequest, *, ctx: LogContext | None = None) -> AsyncTaskResponse:
        """Submit a non-streaming chat completion task; poll with :meth:`fetch_async_result`."""
        resp = await self._send("POST", "async/chat/completions", payload=request.to_payload(), model=request.model, ctx=ctx)
        return decode_response(resp, AsyncTaskResponse, model=request.model)

    # ---- media ----
    async def submit_video_generation(
        self, request: VideoGenerationRequest, *, ctx: LogContext | None = None
    ) -> AsyncTaskResponse:
        resp = await self._send("POST", "videos/generations", payload=request.to_payload(), model=request.model, ctx=ctx)
        return decode_response(resp, AsyncTaskResponse, model=request.model)

    async def submit_image_generation(
        self, request: ImageGenerationRequest, *, ctx: LogContext | None = None
    ) -> ImageGenerationResponse:
        """Generate images synchronously; the response already carries the URLs."""
        resp = await self._send("POST", "images/generations", payload=request.to_payload(), model=request.model, ctx=ctx)
        return decode_response(resp, ImageGenerationResponse, model=request.model)

    # ---- polling ----
    async def fetch_async_result(self, task_id: str, *, ctx: LogContext | None = None) -> AsyncResultResponse:
        resp = await self._send("GET", f"async-result/{task_id}", ctx=ctx)
        return decode_response(resp, AsyncResultResponse)

    # ---- streaming ----
    async def stream_chat(
        self,
        request: StreamChatRequest,
        *,
        token: CancellationToken | None = None,
        ctx: LogContext | None = None,
    ) -> StreamReassembler:
        """Open the SSE chat stream and return a reassembler over it.

        The HTTP status is checked before returning, so a rejected request
        raises here rather than during iteration. The response is closed by
        the reassembler on every exit path.
        """
        headers = build_headers(resolve_api_key(self._api_key_provider), stream=True)
        client = self._client("stream")
        http_request = client.build_request("POST", self._url("chat/completions"), json=request.to_payload(), headers=headers)
        try:
            response = await client.send(http_request, stream=True)
        except httpx.HTTPError as exc:
            raise to_provider_error(exc, model=request.model) from exc

        if not 200 <= response.status_code < 300:
            try:
                body = (await response.aread()).decode("utf-8", errors="replace")
            except httpx.HTTPError:
                body = None
            finally:
                await response.aclose()
            raise http_error(response, body, model=request.model, ctx=ctx)

        normalized_log_event(
            self._logger,
            "stream.start",
            ctx,
            phase="start",
            emitted=False,
            status_code=response.status_code,
        )
        return StreamReassembler(
            classified_lines(response, model=request.model),
            token=token,
            close=response.aclose,
            ctx=ctx,
        )


__all__ = ["ZhipuClient", "ApiKeyProvider"]
