"""Shared fakes for the glm_chat test suite.

- ``FakeClock``: monotonic clock whose ``sleep`` advances time instantly.
- ``FakeZhipu``: ``httpx.MockTransport`` handler scripting the provider API.
- ``HangingStream``: SSE body that emits some lines and then never ends.
- ``BrokenStream``: SSE body that emits some lines and then fails.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional

import httpx

from ..base.streaming import StreamAccumulator
from ..zhipu import ZhipuClient

BASE_URL = "https://open.bigmodel.cn/api/paas/v4"


def content_line(text: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": text}}]})


def reasoning_line(text: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"reasoning_content": text}}]})


DONE_LINE = "data: [DONE]"


async def aiter_lines(lines: Iterable[str]) -> AsyncIterator[str]:
    for line in lines:
        yield line


async def drain(chunks) -> StreamAccumulator:
    """Fold every chunk of ``chunks`` and require content, as the session does."""
    acc = StreamAccumulator()
    async for chunk in chunks:
        acc.add(chunk)
    acc.require_content()
    return acc


async def fast_sleep(_seconds: float) -> None:
    await asyncio.sleep(0)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class HangingStream(httpx.AsyncByteStream):
    """Emits ``lines`` then blocks until cancelled."""

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = list(lines)
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for line in self._lines:
            yield (line + "\n\n").encode("utf-8")
        await asyncio.Event().wait()

    async def aclose(self) -> None:
        self.closed = True


class BrokenStream(httpx.AsyncByteStream):
    """Emits ``lines`` then fails with ``httpx.ReadError``."""

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = list(lines)
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for line in self._lines:
            yield (line + "\n\n").encode("utf-8")
        raise httpx.ReadError("connection reset")

    async def aclose(self) -> None:
        self.closed = True


class FakeZhipu:
    """Scriptable provider: routes requests by path and records them."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.stream_lines: List[str] = [DONE_LINE]
        self.stream_status = 200
        self.stream_body: Optional[httpx.AsyncByteStream] = None
        self.async_chat: Dict[str, Any] = {"id": "task-1", "task_status": "PROCESSING"}
        self.async_chat_status = 200
        self.video: Dict[str, Any] = {"id": "t1", "task_status": "PROCESSING"}
        self.image: Dict[str, Any] = {"created": 1, "data": []}
        self.results: List[Dict[str, Any]] = []
        self.error_body = "error"

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]

    def json_bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.content]

    def _result(self) -> Dict[str, Any]:
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0] if self.results else {"task_status": "PROCESSING"}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/async/chat/completions"):
            if self.async_chat_status != 200:
                return httpx.Response(self.async_chat_status, text=self.error_body)
            return httpx.Response(200, json=self.async_chat)
        if path.endswith("/chat/completions"):
            if self.stream_status != 200:
                return httpx.Response(self.stream_status, text=self.error_body)
            if self.stream_body is not None:
                return httpx.Response(200, headers={"content-type": "text/event-stream"}, stream=self.stream_body)
            body = "".join(line + "\n\n" for line in self.stream_lines)
            return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body.encode("utf-8"))
        if path.endswith("/videos/generations"):
            return httpx.Response(200, json=self.video)
        if path.endswith("/images/generations"):
            return httpx.Response(200, json=self.image)
        if "/async-result/" in path:
            return httpx.Response(200, json=self._result())
        return httpx.Response(404, text="not found")


def make_client(fake: FakeZhipu, http: httpx.AsyncClient, key: Optional[str] = "test-key") -> ZhipuClient:
    return ZhipuClient(lambda: key, base_url=BASE_URL, http_client=http)


def mock_http(fake: FakeZhipu) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake))
