"""Server-sent-event reassembler.

Turns the raw line stream of a streaming chat completion into a lazy sequence
of :class:`StreamChunk` records.

Parsing rules
-------------
- Only lines starting with ``data:`` are considered; blank lines, ``:``
  comments and other SSE fields (``event:``, ``id:``, ``retry:``) are ignored.
- A payload equal to ``[DONE]`` ends the sequence successfully.
- A payload that is not a valid chunk object is dropped and logged; it never
  aborts the stream.

Lifecycle
---------
The reassembler is single use. Its ``close`` callback (closing the HTTP
response) runs exactly once on every exit path: sentinel, end of input,
error, cancellation, or an explicit ``aclose`` by the consumer.
"""

from __future__ import annotations

import json
from typing import AsyncIterable, AsyncIterator, Awaitable, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from ..cancellation import CancellationToken
from ..logging import LogContext, get_logger, normalized_log_event
from .streaming import StreamChunk

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

_logger = get_logger("glm_chat.stream")


class _Delta(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: Optional[str] = None
    reasoning_content: Optional[str] = None


class _Choice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    delta: Optional[_Delta] = None
    finish_reason: Optional[str] = None


class _Chunk(BaseModel):
    model_config = ConfigDict(extra="ignore")

    choices: List[_Choice] = []


def parse_sse_line(line: str) -> Optional[str]:
    """Return the data payload of an SSE line, or ``None`` for ignorable lines."""
    if not line:
        return None
    stripped = line.rstrip("\r\n")
    if not stripped.strip() or stripped.startswith(":"):
        return None
    if not stripped.startswith(DATA_PREFIX):
        return None
    payload = stripped[len(DATA_PREFIX):]
    if payload.startswith(" "):
        payload = payload[1:]
    return payload.strip()


def decode_chunk(payload: str) -> StreamChunk:
    """Decode one JSON payload; raises ``ValueError``/``ValidationError`` when malformed."""
    data = json.loads(payload)
    chunk = _Chunk.model_validate(data)
    if not chunk.choices:
        return StreamChunk()
    choice = chunk.choices[0]
    delta = choice.delta or _Delta()
    return StreamChunk(
        content=delta.content,
        reasoning=delta.reasoning_content,
        finish_reason=choice.finish_reason,
    )


class StreamReassembler:
    """Cancellable async iterator of :class:`StreamChunk` over SSE lines.

    Parameters
    ----------
    lines:
        Async iterable of text lines (e.g. ``httpx.Response.aiter_lines()``).
    token:
        Optional cancellation token checked before every line read.
    close:
        Optional coroutine function releasing the underlying connection.
    ctx:
        Log context for malformed-chunk and end-of-stream events.
    """

    def __init__(
        self,
        lines: AsyncIterable[str],
        *,
        token: CancellationToken | None = None,
        close: Callable[[], Awaitable[None]] | None = None,
        ctx: LogContext | None = None,
    ) -> None:
        self._lines = lines
        self._token = token
        self._close = close
        self._ctx = ctx
        self._gen: AsyncIterator[StreamChunk] = self._run()
        self._closed = False
        self.saw_done = False
        self.emitted = 0
        self.dropped = 0

    def __aiter__(self) -> "StreamReassembler":
        return self

    async def __anext__(self) -> StreamChunk:
        if self._closed:
            raise StopAsyncIteration
        try:
            chunk = await self._gen.__anext__()
        except BaseException:
            # StopAsyncIteration, provider errors and cancellation all end the stream.
            await self.aclose()
            raise
        self.emitted += 1
        return chunk

    async def __aenter__(self) -> "StreamReassembler":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Stop the stream and release the connection (idempotent)."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._gen.aclose()  # type: ignore[attr-defined]
        finally:
            if self._close is not None:
                await self._close()
            normalized_log_event(
                _logger,
                "stream.end",
                self._ctx,
                phase="finalize",
                emitted=self.emitted > 0,
                emitted_count=self.emitted,
                dropped_count=self.dropped,
                saw_done=self.saw_done,
            )

    async def _run(self) -> AsyncIterator[StreamChunk]:
        async for line in self._lines:
            if self._token is not None:
                self._token.raise_if_cancelled()
            payload = parse_sse_line(line)
            if payload is None or payload == "":
                continue
            if payload == DONE_SENTINEL:
                self.saw_done = True
                return
            try:
                chunk = decode_chunk(payload)
            except (ValueError, ValidationError) as exc:
                self.dropped += 1
                normalized_log_event(
                    _logger,
                    "stream.chunk.malformed",
                    self._ctx,
                    phase="stream",
                    error_code="decode",
                    error=str(exc)[:200],
                    payload=payload[:200],
                )
                continue
            yield chunk
        if self._token is not None:
            self._token.raise_if_cancelled()


__all__ = [
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "parse_sse_line",
    "decode_chunk",
    "StreamReassembler",
]
