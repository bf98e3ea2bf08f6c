"""Stream reassembler contract tests.

Covers:
- ``data:`` lines decoded into chunks, ``[DONE]`` terminates cleanly.
- A stream without any content delta surfaces ``NO_CONTENT``.
- Blank, comment and non-data lines are ignored; malformed payloads dropped.
- The close callback runs exactly once on every exit path.
- Cancellation between chunks, and non-restartability.
"""
from __future__ import annotations

import asyncio

import pytest

from glm_chat.base.cancellation import CancellationToken, CancelledError
from glm_chat.base.errors import ErrorCode, ProviderError
from glm_chat.base.streaming import (
    StreamAccumulator,
    StreamReassembler,
    parse_sse_line,
)
from glm_chat.tests.helpers import DONE_LINE, aiter_lines, drain, content_line, reasoning_line


class _Closer:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1


def _reassembler(lines, **kw):
    closer = _Closer()
    return StreamReassembler(aiter_lines(lines), close=closer, **kw), closer


def test_two_deltas_then_done_yield_ab():
    async def main():
        r, closer = _reassembler([content_line("A"), content_line("B"), DONE_LINE])
        acc = await drain(r)
        assert acc.text == "AB"  # nosec B101
        assert acc.reasoning is None  # nosec B101
        assert r.saw_done  # nosec B101
        assert closer.calls == 1  # nosec B101

    asyncio.run(main())


def test_done_only_stream_is_no_content():
    async def main():
        r, closer = _reassembler([DONE_LINE])
        with pytest.raises(ProviderError) as ei:
            await drain(r)
        assert ei.value.code is ErrorCode.NO_CONTENT  # nosec B101
        assert closer.calls == 1  # nosec B101

    asyncio.run(main())


def test_reasoning_only_stream_is_no_content():
    async def main():
        r, _ = _reassembler([reasoning_line("thinking"), DONE_LINE])
        with pytest.raises(ProviderError) as ei:
            await drain(r)
        assert ei.value.code is ErrorCode.NO_CONTENT  # nosec B101

    asyncio.run(main())


def test_ignored_lines_and_malformed_payloads():
    lines = [
        "",
        ": keep-alive",
        "event: message",
        "id: 7",
        "data: {not json",
        'data: {"choices": "wrong shape"}',
        content_line("A"),
        DONE_LINE,
        content_line("never read"),
    ]

    async def main():
        r, closer = _reassembler(lines)
        acc = await drain(r)
        assert acc.text == "A"  # nosec B101
        assert r.dropped == 2  # nosec B101
        assert closer.calls == 1  # nosec B101

    asyncio.run(main())


def test_end_of_input_without_sentinel_terminates():
    async def main():
        r, closer = _reassembler([content_line("x")])
        chunks = [c async for c in r]
        assert [c.content for c in chunks] == ["x"]  # nosec B101
        assert not r.saw_done  # nosec B101
        assert closer.calls == 1  # nosec B101

    asyncio.run(main())


def test_early_exit_closes_once_and_is_not_restartable():
    async def main():
        r, closer = _reassembler([content_line("A"), content_line("B"), DONE_LINE])
        async with r:
            async for chunk in r:
                assert chunk.content == "A"  # nosec B101
                break
        assert closer.calls == 1  # nosec B101
        assert [c async for c in r] == []  # nosec B101
        await r.aclose()
        assert closer.calls == 1  # nosec B101

    asyncio.run(main())


def test_upstream_error_propagates_and_closes():
    async def failing():
        yield content_line("A")
        raise ProviderError(code=ErrorCode.OFFLINE, message="dropped")

    async def main():
        closer = _Closer()
        r = StreamReassembler(failing(), close=closer)
        seen = []
        with pytest.raises(ProviderError) as ei:
            async for chunk in r:
                seen.append(chunk.content)
        assert seen == ["A"]  # nosec B101
        assert ei.value.code is ErrorCode.OFFLINE  # nosec B101
        assert closer.calls == 1  # nosec B101

    asyncio.run(main())


def test_cancellation_between_chunks():
    async def main():
        tok = CancellationToken()
        r, closer = _reassembler([content_line("A"), content_line("B"), DONE_LINE], token=tok)
        seen = []
        with pytest.raises(CancelledError):
            async for chunk in r:
                seen.append(chunk.content)
                tok.cancel("user")
        assert seen == ["A"]  # nosec B101
        assert closer.calls == 1  # nosec B101

    asyncio.run(main())


def test_accumulator_trims_and_skips_blank_reasoning():
    async def main():
        r, _ = _reassembler(
            [reasoning_line("  "), reasoning_line(" step one"), reasoning_line(" then two\n"), content_line("ok"), DONE_LINE]
        )
        acc = StreamAccumulator()
        async for chunk in r:
            acc.add(chunk)
        assert acc.reasoning == "step one then two"  # nosec B101
        assert acc.reasoning_deltas == 2 and acc.content_deltas == 1  # nosec B101

    asyncio.run(main())


def test_parse_sse_line():
    assert parse_sse_line("data: [DONE]") == "[DONE]"  # nosec B101
    assert parse_sse_line("data:{}") == "{}"  # nosec B101
    assert parse_sse_line(": comment") is None  # nosec B101
    assert parse_sse_line("   ") is None  # nosec B101
    assert parse_sse_line("retry: 10") is None  # nosec B101
