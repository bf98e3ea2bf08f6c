"""Streaming package.

Exposes the SSE reassembler, the chunk record it yields and the accumulator
the session uses to fold chunks into running text.
"""

from .streaming import StreamChunk, StreamAccumulator
from .sse import (
    DONE_SENTINEL,
    DATA_PREFIX,
    StreamReassembler,
    decode_chunk,
    parse_sse_line,
)

__all__ = [
    "StreamChunk",
    "StreamAccumulator",
    "DONE_SENTINEL",
    "DATA_PREFIX",
    "StreamReassembler",
    "decode_chunk",
    "parse_sse_line",
]
