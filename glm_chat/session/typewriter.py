"""Typewriter replay of a one-shot answer into a transcript turn."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from ..base.cancellation import CancellationToken
from ..base.transcript import Transcript


async def animate(
    transcript: Transcript,
    turn_id: str,
    text: str,
    *,
    interval: float,
    token: CancellationToken | None = None,
    sleep: Callable[[float], Awaitable[None]] | None = None,
) -> None:
    """Write ``text`` into turn ``turn_id`` one character at a time.

    The turn stays ``is_streaming=True`` while characters are written and is
    flipped to ``False`` only after the last one. On cancellation the partial
    text is left in place and ``CancelledError`` propagates; the caller decides
    the final text.
    """
    if sleep is not None:
        do_sleep = sleep
    elif token is not None:
        do_sleep = token.sleep
    else:
        do_sleep = asyncio.sleep
    current = ""
    for ch in text:
        if token is not None:
            token.raise_if_cancelled()
        current += ch
        transcript.update(turn_id, text=current, is_streaming=True, is_loading_pending=False)
        await do_sleep(interval)
    if token is not None:
        token.raise_if_cancelled()
    transcript.update(turn_id, is_streaming=False, is_loading_pending=False)


__all__ = ["animate"]
