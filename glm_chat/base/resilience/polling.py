"""Fixed-interval poller for provider async tasks.

Purpose:
    Repeatedly fetch the status of a submitted async task (chat completion or
    video generation) until it leaves the running state or a deadline passes.

Semantics:
    - Running statuses are ``""``, ``PROCESSING``, ``PENDING`` and ``QUEUED``
      (case-insensitive). Anything else is terminal.
    - A terminal result is returned as-is, even when the field the caller
      expects (``choices`` for chat, ``video_result`` for media) is absent.
      Interpreting an empty terminal result is the caller's job.
    - When the task is still running once ``timeout`` seconds have elapsed,
      ``ProviderError(TIMEOUT)`` is raised and no further fetch is issued.
    - The cancellation token is checked before and after every fetch and
      around every inter-poll sleep.

There is no backoff; the interval is fixed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, FrozenSet, Optional, TypeVar

from ..cancellation import CancellationToken
from ..errors import ErrorCode, ProviderError
from ..logging import LogContext, get_logger, normalized_log_event
from ..timeouts import get_timeout_config

T = TypeVar("T")

RUNNING_STATUSES: FrozenSet[str] = frozenset({"", "PROCESSING", "PENDING", "QUEUED"})

_logger = get_logger("glm_chat.poll")


def is_running_status(status: Optional[str]) -> bool:
    """Return True when ``status`` means the task has not finished yet."""
    return (status or "").strip().upper() in RUNNING_STATUSES


def _has_expected_data(result: Any, expect_media: bool) -> bool:
    field_name = "video_result" if expect_media else "choices"
    return bool(getattr(result, field_name, None))


async def poll_async_result(
    fetch: Callable[[str], Awaitable[T]],
    task_id: str,
    *,
    expect_media: bool,
    timeout: float | None = None,
    interval: float | None = None,
    token: CancellationToken | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] | None = None,
    ctx: LogContext | None = None,
) -> T:
    """Poll ``fetch(task_id)`` until the result's ``task_status`` is terminal.

    Parameters
    ----------
    fetch:
        Coroutine function returning an object with a ``task_status`` attribute.
    task_id:
        Identifier returned by the submission call.
    expect_media:
        Whether the caller expects ``video_result`` (True) or ``choices``.
        Only used for logging; the result is never retried on missing data.
    timeout, interval:
        Overall deadline and fixed delay in seconds. ``None`` uses
        :func:`get_timeout_config`.
    token:
        Optional cancellation token.
    clock, sleep:
        Injectable time source and sleeper (tests use fakes). Without a
        sleeper the token's own ``sleep`` is used, then ``asyncio.sleep``.

    Raises
    ------
    ProviderError
        ``TIMEOUT`` when the deadline passes while the task is still running.
    CancelledError
        When ``token`` is cancelled.
    """
    cfg = get_timeout_config()
    deadline_s = cfg.poll_timeout_seconds if timeout is None else timeout
    interval_s = cfg.poll_interval_seconds if interval is None else interval
    if sleep is not None:
        do_sleep = sleep
    elif token is not None:
        do_sleep = token.sleep
    else:
        do_sleep = asyncio.sleep
    start = clock()
    attempt = 0

    while True:
        attempt += 1
        if token is not None:
            token.raise_if_cancelled()
        result = await fetch(task_id)
        if token is not None:
            token.raise_if_cancelled()

        status = getattr(result, "task_status", None)
        elapsed = clock() - start
        normalized_log_event(
            _logger,
            "poll.attempt",
            ctx,
            phase="poll",
            attempt=attempt,
            level=logging.DEBUG,
            task_status=status or "",
            elapsed_s=round(elapsed, 3),
        )
        if not is_running_status(status):
            normalized_log_event(
                _logger,
                "poll.end",
                ctx,
                phase="finalize",
                attempt=attempt,
                emitted=_has_expected_data(result, expect_media),
                task_status=status,
                expect_media=expect_media,
            )
            return result

        if elapsed >= deadline_s:
            normalized_log_event(
                _logger,
                "poll.timeout",
                ctx,
                phase="poll",
                attempt=attempt,
                error_code=ErrorCode.TIMEOUT.value,
                level=logging.WARNING,
                elapsed_s=round(elapsed, 3),
                timeout_s=deadline_s,
            )
            raise ProviderError(
                code=ErrorCode.TIMEOUT,
                message=f"async task {task_id} still running after {deadline_s:.0f}s",
            )

        if token is not None:
            token.raise_if_cancelled()
        await do_sleep(interval_s)
        if token is not None:
            token.raise_if_cancelled()


__all__ = ["RUNNING_STATUSES", "is_running_status", "poll_async_result"]
