"""Unified timeout values for the provider client, poller and animator.

Key Components
--------------
TimeoutConfig
    Frozen dataclass capturing normalized timeout values (seconds).

get_timeout_config()
    Returns a process-cached configuration, parsing environment overrides on
    first use (and again whenever one of them changes). Supported variables
    (all optional, positive floats):
        GLM_TIMEOUT_HTTP_SECONDS
        GLM_TIMEOUT_STREAM_SECONDS
        GLM_TIMEOUT_POLL_SECONDS
        GLM_POLL_INTERVAL_SECONDS

Design Constraints
------------------
1. No ad-hoc timeout literals outside this module and ``config.defaults``.
2. Avoid per-call env parsing (cache after first read).
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from ..config.defaults import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    DEFAULT_STREAM_TIMEOUT_SECONDS,
)

_ENV_NAMES = (
    "GLM_TIMEOUT_HTTP_SECONDS",
    "GLM_TIMEOUT_STREAM_SECONDS",
    "GLM_TIMEOUT_POLL_SECONDS",
    "GLM_POLL_INTERVAL_SECONDS",
)


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        http_timeout_seconds: Per-request timeout for non-streaming calls.
        stream_timeout_seconds: Read timeout between two SSE lines.
        poll_timeout_seconds: Overall deadline for an async task poll loop.
        poll_interval_seconds: Fixed delay between two poll fetches.
    """

    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    stream_timeout_seconds: float = DEFAULT_STREAM_TIMEOUT_SECONDS
    poll_timeout_seconds: float = DEFAULT_POLL_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None


def _parse_env_float(name: str, default: float) -> float:
    """Parse a positive float from env ``name``; ``default`` when unset or invalid."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached :class:`TimeoutConfig`."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    guard = "/".join(os.getenv(n, "") for n in _ENV_NAMES)
    if _CACHED is not None and _ENV_GUARD == guard:
        return _CACHED
    _CACHED = TimeoutConfig(
        http_timeout_seconds=_parse_env_float("GLM_TIMEOUT_HTTP_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS),
        stream_timeout_seconds=_parse_env_float("GLM_TIMEOUT_STREAM_SECONDS", DEFAULT_STREAM_TIMEOUT_SECONDS),
        poll_timeout_seconds=_parse_env_float("GLM_TIMEOUT_POLL_SECONDS", DEFAULT_POLL_TIMEOUT_SECONDS),
        poll_interval_seconds=_parse_env_float("GLM_POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL_SECONDS),
    )
    _ENV_GUARD = guard
    return _CACHED


__all__ = ["TimeoutConfig", "get_timeout_config"]
