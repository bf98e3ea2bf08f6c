"""Unified configuration layer for a chat session.

Sources are merged in a predictable order:
    1. Built-in defaults (``glm_chat.config.defaults``)
    2. Optional config file (JSON or YAML) pointed to by ``GLM_CHAT_CONFIG_FILE``
    3. Environment variables ``GLM_CHAT_<FIELD>`` (e.g. ``GLM_CHAT_CHAT_MODEL``)
    4. In-code overrides passed to :func:`get_session_config`

Config file example (YAML)::

    chat_model: glm-4.5-flash
    stream_first: true
    locale: zh
    poll_timeout_seconds: 90

Public API
----------
* ``SessionConfig``
* ``get_session_config(overrides: dict | None = None) -> SessionConfig``
"""
from __future__ import annotations

import dataclasses
import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .defaults import (
    CHAT_DEFAULT_MAX_TOKENS,
    CHAT_DEFAULT_MODEL,
    CHAT_DEFAULT_TEMPERATURE,
    DEFAULT_LOCALE,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    FILE_SNIPPET_MAX_CHARS,
    IMAGE_DEFAULT_MODEL,
    IMAGE_DEFAULT_SIZE,
    STORAGE_LIMIT_BYTES,
    TYPEWRITER_DEFAULT_INTERVAL_SECONDS,
    VIDEO_DEFAULT_FPS,
    VIDEO_DEFAULT_MODEL,
    VIDEO_DEFAULT_QUALITY,
    VIDEO_DEFAULT_SIZE,
    VIDEO_DEFAULT_WITH_AUDIO,
    ZHIPU_DEFAULT_BASE_URL,
)
from .messages import Messages, get_messages

ENV_PREFIX = "GLM_CHAT_"
CONFIG_FILE_ENV = "GLM_CHAT_CONFIG_FILE"


@dataclass(frozen=True)
class SessionConfig:
    """Resolved settings for one :class:`~glm_chat.session.ChatSession`.

    ``stream_first`` selects whether chat turns try the SSE endpoint before
    falling back to async polling; it is on by default.
    """

    base_url: str = ZHIPU_DEFAULT_BASE_URL
    chat_model: str = CHAT_DEFAULT_MODEL
    image_model: str = IMAGE_DEFAULT_MODEL
    video_model: str = VIDEO_DEFAULT_MODEL
    temperature: float = CHAT_DEFAULT_TEMPERATURE
    max_tokens: int = CHAT_DEFAULT_MAX_TOKENS
    image_size: str = IMAGE_DEFAULT_SIZE
    video_quality: str = VIDEO_DEFAULT_QUALITY
    video_with_audio: bool = VIDEO_DEFAULT_WITH_AUDIO
    video_size: str = VIDEO_DEFAULT_SIZE
    video_fps: int = VIDEO_DEFAULT_FPS
    poll_timeout_seconds: float = DEFAULT_POLL_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    typewriter_interval_seconds: float = TYPEWRITER_DEFAULT_INTERVAL_SECONDS
    stream_first: bool = True
    locale: str = DEFAULT_LOCALE
    file_snippet_max_chars: int = FILE_SNIPPET_MAX_CHARS
    storage_limit_bytes: int = STORAGE_LIMIT_BYTES
    db_path: Optional[str] = None

    @property
    def messages(self) -> Messages:
        return get_messages(self.locale)

    def replace(self, **changes: Any) -> "SessionConfig":
        return dataclasses.replace(self, **changes)


def _str2bool(v: str) -> bool:
    return v.strip().lower() in {"1", "t", "true", "y", "yes", "on"}


def _coerce(name: str, value: Any, default: Any) -> Any:
    """Coerce ``value`` to the type of the field default; ``ValueError`` when impossible."""
    if value is None:
        return None
    if isinstance(default, bool):
        return _str2bool(value) if isinstance(value, str) else bool(value)
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    if isinstance(default, str) or default is None:
        return str(value)
    raise ValueError(f"unsupported config field {name!r}")  # pragma: no cover - defensive


def _load_config_file() -> Dict[str, Any]:
    """Load the optional JSON/YAML config file; empty mapping when absent."""
    path = os.getenv(CONFIG_FILE_ENV)
    if not path:
        return {}
    p = Path(path).expanduser()
    if not p.is_file():
        return {}
    text = p.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


def _env_values() -> Dict[str, str]:
    out: Dict[str, str] = {}
    for f in fields(SessionConfig):
        raw = os.getenv(ENV_PREFIX + f.name.upper())
        if raw is not None and raw.strip() != "":
            out[f.name] = raw.strip()
    return out


def get_session_config(overrides: Optional[Mapping[str, Any]] = None) -> SessionConfig:
    """Return a :class:`SessionConfig` merged from every configuration source.

    Unknown keys in the file or overrides are ignored; ``None`` override values
    leave the lower layer untouched.
    """
    defaults = {f.name: f.default for f in fields(SessionConfig)}
    merged: Dict[str, Any] = {}
    for layer in (_load_config_file(), _env_values(), dict(overrides or {})):
        for k, v in layer.items():
            if k in defaults and v is not None:
                merged[k] = _coerce(k, v, defaults[k])
    return SessionConfig(**merged)


__all__ = ["SessionConfig", "get_session_config", "Messages", "get_messages"]
