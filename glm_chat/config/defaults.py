"""glm_chat.config.defaults
========================

Central place for small, stable default values used across the package. They
can be overridden through ``GLM_CHAT_*`` environment variables, an optional
config file, or in-code overrides (see :func:`glm_chat.config.get_session_config`).

This module intentionally imports nothing from the rest of the package so it
can be used from any layer without import cycles.
"""

from __future__ import annotations

# ---- Provider endpoint ----
ZHIPU_DEFAULT_BASE_URL = "https://open.bigmodel.cn/api/paas/v4"
ZHIPU_PROVIDER_NAME = "zhipu"

# ---- Models ----
CHAT_DEFAULT_MODEL = "glm-4.5-flash"
IMAGE_DEFAULT_MODEL = "cogview-3-flash"
VIDEO_DEFAULT_MODEL = "cogvideox-flash"

# ---- Chat generation parameters ----
CHAT_DEFAULT_TEMPERATURE = 0.9
CHAT_DEFAULT_MAX_TOKENS = 1024

# ---- Media generation parameters ----
IMAGE_DEFAULT_SIZE = "1024x1024"
VIDEO_DEFAULT_QUALITY = "quality"
VIDEO_DEFAULT_WITH_AUDIO = True
VIDEO_DEFAULT_SIZE = "1920x1080"
VIDEO_DEFAULT_FPS = 30

# ---- Timeouts (seconds) ----
DEFAULT_HTTP_TIMEOUT_SECONDS = 60.0
DEFAULT_STREAM_TIMEOUT_SECONDS = 60.0
DEFAULT_POLL_TIMEOUT_SECONDS = 60.0
DEFAULT_POLL_INTERVAL_SECONDS = 1.0

# ---- Typewriter ----
TYPEWRITER_DEFAULT_INTERVAL_SECONDS = 0.07

# ---- Attachments ----
FILE_SNIPPET_MAX_CHARS = 2000

# ---- Persistence ----
STORAGE_LIMIT_BYTES = 100 * 1024 * 1024
# Fixed per-message overhead added to the size estimate used for eviction.
STORAGE_MESSAGE_OVERHEAD_BYTES = 128
CONVERSATION_TITLE_MAX_CHARS = 18

# ---- SQLite (infrastructure) ----
SQLITE_BUSY_TIMEOUT_MS = 5000
SQLITE_JOURNAL_MODE = "WAL"
SQLITE_SYNCHRONOUS = "NORMAL"

# ---- Locale ----
DEFAULT_LOCALE = "en"


__all__ = [
    "ZHIPU_DEFAULT_BASE_URL",
    "ZHIPU_PROVIDER_NAME",
    "CHAT_DEFAULT_MODEL",
    "IMAGE_DEFAULT_MODEL",
    "VIDEO_DEFAULT_MODEL",
    "CHAT_DEFAULT_TEMPERATURE",
    "CHAT_DEFAULT_MAX_TOKENS",
    "IMAGE_DEFAULT_SIZE",
    "VIDEO_DEFAULT_QUALITY",
    "VIDEO_DEFAULT_WITH_AUDIO",
    "VIDEO_DEFAULT_SIZE",
    "VIDEO_DEFAULT_FPS",
    "DEFAULT_HTTP_TIMEOUT_SECONDS",
    "DEFAULT_STREAM_TIMEOUT_SECONDS",
    "DEFAULT_POLL_TIMEOUT_SECONDS",
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "TYPEWRITER_DEFAULT_INTERVAL_SECONDS",
    "FILE_SNIPPET_MAX_CHARS",
    "STORAGE_LIMIT_BYTES",
    "STORAGE_MESSAGE_OVERHEAD_BYTES",
    "CONVERSATION_TITLE_MAX_CHARS",
    "SQLITE_BUSY_TIMEOUT_MS",
    "SQLITE_JOURNAL_MODE",
    "SQLITE_SYNCHRONOUS",
    "DEFAULT_LOCALE",
]
