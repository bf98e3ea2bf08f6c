"""JSON line formatter and per-request log context for ``glm_chat.base.logging``."""

from .json_formatter import ISO, JsonFormatter
from .logging_context import LogContext

__all__ = ["JsonFormatter", "ISO", "LogContext"]
