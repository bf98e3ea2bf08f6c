"""
Normalized error codes (taxonomy).

Values are lowercase snake_case and are a stable contract for logging and for
the user-facing message catalog.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Enumerated normalized error codes representing failure categories."""

    MISSING_API_KEY = "missing_api_key"  # pragma: allowlist secret - code name, not a secret
    DNS = "dns"
    OFFLINE = "offline"
    NETWORK_TIMEOUT = "network_timeout"
    TRANSPORT = "transport"
    HTTP = "http"
    DECODE = "decode"
    NO_CONTENT = "no_content"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    @property
    def is_transport(self) -> bool:
        return self in (ErrorCode.DNS, ErrorCode.OFFLINE, ErrorCode.NETWORK_TIMEOUT, ErrorCode.TRANSPORT)


__all__ = ["ErrorCode"]
