"""
Structured provider error exception type.

Wraps transport, HTTP and decode failures with a normalized `ErrorCode` so the
session can map any failure onto a localized, mode-prefixed message.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .error_code import ErrorCode

# Response bodies embedded in messages are cut to this many characters.
BODY_SNIPPET_LIMIT = 300


def truncate_body(body: Optional[str], limit: int = BODY_SNIPPET_LIMIT) -> Optional[str]:
    """Return ``body`` cut to ``limit`` characters with a trailing ellipsis."""
    if body is None:
        return None
    return body if len(body) <= limit else body[:limit] + "…"


@dataclass
class ProviderError(Exception):
    """Represents a structured provider error with a normalized error code.

    Attributes:
        code: Normalized :class:`ErrorCode` classification for the failure.
        message: Human-readable error message suitable for logging.
        provider: Provider key where the error originated (``"zhipu"``).
        model: Optional model name associated with the failure.
        status_code: HTTP status for ``ErrorCode.HTTP`` failures.
        body: Truncated response body for ``ErrorCode.HTTP`` failures.
        raw: Optional original exception for diagnostics.
    """

    code: ErrorCode
    message: str
    provider: str = "zhipu"
    model: Optional[str] = None
    status_code: Optional[int] = None
    body: Optional[str] = None
    raw: Optional[BaseException] = None

    def __post_init__(self) -> None:
        self.body = truncate_body(self.body)

    def __str__(self) -> str:  # pragma: no cover - trivial
        """Return a compact string combining provider, model, code, and message."""
        return f"{self.provider}:{self.model or '-'} {self.code.value}: {self.message}"


__all__ = ["ProviderError", "truncate_body", "BODY_SNIPPET_LIMIT"]
