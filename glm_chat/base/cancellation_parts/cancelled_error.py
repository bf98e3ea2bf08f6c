"""Cancellation error type.

Defines the public ``CancelledError`` used to signal cooperative cancellation
of an in-flight request, plus a predicate covering the asyncio flavour.
"""

from __future__ import annotations

import asyncio


class CancelledError(RuntimeError):
    """Raised when an operation is cancelled cooperatively.

    Distinguishes cancellation from other runtime failures so handlers can
    skip fallback steps and render a "cancelled" terminal state instead of an
    error message.
    """


def is_cancellation(exc: BaseException) -> bool:
    """Return True for either cooperative or asyncio task cancellation."""
    return isinstance(exc, (CancelledError, asyncio.CancelledError))


__all__ = ["CancelledError", "is_cancellation"]
