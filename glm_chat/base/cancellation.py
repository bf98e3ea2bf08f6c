"""Cooperative cancellation primitives (public API facade).

Purpose
-------
Expose the cancellation constructs used by the session, stream reassembler,
poller and typewriter via a single ``glm_chat.base.cancellation`` import path.
Implementations live under ``cancellation_parts``.

Notes
-----
- ``CancellationToken`` is checked at every suspension point (stream chunk,
  poll iteration, typewriter character).
- ``CancelledError`` is raised by operations that observe a cancellation
  request. It is distinct from ``asyncio.CancelledError``; the session treats
  both as a cancellation of the in-flight request.
"""

from .cancellation_parts.cancelled_error import CancelledError, is_cancellation
from .cancellation_parts.cancellation_token import CancellationToken

__all__ = ["CancellationToken", "CancelledError", "is_cancellation"]
