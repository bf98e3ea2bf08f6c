"""Cooperative cancellation token for one in-flight request.

Work checks the token at its suspension points (``raise_if_cancelled``).
Callbacks registered with ``on_cancel`` run once when the token trips; the
session registers ``task.cancel`` so a pending network read or sleep is
interrupted as well.
"""

from __future__ import annotations

import asyncio
import logging
from threading import Lock

from .cancelled_error import CancelledError
from .state import CancelCallback, State

logger = logging.getLogger(__name__)


class CancellationToken:
    """One-shot cancellation flag with an optional reason.

    Thread-safe for ``cancel`` / ``on_cancel`` / ``raise_if_cancelled``.
    Callbacks run outside the lock, in registration order; a failing callback
    is logged and does not stop the others.
    """

    def __init__(self) -> None:
        self._state = State()
        self._lock = Lock()

    @property
    def cancelled(self) -> bool:
        return self._state.cancelled

    @property
    def reason(self) -> str | None:
        return self._state.reason

    def cancel(self, reason: str | None = None) -> None:
        """Trip the token; later calls are no-ops."""
        with self._lock:
            pending = self._state.trip(reason)
        for cb in pending:
            self._run(cb)

    def on_cancel(self, callback: CancelCallback) -> None:
        """Run ``callback`` on cancel, or right away when already cancelled."""
        with self._lock:
            if not self._state.cancelled:
                self._state.callbacks.append(callback)
                return
        self._run(callback)

    def raise_if_cancelled(self) -> None:
        if self._state.cancelled:
            raise CancelledError(self._state.reason or "operation cancelled")

    async def sleep(self, seconds: float) -> None:
        """``asyncio.sleep`` bracketed by cancellation checks."""
        self.raise_if_cancelled()
        await asyncio.sleep(seconds)
        self.raise_if_cancelled()

    @staticmethod
    def _run(callback: CancelCallback) -> None:
        try:
            callback()
        except Exception:
            logger.exception("cancel callback failed")

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return f"CancellationToken(cancelled={self._state.cancelled}, reason={self._state.reason!r})"


__all__ = ["CancellationToken"]
