"""Mutable state behind a :class:`CancellationToken`."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

CancelCallback = Callable[[], None]


@dataclass
class State:
    """Cancellation flag, reason and the callbacks still waiting to run."""

    cancelled: bool = False
    reason: Optional[str] = None
    callbacks: List[CancelCallback] = field(default_factory=list)

    def trip(self, reason: Optional[str]) -> List[CancelCallback]:
        """Mark cancelled and hand back the pending callbacks (empty when already tripped)."""
        if self.cancelled:
            return []
        self.cancelled = True
        self.reason = reason
        pending, self.callbacks = self.callbacks, []
        return pending


__all__ = ["State", "CancelCallback"]
