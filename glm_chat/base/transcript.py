"""Observable, ordered transcript of turns.

The transcript is the only mutable state shared between the session (sole
writer) and renderers/stores (read-only observers). Every write replaces a
whole :class:`Turn` record and then notifies listeners, so a listener always
sees complete records.

Thread safety: not thread-safe; a session and its observers run on one event
loop.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from .models import Turn

logger = logging.getLogger(__name__)

# listener(transcript, changed_turn_id_or_None); None means bulk replacement.
TranscriptListener = Callable[["Transcript", Optional[str]], None]


class Transcript:
    """Ordered list of turns with O(1) lookup by id."""

    def __init__(self, turns: Iterable[Turn] = ()) -> None:
        self._turns: List[Turn] = []
        self._index: Dict[str, int] = {}
        self._listeners: List[TranscriptListener] = []
        for t in turns:
            self._insert(t)

    # ---- read side ---------------------------------------------------------
    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    def __getitem__(self, position: int) -> Turn:
        return self._turns[position]

    def __contains__(self, turn_id: object) -> bool:
        return turn_id in self._index

    def get(self, turn_id: str) -> Optional[Turn]:
        pos = self._index.get(turn_id)
        return None if pos is None else self._turns[pos]

    def snapshot(self) -> Tuple[Turn, ...]:
        """Immutable view of the current turns, oldest first."""
        return tuple(self._turns)

    @property
    def last(self) -> Optional[Turn]:
        return self._turns[-1] if self._turns else None

    # ---- write side --------------------------------------------------------
    def append(self, turn: Turn) -> Turn:
        self._insert(turn)
        self._notify(turn.id)
        return turn

    def replace(self, turn: Turn) -> bool:
        """Store ``turn`` over the record with the same id; False when absent."""
        pos = self._index.get(turn.id)
        if pos is None:
            return False
        self._turns[pos] = turn
        self._notify(turn.id)
        return True

    def update(self, turn_id: str, **changes) -> Optional[Turn]:
        """Copy-modify-store the turn ``turn_id``; returns the new record or None."""
        current = self.get(turn_id)
        if current is None:
            return None
        updated = current.evolve(**changes)
        self.replace(updated)
        return updated

    def reset(self, turns: Iterable[Turn] = ()) -> None:
        """Replace every turn at once (conversation switch / clear)."""
        self._turns = []
        self._index = {}
        for t in turns:
            self._insert(t)
        self._notify(None)

    # ---- observers ---------------------------------------------------------
    def subscribe(self, listener: TranscriptListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _insert(self, turn: Turn) -> None:
        if turn.id in self._index:
            raise ValueError(f"duplicate turn id {turn.id}")
        self._index[turn.id] = len(self._turns)
        self._turns.append(turn)

    def _notify(self, turn_id: Optional[str]) -> None:
        for listener in list(self._listeners):
            try:
                listener(self, turn_id)
            except Exception:
                logger.exception("transcript listener failed")


__all__ = ["Transcript", "TranscriptListener"]
