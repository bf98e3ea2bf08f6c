"""
Turn DTO: one entry of a conversation transcript.

Turns are immutable. The session mutates an assistant placeholder by building
a modified copy (:meth:`Turn.evolve`) and replacing the stored record by id,
so a reader never observes a half-updated record.
"""
from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple

from .chat_mode import Sender


def new_turn_id() -> str:
    """Return a fresh opaque turn identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Turn:
    """A single user or assistant message.

    Attributes:
        id: Opaque identifier, never reused; the mutation key.
        sender: ``Sender.USER`` or ``Sender.ASSISTANT``.
        text: Message content; progressively filled for assistant turns.
        created_at: Creation timestamp (UTC), immutable.
        is_streaming: True while content may still change.
        is_loading_pending: True until the first byte of content arrives.
        reasoning: Optional "thinking" channel (chat mode only).
        image_urls: Generated image links, in provider order.
        video_url: Generated video link.
        attached_image_data: Raw image bytes attached to a user turn.
        attached_file_name: Name of a file attached to a user turn.
    """

    sender: Sender
    text: str = ""
    id: str = field(default_factory=new_turn_id)
    created_at: datetime = field(default_factory=utcnow)
    is_streaming: bool = False
    is_loading_pending: bool = False
    reasoning: Optional[str] = None
    image_urls: Tuple[str, ...] = ()
    video_url: Optional[str] = None
    attached_image_data: Optional[bytes] = None
    attached_file_name: Optional[str] = None

    @classmethod
    def user(
        cls,
        text: str,
        *,
        attached_image_data: Optional[bytes] = None,
        attached_file_name: Optional[str] = None,
    ) -> "Turn":
        return cls(
            sender=Sender.USER,
            text=text,
            attached_image_data=attached_image_data,
            attached_file_name=attached_file_name,
        )

    @classmethod
    def placeholder(cls) -> "Turn":
        """Empty assistant turn shown while a response is in progress."""
        return cls(sender=Sender.ASSISTANT, text="", is_streaming=True, is_loading_pending=True)

    @property
    def is_terminal(self) -> bool:
        return not self.is_streaming and not self.is_loading_pending

    def evolve(self, **changes) -> "Turn":
        """Return a copy with ``changes`` applied; ``id`` and ``created_at`` are fixed."""
        if "id" in changes or "created_at" in changes:
            raise ValueError("turn id and created_at are immutable")
        if "image_urls" in changes:
            changes["image_urls"] = tuple(changes["image_urls"])
        return dataclasses.replace(self, **changes)


__all__ = ["Turn", "new_turn_id", "utcnow"]
