"""Turn <-> persisted record mapping.

Loaded turns are always terminal: a placeholder saved mid-request comes back
with ``is_streaming`` and ``is_loading_pending`` cleared.
"""

from __future__ import annotations

from ..base.models import Sender, Turn
from .interfaces.repos import MessageRecord


def turn_to_record(turn: Turn) -> MessageRecord:
    return MessageRecord(
        id=turn.id,
        sender=turn.sender.value,
        text=turn.text,
        created_at=turn.created_at,
        reasoning=turn.reasoning,
        image_urls=list(turn.image_urls),
        video_url=turn.video_url,
        attached_image_data=turn.attached_image_data,
        attached_file_name=turn.attached_file_name,
    )


def record_to_turn(record: MessageRecord) -> Turn:
    """Rebuild a :class:`Turn`; unknown sender strings load as assistant turns."""
    sender = Sender.USER if record.sender == Sender.USER.value else Sender.ASSISTANT
    return Turn(
        sender=sender,
        text=record.text,
        id=record.id,
        created_at=record.created_at,
        is_streaming=False,
        is_loading_pending=False,
        reasoning=record.reasoning,
        image_urls=tuple(record.image_urls),
        video_url=record.video_url,
        attached_image_data=record.attached_image_data,
        attached_file_name=record.attached_file_name,
    )


__all__ = ["turn_to_record", "record_to_turn"]
