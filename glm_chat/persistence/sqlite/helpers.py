"""Shared helper functions for the SQLite repositories.

Timestamps are stored as ISO8601 strings and normalized to timezone-aware UTC
``datetime`` objects on read.
"""

from __future__ import annotations

import json
from contextlib import suppress
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Sequence

from ...base.models import Sender, Turn
from ...config.defaults import CONVERSATION_TITLE_MAX_CHARS, STORAGE_MESSAGE_OVERHEAD_BYTES
from ...config.messages import EN_MESSAGES, Messages
from ..interfaces.repos import ConversationSummary, MessageRecord


def _to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def _parse_created_at(raw: Any) -> datetime:
    """Parse a stored timestamp into an aware UTC ``datetime`` (epoch when malformed)."""
    if isinstance(raw, datetime):
        return raw if raw.tzinfo else raw.replace(tzinfo=timezone.utc)
    if isinstance(raw, str):
        with suppress(ValueError, TypeError):
            dt = datetime.fromisoformat(raw)
            return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(0, tz=timezone.utc)


def _message_from_row(r: Any) -> MessageRecord:
    """Convert a ``messages`` row (see ``MESSAGE_COLUMNS``) into a record."""
    urls = json.loads(r["image_urls_json"]) if r["image_urls_json"] else []
    blob = r["attached_image_data"]
    return MessageRecord(
        id=r["id"],
        sender=r["sender"],
        text=r["text"],
        created_at=_parse_created_at(r["created_at"]),
        reasoning=r["reasoning"],
        image_urls=[str(u) for u in urls],
        video_url=r["video_url"],
        attached_image_data=bytes(blob) if blob is not None else None,
        attached_file_name=r["attached_file_name"],
    )


def _message_params(conversation_id: str, position: int, rec: MessageRecord) -> tuple:
    return (
        rec.id,
        conversation_id,
        position,
        rec.sender,
        rec.text,
        _to_iso(rec.created_at),
        rec.reasoning,
        json.dumps(rec.image_urls, ensure_ascii=False),
        rec.video_url,
        rec.attached_image_data,
        rec.attached_file_name,
    )


def _summary_from_row(r: Any) -> ConversationSummary:
    return ConversationSummary(
        id=r["id"],
        title=r["title"],
        created_at=_parse_created_at(r["created_at"]),
        updated_at=_parse_created_at(r["updated_at"]),
        message_count=int(r["message_count"] or 0),
    )


MESSAGE_COLUMNS = (
    "id, conversation_id, position, sender, text, created_at, reasoning, "
    "image_urls_json, video_url, attached_image_data, attached_file_name"
)


def make_title(turns: Sequence[Turn], messages: Messages = EN_MESSAGES) -> str:
    """Title from the first user turn: trimmed, cut to 18 chars plus an ellipsis."""
    first = next((t for t in turns if t.sender is Sender.USER), None)
    if first is None:
        return messages.new_chat_title
    trimmed = first.text.strip()
    if not trimmed:
        return messages.new_chat_title
    if len(trimmed) > CONVERSATION_TITLE_MAX_CHARS:
        return trimmed[:CONVERSATION_TITLE_MAX_CHARS] + "…"
    return trimmed


def approximate_size(
    text: str,
    image_urls: Iterable[str],
    video_url: Optional[str],
    attachment_bytes: int,
) -> int:
    """Rough storage footprint of one message used by the eviction policy."""
    return (
        len(text.encode("utf-8"))
        + sum(len(u.encode("utf-8")) for u in image_urls)
        + (len(video_url.encode("utf-8")) if video_url else 0)
        + attachment_bytes
        + STORAGE_MESSAGE_OVERHEAD_BYTES
    )


__all__ = ["make_title", "approximate_size", "MESSAGE_COLUMNS"]
