"""Repository protocol definitions for conversation persistence.

The session depends only on these abstractions; the SQLite implementations
live under ``persistence/sqlite/``.

Design Principles:
- No concrete behavior; pure structural typing via ``Protocol``.
- Dataclasses represent records crossing repository boundaries.
- Stores speak in :class:`~glm_chat.base.models.Turn` sequences at their
  public surface; the record shapes describe what is persisted.

Failure / Error Semantics:
- Repository methods raise backend-specific exceptions (``sqlite3.Error``)
  only for I/O or integrity failures. An unknown conversation id is not an
  error: ``load`` returns an empty list and ``delete`` is a no-op.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Protocol, Sequence

from ...base.models import Turn

# ---------- Records ----------


@dataclass
class MessageRecord:
    """Persisted shape of one transcript turn.

    Attributes
    ----------
    id: Turn id.
    sender: ``"user"`` or ``"assistant"``.
    text: Message text.
    created_at: Creation timestamp (UTC).
    reasoning: Optional reasoning channel text.
    image_urls: Generated image URLs in provider order.
    video_url: Generated video URL.
    attached_image_data: Raw bytes of an image attached to a user turn.
    attached_file_name: Name of a file attached to a user turn.
    """

    id: str
    sender: str
    text: str
    created_at: datetime
    reasoning: Optional[str] = None
    image_urls: List[str] = field(default_factory=list)
    video_url: Optional[str] = None
    attached_image_data: Optional[bytes] = None
    attached_file_name: Optional[str] = None


@dataclass
class ConversationSummary:
    """Listing row for one stored conversation."""

    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    message_count: int = 0


# ---------- Repository Protocols ----------


class IConversationStore(Protocol):
    """Conversation persistence used by the chat session.

    ``save`` replaces the stored transcript of a conversation (creating the
    conversation when unknown), refreshes its title and ``updated_at``, and
    then applies the storage eviction policy.
    """

    def create(self, title: Optional[str] = None) -> ConversationSummary:
        ...

    def load(self, conversation_id: str) -> List[Turn]:
        ...

    def save(self, conversation_id: str, turns: Sequence[Turn]) -> None:
        ...

    def list_conversations(self) -> List[ConversationSummary]:
        ...

    def delete(self, conversation_id: str) -> None:
        ...


class ISettingsRepo(Protocol):
    """Settings storage for the provider credential."""

    def get_api_key(self) -> Optional[str]:
        ...

    def set_api_key(self, key: str) -> None:
        ...

    def delete_api_key(self) -> None:
        ...


__all__ = [
    "MessageRecord",
    "ConversationSummary",
    "IConversationStore",
    "ISettingsRepo",
]
