"""SQLite-backed implementation of ``IConversationStore``.

Each public method runs in its own transaction (``with self.conn``) so the
store can be shared by the session and a CLI without a unit of work.

Eviction
--------
After every save the approximate size of all stored messages is summed. When
it exceeds ``storage_limit_bytes`` whole conversations are deleted, least
recently updated first, until the total is within the limit. The
conversation that was just saved is considered last.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from ...base.logging import get_logger, log_event
from ...base.models import Turn, utcnow
from ...config.defaults import STORAGE_LIMIT_BYTES
from ...config.messages import EN_MESSAGES, Messages
from ..interfaces.repos import ConversationSummary, IConversationStore
from ..mapping import record_to_turn, turn_to_record
from .helpers import (
    MESSAGE_COLUMNS,
    _message_from_row,
    _message_params,
    _summary_from_row,
    _to_iso,
    approximate_size,
    make_title,
)

_logger = get_logger("glm_chat.store")


class ConversationStoreSqlite(IConversationStore):
    """Conversation store over a ``sqlite3`` connection with the glm_chat schema."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        storage_limit_bytes: int = STORAGE_LIMIT_BYTES,
        messages: Messages = EN_MESSAGES,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.conn = conn
        self.storage_limit_bytes = storage_limit_bytes
        self._messages = messages
        self._clock = clock

    # ---- conversations ----
    def create(self, title: Optional[str] = None) -> ConversationSummary:
        now = self._clock()
        cid = uuid.uuid4().hex
        title = title or self._messages.new_chat_title
        with self.conn:
            self.conn.execute(
                "INSERT INTO conversations(id, title, created_at, updated_at) VALUES(?, ?, ?, ?)",
                (cid, title, _to_iso(now), _to_iso(now)),
            )
        return ConversationSummary(id=cid, title=title, created_at=now, updated_at=now, message_count=0)

    def list_conversations(self) -> List[ConversationSummary]:
        """Return all conversations, most recently updated first."""
        cur = self.conn.execute(
            """
            SELECT c.id, c.title, c.created_at, c.updated_at,
                   (SELECT COUNT(*) FROM messages m WHERE m.conversation_id = c.id) AS message_count
            FROM conversations c
            ORDER BY c.updated_at DESC, c.rowid DESC
            """
        )
        return [_summary_from_row(r) for r in cur.fetchall()]

    def get(self, conversation_id: str) -> Optional[ConversationSummary]:
        cur = self.conn.execute(
            """
            SELECT c.id, c.title, c.created_at, c.updated_at,
                   (SELECT COUNT(*) FROM messages m WHERE m.conversation_id = c.id) AS message_count
            FROM conversations c WHERE c.id = ?
            """,
            (conversation_id,),
        )
        r = cur.fetchone()
        return _summary_from_row(r) if r else None

    def delete(self, conversation_id: str) -> None:
        with self.conn:
            self._delete(conversation_id)

    def _delete(self, conversation_id: str) -> None:
        self.conn.execute("DELETE FROM messages WHERE conversation_id = ?", (conversation_id,))
        self.conn.execute("DELETE FROM conversations WHERE id = ?", (conversation_id,))

    # ---- transcripts ----
    def load(self, conversation_id: str) -> List[Turn]:
        """Return the stored turns ordered by creation time, then transcript position."""
        cur = self.conn.execute(
            f"SELECT {MESSAGE_COLUMNS} FROM messages WHERE conversation_id = ? ORDER BY created_at ASC, position ASC",
            (conversation_id,),
        )
        return [record_to_turn(_message_from_row(r)) for r in cur.fetchall()]

    def save(self, conversation_id: str, turns: Sequence[Turn]) -> None:
        now = self._clock()
        title = make_title(turns, self._messages)
        with self.conn:
            cur = self.conn.execute(
                "UPDATE conversations SET title = ?, updated_at = ? WHERE id = ?",
                (title, _to_iso(now), conversation_id),
            )
            if cur.rowcount == 0:
                self.conn.execute(
                    "INSERT INTO conversations(id, title, created_at, updated_at) VALUES(?, ?, ?, ?)",
                    (conversation_id, title, _to_iso(now), _to_iso(now)),
                )
            self.conn.execute("DELETE FROM messages WHERE conversation_id = ?", (conversation_id,))
            self.conn.executemany(
                f"INSERT INTO messages({MESSAGE_COLUMNS}) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [_message_params(conversation_id, i, turn_to_record(t)) for i, t in enumerate(turns)],
            )
        log_event(_logger, "store.save", None, conversation_id=conversation_id, message_count=len(turns))
        self.enforce_storage_limit(keep_last=conversation_id)

    # ---- eviction ----
    def conversation_sizes(self) -> Dict[str, int]:
        """Approximate stored size per conversation id."""
        cur = self.conn.execute(
            """
            SELECT conversation_id, text, image_urls_json, video_url,
                   COALESCE(LENGTH(attached_image_data), 0) AS attachment_bytes
            FROM messages
            """
        )
        sizes: Dict[str, int] = {}
        for r in cur.fetchall():
            urls = json.loads(r["image_urls_json"]) if r["image_urls_json"] else []
            size = approximate_size(r["text"], urls, r["video_url"], int(r["attachment_bytes"]))
            sizes[r["conversation_id"]] = sizes.get(r["conversation_id"], 0) + size
        return sizes

    def enforce_storage_limit(self, *, keep_last: Optional[str] = None) -> List[str]:
        """Delete oldest-updated conversations while over the limit; returns evicted ids."""
        sizes = self.conversation_sizes()
        total = sum(sizes.values())
        if total <= self.storage_limit_bytes:
            return []
        ids = [r["id"] for r in self.conn.execute("SELECT id FROM conversations ORDER BY updated_at ASC, rowid ASC")]
        if keep_last in ids:
            ids.remove(keep_last)
            ids.append(keep_last)
        evicted: List[str] = []
        with self.conn:
            for cid in ids:
                self._delete(cid)
                evicted.append(cid)
                total -= sizes.get(cid, 0)
                if total <= self.storage_limit_bytes:
                    break
        log_event(
            _logger,
            "store.evict",
            None,
            evicted=evicted,
            remaining_bytes=total,
            limit_bytes=self.storage_limit_bytes,
        )
        return evicted


__all__ = ["ConversationStoreSqlite"]
