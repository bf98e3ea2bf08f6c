"""SQLite-backed implementation of ``ISettingsRepo``.

Stores the provider API key in the ``settings`` table. Values are trimmed on
write; an empty value deletes the key.
"""

from __future__ import annotations

import sqlite3
from typing import Optional

from ...config.defaults import ZHIPU_PROVIDER_NAME
from ..interfaces.repos import ISettingsRepo


class SettingsRepoSqlite(ISettingsRepo):
    """Key/value settings repository (one key per provider credential)."""

    def __init__(self, conn: sqlite3.Connection, *, provider: str = ZHIPU_PROVIDER_NAME) -> None:
        self.conn = conn
        self._key_name = f"api_key.{provider.lower()}"

    def get(self, key: str) -> Optional[str]:
        row = self.conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self.conn:
            self.conn.execute(
                "INSERT INTO settings(key, value, updated_at) VALUES(?, ?, CURRENT_TIMESTAMP) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=CURRENT_TIMESTAMP",
                (key, value),
            )

    def delete(self, key: str) -> None:
        with self.conn:
            self.conn.execute("DELETE FROM settings WHERE key = ?", (key,))

    def get_api_key(self) -> Optional[str]:
        value = self.get(self._key_name)
        if value is None:
            return None
        return value.strip() or None

    def set_api_key(self, key: str) -> None:
        """Store ``key`` (trimmed); a blank key removes the stored value."""
        trimmed = (key or "").strip()
        if not trimmed:
            self.delete_api_key()
            return
        self.set(self._key_name, trimmed)

    def delete_api_key(self) -> None:
        self.delete(self._key_name)


__all__ = ["SettingsRepoSqlite"]
