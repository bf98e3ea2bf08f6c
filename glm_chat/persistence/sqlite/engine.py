"""SQLite engine helpers for the persistence layer.

Purpose
-------
Open SQLite connections with consistent PRAGMA settings and make sure the
conversation and settings tables exist.

External dependencies
---------------------
- Standard library only (``sqlite3``). No side effects at import time.

Timeout and reliability strategy
--------------------------------
- Applies ``busy_timeout`` from ``glm_chat.config.defaults`` to mitigate lock
  contention between a CLI invocation and a running application.
- Enables WAL journaling and NORMAL synchronous mode.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ...config.defaults import (
    SQLITE_BUSY_TIMEOUT_MS,
    SQLITE_JOURNAL_MODE,
    SQLITE_SYNCHRONOUS,
)

MEMORY_DB = ":memory:"
DEFAULT_DB_DIR = Path.home() / ".glm_chat"
DEFAULT_DB_PATH = DEFAULT_DB_DIR / "chat.db"


def get_db_path(db_path: Optional[str] = None) -> Path:
    """Return the database file path (``~`` expanded); default under ``~/.glm_chat``."""
    return Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH


def create_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Open a SQLite connection with ``sqlite3.Row`` rows and PRAGMAs applied.

    ``":memory:"`` opens a private in-memory database (tests).
    """
    if db_path == MEMORY_DB:
        conn = sqlite3.connect(MEMORY_DB)
    else:
        path = get_db_path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(path))
        conn.execute(f"PRAGMA journal_mode={SQLITE_JOURNAL_MODE};")
        conn.execute(f"PRAGMA synchronous={SQLITE_SYNCHRONOUS};")
    conn.row_factory = sqlite3.Row
    conn.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS};")  # ms
    conn.execute("PRAGMA foreign_keys=ON;")
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Create required tables if they do not exist, then commit.

    Schema overview
    ---------------
    - ``conversations``: id, title, created/updated timestamps
    - ``messages``: one row per turn, ``position`` keeps transcript order
    - ``settings``: key/value pairs (the API key lives here)
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS conversations (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS messages (
            id TEXT NOT NULL,
            conversation_id TEXT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            sender TEXT NOT NULL,
            text TEXT NOT NULL,
            created_at TEXT NOT NULL,
            reasoning TEXT,
            image_urls_json TEXT NOT NULL DEFAULT '[]',
            video_url TEXT,
            attached_image_data BLOB,
            attached_file_name TEXT,
            PRIMARY KEY (conversation_id, id)
        );
        """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_messages_conversation ON messages(conversation_id, created_at, position);"
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        );
        """
    )
    conn.commit()


def open_database(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Return a connection with the schema initialized."""
    conn = create_connection(db_path)
    init_schema(conn)
    return conn


@contextmanager
def db_session(db_path: Optional[str] = None) -> Iterator[sqlite3.Connection]:
    """Context manager yielding a connection with schema initialized.

    Commits when the context exits normally, rolls back on error, and always
    closes the connection.
    """
    conn = open_database(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


__all__ = [
    "MEMORY_DB",
    "DEFAULT_DB_PATH",
    "get_db_path",
    "create_connection",
    "init_schema",
    "open_database",
    "db_session",
]
