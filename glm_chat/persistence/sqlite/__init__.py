"""SQLite persistence adapters."""

from .conversation_repo import ConversationStoreSqlite
from .engine import MEMORY_DB, create_connection, db_session, get_db_path, init_schema, open_database
from .helpers import approximate_size, make_title
from .settings_repo import SettingsRepoSqlite

__all__ = [
    "ConversationStoreSqlite",
    "SettingsRepoSqlite",
    "MEMORY_DB",
    "create_connection",
    "db_session",
    "get_db_path",
    "init_schema",
    "open_database",
    "approximate_size",
    "make_title",
]
