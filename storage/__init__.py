"""SQLite persistence for in-progress interviews, history and practice."""
from .migrate import migrate
from .session_store import SqliteSessionStore

__all__ = ["SqliteSessionStore", "migrate"]
