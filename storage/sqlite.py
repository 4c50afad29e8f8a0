"""SQLite helpers for the persistence layer."""
from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from config.settings import settings
from interview_session.errors import PersistFailure


@contextmanager
def get_conn() -> Iterator[sqlite3.Connection]:
    """Yield a SQLite connection, translating driver errors into PersistFailure."""

    directory = os.path.dirname(settings.DB_PATH) or "."
    try:
        os.makedirs(directory, exist_ok=True)
        conn = sqlite3.connect(settings.DB_PATH)
    except (OSError, sqlite3.Error) as exc:
        raise PersistFailure(f"Could not open database: {exc}") from exc
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        raise PersistFailure(f"Database operation failed: {exc}") from exc
    finally:
        conn.close()
