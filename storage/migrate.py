"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

from interview_session.errors import PersistFailure

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS in_progress_interviews (
  candidate_id TEXT PRIMARY KEY,
  role TEXT NOT NULL,
  persona TEXT NOT NULL,
  difficulty TEXT NOT NULL,
  question_count INTEGER NOT NULL,
  snapshot_json TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS interview_sessions (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  candidate_id TEXT NOT NULL,
  role TEXT NOT NULL,
  persona TEXT NOT NULL,
  difficulty TEXT NOT NULL,
  completed_at TEXT NOT NULL,
  overall_score REAL NOT NULL,
  feedback_json TEXT NOT NULL
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_interview_sessions_candidate
  ON interview_sessions (candidate_id, completed_at);
""",
    """
CREATE TABLE IF NOT EXISTS solved_coding_problems (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  candidate_id TEXT NOT NULL,
  title TEXT NOT NULL,
  difficulty TEXT NOT NULL,
  language TEXT NOT NULL,
  challenge_json TEXT NOT NULL,
  code TEXT NOT NULL,
  solved_at TEXT NOT NULL
);
""",
]


def migrate(db_path: str = "data/interview.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    try:
        os.makedirs(directory, exist_ok=True)
        conn = sqlite3.connect(db_path)
    except (OSError, sqlite3.Error) as exc:
        raise PersistFailure(f"Could not open database: {exc}") from exc
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    except sqlite3.Error as exc:
        raise PersistFailure(f"Migration failed: {exc}") from exc
    finally:
        conn.close()


if __name__ == "__main__":
    from config.settings import settings

    migrate(settings.DB_PATH)
