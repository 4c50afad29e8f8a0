"""SQLite-backed implementation of the session persistence boundary."""
from __future__ import annotations

from typing import List, Optional

from interview_session.models import CompletedSessionRecord, InProgressSnapshot

from .history import insert_completed_session, list_completed_sessions
from .in_progress import delete_in_progress, fetch_in_progress, upsert_in_progress


class SqliteSessionStore:  # One snapshot per candidate plus append-only history; schema comes from migrate()
    def save_in_progress(self, candidate_id: str, snapshot: InProgressSnapshot) -> None:
        upsert_in_progress(candidate_id, snapshot)

    def load_in_progress(self, candidate_id: str) -> Optional[InProgressSnapshot]:
        return fetch_in_progress(candidate_id)

    def discard_in_progress(self, candidate_id: str) -> None:
        delete_in_progress(candidate_id)

    def append_completed_record(self, candidate_id: str, record: CompletedSessionRecord) -> int:
        return insert_completed_session(candidate_id, record)

    def list_completed_records(self, candidate_id: str) -> List[CompletedSessionRecord]:
        return list_completed_sessions(candidate_id)


__all__ = ["SqliteSessionStore"]
