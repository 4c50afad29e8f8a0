"""Persistence helpers for the single in-progress interview per candidate."""
from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ValidationError

from interview_session.errors import PersistFailure
from interview_session.models import InProgressSnapshot

from .sqlite import get_conn


class PendingInterviewRow(BaseModel):  # Summary row for admin listings
    candidate_id: str
    role: str
    persona: str
    difficulty: str
    question_count: int
    updated_at: str


def upsert_in_progress(candidate_id: str, snapshot: InProgressSnapshot) -> None:
    """Insert or replace the candidate's snapshot; last write wins."""

    timestamp = dt.datetime.now(dt.timezone.utc).isoformat()
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO in_progress_interviews
               (candidate_id, role, persona, difficulty, question_count, snapshot_json, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(candidate_id) DO UPDATE SET
                 role = excluded.role,
                 persona = excluded.persona,
                 difficulty = excluded.difficulty,
                 question_count = excluded.question_count,
                 snapshot_json = excluded.snapshot_json,
                 updated_at = excluded.updated_at""",
            (
                candidate_id,
                snapshot.config.role,
                snapshot.config.persona,
                snapshot.config.difficulty,
                snapshot.question_count,
                snapshot.model_dump_json(),
                timestamp,
            ),
        )


def fetch_in_progress(candidate_id: str) -> Optional[InProgressSnapshot]:
    with get_conn() as conn:
        row = conn.execute(
            "SELECT snapshot_json FROM in_progress_interviews WHERE candidate_id = ?",
            (candidate_id,),
        ).fetchone()
    if row is None:
        return None
    try:
        return InProgressSnapshot.model_validate_json(row["snapshot_json"])
    except ValidationError as exc:
        raise PersistFailure(f"Stored snapshot for {candidate_id} is unreadable") from exc


def delete_in_progress(candidate_id: str) -> bool:
    """Delete the snapshot; returns whether a row existed."""

    with get_conn() as conn:
        cur = conn.execute(
            "DELETE FROM in_progress_interviews WHERE candidate_id = ?",
            (candidate_id,),
        )
        return cur.rowcount > 0


def list_in_progress(limit: int = 20) -> List[PendingInterviewRow]:
    with get_conn() as conn:
        rows = conn.execute(
            """SELECT candidate_id, role, persona, difficulty, question_count, updated_at
               FROM in_progress_interviews
               ORDER BY updated_at DESC
               LIMIT ?""",
            (limit,),
        ).fetchall()
    return [PendingInterviewRow(**dict(row)) for row in rows]
