"""Append-only history of completed interviews."""
from __future__ import annotations

from typing import List, Optional, Tuple

from interview_session.models import CompletedSessionRecord, InterviewFeedback, SessionConfig

from .sqlite import get_conn

_COLUMNS = "id, candidate_id, role, persona, difficulty, completed_at, feedback_json"


def insert_completed_session(candidate_id: str, record: CompletedSessionRecord) -> int:
    """Insert a completed interview and return its primary key."""

    with get_conn() as conn:
        cur = conn.execute(
            """INSERT INTO interview_sessions
               (candidate_id, role, persona, difficulty, completed_at, overall_score, feedback_json)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                candidate_id,
                record.config.role,
                record.config.persona,
                record.config.difficulty,
                record.completed_at.isoformat(),
                record.feedback.overall_score,
                record.feedback.model_dump_json(),
            ),
        )
        return int(cur.lastrowid)


def list_completed_sessions(candidate_id: str) -> List[CompletedSessionRecord]:
    """Return the candidate's completed interviews, most recent first."""

    with get_conn() as conn:
        rows = conn.execute(
            f"""SELECT {_COLUMNS} FROM interview_sessions
                WHERE candidate_id = ?
                ORDER BY completed_at DESC, id DESC""",
            (candidate_id,),
        ).fetchall()
    return [_record_from_row(row) for row in rows]


def fetch_completed_session(candidate_id: str, record_id: int) -> Optional[CompletedSessionRecord]:
    with get_conn() as conn:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM interview_sessions WHERE candidate_id = ? AND id = ?",
            (candidate_id, record_id),
        ).fetchone()
    return _record_from_row(row) if row is not None else None


def tail_completed_sessions(limit: int = 20) -> List[Tuple[str, CompletedSessionRecord]]:
    with get_conn() as conn:
        rows = conn.execute(
            f"SELECT {_COLUMNS} FROM interview_sessions ORDER BY id DESC LIMIT ?",
            (limit,),
        ).fetchall()
    return [(row["candidate_id"], _record_from_row(row)) for row in rows]


def _record_from_row(row) -> CompletedSessionRecord:
    return CompletedSessionRecord(
        record_id=row["id"],
        config=SessionConfig(role=row["role"], persona=row["persona"], difficulty=row["difficulty"]),
        completed_at=row["completed_at"],
        feedback=InterviewFeedback.model_validate_json(row["feedback_json"]),
    )
