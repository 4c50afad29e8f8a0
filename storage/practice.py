"""Persistence helpers for solved coding practice problems."""
from __future__ import annotations

from typing import List

from coding_practice.models import PracticeSolution, SolvedCodingProblem
from interview_session.models import CodingChallenge

from .sqlite import get_conn


def insert_solved_problem(candidate_id: str, problem: SolvedCodingProblem) -> int:
    with get_conn() as conn:
        cur = conn.execute(
            """INSERT INTO solved_coding_problems
               (candidate_id, title, difficulty, language, challenge_json, code, solved_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                candidate_id,
                problem.challenge.title,
                problem.difficulty,
                problem.solution.language,
                problem.challenge.model_dump_json(),
                problem.solution.code,
                problem.solved_at.isoformat(),
            ),
        )
        return int(cur.lastrowid)


def list_solved_problems(candidate_id: str) -> List[SolvedCodingProblem]:
    """Return solved practice problems, most recent first."""

    with get_conn() as conn:
        rows = conn.execute(
            """SELECT id, difficulty, language, challenge_json, code, solved_at
               FROM solved_coding_problems
               WHERE candidate_id = ?
               ORDER BY solved_at DESC, id DESC""",
            (candidate_id,),
        ).fetchall()
    return [
        SolvedCodingProblem(
            problem_id=row["id"],
            challenge=CodingChallenge.model_validate_json(row["challenge_json"]),
            solution=PracticeSolution(language=row["language"], code=row["code"]),
            difficulty=row["difficulty"],
            solved_at=row["solved_at"],
        )
        for row in rows
    ]
