from __future__ import annotations  # Coding practice domain models

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from interview_session.models import CodingChallenge, Difficulty

Language = Literal["python"]


class PracticeSolution(BaseModel):  # Candidate code submitted for a practice problem
    language: Language = "python"
    code: str


class SolvedCodingProblem(BaseModel):  # Practice history entry
    challenge: CodingChallenge
    solution: PracticeSolution
    difficulty: Difficulty
    solved_at: datetime
    problem_id: Optional[int] = None


class PracticeRunResult(BaseModel):  # Outcome of running code against a problem's test case
    passed: bool
    output: Any = None
    error: Optional[str] = None
    message: str = ""
    details: dict = Field(default_factory=dict)


__all__ = ["Language", "PracticeRunResult", "PracticeSolution", "SolvedCodingProblem"]
