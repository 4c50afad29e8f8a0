"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from coding_practice.models import Language
from config.settings import settings
from interview_session.models import CodingChallenge, CompletedSessionRecord, Difficulty, Persona, Turn


class CandidateReq(BaseModel):
    candidate_id: str = Field(min_length=1)


class StartReq(CandidateReq):
    role: str = Field(min_length=1)
    persona: Persona = settings.PERSONA_DEFAULT
    difficulty: Difficulty = settings.DIFFICULTY_DEFAULT


class AnswerReq(CandidateReq):
    answer: Optional[str] = None


class DraftReq(CandidateReq):
    text: str = ""


class CodeReq(CandidateReq):
    code: Optional[str] = None


class SessionView(BaseModel):
    candidate_id: str
    phase: str
    role: Optional[str] = None
    persona: Optional[Persona] = None
    difficulty: Optional[Difficulty] = None
    question_count: int = 0
    total_questions: int
    conversation: List[Turn] = Field(default_factory=list)
    challenge: Optional[CodingChallenge] = None
    code_draft: str = ""
    answer_draft: str = ""
    error: Optional[str] = None
    record: Optional[CompletedSessionRecord] = None


class PendingSessionView(BaseModel):
    candidate_id: str
    role: str
    persona: Persona
    difficulty: Difficulty
    question_count: int
    has_challenge: bool


class DiscardResp(BaseModel):
    candidate_id: str
    discarded: bool


class ProblemsReq(BaseModel):
    difficulty: Difficulty = settings.DIFFICULTY_DEFAULT
    count: int = Field(default=3, ge=1)


class RunReq(BaseModel):
    challenge: CodingChallenge
    code: str
    language: Language = "python"


class RunResp(BaseModel):
    passed: bool
    output: Any = None
    error: Optional[str] = None
    message: str = ""


class SolvedReq(CandidateReq):
    challenge: CodingChallenge
    code: str
    difficulty: Difficulty = settings.DIFFICULTY_DEFAULT
    language: Language = "python"


class SolvedResp(BaseModel):
    problem_id: int
    solved_at: datetime


__all__ = [
    "AnswerReq",
    "CandidateReq",
    "CodeReq",
    "DiscardResp",
    "DraftReq",
    "PendingSessionView",
    "ProblemsReq",
    "RunReq",
    "RunResp",
    "SessionView",
    "SolvedReq",
    "SolvedResp",
    "StartReq",
]
