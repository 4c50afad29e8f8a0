from __future__ import annotations  # Interview session domain models

from datetime import datetime
from typing import Any, Iterable, Iterator, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Speaker = Literal["interviewer", "candidate"]
TurnTag = Literal["challenge-prompt", "challenge-solution"]
Persona = Literal["friendly", "direct", "supportive"]
Difficulty = Literal["junior", "mid", "senior"]


class Turn(BaseModel):  # Single dialogue entry
    model_config = ConfigDict(frozen=True)

    speaker: Speaker
    content: str
    tag: Optional[TurnTag] = None


class Conversation:
    """Append-only transcript of turns in the order they were spoken."""

    def __init__(self, turns: Iterable[Turn] = ()) -> None:
        self._turns: List[Turn] = list(turns)

    def append(self, speaker: Speaker, content: str, tag: Optional[TurnTag] = None) -> Turn:
        turn = Turn(speaker=speaker, content=content, tag=tag)
        self._turns.append(turn)
        return turn

    def turns(self) -> List[Turn]:
        return list(self._turns)

    def has_tag(self, tag: TurnTag) -> bool:
        return any(turn.tag == tag for turn in self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(list(self._turns))

    def __len__(self) -> int:
        return len(self._turns)

    def __getitem__(self, index: int) -> Turn:
        return self._turns[index]


class ChallengeTestCase(BaseModel):  # Positional arguments for solve() and the expected result
    input: List[Any]
    expected_output: Any = None


class CodingChallenge(BaseModel):  # Challenge injected at the designated question slot
    title: str
    description: str
    starter_code: str
    test_case: ChallengeTestCase


class SessionConfig(BaseModel):  # Fixed at start, immutable for the session
    model_config = ConfigDict(frozen=True)

    role: str
    persona: Persona
    difficulty: Difficulty

    @field_validator("role")
    @classmethod
    def _role_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("role must not be blank")
        return value


class InProgressSnapshot(BaseModel):  # Persisted projection of a live session
    config: SessionConfig
    conversation: List[Turn] = Field(default_factory=list)
    question_count: int = Field(default=0, ge=0)
    coding_challenge: Optional[CodingChallenge] = None
    user_code: str = ""


class QuestionFeedback(BaseModel):
    question: str
    answer: str
    feedback: str
    score: float


class InterviewFeedback(BaseModel):
    overall_feedback: str
    overall_score: float
    question_feedback: List[QuestionFeedback] = Field(default_factory=list)


class CompletedSessionRecord(BaseModel):  # Immutable history entry for a finished interview
    model_config = ConfigDict(frozen=True)

    config: SessionConfig
    completed_at: datetime
    feedback: InterviewFeedback
    record_id: Optional[int] = None


__all__ = [
    "ChallengeTestCase",
    "CodingChallenge",
    "CompletedSessionRecord",
    "Conversation",
    "Difficulty",
    "InProgressSnapshot",
    "InterviewFeedback",
    "Persona",
    "QuestionFeedback",
    "SessionConfig",
    "Speaker",
    "Turn",
    "TurnTag",
]
