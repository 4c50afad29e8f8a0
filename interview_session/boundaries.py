from __future__ import annotations  # Contracts for the collaborators the state machine calls

from typing import Any, List, Optional, Protocol, Sequence

from .models import CodingChallenge, CompletedSessionRecord, InProgressSnapshot, InterviewFeedback, Turn


class TextGenerator(Protocol):  # Question, hint, challenge and feedback generation
    def generate_first_question(self, role: str, persona: str, difficulty: str) -> str: ...

    def generate_follow_up_question(
        self, role: str, persona: str, difficulty: str, conversation: Sequence[Turn]
    ) -> str: ...

    def generate_coding_challenge(self, role: str, difficulty: str) -> CodingChallenge: ...

    def generate_hint(self, conversation: Sequence[Turn]) -> str: ...

    def generate_feedback(self, conversation: Sequence[Turn]) -> InterviewFeedback: ...


class CodeEvaluator(Protocol):  # Runs solve(*args) from candidate code; raises RuntimeFailure
    def evaluate(self, code: str, args: List[Any]) -> Any: ...


class SessionStore(Protocol):  # Durable snapshot (one per identity) and completed history
    def save_in_progress(self, candidate_id: str, snapshot: InProgressSnapshot) -> None: ...

    def load_in_progress(self, candidate_id: str) -> Optional[InProgressSnapshot]: ...

    def discard_in_progress(self, candidate_id: str) -> None: ...

    def append_completed_record(self, candidate_id: str, record: CompletedSessionRecord) -> int: ...

    def list_completed_records(self, candidate_id: str) -> List[CompletedSessionRecord]: ...


__all__ = ["CodeEvaluator", "SessionStore", "TextGenerator"]
