import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import settings
from config.registry import bind_model, clear_registry, TEXT_GENERATOR_KEY
from interview_session import (
    ChallengeTestCase,
    CodingChallenge,
    GenerationFailure,
    InterviewFeedback,
    PersistFailure,
    QuestionFeedback,
    RuntimeFailure,
)
from services.sessions import reset_sessions


class FakeGenerator:
    """Scripted text generator recording every call it receives."""

    def __init__(self) -> None:
        self.calls: List[str] = []
        self.asked = 0
        self.fail_on: Dict[str, str] = {}
        self.challenge = CodingChallenge(
            title="Square a number",
            description="Write solve(n) returning n squared.",
            starter_code="def solve(n):\n    pass\n",
            test_case=ChallengeTestCase(input=[5], expected_output=25),
        )

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise GenerationFailure(self.fail_on[name])

    def generate_first_question(self, role, persona, difficulty):
        self._record("first_question")
        self.asked += 1
        return f"Question {self.asked} for a {difficulty} {role}?"

    def generate_follow_up_question(self, role, persona, difficulty, conversation):
        self._record("follow_up_question")
        self.asked += 1
        return f"Question {self.asked} for a {difficulty} {role}?"

    def generate_coding_challenge(self, role, difficulty):
        self._record("coding_challenge")
        return self.challenge

    def generate_coding_problems(self, difficulty, count=3):
        self._record("coding_problems")
        return [self.challenge.model_copy(update={"title": f"Problem {idx + 1}"}) for idx in range(count)]

    def generate_hint(self, conversation):
        self._record("hint")
        return "Think about the edge cases."

    def generate_feedback(self, conversation):
        self._record("feedback")
        return InterviewFeedback(
            overall_feedback="Solid performance overall.",
            overall_score=7.5,
            question_feedback=[
                QuestionFeedback(question="Question 1?", answer="An answer", feedback="Good", score=8)
            ],
        )


class FakeEvaluator:
    """Evaluator returning a fixed result or raising a fixed runtime error."""

    def __init__(self, result: Any = 25, error: Optional[str] = None) -> None:
        self.result = result
        self.error = error
        self.calls: List[tuple] = []

    def evaluate(self, code, args):
        self.calls.append((code, list(args)))
        if self.error is not None:
            raise RuntimeFailure(self.error)
        return self.result


class MemoryStore:
    """In-memory session store with switchable failures."""

    def __init__(self) -> None:
        self.snapshots: Dict[str, Any] = {}
        self.records: Dict[str, List[Any]] = {}
        self.saves = 0
        self.fail_saves = False
        self.fail_discards = False
        self.fail_appends = False

    def save_in_progress(self, candidate_id, snapshot):
        if self.fail_saves:
            raise PersistFailure("disk full")
        self.saves += 1
        self.snapshots[candidate_id] = snapshot

    def load_in_progress(self, candidate_id):
        return self.snapshots.get(candidate_id)

    def discard_in_progress(self, candidate_id):
        if self.fail_discards:
            raise PersistFailure("database is locked")
        self.snapshots.pop(candidate_id, None)

    def append_completed_record(self, candidate_id, record):
        if self.fail_appends:
            raise PersistFailure("database is locked")
        bucket = self.records.setdefault(candidate_id, [])
        bucket.append(record)
        return len(bucket)

    def list_completed_records(self, candidate_id):
        return list(reversed(self.records.get(candidate_id, [])))


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    reset_sessions()
    try:
        yield
    finally:
        reset_sessions()
        clear_registry()
        td.cleanup()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def evaluator():
    return FakeEvaluator()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def fake_models(generator):
    bind_model(TEXT_GENERATOR_KEY, lambda: generator)
    return generator


@pytest.fixture
def make_evaluator():
    return FakeEvaluator
