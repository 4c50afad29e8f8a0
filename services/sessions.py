"""Helpers for building and tracking live interview sessions."""
from __future__ import annotations

import logging
import threading
from typing import Dict, Optional

from code_execution import SubprocessEvaluator
from config.registry import TEXT_GENERATOR_KEY, get_model
from config.settings import settings
from interview_session import (
    CompletedSessionRecord,
    InterviewStateMachine,
    ResumeController,
    TextGenerator,
)
from observability.logger import log_event
from storage import SqliteSessionStore

logger = logging.getLogger(__name__)

_MACHINES: Dict[str, InterviewStateMachine] = {}
_CANDIDATE_LOCKS: Dict[str, threading.RLock] = {}
_LOCK = threading.RLock()


def text_generator() -> TextGenerator:
    """Build the text generator bound in the registry."""

    return get_model(TEXT_GENERATOR_KEY)()


def code_evaluator() -> SubprocessEvaluator:
    return SubprocessEvaluator(
        timeout_s=settings.CODE_TIMEOUT_S,
        memory_mb=settings.CODE_MEMORY_LIMIT_MB,
        max_output_bytes=settings.CODE_MAX_OUTPUT_BYTES,
    )


def session_store() -> SqliteSessionStore:
    return SqliteSessionStore()


def resume_controller() -> ResumeController:
    return ResumeController(session_store())


def _on_complete(candidate_id: str):
    def _callback(record: CompletedSessionRecord) -> None:
        log_event(
            "interview.completed",
            candidate_id,
            outcome=record.feedback.overall_score,
            question_count=len(record.feedback.question_feedback),
        )

    return _callback


def new_machine(candidate_id: str) -> InterviewStateMachine:
    """Create a machine wired to the configured boundaries and track it."""

    machine = InterviewStateMachine(
        candidate_id,
        generator=text_generator(),
        evaluator=code_evaluator(),
        store=session_store(),
        on_complete=_on_complete(candidate_id),
    )
    with _LOCK:
        _MACHINES[candidate_id] = machine
    return machine


def get_machine(candidate_id: str) -> Optional[InterviewStateMachine]:
    with _LOCK:
        return _MACHINES.get(candidate_id)


def get_or_create_machine(candidate_id: str) -> InterviewStateMachine:
    with _LOCK:
        machine = _MACHINES.get(candidate_id)
        if machine is None:
            machine = new_machine(candidate_id)
        return machine


def forget_machine(candidate_id: str) -> None:
    """Stop tracking a candidate's machine; the next action builds a fresh one."""

    with _LOCK:
        _MACHINES.pop(candidate_id, None)


def candidate_lock(candidate_id: str) -> threading.RLock:
    """Lock serialising actions on one candidate's machine."""

    with _LOCK:
        lock = _CANDIDATE_LOCKS.get(candidate_id)
        if lock is None:
            lock = threading.RLock()
            _CANDIDATE_LOCKS[candidate_id] = lock
        return lock


def reset_sessions() -> None:
    """Forget all tracked machines."""

    with _LOCK:
        _MACHINES.clear()
        _CANDIDATE_LOCKS.clear()


__all__ = [
    "candidate_lock",
    "code_evaluator",
    "forget_machine",
    "get_machine",
    "get_or_create_machine",
    "new_machine",
    "reset_sessions",
    "resume_controller",
    "session_store",
    "text_generator",
]
