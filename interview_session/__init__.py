"""Interview session core: domain models, phases and the state machine."""
from .errors import GenerationFailure, InterviewError, PersistFailure, PhaseError, RuntimeFailure
from .models import (
    ChallengeTestCase,
    CodingChallenge,
    CompletedSessionRecord,
    Conversation,
    InProgressSnapshot,
    InterviewFeedback,
    QuestionFeedback,
    SessionConfig,
    Turn,
)
from .phases import PHASE_ADAPTER, Phase
from .boundaries import CodeEvaluator, SessionStore, TextGenerator
from .machine import InterviewStateMachine
from .resume import ResumeController

__all__ = [
    "ChallengeTestCase",
    "CodeEvaluator",
    "CodingChallenge",
    "CompletedSessionRecord",
    "Conversation",
    "GenerationFailure",
    "InProgressSnapshot",
    "InterviewError",
    "InterviewFeedback",
    "InterviewStateMachine",
    "PHASE_ADAPTER",
    "PersistFailure",
    "Phase",
    "PhaseError",
    "QuestionFeedback",
    "ResumeController",
    "RuntimeFailure",
    "SessionConfig",
    "SessionStore",
    "TextGenerator",
    "Turn",
]
