"""Error taxonomy shared by the session core and its boundaries."""
from __future__ import annotations


class InterviewError(Exception):
    """Base class for interview session errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class GenerationFailure(InterviewError):
    """The text generation service was unreachable or returned unusable output."""


class RuntimeFailure(InterviewError):
    """Candidate code failed to parse, raised, or could not be executed."""


class PersistFailure(InterviewError):
    """A snapshot or history write/delete failed."""


class PhaseError(InterviewError):
    """An action was invoked in a phase that does not accept it."""

    def __init__(self, action: str, phase: str) -> None:
        super().__init__(f"Cannot {action} while the interview is in phase '{phase}'")
        self.action = action
        self.phase = phase


__all__ = [
    "GenerationFailure",
    "InterviewError",
    "PersistFailure",
    "PhaseError",
    "RuntimeFailure",
]
