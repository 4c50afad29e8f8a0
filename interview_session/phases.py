"""Tagged-variant interview phases.

Exactly one phase is active at a time. Only the variants that need data carry
it: ``AwaitingCodeSubmission`` holds the active challenge and the code draft,
``Error`` holds the message shown to the candidate, and ``Complete`` holds the
finished record.
"""
from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .models import CodingChallenge, CompletedSessionRecord


class _Phase(BaseModel):
    model_config = ConfigDict(frozen=True)


class Setup(_Phase):
    kind: Literal["setup"] = "setup"


class GeneratingQuestion(_Phase):
    kind: Literal["generating_question"] = "generating_question"


class AwaitingAnswer(_Phase):
    kind: Literal["awaiting_answer"] = "awaiting_answer"


class GeneratingHint(_Phase):
    kind: Literal["generating_hint"] = "generating_hint"


class GeneratingCodingChallenge(_Phase):
    kind: Literal["generating_coding_challenge"] = "generating_coding_challenge"


class AwaitingCodeSubmission(_Phase):
    kind: Literal["awaiting_code_submission"] = "awaiting_code_submission"
    challenge: CodingChallenge
    code: str = ""


class GeneratingFeedback(_Phase):
    kind: Literal["generating_feedback"] = "generating_feedback"


class Complete(_Phase):
    kind: Literal["complete"] = "complete"
    record: CompletedSessionRecord


class Error(_Phase):
    kind: Literal["error"] = "error"
    message: str


Phase = Annotated[
    Union[
        Setup,
        GeneratingQuestion,
        AwaitingAnswer,
        GeneratingHint,
        GeneratingCodingChallenge,
        AwaitingCodeSubmission,
        GeneratingFeedback,
        Complete,
        Error,
    ],
    Field(discriminator="kind"),
]

PhaseKind = Literal[
    "setup",
    "generating_question",
    "awaiting_answer",
    "generating_hint",
    "generating_coding_challenge",
    "awaiting_code_submission",
    "generating_feedback",
    "complete",
    "error",
]

PHASE_ADAPTER: TypeAdapter[Phase] = TypeAdapter(Phase)

TERMINAL_KINDS = frozenset({"complete", "error"})


__all__ = [
    "AwaitingAnswer",
    "AwaitingCodeSubmission",
    "Complete",
    "Error",
    "GeneratingCodingChallenge",
    "GeneratingFeedback",
    "GeneratingHint",
    "GeneratingQuestion",
    "PHASE_ADAPTER",
    "Phase",
    "PhaseKind",
    "Setup",
    "TERMINAL_KINDS",
]
