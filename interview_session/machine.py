"""Interview session state machine.

The machine owns the live conversation, the question counter and the coding
challenge slot, and decides every phase transition. Boundary calls are made
synchronously; while one is outstanding the machine sits in the matching
``Generating*`` phase and rejects candidate actions with ``PhaseError``.

Every phase change runs the post-transition hooks. The first hook is always
the persistence hook, which saves the in-progress snapshot while the
interview is waiting on the candidate and deletes it once feedback
generation begins.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from code_execution.equality import render_value, values_equal
from config.settings import settings
from observability.logger import log_event
from observability.tracing import span

from .boundaries import CodeEvaluator, SessionStore, TextGenerator
from .errors import GenerationFailure, PersistFailure, PhaseError, RuntimeFailure
from .models import (
    CodingChallenge,
    CompletedSessionRecord,
    Conversation,
    Difficulty,
    InProgressSnapshot,
    Persona,
    SessionConfig,
    Turn,
)
from .phases import (
    AwaitingAnswer,
    AwaitingCodeSubmission,
    Complete,
    Error,
    GeneratingCodingChallenge,
    GeneratingFeedback,
    GeneratingHint,
    GeneratingQuestion,
    Phase,
    Setup,
    TERMINAL_KINDS,
)

logger = logging.getLogger(__name__)

SKIPPED_QUESTION = "(Skipped this question)"
SKIPPED_CHALLENGE = "(Skipped the coding challenge)"
HINT_TEMPLATE = "Of course, here is a hint: {hint}"
HINT_APOLOGY = "Sorry, I couldn't generate a hint at the moment. {message}"
CODE_SUCCESS = "That's correct! Great job."
CODE_ERROR = "Your code produced an error: {message}. Please fix it and try again."
CODE_MISMATCH = (
    "That's not quite right. For the input `{input}`, your code returned `{actual}`, "
    "but the expected output was `{expected}`. Please try again."
)

SNAPSHOT_KINDS = frozenset({"awaiting_answer", "awaiting_code_submission", "generating_question"})
STARTABLE_KINDS = TERMINAL_KINDS | {"setup"}

TransitionHook = Callable[["InterviewStateMachine", Phase, Phase], None]
CompletionCallback = Callable[[CompletedSessionRecord], None]


class InterviewStateMachine:
    """Drive one candidate's interview from setup to scored feedback."""

    def __init__(
        self,
        candidate_id: str,
        *,
        generator: TextGenerator,
        evaluator: CodeEvaluator,
        store: SessionStore,
        on_complete: Optional[CompletionCallback] = None,
        hooks: Iterable[TransitionHook] = (),
        max_questions: Optional[int] = None,
        coding_slot: Optional[int] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.candidate_id = candidate_id
        self._generator = generator
        self._evaluator = evaluator
        self._store = store
        self._on_complete = on_complete
        self._hooks: List[TransitionHook] = [_persistence_hook, *hooks]
        self._max_questions = max_questions or settings.MAX_QUESTIONS
        self._coding_slot = coding_slot or settings.CODING_CHALLENGE_AT_QUESTION
        self._clock = clock

        self._phase: Phase = Setup()
        self._config: Optional[SessionConfig] = None
        self._conversation = Conversation()
        self._question_count = 0
        self.answer_draft = ""
        self.events: List[Dict[str, Any]] = []

    # ------------------------------------------------------------------ views

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def config(self) -> Optional[SessionConfig]:
        return self._config

    @property
    def conversation(self) -> List[Turn]:
        return self._conversation.turns()

    @property
    def question_count(self) -> int:
        return self._question_count

    @property
    def total_questions(self) -> int:
        return self._max_questions

    @property
    def challenge(self) -> Optional[CodingChallenge]:
        if isinstance(self._phase, AwaitingCodeSubmission):
            return self._phase.challenge
        return None

    @property
    def code_draft(self) -> str:
        if isinstance(self._phase, AwaitingCodeSubmission):
            return self._phase.code
        return ""

    @property
    def error(self) -> Optional[str]:
        if isinstance(self._phase, Error):
            return self._phase.message
        return None

    @property
    def record(self) -> Optional[CompletedSessionRecord]:
        if isinstance(self._phase, Complete):
            return self._phase.record
        return None

    def snapshot(self) -> Optional[InProgressSnapshot]:
        """Project the live session into its persisted form."""

        if self._config is None:
            return None
        return InProgressSnapshot(
            config=self._config,
            conversation=self._conversation.turns(),
            question_count=self._question_count,
            coding_challenge=self.challenge,
            user_code=self.code_draft,
        )

    def add_hook(self, hook: TransitionHook) -> None:
        self._hooks.append(hook)

    # ---------------------------------------------------------------- actions

    def start(self, role: str, persona: Persona, difficulty: Difficulty) -> Phase:
        if self._phase.kind not in STARTABLE_KINDS:
            raise PhaseError("start", self._phase.kind)
        self._config = SessionConfig(role=role, persona=persona, difficulty=difficulty)
        self._conversation = Conversation()
        self._question_count = 0
        self.answer_draft = ""
        self.events = []
        self._enter(GeneratingQuestion())
        return self._ask_question(first=True)

    def submit_answer(self, answer: Optional[str] = None) -> Phase:
        self._require(AwaitingAnswer, "submit an answer")
        text = answer if answer is not None else self.answer_draft
        if not text.strip():
            logger.debug("Ignoring blank answer from %s", self.candidate_id)
            return self._phase
        self._conversation.append("candidate", text)
        self.answer_draft = ""
        return self._advance()

    def skip(self) -> Phase:
        if isinstance(self._phase, AwaitingCodeSubmission):
            self._conversation.append("candidate", SKIPPED_CHALLENGE)
            return self._next_question_or_feedback()
        self._require(AwaitingAnswer, "skip")
        self._conversation.append("candidate", SKIPPED_QUESTION)
        self.answer_draft = ""
        return self._advance()

    def request_hint(self) -> Phase:
        self._require(AwaitingAnswer, "request a hint")
        self._enter(GeneratingHint())
        try:
            with span(self.events, "generate_hint"):
                hint = self._generator.generate_hint(self._conversation.turns())
            content = HINT_TEMPLATE.format(hint=hint)
        except GenerationFailure as exc:
            logger.warning("Hint generation failed for %s: %s", self.candidate_id, exc.message)
            content = HINT_APOLOGY.format(message=exc.message)
        self._conversation.append("interviewer", content)
        self._enter(AwaitingAnswer())
        return self._phase

    def update_code(self, code: str) -> Phase:
        """Replace the code draft without submitting it."""

        phase = self._require(AwaitingCodeSubmission, "edit code")
        self._phase = phase.model_copy(update={"code": code})
        self._save_snapshot()
        return self._phase

    def submit_code(self, code: Optional[str] = None) -> Phase:
        phase = self._require(AwaitingCodeSubmission, "submit code")
        source = code if code is not None else phase.code
        if not source.strip():
            logger.debug("Ignoring blank code submission from %s", self.candidate_id)
            return self._phase
        challenge = phase.challenge
        test_case = challenge.test_case
        self._conversation.append("candidate", source, tag="challenge-solution")

        try:
            with span(self.events, "evaluate_code"):
                result = self._evaluator.evaluate(source, list(test_case.input))
        except RuntimeFailure as exc:
            log_event("code.error", self.candidate_id, error=exc.message)
            self._conversation.append("interviewer", CODE_ERROR.format(message=exc.message))
            self._enter(AwaitingCodeSubmission(challenge=challenge, code=source))
            return self._phase

        if values_equal(result, test_case.expected_output):
            log_event("code.passed", self.candidate_id, question_count=self._question_count)
            self._conversation.append("interviewer", CODE_SUCCESS)
            return self._next_question_or_feedback()

        log_event("code.mismatch", self.candidate_id)
        self._conversation.append(
            "interviewer",
            CODE_MISMATCH.format(
                input=render_value(test_case.input),
                actual=render_value(result),
                expected=render_value(test_case.expected_output),
            ),
        )
        self._enter(AwaitingCodeSubmission(challenge=challenge, code=source))
        return self._phase

    def resume(self, snapshot: InProgressSnapshot) -> Phase:
        """Rehydrate a persisted session without generating anything."""

        self._config = snapshot.config
        self._conversation = Conversation(snapshot.conversation)
        self._question_count = snapshot.question_count
        self.answer_draft = ""
        self.events = []
        if snapshot.coding_challenge is not None:
            self._enter(AwaitingCodeSubmission(challenge=snapshot.coding_challenge, code=snapshot.user_code))
        else:
            self._enter(AwaitingAnswer())
        return self._phase

    def restart(self) -> Phase:
        self._config = None
        self._conversation = Conversation()
        self._question_count = 0
        self.answer_draft = ""
        self.events = []
        self._enter(Setup())
        self._discard_snapshot("restart")
        return self._phase

    # ---------------------------------------------------------------- routing

    def _advance(self) -> Phase:
        # Only one challenge per session even if a resumed snapshot sits on the slot again.
        if self._question_count == self._coding_slot and not self._conversation.has_tag("challenge-prompt"):
            return self._issue_challenge()
        return self._next_question_or_feedback()

    def _next_question_or_feedback(self) -> Phase:
        if self._question_count < self._max_questions:
            self._enter(GeneratingQuestion())
            return self._ask_question(first=False)
        return self._finalize()

    def _ask_question(self, *, first: bool) -> Phase:
        config = self._active_config()
        try:
            with span(self.events, "generate_question"):
                if first:
                    question = self._generator.generate_first_question(
                        config.role, config.persona, config.difficulty
                    )
                else:
                    question = self._generator.generate_follow_up_question(
                        config.role, config.persona, config.difficulty, self._conversation.turns()
                    )
        except GenerationFailure as exc:
            return self._fail(exc)
        self._conversation.append("interviewer", question)
        self._question_count += 1
        self._enter(AwaitingAnswer())
        return self._phase

    def _issue_challenge(self) -> Phase:
        config = self._active_config()
        self._enter(GeneratingCodingChallenge())
        try:
            with span(self.events, "generate_coding_challenge"):
                challenge = self._generator.generate_coding_challenge(config.role, config.difficulty)
        except GenerationFailure as exc:
            return self._fail(exc)
        self._conversation.append(
            "interviewer",
            f"{challenge.title}\n\n{challenge.description}",
            tag="challenge-prompt",
        )
        self._enter(AwaitingCodeSubmission(challenge=challenge, code=challenge.starter_code))
        return self._phase

    def _finalize(self) -> Phase:
        config = self._active_config()
        self._enter(GeneratingFeedback())
        try:
            with span(self.events, "generate_feedback"):
                feedback = self._generator.generate_feedback(self._conversation.turns())
        except GenerationFailure as exc:
            return self._fail(exc)

        record = CompletedSessionRecord(config=config, completed_at=self._clock(), feedback=feedback)
        try:
            record_id = self._store.append_completed_record(self.candidate_id, record)
            record = record.model_copy(update={"record_id": record_id})
        except PersistFailure as exc:
            logger.error("Failed to store completed interview for %s: %s", self.candidate_id, exc.message)
            log_event("history.append_failed", self.candidate_id, level=logging.ERROR, error=exc.message)

        self._enter(Complete(record=record))
        if self._on_complete is not None:
            self._on_complete(record)
        return self._phase

    def _fail(self, exc: GenerationFailure) -> Phase:
        logger.error("Generation failed for %s in %s: %s", self.candidate_id, self._phase.kind, exc.message)
        self._enter(Error(message=exc.message))
        return self._phase

    # ---------------------------------------------------------------- helpers

    def _require(self, phase_type: type, action: str) -> Any:
        if not isinstance(self._phase, phase_type):
            raise PhaseError(action, self._phase.kind)
        return self._phase

    def _active_config(self) -> SessionConfig:
        if self._config is None:
            raise PhaseError("continue without a configuration", self._phase.kind)
        return self._config

    def _enter(self, phase: Phase) -> None:
        previous = self._phase
        self._phase = phase
        log_event(
            "phase.enter",
            self.candidate_id,
            phase=phase.kind,
            previous=previous.kind,
            question_count=self._question_count,
        )
        for hook in list(self._hooks):
            hook(self, previous, phase)

    def _save_snapshot(self) -> None:
        snapshot = self.snapshot()
        if snapshot is None:
            return
        try:
            self._store.save_in_progress(self.candidate_id, snapshot)
        except PersistFailure as exc:
            logger.warning("Failed to save progress for %s: %s", self.candidate_id, exc.message)
            log_event("snapshot.save_failed", self.candidate_id, level=logging.WARNING, error=exc.message)

    def _discard_snapshot(self, reason: str) -> None:
        try:
            self._store.discard_in_progress(self.candidate_id)
        except PersistFailure as exc:
            logger.warning("Could not discard in-progress interview on %s: %s", reason, exc.message)
            log_event("snapshot.discard_failed", self.candidate_id, level=logging.WARNING, error=exc.message)


def _persistence_hook(machine: InterviewStateMachine, previous: Phase, current: Phase) -> None:
    if current.kind in SNAPSHOT_KINDS and machine.config is not None and machine.config.role:
        machine._save_snapshot()
    elif current.kind == "generating_feedback":
        machine._discard_snapshot("finalize")


__all__ = [
    "CODE_ERROR",
    "CODE_MISMATCH",
    "CODE_SUCCESS",
    "CompletionCallback",
    "HINT_APOLOGY",
    "HINT_TEMPLATE",
    "InterviewStateMachine",
    "SKIPPED_CHALLENGE",
    "SKIPPED_QUESTION",
    "TransitionHook",
]
