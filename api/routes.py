"""FastAPI routes for interview session control and coding practice."""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, HTTPException, Response
from pydantic import ValidationError

from api.schemas import (
    AnswerReq,
    CandidateReq,
    CodeReq,
    DiscardResp,
    DraftReq,
    PendingSessionView,
    ProblemsReq,
    RunReq,
    RunResp,
    SessionView,
    SolvedReq,
    SolvedResp,
    StartReq,
)
from coding_practice import PracticeSolution, SolvedCodingProblem, generate_problems, run_solution
from interview_session import (
    CodingChallenge,
    CompletedSessionRecord,
    GenerationFailure,
    InterviewStateMachine,
    PersistFailure,
    PhaseError,
)
from observability.logger import log_event
from services.sessions import (
    candidate_lock,
    code_evaluator,
    forget_machine,
    get_machine,
    get_or_create_machine,
    resume_controller,
    text_generator,
)
from session_reports import generate_feedback_pdf
from storage.history import fetch_completed_session, list_completed_sessions
from storage.practice import insert_solved_problem, list_solved_problems

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interviews")
practice_router = APIRouter(prefix="/api/coding-practice")


def _view(machine: InterviewStateMachine) -> SessionView:
    config = machine.config
    return SessionView(
        candidate_id=machine.candidate_id,
        phase=machine.phase.kind,
        role=config.role if config else None,
        persona=config.persona if config else None,
        difficulty=config.difficulty if config else None,
        question_count=machine.question_count,
        total_questions=machine.total_questions,
        conversation=machine.conversation,
        challenge=machine.challenge,
        code_draft=machine.code_draft,
        answer_draft=machine.answer_draft,
        error=machine.error,
        record=machine.record,
    )


def _require_machine(candidate_id: str) -> InterviewStateMachine:
    machine = get_machine(candidate_id)
    if machine is None:
        raise HTTPException(status_code=404, detail="session not found")
    return machine


def _phase_conflict(exc: PhaseError) -> HTTPException:
    return HTTPException(status_code=409, detail=exc.message)


def _storage_unavailable(exc: PersistFailure) -> HTTPException:
    logger.error("Storage failure: %s", exc.message)
    return HTTPException(status_code=503, detail=exc.message)


@router.post("/start", response_model=SessionView)
def start(req: StartReq) -> SessionView:
    with candidate_lock(req.candidate_id):
        machine = get_or_create_machine(req.candidate_id)
        try:
            machine.start(req.role, req.persona, req.difficulty)
        except PhaseError as exc:
            raise _phase_conflict(exc) from exc
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail="role must not be blank") from exc
        return _view(machine)


@router.post("/answer", response_model=SessionView)
def answer(req: AnswerReq) -> SessionView:
    with candidate_lock(req.candidate_id):
        machine = _require_machine(req.candidate_id)
        try:
            machine.submit_answer(req.answer)
        except PhaseError as exc:
            raise _phase_conflict(exc) from exc
        return _view(machine)


@router.post("/answer-draft", response_model=SessionView)
def answer_draft(req: DraftReq) -> SessionView:
    with candidate_lock(req.candidate_id):
        machine = _require_machine(req.candidate_id)
        if machine.phase.kind != "awaiting_answer":
            raise HTTPException(status_code=409, detail=f"No question is waiting for an answer (phase '{machine.phase.kind}')")
        machine.answer_draft = req.text
        return _view(machine)


@router.post("/skip", response_model=SessionView)
def skip(req: CandidateReq) -> SessionView:
    with candidate_lock(req.candidate_id):
        machine = _require_machine(req.candidate_id)
        try:
            machine.skip()
        except PhaseError as exc:
            raise _phase_conflict(exc) from exc
        return _view(machine)


@router.post("/hint", response_model=SessionView)
def hint(req: CandidateReq) -> SessionView:
    with candidate_lock(req.candidate_id):
        machine = _require_machine(req.candidate_id)
        try:
            machine.request_hint()
        except PhaseError as exc:
            raise _phase_conflict(exc) from exc
        return _view(machine)


@router.post("/code", response_model=SessionView)
def submit_code(req: CodeReq) -> SessionView:
    with candidate_lock(req.candidate_id):
        machine = _require_machine(req.candidate_id)
        try:
            machine.submit_code(req.code)
        except PhaseError as exc:
            raise _phase_conflict(exc) from exc
        return _view(machine)


@router.post("/code-draft", response_model=SessionView)
def code_draft(req: CodeReq) -> SessionView:
    with candidate_lock(req.candidate_id):
        machine = _require_machine(req.candidate_id)
        try:
            machine.update_code(req.code or "")
        except PhaseError as exc:
            raise _phase_conflict(exc) from exc
        return _view(machine)


@router.post("/resume", response_model=SessionView)
def resume(req: CandidateReq) -> SessionView:
    with candidate_lock(req.candidate_id):
        machine = get_or_create_machine(req.candidate_id)
        try:
            phase = resume_controller().resume_into(machine)
        except PersistFailure as exc:
            raise _storage_unavailable(exc) from exc
        if phase is None:
            raise HTTPException(status_code=404, detail="no interview in progress")
        return _view(machine)


@router.post("/restart", response_model=SessionView)
def restart(req: CandidateReq) -> SessionView:
    with candidate_lock(req.candidate_id):
        machine = get_or_create_machine(req.candidate_id)
        machine.restart()
        forget_machine(req.candidate_id)
        return _view(machine)


@router.get("/state", response_model=SessionView)
def state(candidate_id: str) -> SessionView:
    with candidate_lock(candidate_id):
        return _view(_require_machine(candidate_id))


@router.get("/inprogress", response_model=PendingSessionView)
def pending(candidate_id: str) -> PendingSessionView:
    try:
        snapshot = resume_controller().load_pending_session(candidate_id)
    except PersistFailure as exc:
        raise _storage_unavailable(exc) from exc
    if snapshot is None:
        raise HTTPException(status_code=404, detail="no interview in progress")
    return PendingSessionView(
        candidate_id=candidate_id,
        role=snapshot.config.role,
        persona=snapshot.config.persona,
        difficulty=snapshot.config.difficulty,
        question_count=snapshot.question_count,
        has_challenge=snapshot.coding_challenge is not None,
    )


@router.delete("/inprogress", response_model=DiscardResp)
def discard(candidate_id: str) -> DiscardResp:
    with candidate_lock(candidate_id):
        discarded = resume_controller().discard(candidate_id)
    return DiscardResp(candidate_id=candidate_id, discarded=discarded)


@router.get("/history", response_model=List[CompletedSessionRecord])
def history(candidate_id: str) -> List[CompletedSessionRecord]:
    try:
        return list_completed_sessions(candidate_id)
    except PersistFailure as exc:
        raise _storage_unavailable(exc) from exc


@router.get("/history/{record_id}/pdf")
def history_pdf(record_id: int, candidate_id: str) -> Response:
    try:
        record = fetch_completed_session(candidate_id, record_id)
    except PersistFailure as exc:
        raise _storage_unavailable(exc) from exc
    if record is None:
        raise HTTPException(status_code=404, detail="interview record not found")
    payload = generate_feedback_pdf(record)
    filename = f"{_safe_slug(record.config.role) or 'interview'}-{record_id}-feedback.pdf"
    headers = {"Content-Disposition": f"attachment; filename=\"{filename}\""}
    return Response(content=payload, media_type="application/pdf", headers=headers)


@practice_router.post("/problems", response_model=List[CodingChallenge])
def problems(req: ProblemsReq) -> List[CodingChallenge]:
    try:
        return generate_problems(text_generator(), req.difficulty, req.count)
    except GenerationFailure as exc:
        raise HTTPException(status_code=502, detail=exc.message) from exc


@practice_router.post("/run", response_model=RunResp)
def run(req: RunReq) -> RunResp:
    result = run_solution(code_evaluator(), req.challenge, req.code)
    return RunResp(passed=result.passed, output=result.output, error=result.error, message=result.message)


@practice_router.post("/solved", response_model=SolvedResp, status_code=201)
def solved(req: SolvedReq) -> SolvedResp:
    problem = SolvedCodingProblem(
        challenge=req.challenge,
        solution=PracticeSolution(language=req.language, code=req.code),
        difficulty=req.difficulty,
        solved_at=datetime.now(timezone.utc),
    )
    try:
        problem_id = insert_solved_problem(req.candidate_id, problem)
    except PersistFailure as exc:
        raise _storage_unavailable(exc) from exc
    log_event("practice.solved", req.candidate_id, outcome=problem.challenge.title)
    return SolvedResp(problem_id=problem_id, solved_at=problem.solved_at)


@practice_router.get("/history", response_model=List[SolvedCodingProblem])
def practice_history(candidate_id: str) -> List[SolvedCodingProblem]:
    try:
        return list_solved_problems(candidate_id)
    except PersistFailure as exc:
        raise _storage_unavailable(exc) from exc


def _safe_slug(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (value or "").lower())
    return re.sub(r"-+", "-", slug).strip("-")


__all__ = ["practice_router", "router"]
