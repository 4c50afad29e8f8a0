"""Tests for the interview session state machine."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from interview_session import InterviewStateMachine, PhaseError
from interview_session.machine import (
    CODE_SUCCESS,
    HINT_APOLOGY,
    SKIPPED_CHALLENGE,
    SKIPPED_QUESTION,
)


FIXED_NOW = datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc)


def _machine(generator, evaluator, store, **kwargs):
    options = {"max_questions": 5, "coding_slot": 2, "clock": lambda: FIXED_NOW}
    options.update(kwargs)
    return InterviewStateMachine("cand-1", generator=generator, evaluator=evaluator, store=store, **options)


def _record_phases(machine):
    seen = []
    machine.add_hook(lambda _m, _prev, current: seen.append(current.kind))
    return seen


def test_full_interview_reaches_complete(generator, evaluator, store):
    completed = []
    machine = _machine(generator, evaluator, store, on_complete=completed.append)

    machine.start("Backend Engineer", "friendly", "mid")
    assert machine.phase.kind == "awaiting_answer"
    assert machine.question_count == 1

    machine.submit_answer("I design APIs.")
    assert machine.question_count == 2

    machine.submit_answer("I use queues.")
    assert machine.phase.kind == "awaiting_code_submission"
    assert machine.challenge.title == "Square a number"
    assert machine.code_draft == generator.challenge.starter_code
    assert machine.question_count == 2

    machine.submit_code("def solve(n):\n    return n * n\n")
    assert machine.question_count == 3
    assert machine.phase.kind == "awaiting_answer"

    for answer in ("a3", "a4", "a5"):
        machine.submit_answer(answer)

    assert machine.phase.kind == "complete"
    assert machine.question_count == 5
    assert machine.record.feedback.overall_score == 7.5
    assert machine.record.completed_at == FIXED_NOW
    assert machine.record.record_id == 1
    assert completed == [machine.record]
    assert store.records["cand-1"][0].config.role == "Backend Engineer"
    assert "cand-1" not in store.snapshots

    turns = machine.conversation
    assert len(turns) == 13
    assert [t.tag for t in turns if t.tag] == ["challenge-prompt", "challenge-solution"]
    assert turns[6].content == CODE_SUCCESS
    assert generator.calls.count("coding_challenge") == 1
    assert generator.calls[-1] == "feedback"


def test_phase_sequence_passes_through_generating_phases(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    seen = _record_phases(machine)

    machine.start("Data Engineer", "direct", "senior")
    machine.submit_answer("one")
    machine.submit_answer("two")

    assert seen == [
        "generating_question",
        "awaiting_answer",
        "generating_question",
        "awaiting_answer",
        "generating_coding_challenge",
        "awaiting_code_submission",
    ]


def test_counter_never_exceeds_total(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    counts = []
    machine.add_hook(lambda m, _prev, _cur: counts.append(m.question_count))

    machine.start("SRE", "supportive", "junior")
    while machine.phase.kind != "complete":
        if machine.phase.kind == "awaiting_code_submission":
            machine.skip()
        else:
            machine.submit_answer("answer")

    assert max(counts) == machine.total_questions
    assert counts == sorted(counts)


def test_skipping_challenge_moves_to_next_question(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    machine.submit_answer("one")
    machine.skip()
    machine.skip()

    assert machine.phase.kind == "awaiting_answer"
    assert machine.question_count == 3
    contents = [turn.content for turn in machine.conversation]
    assert SKIPPED_QUESTION in contents
    assert SKIPPED_CHALLENGE in contents
    assert evaluator.calls == []


def test_wrong_answer_reports_mismatch_and_keeps_challenge(generator, store, make_evaluator):
    evaluator = make_evaluator(result=26)
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    machine.submit_answer("one")
    machine.submit_answer("two")

    machine.submit_code("def solve(n):\n    return n * n + 1\n")

    assert machine.phase.kind == "awaiting_code_submission"
    assert machine.code_draft == "def solve(n):\n    return n * n + 1\n"
    last = machine.conversation[-1]
    assert last.speaker == "interviewer"
    assert "`[5]`" in last.content
    assert "`26`" in last.content
    assert "`25`" in last.content
    assert evaluator.calls == [("def solve(n):\n    return n * n + 1\n", [5])]


def test_runtime_error_is_reported_without_advancing(generator, store, make_evaluator):
    evaluator = make_evaluator(error="ZeroDivisionError: division by zero")
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    machine.submit_answer("one")
    machine.submit_answer("two")

    machine.submit_code("def solve(n):\n    return n / 0\n")

    assert machine.phase.kind == "awaiting_code_submission"
    assert machine.question_count == 2
    assert "ZeroDivisionError: division by zero" in machine.conversation[-1].content


def test_blank_answer_and_blank_code_are_ignored(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    before = len(machine.conversation)

    machine.submit_answer("   ")
    assert len(machine.conversation) == before
    assert machine.phase.kind == "awaiting_answer"

    machine.submit_answer("one")
    machine.submit_answer("two")
    machine.update_code("   ")
    machine.submit_code()
    assert machine.phase.kind == "awaiting_code_submission"
    assert evaluator.calls == []


def test_answer_draft_is_submitted_when_no_text_given(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    machine.answer_draft = "Drafted answer"

    machine.submit_answer()

    assert machine.conversation[1].content == "Drafted answer"
    assert machine.answer_draft == ""


def test_hint_is_appended_and_does_not_count(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    seen = _record_phases(machine)
    machine.start("SRE", "friendly", "mid")

    machine.request_hint()

    assert machine.phase.kind == "awaiting_answer"
    assert machine.question_count == 1
    assert machine.conversation[-1].content == "Of course, here is a hint: Think about the edge cases."
    assert seen[-2:] == ["generating_hint", "awaiting_answer"]


def test_hint_failure_apologises_instead_of_erroring(generator, evaluator, store):
    generator.fail_on["hint"] = "service unavailable"
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")

    machine.request_hint()

    assert machine.phase.kind == "awaiting_answer"
    assert machine.conversation[-1].content == HINT_APOLOGY.format(message="service unavailable")


@pytest.mark.parametrize(
    "failing, steps",
    [
        ("first_question", 0),
        ("follow_up_question", 1),
        ("coding_challenge", 2),
    ],
)
def test_generation_failure_enters_error(generator, evaluator, store, failing, steps):
    generator.fail_on[failing] = "The AI service could not complete the request"
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    for idx in range(steps):
        machine.submit_answer(f"answer {idx}")

    assert machine.phase.kind == "error"
    assert machine.error == "The AI service could not complete the request"


def test_feedback_failure_enters_error_without_record(generator, evaluator, store):
    generator.fail_on["feedback"] = "timeout"
    machine = _machine(generator, evaluator, store, max_questions=1, coding_slot=3)
    machine.start("SRE", "friendly", "mid")
    machine.submit_answer("only answer")

    assert machine.phase.kind == "error"
    assert store.records == {}


def test_error_phase_accepts_a_new_start(generator, evaluator, store):
    generator.fail_on["first_question"] = "boom"
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    assert machine.phase.kind == "error"

    generator.fail_on.clear()
    machine.start("SRE", "friendly", "mid")
    assert machine.phase.kind == "awaiting_answer"
    assert machine.question_count == 1
    assert len(machine.conversation) == 1


@pytest.mark.parametrize(
    "action",
    [
        lambda m: m.submit_answer("text"),
        lambda m: m.skip(),
        lambda m: m.request_hint(),
        lambda m: m.submit_code("def solve(): pass"),
        lambda m: m.update_code("x"),
    ],
)
def test_actions_in_setup_raise_phase_error(generator, evaluator, store, action):
    machine = _machine(generator, evaluator, store)
    with pytest.raises(PhaseError):
        action(machine)
    assert machine.phase.kind == "setup"


def test_start_twice_raises_phase_error(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    with pytest.raises(PhaseError) as exc:
        machine.start("SRE", "friendly", "mid")
    assert exc.value.phase == "awaiting_answer"


def test_hint_not_available_during_challenge(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    machine.submit_answer("one")
    machine.submit_answer("two")
    with pytest.raises(PhaseError):
        machine.request_hint()


def test_snapshot_saved_while_waiting_and_removed_on_feedback(generator, evaluator, store):
    machine = _machine(generator, evaluator, store, max_questions=2, coding_slot=5)
    machine.start("SRE", "friendly", "mid")

    snapshot = store.snapshots["cand-1"]
    assert snapshot.question_count == 1
    assert snapshot.coding_challenge is None
    assert snapshot.config.role == "SRE"

    machine.submit_answer("one")
    assert store.snapshots["cand-1"].question_count == 2

    machine.submit_answer("two")
    assert machine.phase.kind == "complete"
    assert "cand-1" not in store.snapshots


def test_snapshot_carries_challenge_and_code_draft(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    machine.submit_answer("one")
    machine.submit_answer("two")

    machine.update_code("def solve(n):\n    return n\n")

    snapshot = store.snapshots["cand-1"]
    assert snapshot.coding_challenge == generator.challenge
    assert snapshot.user_code == "def solve(n):\n    return n\n"


def test_persist_failures_do_not_change_phase(generator, evaluator, store):
    store.fail_saves = True
    store.fail_discards = True
    store.fail_appends = True
    machine = _machine(generator, evaluator, store, max_questions=1, coding_slot=3)

    machine.start("SRE", "friendly", "mid")
    assert machine.phase.kind == "awaiting_answer"

    machine.submit_answer("answer")
    assert machine.phase.kind == "complete"
    assert machine.record.record_id is None


def test_resume_restores_state_without_generation(generator, evaluator, store):
    first = _machine(generator, evaluator, store)
    first.start("SRE", "friendly", "mid")
    first.submit_answer("one")
    snapshot = store.snapshots["cand-1"]
    calls_before = list(generator.calls)

    second = _machine(generator, evaluator, store)
    second.resume(snapshot)

    assert second.phase.kind == "awaiting_answer"
    assert second.question_count == 2
    assert second.conversation == first.conversation
    assert generator.calls == calls_before

    second.submit_answer("two")
    assert second.phase.kind == "awaiting_code_submission"


def test_resume_into_challenge_restores_code(generator, evaluator, store):
    first = _machine(generator, evaluator, store)
    first.start("SRE", "friendly", "mid")
    first.submit_answer("one")
    first.submit_answer("two")
    first.update_code("def solve(n):\n    return n * n\n")

    second = _machine(generator, evaluator, store)
    second.resume(store.snapshots["cand-1"])

    assert second.phase.kind == "awaiting_code_submission"
    assert second.code_draft == "def solve(n):\n    return n * n\n"
    second.submit_code()
    assert second.question_count == 3


def test_challenge_is_issued_only_once(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    machine.submit_answer("one")
    machine.submit_answer("two")
    machine.submit_code("def solve(n):\n    return n * n\n")
    snapshot = machine.snapshot().model_copy(update={"question_count": 2})

    resumed = _machine(generator, evaluator, store)
    resumed.resume(snapshot)
    resumed.submit_answer("three")

    assert generator.calls.count("coding_challenge") == 1
    assert resumed.phase.kind == "awaiting_answer"


def test_restart_resets_and_discards_snapshot(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    assert "cand-1" in store.snapshots

    machine.restart()

    assert machine.phase.kind == "setup"
    assert machine.conversation == []
    assert machine.question_count == 0
    assert machine.config is None
    assert "cand-1" not in store.snapshots


def test_restart_from_coding_challenge_clears_challenge_and_draft(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    machine.submit_answer("one")
    machine.submit_answer("two")
    machine.update_code("def solve(n):\n    return n\n")
    assert machine.phase.kind == "awaiting_code_submission"
    assert store.snapshots["cand-1"].coding_challenge is not None

    machine.restart()

    assert machine.phase.kind == "setup"
    assert machine.challenge is None
    assert machine.code_draft == ""
    assert machine.conversation == []
    assert "cand-1" not in store.snapshots


def test_restart_survives_discard_failure(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    store.fail_discards = True

    machine.restart()

    assert machine.phase.kind == "setup"
    assert "cand-1" in store.snapshots


def test_boundary_calls_are_timed(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")

    assert machine.events[0]["span"] == "generate_question"
    assert machine.events[0]["ms"] >= 0


def test_sandboxed_solution_against_expected_output(generator, store):
    from code_execution import SubprocessEvaluator
    from interview_session import ChallengeTestCase

    generator.challenge = generator.challenge.model_copy(
        update={"test_case": ChallengeTestCase(input=[5], expected_output=26)}
    )
    machine = _machine(generator, SubprocessEvaluator(timeout_s=5), store)
    machine.start("SRE", "friendly", "mid")
    machine.submit_answer("one")
    machine.submit_answer("two")

    machine.submit_code("def solve(x):\n    return x * x\n")

    message = machine.conversation[-1].content
    assert machine.phase.kind == "awaiting_code_submission"
    assert "returned `25`" in message
    assert "expected output was `26`" in message


def test_timing_events_reset_on_restart_and_start(generator, evaluator, store):
    machine = _machine(generator, evaluator, store)
    machine.start("SRE", "friendly", "mid")
    machine.submit_answer("one")
    assert len(machine.events) == 2

    machine.restart()
    assert machine.events == []

    machine.start("SRE", "friendly", "mid")
    assert [event["span"] for event in machine.events] == ["generate_question"]
