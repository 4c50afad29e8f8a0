"""Coding practice outside of an interview session."""
from __future__ import annotations

import logging
from typing import List, Protocol

from code_execution.equality import render_value, values_equal
from interview_session.boundaries import CodeEvaluator
from interview_session.errors import RuntimeFailure
from interview_session.models import CodingChallenge

from .models import PracticeRunResult

logger = logging.getLogger(__name__)

MAX_PROBLEMS = 10


class ProblemGenerator(Protocol):
    def generate_coding_problems(self, difficulty: str, count: int = 3) -> List[CodingChallenge]: ...


def generate_problems(generator: ProblemGenerator, difficulty: str, count: int = 3) -> List[CodingChallenge]:
    """Request a batch of practice problems, clamping the batch size."""

    count = max(1, min(count, MAX_PROBLEMS))
    problems = generator.generate_coding_problems(difficulty, count)
    logger.info("Generated %d practice problems difficulty=%s", len(problems), difficulty)
    return problems


def run_solution(evaluator: CodeEvaluator, challenge: CodingChallenge, code: str) -> PracticeRunResult:
    """Run ``code`` against the challenge's test case and describe the outcome."""

    test_case = challenge.test_case
    try:
        output = evaluator.evaluate(code, list(test_case.input))
    except RuntimeFailure as exc:
        return PracticeRunResult(passed=False, error=exc.message, message=f"Your code produced an error: {exc.message}")
    if values_equal(output, test_case.expected_output):
        return PracticeRunResult(passed=True, output=output, message="All tests passed.")
    return PracticeRunResult(
        passed=False,
        output=output,
        message=(
            f"For the input `{render_value(test_case.input)}`, your code returned `{render_value(output)}`, "
            f"but the expected output was `{render_value(test_case.expected_output)}`."
        ),
        details={"expected": test_case.expected_output},
    )


__all__ = ["MAX_PROBLEMS", "ProblemGenerator", "generate_problems", "run_solution"]
