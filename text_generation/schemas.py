from __future__ import annotations  # Output schemas enforced on the LLM and test-case decoding

import json
from typing import Any, List

from pydantic import BaseModel, Field, field_validator

from interview_session.errors import GenerationFailure
from interview_session.models import ChallengeTestCase, CodingChallenge


class QuestionOut(BaseModel):  # Interview question emitted by the LLM
    question: str

    @field_validator("question")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("question must not be blank")
        return value.strip()


class HintOut(BaseModel):  # One or two sentence nudge
    hint: str

    @field_validator("hint")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("hint must not be blank")
        return value.strip()


class RawTestCase(BaseModel):  # Test case as returned by the LLM, values encoded as JSON strings
    input: Any = Field(
        description=(
            "A valid JSON string representation of an array containing the arguments for the 'solve' "
            "function. Example: '[5, \"hello\"]' or '[[1, 2], [3, 4]]'."
        )
    )
    expected_output: Any = Field(
        description=(
            "A valid JSON string representation of the expected output value. "
            "Example: '\"world\"' or '10' or '[1, 2]' or '{\"key\": \"value\"}'."
        )
    )


class CodingChallengeOut(BaseModel):
    title: str
    description: str
    starter_code: str
    test_case: RawTestCase

    def to_challenge(self) -> CodingChallenge:
        return CodingChallenge(
            title=self.title.strip(),
            description=self.description.strip(),
            starter_code=self.starter_code,
            test_case=parse_test_case(self.test_case),
        )


class CodingProblemsOut(BaseModel):
    problems: List[CodingChallengeOut] = Field(default_factory=list)


def decode_expected_output(raw: Any) -> Any:
    """Decode the expected output, keeping unquoted strings as-is."""

    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        # Models often return a bare string instead of a JSON-quoted one.
        return raw


def parse_test_case(raw: RawTestCase) -> ChallengeTestCase:
    """Decode the LLM's test case; ``input`` must be a JSON array."""

    args = raw.input
    if isinstance(args, str):
        try:
            args = json.loads(args)
        except json.JSONDecodeError as exc:
            raise GenerationFailure(
                "The AI returned malformed JSON for the test case 'input'. "
                f"It must be a valid JSON array string. Content: {raw.input}"
            ) from exc
    if not isinstance(args, list):
        raise GenerationFailure(
            f"The 'input' field of a test case must be a string representing a JSON array. Received: {raw.input}"
        )
    return ChallengeTestCase(input=args, expected_output=decode_expected_output(raw.expected_output))


__all__ = [
    "CodingChallengeOut",
    "CodingProblemsOut",
    "HintOut",
    "QuestionOut",
    "RawTestCase",
    "decode_expected_output",
    "parse_test_case",
]
