"""Tests for prompt formatting, test-case decoding and the LLM text generator."""
from __future__ import annotations

import json

import pytest

from config import AppConfig
from interview_session import GenerationFailure, Turn
from interview_session.machine import CODE_SUCCESS, SKIPPED_CHALLENGE
from text_generation import LlmTextGenerator
from text_generation.generator import TASK_SCHEMAS
from text_generation.prompts import NO_ANSWER, format_feedback_transcript, format_history, last_question
from text_generation.schemas import RawTestCase, parse_test_case


class _Resp:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload)

    def json(self):
        return self._payload


class _ScriptedClient:
    """HTTP client replaying canned chat completion contents."""

    def __init__(self, *contents, status_code=200):
        self.contents = list(contents)
        self.status_code = status_code
        self.requests = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append(json)
        content = self.contents.pop(0) if self.contents else "{}"
        return _Resp({"choices": [{"message": {"content": content}}]}, status_code=self.status_code)


def _config():
    return AppConfig.model_validate(
        {
            "llm_routes": {
                "stub": {
                    "name": "stub",
                    "base_url": "http://llm.local",
                    "endpoint": "/v1/chat/completions",
                    "model": "stub-model",
                    "timeout_s": 5,
                    "max_retries": 1,
                }
            },
            "registry": {task: "stub" for task in TASK_SCHEMAS},
            "tasks": {"text_generation.hint": {"temperature": 0.2, "max_tokens": 200}},
        }
    )


def _turn(speaker, content, tag=None):
    return Turn(speaker=speaker, content=content, tag=tag)


def test_parse_test_case_decodes_json_strings():
    case = parse_test_case(RawTestCase(input='[5, "hello"]', expected_output='{"key": [1, 2]}'))
    assert case.input == [5, "hello"]
    assert case.expected_output == {"key": [1, 2]}


def test_parse_test_case_keeps_unquoted_expected_string():
    case = parse_test_case(RawTestCase(input="[1]", expected_output="world"))
    assert case.expected_output == "world"


def test_parse_test_case_accepts_decoded_values():
    case = parse_test_case(RawTestCase(input=[[1, 2]], expected_output=3))
    assert case.input == [[1, 2]]
    assert case.expected_output == 3


@pytest.mark.parametrize("raw_input", ["[1, 2", '{"a": 1}', "5"])
def test_parse_test_case_rejects_bad_input(raw_input):
    with pytest.raises(GenerationFailure):
        parse_test_case(RawTestCase(input=raw_input, expected_output="1"))


def test_format_history_labels_speakers():
    history = format_history([_turn("interviewer", "Why Python?"), _turn("candidate", "Readability.")])
    assert history == "Interviewer: Why Python?\nCandidate: Readability."


def test_last_question_skips_hints():
    conversation = [
        _turn("interviewer", "Explain caching."),
        _turn("interviewer", "Of course, here is a hint: think about TTLs."),
    ]
    assert last_question(conversation) == "Explain caching."


def test_last_question_without_interviewer_turn_fails():
    with pytest.raises(GenerationFailure):
        last_question([_turn("candidate", "hello")])


def test_feedback_transcript_pairs_questions_answers_and_challenge():
    conversation = [
        _turn("interviewer", "Q1?"),
        _turn("interviewer", "Of course, here is a hint: start small."),
        _turn("candidate", "A1"),
        _turn("interviewer", "Q2?"),
        _turn("interviewer", "Square\n\nReturn n squared.", tag="challenge-prompt"),
        _turn("candidate", "def solve(n):\n    return n", tag="challenge-solution"),
        _turn("interviewer", "That's not quite right. Please try again."),
        _turn("candidate", "def solve(n):\n    return n * n", tag="challenge-solution"),
        _turn("interviewer", CODE_SUCCESS),
        _turn("interviewer", "Q3?"),
        _turn("candidate", "A3"),
    ]

    transcript = format_feedback_transcript(conversation)

    assert transcript.split("\n\n")[0] == "Question 1: Q1?\nAnswer 1: A1"
    assert f"Question 2: Q2?\nAnswer 2: {NO_ANSWER}" in transcript
    assert "Question 3: (Coding Challenge) Square" in transcript
    assert "```python\ndef solve(n):\n    return n * n\n```" in transcript
    assert "return n\n```" not in transcript
    assert "Question 4: Q3?\nAnswer 4: A3" in transcript
    assert "hint" not in transcript


def test_feedback_transcript_records_skipped_challenge():
    conversation = [
        _turn("interviewer", "Puzzle\n\nDo it.", tag="challenge-prompt"),
        _turn("candidate", SKIPPED_CHALLENGE),
        _turn("interviewer", "Next?"),
        _turn("candidate", "Sure"),
    ]
    transcript = format_feedback_transcript(conversation)
    assert f"Answer 1: {SKIPPED_CHALLENGE}" in transcript
    assert "Question 2: Next?\nAnswer 2: Sure" in transcript


def test_generator_returns_question_from_llm():
    client = _ScriptedClient(json.dumps({"question": "  What is a closure?  "}))
    generator = LlmTextGenerator(_config(), client=client)

    assert generator.generate_first_question("Python Developer", "direct", "mid") == "What is a closure?"
    messages = client.requests[0]["messages"]
    assert messages[0]["role"] == "system"
    assert any("Python Developer" in m["content"] for m in messages)
    assert any("Technical Lead" in m["content"] for m in messages)


def test_generator_retries_invalid_output_then_succeeds():
    client = _ScriptedClient("not json", json.dumps({"question": "Second try?"}))
    generator = LlmTextGenerator(_config(), client=client)

    assert generator.generate_follow_up_question("SRE", "friendly", "mid", [_turn("interviewer", "Q1")]) == "Second try?"
    assert len(client.requests) == 2
    assert "failed validation" in client.requests[1]["messages"][-1]["content"]


def test_generator_hint_uses_task_options():
    client = _ScriptedClient(json.dumps({"hint": "Consider recursion."}))
    generator = LlmTextGenerator(_config(), client=client)

    assert generator.generate_hint([_turn("interviewer", "Walk a tree?")]) == "Consider recursion."
    assert client.requests[0]["temperature"] == 0.2
    assert client.requests[0]["max_tokens"] == 200


def test_generator_builds_challenge_from_json_strings():
    payload = {
        "title": "Sum pair",
        "description": "Add two numbers.",
        "starter_code": "def solve(a, b):\n    pass\n",
        "test_case": {"input": "[2, 3]", "expected_output": "5"},
    }
    generator = LlmTextGenerator(_config(), client=_ScriptedClient(json.dumps(payload)))

    challenge = generator.generate_coding_challenge("Backend Engineer", "junior")

    assert challenge.test_case.input == [2, 3]
    assert challenge.test_case.expected_output == 5


def test_generator_rejects_challenge_with_bad_input():
    payload = {
        "title": "Broken",
        "description": "x",
        "starter_code": "def solve():\n    pass\n",
        "test_case": {"input": "not-an-array", "expected_output": "1"},
    }
    generator = LlmTextGenerator(_config(), client=_ScriptedClient(json.dumps(payload)))
    with pytest.raises(GenerationFailure):
        generator.generate_coding_challenge("Backend Engineer", "junior")


def test_generator_feedback_parses_scores():
    payload = {
        "overall_feedback": "Strong fundamentals.",
        "overall_score": 8,
        "question_feedback": [{"question": "Q1?", "answer": "A1", "feedback": "Clear", "score": 9}],
    }
    client = _ScriptedClient(json.dumps(payload))
    generator = LlmTextGenerator(_config(), client=client)

    feedback = generator.generate_feedback([_turn("interviewer", "Q1?"), _turn("candidate", "A1")])

    assert feedback.overall_score == 8
    assert feedback.question_feedback[0].score == 9
    assert "Question 1: Q1?" in client.requests[0]["messages"][-1]["content"]


def test_generator_maps_gateway_errors_to_generation_failure():
    generator = LlmTextGenerator(_config(), client=_ScriptedClient(status_code=503))
    with pytest.raises(GenerationFailure) as exc:
        generator.generate_first_question("SRE", "friendly", "mid")
    assert exc.value.message.startswith("The AI service could not complete the request")


def test_generator_problem_batch():
    problem = {
        "title": "Echo",
        "description": "Return the input.",
        "starter_code": "def solve(x):\n    pass\n",
        "test_case": {"input": '["hi"]', "expected_output": '"hi"'},
    }
    client = _ScriptedClient(json.dumps({"problems": [problem, dict(problem, title="Echo 2")]}))
    problems = LlmTextGenerator(_config(), client=client).generate_coding_problems("junior", 2)
    assert [p.title for p in problems] == ["Echo", "Echo 2"]
    assert problems[0].test_case.expected_output == "hi"
