from __future__ import annotations  # Re-export text generation public API

from .generator import LlmTextGenerator, TASK_SCHEMAS
from .prompts import format_feedback_transcript, format_history, last_question
from .schemas import parse_test_case

__all__ = [
    "LlmTextGenerator",
    "TASK_SCHEMAS",
    "format_feedback_transcript",
    "format_history",
    "last_question",
    "parse_test_case",
]
