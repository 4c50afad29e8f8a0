"""LLM-backed implementation of the text generation boundary."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type

from langchain_core.prompts import ChatPromptTemplate
from pydantic import BaseModel

from config import AppConfig, load_config, resolve_registry
from config.settings import settings
from interview_session.errors import GenerationFailure
from interview_session.models import CodingChallenge, InterviewFeedback, Turn
from llm_gateway import HttpClient, LlmGatewayError
from llm_gateway import runnable as llm_runnable

from .prompts import (
    CODING_CHALLENGE_PROMPT,
    CODING_PROBLEMS_PROMPT,
    FEEDBACK_PROMPT,
    FIRST_QUESTION_PROMPT,
    FOLLOW_UP_PROMPT,
    HINT_PROMPT,
    format_feedback_transcript,
    format_history,
    last_question,
    persona_prompt,
)
from .schemas import CodingChallengeOut, CodingProblemsOut, HintOut, QuestionOut

logger = logging.getLogger(__name__)

FIRST_QUESTION_KEY = "text_generation.first_question"
FOLLOW_UP_KEY = "text_generation.follow_up_question"
CODING_CHALLENGE_KEY = "text_generation.coding_challenge"
CODING_PROBLEMS_KEY = "text_generation.coding_problems"
HINT_KEY = "text_generation.hint"
FEEDBACK_KEY = "text_generation.feedback"

TASK_SCHEMAS: Dict[str, Type[BaseModel]] = {
    FIRST_QUESTION_KEY: QuestionOut,
    FOLLOW_UP_KEY: QuestionOut,
    CODING_CHALLENGE_KEY: CodingChallengeOut,
    CODING_PROBLEMS_KEY: CodingProblemsOut,
    HINT_KEY: HintOut,
    FEEDBACK_KEY: InterviewFeedback,
}

TASK_PROMPTS: Dict[str, ChatPromptTemplate] = {
    FIRST_QUESTION_KEY: FIRST_QUESTION_PROMPT,
    FOLLOW_UP_KEY: FOLLOW_UP_PROMPT,
    CODING_CHALLENGE_KEY: CODING_CHALLENGE_PROMPT,
    CODING_PROBLEMS_KEY: CODING_PROBLEMS_PROMPT,
    HINT_KEY: HINT_PROMPT,
    FEEDBACK_KEY: FEEDBACK_PROMPT,
}


class LlmTextGenerator:
    """Generate questions, hints, challenges and feedback through configured LLM routes."""

    def __init__(self, config: AppConfig, *, client: Optional[HttpClient] = None) -> None:
        routes = resolve_registry(config, TASK_SCHEMAS)
        self._chains = {
            task: TASK_PROMPTS[task]
            | llm_runnable(route, schema, client=client, options=config.options_for(task).as_payload())
            for task, (route, schema) in routes.items()
        }

    @classmethod
    def from_path(cls, path: Optional[Path | str] = None, *, client: Optional[HttpClient] = None) -> "LlmTextGenerator":
        return cls(load_config(Path(path or settings.LLM_CONFIG_PATH)), client=client)

    def generate_first_question(self, role: str, persona: str, difficulty: str) -> str:
        out = self._run(
            FIRST_QUESTION_KEY,
            {"persona_prompt": persona_prompt(persona), "role": role, "difficulty": difficulty},
        )
        return out.question

    def generate_follow_up_question(
        self, role: str, persona: str, difficulty: str, conversation: Sequence[Turn]
    ) -> str:
        out = self._run(
            FOLLOW_UP_KEY,
            {
                "persona_prompt": persona_prompt(persona),
                "role": role,
                "difficulty": difficulty,
                "history": format_history(conversation),
            },
        )
        return out.question

    def generate_coding_challenge(self, role: str, difficulty: str) -> CodingChallenge:
        out = self._run(CODING_CHALLENGE_KEY, {"role": role, "difficulty": difficulty})
        return out.to_challenge()

    def generate_coding_problems(self, difficulty: str, count: int = 3) -> List[CodingChallenge]:
        out = self._run(CODING_PROBLEMS_KEY, {"difficulty": difficulty, "count": count})
        return [problem.to_challenge() for problem in out.problems]

    def generate_hint(self, conversation: Sequence[Turn]) -> str:
        out = self._run(HINT_KEY, {"question": last_question(conversation)})
        return out.hint

    def generate_feedback(self, conversation: Sequence[Turn]) -> InterviewFeedback:
        return self._run(FEEDBACK_KEY, {"transcript": format_feedback_transcript(conversation)})

    def _run(self, task: str, inputs: Dict[str, Any]) -> Any:
        try:
            return self._chains[task].invoke(inputs)
        except LlmGatewayError as exc:
            logger.error("Text generation task %s failed: %s", task, exc)
            raise GenerationFailure(f"The AI service could not complete the request: {exc}") from exc


__all__ = [
    "CODING_CHALLENGE_KEY",
    "CODING_PROBLEMS_KEY",
    "FEEDBACK_KEY",
    "FIRST_QUESTION_KEY",
    "FOLLOW_UP_KEY",
    "HINT_KEY",
    "LlmTextGenerator",
    "TASK_SCHEMAS",
]
