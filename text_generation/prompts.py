"""Prompt templates and transcript formatting for the text generation tasks."""
from __future__ import annotations

from textwrap import dedent
from typing import Dict, List, Optional, Sequence, Tuple

from langchain_core.prompts import ChatPromptTemplate

from interview_session.errors import GenerationFailure
from interview_session.machine import CODE_SUCCESS, HINT_APOLOGY, HINT_TEMPLATE, SKIPPED_CHALLENGE
from interview_session.models import Turn

PERSONA_PROMPTS: Dict[str, str] = {
    "friendly": (
        "Your persona is a friendly and encouraging HR Manager. Your goal is to make the candidate "
        "feel comfortable and assess their cultural fit and behavioral skills."
    ),
    "direct": (
        "Your persona is a direct and focused Technical Lead. You value precision and technical depth. "
        "Get straight to the point and ask challenging questions."
    ),
    "supportive": (
        "Your persona is a supportive Senior Peer. You are collaborative and interested in the candidate's "
        "thought process and problem-solving abilities. Guide them if they are stuck."
    ),
}

NO_ANSWER = "(No answer provided)"
HINT_PREFIXES = (HINT_TEMPLATE.split("{")[0], HINT_APOLOGY.split("{")[0])

FIRST_QUESTION_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "You are an expert technical interviewer. {persona_prompt}"),
        (
            "human",
            dedent(
                """
                You are conducting an interview for a {difficulty}-level "{role}" position.
                Generate the first interview question. Keep the question simple, short, and directly
                relevant to the core skills of the role. Avoid long, multi-part questions.
                Return the question as a JSON object with a "question" key.
                """
            ).strip(),
        ),
    ]
)

FOLLOW_UP_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "You are an expert AI interviewer. {persona_prompt}"),
        (
            "human",
            dedent(
                """
                You are conducting an interview for a {difficulty}-level "{role}" position.
                Here is the conversation history:

                {history}

                Based on the candidate's last answer, ask a relevant follow-up question. This can be a new
                topic or a deeper dive. Start with a brief, encouraging, and varied transitional phrase
                (for example "Thanks for sharing that," or "Great, let's move on to..."). Avoid being
                repetitive. The question should be simple, short, and directly related to the previous
                answer or a core skill for the role. Avoid long, multi-part questions.
                Return the entire response as a JSON object with a "question" key.
                """
            ).strip(),
        ),
    ]
)

CODING_CHALLENGE_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "human",
            dedent(
                """
                Generate a {difficulty}-level Python coding challenge relevant to a "{role}" position.
                The challenge should be solvable within a few minutes. The starter code must define a
                top-level function named `solve` that takes the test case inputs as positional arguments.
                The 'input' and 'expected_output' fields of 'test_case' MUST be valid JSON strings:
                'input' is a string representing an array of arguments (for example "[5, \\"hello\\"]"),
                'expected_output' is a string representing the resulting value (for example "10").
                Return the result as a JSON object with title, description, starter_code and test_case.
                """
            ).strip(),
        ),
    ]
)

CODING_PROBLEMS_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "human",
            dedent(
                """
                Generate {count} distinct {difficulty}-level Python coding challenges. Each should be
                solvable within a few minutes and each starter code must define a top-level function
                named `solve`. For every problem the 'input' and 'expected_output' fields of 'test_case'
                MUST be valid JSON strings. Return a JSON object containing a "problems" array.
                """
            ).strip(),
        ),
    ]
)

HINT_PROMPT = ChatPromptTemplate.from_messages(
    [
        (
            "human",
            dedent(
                """
                The user is stuck on the following interview question: "{question}".
                Provide a brief, one or two-sentence hint to guide them in the right direction.
                Do not give away the answer. Your response should be helpful and encouraging.
                Frame your response as if you are the interviewer speaking directly to the candidate.
                Return the hint as a JSON object with a "hint" key.
                """
            ).strip(),
        ),
    ]
)

FEEDBACK_PROMPT = ChatPromptTemplate.from_messages(
    [
        ("system", "You are an expert interviewer providing constructive, supportive feedback."),
        (
            "human",
            dedent(
                """
                Here is the transcript of an interview:

                {transcript}

                Your feedback should be encouraging. For each question, analyze the answer for correctness,
                clarity, and depth. Some answers may be code blocks; evaluate them for correctness,
                efficiency, and readability. Provide an overall summary that starts with the candidate's
                strengths before discussing areas for improvement. Give an overall score from 1 to 10 and a
                score from 1 to 10 for each question. Return the feedback as a JSON object with
                overall_feedback, overall_score and question_feedback.
                """
            ).strip(),
        ),
    ]
)


def persona_prompt(persona: str) -> str:
    return PERSONA_PROMPTS.get(persona, PERSONA_PROMPTS["friendly"])


def format_history(conversation: Sequence[Turn]) -> str:
    """Render the conversation as ``Interviewer:`` / ``Candidate:`` lines."""

    lines = []
    for turn in conversation:
        speaker = "Interviewer" if turn.speaker == "interviewer" else "Candidate"
        lines.append(f"{speaker}: {turn.content}")
    return "\n".join(lines)


def _is_hint(turn: Turn) -> bool:
    return turn.content.startswith(HINT_PREFIXES)


def last_question(conversation: Sequence[Turn]) -> str:
    """Return the most recent interviewer turn that is not itself a hint."""

    for turn in reversed(conversation):
        if turn.speaker == "interviewer" and not _is_hint(turn):
            return turn.content
    raise GenerationFailure("Could not find the last question.")


def format_feedback_transcript(conversation: Sequence[Turn]) -> str:
    """Pair every question with the candidate's answer to it.

    Hint turns are left out. A coding challenge is reduced to its title and
    paired with the last solution submitted (fenced as Python) or the skip
    placeholder; evaluation replies inside the challenge are left out.
    """

    pairs: List[Tuple[str, Optional[str]]] = []
    challenge_open = False
    for turn in conversation:
        if turn.speaker == "interviewer":
            if turn.tag == "challenge-prompt":
                title = turn.content.split("\n\n")[0]
                pairs.append((f"(Coding Challenge) {title}", None))
                challenge_open = True
            elif challenge_open:
                if turn.content == CODE_SUCCESS:
                    challenge_open = False
            elif not _is_hint(turn):
                pairs.append((turn.content, None))
            continue
        if not pairs:
            continue
        question, answer = pairs[-1]
        if challenge_open:
            if turn.tag == "challenge-solution":
                pairs[-1] = (question, f"\n```python\n{turn.content}\n```")
            elif turn.content == SKIPPED_CHALLENGE:
                pairs[-1] = (question, turn.content)
                challenge_open = False
        elif answer is None:
            pairs[-1] = (question, turn.content)

    blocks = []
    for number, (question, answer) in enumerate(pairs, start=1):
        blocks.append(f"Question {number}: {question}\nAnswer {number}: {answer or NO_ANSWER}")
    return "\n\n".join(blocks)


__all__ = [
    "CODING_CHALLENGE_PROMPT",
    "CODING_PROBLEMS_PROMPT",
    "FEEDBACK_PROMPT",
    "FIRST_QUESTION_PROMPT",
    "FOLLOW_UP_PROMPT",
    "HINT_PROMPT",
    "NO_ANSWER",
    "PERSONA_PROMPTS",
    "format_feedback_transcript",
    "format_history",
    "last_question",
    "persona_prompt",
]
