"""Contract for the external question generator.

The generator is an opaque collaborator (typically an LLM call). Whatever it
returns is checked against the question contract before a quiz is stored, so
a misbehaving generator surfaces as an ``UpstreamFailure`` and never as a
half-valid quiz.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from pydantic import BaseModel, Field, ValidationError, field_validator

from live_quiz.constants.quiz_constants import OPTION_COUNT
from live_quiz.core.errors import UpstreamFailure
from live_quiz.core.models import QuizQuestion

logger = logging.getLogger(__name__)


class QuestionGenerator(Protocol):
    async def generate(self, topic: str, count: int, difficulty: str) -> list[dict[str, Any]]:
        ...


class GeneratedQuestion(BaseModel):
    """Shape every generated question must have."""

    question: str = Field(min_length=1)
    options: list[str]
    correctAnswer: int = Field(ge=0, le=OPTION_COUNT - 1)
    explanation: str = ""

    @field_validator("options")
    @classmethod
    def _exactly_four(cls, value: list[str]) -> list[str]:
        if len(value) != OPTION_COUNT:
            raise ValueError(f"Must have {OPTION_COUNT} options")
        if any(not option.strip() for option in value):
            raise ValueError("Options cannot be empty")
        return value

    def to_question(self) -> QuizQuestion:
        return QuizQuestion(
            question_text=self.question,
            options=list(self.options),
            correct_option_index=self.correctAnswer,
            explanation=self.explanation,
        )


def validate_generated_questions(raw: Any) -> list[QuizQuestion]:
    if not isinstance(raw, list) or not raw:
        raise UpstreamFailure("Question generator returned an empty or invalid list.")
    try:
        return [GeneratedQuestion.model_validate(item).to_question() for item in raw]
    except ValidationError as exc:
        logger.warning("Generated questions failed validation: %s", exc)
        raise UpstreamFailure("Question generator returned malformed questions.") from exc


async def generate_questions(
    generator: QuestionGenerator,
    topic: str,
    count: int,
    difficulty: str,
) -> list[QuizQuestion]:
    """Call the generator and validate its output."""
    logger.info("Generating %d %s questions about %s", count, difficulty, topic)
    try:
        raw = await generator.generate(topic, count, difficulty)
    except UpstreamFailure:
        raise
    except Exception as exc:
        logger.exception("Question generator failed")
        raise UpstreamFailure(f"Question generation failed: {exc}") from exc
    return validate_generated_questions(raw)
