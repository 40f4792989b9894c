"""Service for storing quiz definitions."""

from __future__ import annotations

import copy
import logging
from uuid import uuid4

from live_quiz.constants.quiz_constants import DIFFICULTY_LEVELS, OPTION_COUNT
from live_quiz.core.errors import InvalidQuestion, MalformedRequest
from live_quiz.core.models import Quiz, QuizQuestion

logger = logging.getLogger(__name__)


class QuizRepository:
    """In-memory quiz document store.

    Documents are copied on the way in and out, so callers always work on
    their own instance and changes only land through ``save``.
    """

    def __init__(self) -> None:
        self._quizzes: dict[str, Quiz] = {}

    async def add(
        self,
        title: str,
        topic: str,
        difficulty: str,
        questions: list[QuizQuestion],
    ) -> Quiz:
        """Validate and store a new quiz, returning the stored copy."""
        cleaned_title = title.strip()
        cleaned_topic = topic.strip()
        if not cleaned_title or not cleaned_topic:
            raise MalformedRequest("Title and topic are required.")
        if difficulty not in DIFFICULTY_LEVELS:
            raise MalformedRequest(f"Difficulty must be one of {', '.join(DIFFICULTY_LEVELS)}.")
        if not questions:
            raise InvalidQuestion("Quiz must contain at least one question.")

        quiz = Quiz(
            id=uuid4().hex,
            title=cleaned_title,
            topic=cleaned_topic,
            difficulty=difficulty,
            questions=[self._prepare_question(q) for q in questions],
        )
        self._quizzes[quiz.id] = quiz
        logger.info("Stored quiz %s (%s, %d questions)", quiz.id, quiz.title, quiz.question_count)
        return copy.deepcopy(quiz)

    async def find_by_id(self, quiz_id: str) -> Quiz | None:
        quiz = self._quizzes.get(quiz_id)
        return copy.deepcopy(quiz) if quiz is not None else None

    async def find_by_session_code(self, session_code: str) -> Quiz | None:
        quiz = next((q for q in self._quizzes.values() if q.session_code == session_code), None)
        return copy.deepcopy(quiz) if quiz is not None else None

    async def list_all(self) -> list[Quiz]:
        return [copy.deepcopy(q) for q in sorted(self._quizzes.values(), key=lambda q: q.created_at)]

    async def save(self, quiz: Quiz) -> None:
        """Upsert ``quiz``; session codes stay unique across quizzes."""
        if quiz.session_code is not None:
            holder = next(
                (
                    q
                    for q in self._quizzes.values()
                    if q.session_code == quiz.session_code and q.id != quiz.id
                ),
                None,
            )
            if holder is not None:
                raise ValueError(f"Session code {quiz.session_code} already assigned to quiz {holder.id}.")
        self._quizzes[quiz.id] = copy.deepcopy(quiz)

    async def delete(self, quiz_id: str) -> bool:
        return self._quizzes.pop(quiz_id, None) is not None

    def _prepare_question(self, question: QuizQuestion) -> QuizQuestion:
        """Validate and normalize a question before storage."""
        options = self._validate_options(question.options)
        if not isinstance(question.correct_option_index, int) or not 0 <= question.correct_option_index < OPTION_COUNT:
            raise InvalidQuestion(f"Correct option index must be between 0 and {OPTION_COUNT - 1}.")

        cleaned_text = question.question_text.strip()
        if not cleaned_text:
            raise InvalidQuestion("Question text must not be empty.")

        return QuizQuestion(
            question_text=cleaned_text,
            options=options,
            correct_option_index=question.correct_option_index,
            explanation=(question.explanation or "").strip(),
        )

    @staticmethod
    def _validate_options(options: list[str]) -> list[str]:
        if len(options) != OPTION_COUNT:
            raise InvalidQuestion(f"Each question must have exactly {OPTION_COUNT} options.")
        cleaned = [str(option).strip() for option in options]
        if any(not option for option in cleaned):
            raise InvalidQuestion("Option text cannot be empty.")
        return cleaned
