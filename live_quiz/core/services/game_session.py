"""Session state machine: lifecycle transitions and answer scoring."""

from __future__ import annotations

from dataclasses import dataclass
import logging

from live_quiz.constants.quiz_constants import OPTION_COUNT, POINTS_PER_CORRECT_ANSWER
from live_quiz.core.errors import (
    DuplicateAnswer,
    InvalidOptionIndex,
    InvalidQuestionIndex,
    InvalidTransition,
    ParticipantNotFound,
)
from live_quiz.core.models import (
    Answer,
    AnswerResult,
    Quiz,
    QuizQuestion,
    Session,
    SessionStatus,
    utcnow,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AdvanceOutcome:
    """Result of an advance: either a newly revealed question or completion."""

    completed: bool
    question_index: int
    question: QuizQuestion | None
    total_questions: int


class GameSession:
    """Validates and applies transitions to a loaded session document.

    The machine never touches storage; callers load the session, apply a
    transition here and save the mutated document.
    """

    def start(self, session: Session) -> bool:
        """Move ``waiting`` to ``active``. Returns False when already active."""
        if session.status is SessionStatus.COMPLETED:
            raise InvalidTransition("Quiz session has already completed.")
        if session.status is SessionStatus.ACTIVE:
            return False
        previous = session.status
        session.status = SessionStatus.ACTIVE
        if session.started_at is None:
            session.started_at = utcnow()
        logger.info("Session %s: %s -> %s", session.session_code, previous.value, session.status.value)
        return True

    def advance(self, session: Session, quiz: Quiz) -> AdvanceOutcome:
        """Reveal the next question, or complete the session after the last one."""
        if session.status is SessionStatus.COMPLETED:
            raise InvalidTransition("Quiz session has already completed.")
        if session.status is not SessionStatus.ACTIVE:
            raise InvalidTransition("Quiz session has not been started.")

        total = quiz.question_count
        next_index = session.current_question_index + 1
        if next_index < total:
            session.current_question_index = next_index
            logger.info("Session %s: question %d/%d", session.session_code, next_index + 1, total)
            return AdvanceOutcome(
                completed=False,
                question_index=next_index,
                question=quiz.questions[next_index],
                total_questions=total,
            )

        session.status = SessionStatus.COMPLETED
        session.ended_at = utcnow()
        logger.info("Session %s: active -> completed", session.session_code)
        return AdvanceOutcome(
            completed=True,
            question_index=session.current_question_index,
            question=None,
            total_questions=total,
        )

    def reset(self, session: Session) -> None:
        """Rewind to before the first question, keeping the roster but not its scores."""
        session.current_question_index = -1
        session.status = SessionStatus.ACTIVE
        session.ended_at = None
        for participant in session.participants:
            participant.answers = []
            participant.score = 0
        logger.info(
            "Session %s reset (%d participants kept)", session.session_code, session.participant_count
        )

    def record_answer(
        self,
        session: Session,
        quiz: Quiz,
        participant_id: str,
        question_index: int,
        selected_option_index: int,
    ) -> AnswerResult:
        """Score one answer. At most one answer per participant and question."""
        participant = session.find_participant(participant_id)
        if participant is None:
            raise ParticipantNotFound(participant_id)
        if not 0 <= question_index < quiz.question_count:
            raise InvalidQuestionIndex(question_index)
        if not 0 <= selected_option_index < OPTION_COUNT:
            raise InvalidOptionIndex(selected_option_index)
        if participant.has_answered(question_index):
            raise DuplicateAnswer(question_index)

        question = quiz.questions[question_index]
        is_correct = selected_option_index == question.correct_option_index
        points = POINTS_PER_CORRECT_ANSWER if is_correct else 0
        answer = Answer(
            question_index=question_index,
            selected_option_index=selected_option_index,
            is_correct=is_correct,
        )
        participant.answers.append(answer)
        participant.score += points

        return AnswerResult(
            participant_name=participant.name,
            is_correct=is_correct,
            points_awarded=points,
            total_score=participant.score,
            correct_option_index=question.correct_option_index,
            explanation=question.explanation,
            answered_at=answer.answered_at,
        )
