"""Business logic for live quiz sessions shared by the REST and realtime layers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging
import random
from typing import TypeVar
from uuid import uuid4

from live_quiz.constants.quiz_constants import (
    DEFAULT_DIFFICULTY,
    DEFAULT_QUESTION_COUNT,
    DIFFICULTY_LEVELS,
    SESSION_CODE_MAX,
    SESSION_CODE_MAX_ATTEMPTS,
    SESSION_CODE_MIN,
)
from live_quiz.core.errors import (
    InternalError,
    MalformedRequest,
    QuizError,
    QuizNotFound,
    SessionNotFound,
    UpstreamFailure,
)
from live_quiz.core.models import (
    AnswerResult,
    Participant,
    Quiz,
    Session,
    SessionStatus,
    isoformat,
    utcnow,
)
from live_quiz.core.question_generator import QuestionGenerator, generate_questions
from live_quiz.core.quiz_importer import ImportedQuiz
from live_quiz.core.services.game_session import AdvanceOutcome, GameSession
from live_quiz.core.services.lobby_manager import Enrollment, LobbyManager
from live_quiz.core.services.quiz_repository import QuizRepository
from live_quiz.core.services.scoreboard import Scoreboard
from live_quiz.core.services.session_locks import SessionLockRegistry
from live_quiz.core.services.session_repository import SessionRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class SubmissionOutcome:
    result: AnswerResult
    leaderboard: dict[str, object]


@dataclass(slots=True)
class EnrollmentOutcome:
    participant: Participant
    created: bool
    snapshot: dict[str, object]


def question_payload(session: Session, quiz: Quiz, index: int) -> dict[str, object]:
    """``new-question`` payload for ``index``; never carries the answer."""
    return {
        "questionIndex": index,
        "question": quiz.questions[index].public_payload(),
        "totalQuestions": quiz.question_count,
        "timeLimit": session.settings.time_per_question,
    }


def snapshot_payload(session: Session, quiz: Quiz | None) -> dict[str, object]:
    return {
        "status": session.status.value,
        "currentQuestionIndex": session.current_question_index,
        "participantCount": session.participant_count,
        "quizTitle": quiz.title if quiz else None,
        "totalQuestions": quiz.question_count if quiz else 0,
    }


class QuizManager:
    """Facade for quiz services: repositories, lobby, scoreboard and game session.

    Every session mutation is a load-modify-save of the whole session document
    run under that session's lock, so concurrent handlers for the same session
    never interleave between load and save.
    """

    def __init__(
        self,
        quizzes: QuizRepository | None = None,
        sessions: SessionRepository | None = None,
        generator: QuestionGenerator | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._quizzes = quizzes or QuizRepository()
        self._sessions = sessions or SessionRepository(self._quizzes)
        self._generator = generator
        self._rng = rng or random.Random()
        self._locks = SessionLockRegistry()
        self._lobby = LobbyManager()
        self._scoreboard = Scoreboard()
        self._game = GameSession()

    @property
    def quizzes(self) -> QuizRepository:
        return self._quizzes

    @property
    def sessions(self) -> SessionRepository:
        return self._sessions

    # --- Quiz creation ---

    async def create_quiz(
        self,
        title: str | None,
        topic: str | None,
        count: int | None = None,
        difficulty: str | None = None,
    ) -> Quiz:
        """Generate questions for ``topic`` and store a new quiz."""
        if not title or not topic:
            raise MalformedRequest("Title and topic are required.")
        if self._generator is None:
            raise UpstreamFailure("No question generator is configured.")
        count = count or DEFAULT_QUESTION_COUNT
        if count < 1:
            raise MalformedRequest("Question count must be positive.")
        difficulty = difficulty or DEFAULT_DIFFICULTY
        if difficulty not in DIFFICULTY_LEVELS:
            raise MalformedRequest(f"Difficulty must be one of {', '.join(DIFFICULTY_LEVELS)}.")
        questions = await generate_questions(self._generator, topic, count, difficulty)
        return await self._quizzes.add(title, topic, difficulty, questions)

    async def register_imported_quiz(self, imported: ImportedQuiz) -> Quiz:
        return await self._quizzes.add(
            imported.title, imported.topic, imported.difficulty, imported.questions
        )

    async def delete_quiz(self, quiz_id: str) -> int:
        """Delete a quiz and every session that references it."""
        async with self._locks.hold(f"quiz:{quiz_id}"):
            if not await self._quizzes.delete(quiz_id):
                raise QuizNotFound(quiz_id)
            removed = await self._sessions.delete_for_quiz(quiz_id)
        logger.info("Deleted quiz %s with %d sessions", quiz_id, removed)
        return removed

    # --- Session lifecycle ---

    async def start_session(self, quiz_id: str | None) -> tuple[Session, Quiz]:
        """Resume the quiz's open session or create a new active one."""
        if not quiz_id:
            raise MalformedRequest("Quiz id is required.")
        async with self._locks.hold(f"quiz:{quiz_id}"):
            quiz = await self._quizzes.find_by_id(quiz_id)
            if quiz is None:
                raise QuizNotFound(quiz_id)

            session = await self._sessions.find_open_for_quiz(quiz_id)
            if session is not None:
                async with self._locks.hold(session.session_code):
                    session = await self._sessions.find_by_code(session.session_code)
                    self._game.start(session)
                    session.started_at = utcnow()
                    await self._save(session)
                logger.info("Resumed session %s for quiz %s", session.session_code, quiz_id)
                return session, quiz

            code = quiz.session_code
            if code is None or await self._sessions.code_in_use(code):
                code = await self._generate_session_code()
            session = Session(id=uuid4().hex, session_code=code, quiz_id=quiz_id)
            self._game.start(session)
            await self._save(session)

            quiz.session_code = code
            quiz.is_active = True
            await self._save_quiz(quiz)
        logger.info("Session started: %s (%s)", code, quiz.title)
        return session, quiz

    async def start_quiz(self, session_code: str | None) -> Session:
        session, _ = await self._mutate(session_code, lambda session, quiz: self._game.start(session))
        return session

    async def advance(self, session_code: str | None) -> tuple[Session, Quiz, AdvanceOutcome]:
        session, quiz, outcome = await self._mutate_with_quiz(session_code, self._game.advance)
        return session, quiz, outcome

    async def reset(self, session_code: str | None) -> tuple[Session, dict[str, object]]:
        session, _ = await self._mutate(session_code, lambda session, quiz: self._game.reset(session))
        return session, self._scoreboard.to_payload(session)

    # --- Enrollment ---

    async def join_session(
        self, session_code: str | None, participant_name: str | None
    ) -> tuple[Participant, Session, Quiz | None]:
        """Dedicated join: a name already on the roster is a conflict."""
        if not session_code or not participant_name:
            raise MalformedRequest("Session code and participant name are required.")

        def enroll(session: Session, quiz: Quiz | None) -> Enrollment:
            if session.status is SessionStatus.COMPLETED:
                raise SessionNotFound(session.session_code)
            return self._lobby.enroll(session, participant_name)

        session, enrollment = await self._mutate(session_code, enroll)
        return enrollment.participant, session, await self._quizzes.find_by_id(session.quiz_id)

    async def enroll_from_connection(
        self,
        session_code: str,
        participant_name: str,
        participant_id: str | None = None,
    ) -> EnrollmentOutcome:
        """Realtime join: an existing name is re-identified instead of rejected."""

        def enroll(session: Session, quiz: Quiz | None) -> Enrollment:
            return self._lobby.enroll(
                session, participant_name, participant_id=participant_id, allow_existing=True
            )

        session, enrollment = await self._mutate(session_code, enroll)
        quiz = await self._quizzes.find_by_id(session.quiz_id)
        return EnrollmentOutcome(
            participant=enrollment.participant,
            created=enrollment.created,
            snapshot=snapshot_payload(session, quiz),
        )

    # --- Answers ---

    async def submit_answer(
        self,
        session_code: str | None,
        participant_id: str | None,
        question_index: int | None,
        selected_option_index: int | None,
    ) -> SubmissionOutcome:
        """Record one answer; duplicate check, append and save happen under the session lock."""
        if (
            not session_code
            or not participant_id
            or question_index is None
            or selected_option_index is None
        ):
            raise MalformedRequest("Missing required fields.")

        def record(session: Session, quiz: Quiz) -> SubmissionOutcome:
            result = self._game.record_answer(
                session, quiz, participant_id, question_index, selected_option_index
            )
            return SubmissionOutcome(result=result, leaderboard=self._scoreboard.to_payload(session))

        _, _, outcome = await self._mutate_with_quiz(session_code, record)
        logger.info(
            "%s answered Q%d: %s (score %d)",
            outcome.result.participant_name,
            question_index + 1,
            "correct" if outcome.result.is_correct else "wrong",
            outcome.result.total_score,
        )
        return outcome

    # --- Reads ---

    async def get_snapshot(self, session_code: str | None) -> dict[str, object]:
        session, quiz = await self._load(session_code)
        return snapshot_payload(session, quiz)

    async def get_session_details(self, session_code: str | None) -> dict[str, object]:
        session, quiz = await self._load(session_code)
        return {"sessionCode": session.session_code, **snapshot_payload(session, quiz)}

    async def get_leaderboard(self, session_code: str | None) -> dict[str, object]:
        session, _ = await self._load(session_code)
        return self._scoreboard.to_payload(session)

    async def get_current_question(self, session_code: str | None) -> dict[str, object] | None:
        """Replay the question on screen, or None before the first advance."""
        session, quiz = await self._load(session_code)
        if quiz is None or not 0 <= session.current_question_index < quiz.question_count:
            return None
        return question_payload(session, quiz, session.current_question_index)

    async def get_results(self, session_code: str | None) -> dict[str, object]:
        session, quiz = await self._load(session_code)
        return {
            "session": {
                "sessionCode": session.session_code,
                "status": session.status.value,
                "totalQuestions": quiz.question_count if quiz else 0,
                "startedAt": isoformat(session.started_at),
                "endedAt": isoformat(session.ended_at),
            },
            "quizTitle": quiz.title if quiz else "Quiz",
            "participants": [p.to_payload() for p in session.participants],
        }

    # --- Internals ---

    async def _load(self, session_code: str | None) -> tuple[Session, Quiz | None]:
        if not session_code:
            raise MalformedRequest("Session code is required.")
        try:
            loaded = await self._sessions.find_with_quiz(session_code)
        except QuizError:
            raise
        except Exception as exc:
            logger.exception("Failed to load session %s", session_code)
            raise InternalError("Failed to load session.") from exc
        if loaded is None:
            raise SessionNotFound(session_code)
        return loaded

    async def _mutate(
        self,
        session_code: str | None,
        mutator: Callable[[Session, Quiz | None], T],
    ) -> tuple[Session, T]:
        """Run ``mutator`` on a freshly loaded session under its lock and save it.

        A mutator that raises leaves the stored document untouched.
        """
        if not session_code:
            raise MalformedRequest("Session code is required.")
        async with self._locks.hold(session_code):
            session, quiz = await self._load(session_code)
            result = mutator(session, quiz)
            await self._save(session)
        return session, result

    async def _mutate_with_quiz(
        self,
        session_code: str | None,
        mutator: Callable[[Session, Quiz], T],
    ) -> tuple[Session, Quiz, T]:
        def guarded(session: Session, quiz: Quiz | None) -> tuple[Quiz, T]:
            if quiz is None:
                raise QuizNotFound(session.quiz_id)
            return quiz, mutator(session, quiz)

        session, (quiz, result) = await self._mutate(session_code, guarded)
        return session, quiz, result

    async def _save(self, session: Session) -> None:
        try:
            await self._sessions.save(session)
        except Exception as exc:
            logger.exception("Failed to save session %s", session.session_code)
            raise InternalError("Failed to save session.") from exc

    async def _save_quiz(self, quiz: Quiz) -> None:
        try:
            await self._quizzes.save(quiz)
        except Exception as exc:
            logger.exception("Failed to save quiz %s", quiz.id)
            raise InternalError("Failed to save quiz.") from exc

    async def _generate_session_code(self) -> str:
        """Draw a 6-digit code not held by any quiz or session."""
        for _ in range(SESSION_CODE_MAX_ATTEMPTS):
            code = str(self._rng.randint(SESSION_CODE_MIN, SESSION_CODE_MAX))
            if await self._sessions.code_in_use(code):
                continue
            if await self._quizzes.find_by_session_code(code) is not None:
                continue
            return code
        raise InternalError("Could not allocate a unique session code.")
