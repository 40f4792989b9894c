"""Service for storing live session documents."""

from __future__ import annotations

import copy

from live_quiz.core.models import Quiz, Session, SessionStatus
from live_quiz.core.services.quiz_repository import QuizRepository


class SessionRepository:
    """In-memory session document store with whole-document load and save."""

    def __init__(self, quizzes: QuizRepository) -> None:
        self._quizzes = quizzes
        self._sessions: dict[str, Session] = {}

    async def find_by_code(self, session_code: str) -> Session | None:
        session = next((s for s in self._sessions.values() if s.session_code == session_code), None)
        return copy.deepcopy(session) if session is not None else None

    async def find_by_id(self, session_id: str) -> Session | None:
        session = self._sessions.get(session_id)
        return copy.deepcopy(session) if session is not None else None

    async def find_open_for_quiz(self, quiz_id: str) -> Session | None:
        """Return the quiz's non-completed session, if any."""
        session = next(
            (
                s
                for s in self._sessions.values()
                if s.quiz_id == quiz_id and s.status is not SessionStatus.COMPLETED
            ),
            None,
        )
        return copy.deepcopy(session) if session is not None else None

    async def find_with_quiz(self, session_code: str) -> tuple[Session, Quiz | None] | None:
        """Load a session together with its linked quiz."""
        session = await self.find_by_code(session_code)
        if session is None:
            return None
        return session, await self._quizzes.find_by_id(session.quiz_id)

    async def code_in_use(self, session_code: str) -> bool:
        return any(s.session_code == session_code for s in self._sessions.values())

    async def save(self, session: Session) -> None:
        """Upsert by identity; session codes stay unique."""
        clash = next(
            (
                s
                for s in self._sessions.values()
                if s.session_code == session.session_code and s.id != session.id
            ),
            None,
        )
        if clash is not None:
            raise ValueError(f"Session code {session.session_code} already in use.")
        self._sessions[session.id] = copy.deepcopy(session)

    async def delete_for_quiz(self, quiz_id: str) -> int:
        doomed = [sid for sid, s in self._sessions.items() if s.quiz_id == quiz_id]
        for session_id in doomed:
            del self._sessions[session_id]
        return len(doomed)
