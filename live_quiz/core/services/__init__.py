"""Services backing the quiz manager facade."""

from .game_session import AdvanceOutcome, GameSession
from .lobby_manager import Enrollment, LobbyManager
from .quiz_repository import QuizRepository
from .scoreboard import Scoreboard
from .session_locks import SessionLockRegistry
from .session_repository import SessionRepository

__all__ = [
    "AdvanceOutcome",
    "Enrollment",
    "GameSession",
    "LobbyManager",
    "QuizRepository",
    "Scoreboard",
    "SessionLockRegistry",
    "SessionRepository",
]
