"""Domain models for quizzes and live quiz sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from live_quiz.constants.quiz_constants import DEFAULT_TIME_PER_QUESTION_SECONDS


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


class SessionStatus(str, Enum):
    """Lifecycle states of a live session."""

    WAITING = "waiting"
    ACTIVE = "active"
    COMPLETED = "completed"


class ParticipantRole(str, Enum):
    EDUCATOR = "educator"
    PARTICIPANT = "participant"


@dataclass(slots=True)
class QuizQuestion:
    """Multiple-choice quiz question with exactly four options."""

    question_text: str
    options: list[str]
    correct_option_index: int
    explanation: str = ""

    def public_payload(self) -> dict[str, object]:
        """Question body safe to reveal to participants (no answer, no explanation)."""
        return {"question": self.question_text, "options": list(self.options)}


@dataclass(slots=True)
class Quiz:
    """Persisted quiz definition. Questions are revealed in list order."""

    id: str
    title: str
    topic: str
    difficulty: str
    questions: list[QuizQuestion]
    session_code: str | None = None
    is_active: bool = False
    created_at: datetime = field(default_factory=utcnow)

    @property
    def question_count(self) -> int:
        return len(self.questions)


@dataclass(slots=True)
class Answer:
    """One recorded answer of a participant to one question."""

    question_index: int
    selected_option_index: int
    is_correct: bool
    answered_at: datetime = field(default_factory=utcnow)

    def to_payload(self) -> dict[str, object]:
        return {
            "questionIndex": self.question_index,
            "selectedOptionIndex": self.selected_option_index,
            "isCorrect": self.is_correct,
            "answeredAt": isoformat(self.answered_at),
        }


@dataclass(slots=True)
class Participant:
    """Roster entry of a session."""

    participant_id: str
    name: str
    score: int = 0
    answers: list[Answer] = field(default_factory=list)
    joined_at: datetime = field(default_factory=utcnow)

    def has_answered(self, question_index: int) -> bool:
        return any(answer.question_index == question_index for answer in self.answers)

    def to_payload(self) -> dict[str, object]:
        return {
            "participantId": self.participant_id,
            "name": self.name,
            "score": self.score,
            "answers": [answer.to_payload() for answer in self.answers],
        }


@dataclass(slots=True)
class SessionSettings:
    # Advisory only; clients run the countdown.
    time_per_question: int = DEFAULT_TIME_PER_QUESTION_SECONDS
    show_leaderboard: bool = True


@dataclass(slots=True)
class Session:
    """Mutable runtime state of one live run of a quiz."""

    id: str
    session_code: str
    quiz_id: str
    status: SessionStatus = SessionStatus.WAITING
    current_question_index: int = -1
    participants: list[Participant] = field(default_factory=list)
    settings: SessionSettings = field(default_factory=SessionSettings)
    started_at: datetime | None = None
    ended_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    def find_participant(self, participant_id: str) -> Participant | None:
        return next((p for p in self.participants if p.participant_id == participant_id), None)

    def find_participant_by_name(self, name: str) -> Participant | None:
        folded = name.strip().casefold()
        return next((p for p in self.participants if p.name.casefold() == folded), None)


@dataclass(slots=True)
class LeaderboardRow:
    """Immutable leaderboard snapshot entry."""

    name: str
    score: int
    answered_count: int

    def to_payload(self) -> dict[str, object]:
        return {"name": self.name, "score": self.score, "answeredCount": self.answered_count}


@dataclass(slots=True)
class AnswerResult:
    """Private outcome returned to the participant who submitted an answer."""

    participant_name: str
    is_correct: bool
    points_awarded: int
    total_score: int
    correct_option_index: int
    explanation: str
    answered_at: datetime

    def to_payload(self) -> dict[str, object]:
        return {
            "isCorrect": self.is_correct,
            "pointsAwarded": self.points_awarded,
            "totalScore": self.total_score,
            "correctOptionIndex": self.correct_option_index,
            "explanation": self.explanation,
        }
