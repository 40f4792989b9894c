"""Payload schemas for the REST endpoints and realtime messages."""

from __future__ import annotations

from pydantic import BaseModel, Field, StrictInt

from live_quiz.core.models import ParticipantRole


class CreateQuizPayload(BaseModel):
    title: str | None = None
    topic: str | None = None
    numQuestions: StrictInt | None = Field(default=None, ge=1)
    difficulty: str | None = None


class StartSessionPayload(BaseModel):
    quizId: str | None = None


class JoinSessionPayload(BaseModel):
    sessionCode: str | None = None
    participantName: str | None = None


class AnswerPayload(BaseModel):
    """Payload schema for submitted answers."""

    sessionCode: str | None = None
    participantId: str | None = None
    questionIndex: StrictInt | None = None
    selectedOptionIndex: StrictInt | None = None


class SessionCodePayload(BaseModel):
    sessionCode: str | None = None


class JoinRoomMessage(BaseModel):
    sessionCode: str = Field(min_length=1)
    role: ParticipantRole
    participantId: str | None = None
    participantName: str | None = None


class SessionCodeMessage(BaseModel):
    sessionCode: str = Field(min_length=1)


class AnswerNoticeMessage(BaseModel):
    sessionCode: str = Field(min_length=1)
    participantName: str
    isCorrect: bool
    score: int | None = None
