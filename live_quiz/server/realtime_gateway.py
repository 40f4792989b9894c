"""Realtime event handlers: translate client messages into manager calls and fan out results."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import json
import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from live_quiz.constants import event_names as events
from live_quiz.constants.quiz_constants import QUIZ_COMPLETED_MESSAGE, QUIZ_STARTED_MESSAGE
from live_quiz.core.errors import InternalError, MalformedRequest, QuizError
from live_quiz.core.models import ParticipantRole, isoformat, utcnow
from live_quiz.core.quiz_manager import QuizManager, SubmissionOutcome, question_payload
from live_quiz.server.broadcast_hub import BroadcastHub, Connection
from live_quiz.server.schemas import AnswerNoticeMessage, JoinRoomMessage, SessionCodeMessage

logger = logging.getLogger(__name__)

Handler = Callable[[Connection, dict[str, Any]], Awaitable[None]]


def _parse(model: type[BaseModel], data: Any) -> Any:
    try:
        return model.model_validate(data if data is not None else {})
    except ValidationError as exc:
        raise MalformedRequest(f"Malformed message: {exc.errors()[0]['msg']}") from exc


class RealtimeGateway:
    """Dispatches realtime events for one process.

    Failures never leave a handler: they are reported to the originating
    connection as an ``error`` event and the room carries on.
    """

    def __init__(self, manager: QuizManager, hub: BroadcastHub) -> None:
        self._manager = manager
        self._hub = hub
        self._handlers: dict[str, Handler] = {
            events.JOIN_SESSION: self.handle_join_session,
            events.START_QUIZ: self.handle_start_quiz,
            events.NEXT_QUESTION: self.handle_next_question,
            events.ANSWER_SUBMITTED: self.handle_answer_submitted,
            events.GET_CURRENT_QUESTION: self.handle_get_current_question,
            events.REQUEST_LEADERBOARD: self.handle_request_leaderboard,
        }

    @property
    def hub(self) -> BroadcastHub:
        return self._hub

    async def dispatch_text(self, connection: Connection, raw: str) -> None:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            self.report_error(connection, MalformedRequest("Message is not valid JSON."))
            return
        if not isinstance(message, dict):
            self.report_error(connection, MalformedRequest("Message must be an object."))
            return
        await self.dispatch(connection, message.get("event"), message.get("data"))

    async def dispatch(self, connection: Connection, event: Any, data: Any) -> None:
        handler = self._handlers.get(event) if isinstance(event, str) else None
        if handler is None:
            self.report_error(connection, MalformedRequest(f"Unknown event '{event}'."))
            return
        try:
            await handler(connection, data)
        except QuizError as exc:
            logger.warning("%s failed for %s: %s", event, connection.connection_id, exc.message)
            self.report_error(connection, exc)
        except Exception:
            logger.exception("Unexpected error handling %s", event)
            self.report_error(connection, InternalError(f"Failed to handle {event}."))

    def disconnect(self, connection: Connection) -> None:
        if self._hub.leave(connection):
            logger.info(
                "%s left room %s",
                connection.participant_name or connection.role or "client",
                connection.session_code,
            )

    # --- Client events ---

    async def handle_join_session(self, connection: Connection, data: Any) -> None:
        message = _parse(JoinRoomMessage, data)
        code = message.sessionCode
        is_participant = message.role is ParticipantRole.PARTICIPANT

        if is_participant and message.participantName:
            outcome = await self._manager.enroll_from_connection(
                code, message.participantName, participant_id=message.participantId
            )
            connection.participant_id = outcome.participant.participant_id
            connection.participant_name = outcome.participant.name
            snapshot = outcome.snapshot
        else:
            snapshot = await self._manager.get_snapshot(code)
            connection.participant_id = message.participantId
            connection.participant_name = message.participantName

        connection.role = message.role.value
        self._hub.join(connection, code)

        if is_participant and connection.participant_id and connection.participant_name:
            self._hub.emit_private(
                connection,
                events.PARTICIPANT_JOINED,
                {
                    "participantId": connection.participant_id,
                    "participantName": connection.participant_name,
                },
            )
        self._hub.emit_private(connection, events.SESSION_STATE, snapshot)

        count = snapshot["participantCount"]
        self._hub.emit_to_room(code, events.PARTICIPANT_COUNT, {"count": count})
        if is_participant:
            self._hub.emit_to_room(
                code,
                events.PARTICIPANT_UPDATE,
                {
                    "action": "joined",
                    "participantName": connection.participant_name,
                    "totalParticipants": count,
                },
                exclude=connection,
            )

    async def handle_start_quiz(self, connection: Connection, data: Any) -> None:
        code = _parse(SessionCodeMessage, data).sessionCode
        await self._manager.start_quiz(code)
        self._hub.emit_to_room(code, events.QUIZ_STARTED, {"message": QUIZ_STARTED_MESSAGE})

    async def handle_next_question(self, connection: Connection, data: Any) -> None:
        code = _parse(SessionCodeMessage, data).sessionCode
        session, quiz, outcome = await self._manager.advance(code)
        if outcome.completed:
            self._hub.emit_to_room(code, events.QUIZ_COMPLETED, {"message": QUIZ_COMPLETED_MESSAGE})
            return
        self._hub.emit_to_room(
            code, events.NEW_QUESTION, question_payload(session, quiz, outcome.question_index)
        )

    async def handle_answer_submitted(self, connection: Connection, data: Any) -> None:
        """Relay a client's own answer notice; scoring already happened over REST."""
        message = _parse(AnswerNoticeMessage, data)
        leaderboard = await self._manager.get_leaderboard(message.sessionCode)
        self._hub.emit_to_room(
            message.sessionCode,
            events.PARTICIPANT_ANSWERED,
            {
                "participantName": message.participantName,
                "isCorrect": message.isCorrect,
                "timestamp": isoformat(utcnow()),
            },
            exclude=connection,
        )
        self._hub.emit_to_room(message.sessionCode, events.LEADERBOARD_UPDATE, leaderboard)

    async def handle_get_current_question(self, connection: Connection, data: Any) -> None:
        code = _parse(SessionCodeMessage, data).sessionCode
        payload = await self._manager.get_current_question(code)
        if payload is not None:
            self._hub.emit_private(connection, events.NEW_QUESTION, payload)

    async def handle_request_leaderboard(self, connection: Connection, data: Any) -> None:
        code = _parse(SessionCodeMessage, data).sessionCode
        leaderboard = await self._manager.get_leaderboard(code)
        self._hub.emit_private(connection, events.LEADERBOARD_UPDATE, leaderboard)

    # --- Fan-out for the request/response path ---

    async def announce_answer(self, session_code: str, outcome: SubmissionOutcome) -> None:
        """Fan out an answer recorded over REST.

        The leaderboard is read at fan-out time so a delayed announcement
        never overwrites a newer board in the room.
        """
        leaderboard = await self._manager.get_leaderboard(session_code)
        self._hub.emit_to_room(
            session_code,
            events.PARTICIPANT_ANSWERED,
            {
                "participantName": outcome.result.participant_name,
                "isCorrect": outcome.result.is_correct,
                "timestamp": isoformat(outcome.result.answered_at),
            },
        )
        self._hub.emit_to_room(session_code, events.LEADERBOARD_UPDATE, leaderboard)

    def announce_leaderboard(self, session_code: str, leaderboard: dict[str, Any]) -> None:
        self._hub.emit_to_room(session_code, events.LEADERBOARD_UPDATE, leaderboard)

    def report_error(self, connection: Connection, error: QuizError) -> None:
        self._hub.emit_private(connection, events.ERROR, {"message": error.message, "code": error.code})
