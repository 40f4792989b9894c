"""Service for enrolling participants into a session roster."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from uuid import uuid4

from live_quiz.core.errors import DuplicateParticipantName, InvalidTransition, MalformedRequest
from live_quiz.core.models import Participant, Session, SessionStatus

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Enrollment:
    participant: Participant
    created: bool


class LobbyManager:
    """Single authority for roster membership.

    Names are unique per session regardless of case. The dedicated join
    request and the realtime auto-enroll both come through ``enroll``; they
    only differ in whether an existing name is an error or a re-identification.
    """

    def enroll(
        self,
        session: Session,
        display_name: str | None,
        participant_id: str | None = None,
        allow_existing: bool = False,
    ) -> Enrollment:
        name = (display_name or "").strip()
        if not name:
            raise MalformedRequest("Participant name is required.")

        existing = session.find_participant_by_name(name)
        if existing is not None:
            if not allow_existing:
                raise DuplicateParticipantName(name)
            return Enrollment(participant=existing, created=False)

        if session.status is SessionStatus.COMPLETED:
            raise InvalidTransition("Session has ended.")

        new_id = participant_id or self._generate_participant_id()
        if session.find_participant(new_id) is not None:
            new_id = self._generate_participant_id()
        participant = Participant(participant_id=new_id, name=name)
        session.participants.append(participant)
        logger.info(
            "%s joined session %s (total=%d)", name, session.session_code, session.participant_count
        )
        return Enrollment(participant=participant, created=True)

    @staticmethod
    def _generate_participant_id() -> str:
        return uuid4().hex
