"""
Unit tests for roster enrollment and leaderboard ranking.
"""
import unittest

from live_quiz.core.errors import DuplicateParticipantName, InvalidTransition, MalformedRequest
from live_quiz.core.models import Participant, Session, SessionStatus
from live_quiz.core.services.lobby_manager import LobbyManager
from live_quiz.core.services.scoreboard import Scoreboard


class TestLobbyManager(unittest.TestCase):
    """Test cases for participant enrollment."""

    def setUp(self):
        self.lobby = LobbyManager()
        self.session = Session(
            id="s-1", session_code="123456", quiz_id="q-1", status=SessionStatus.ACTIVE
        )

    def test_enroll_generates_id(self):
        enrollment = self.lobby.enroll(self.session, "  Ava ")

        self.assertTrue(enrollment.created)
        self.assertEqual(enrollment.participant.name, "Ava")
        self.assertTrue(enrollment.participant.participant_id)
        self.assertEqual(self.session.participant_count, 1)

    def test_enroll_uses_supplied_id(self):
        enrollment = self.lobby.enroll(self.session, "Ava", participant_id="given-id")
        self.assertEqual(enrollment.participant.participant_id, "given-id")

    def test_duplicate_name_is_case_insensitive_conflict(self):
        self.lobby.enroll(self.session, "Ava")

        with self.assertRaises(DuplicateParticipantName):
            self.lobby.enroll(self.session, "aVA")

        self.assertEqual(self.session.participant_count, 1)

    def test_existing_name_reidentifies_when_allowed(self):
        first = self.lobby.enroll(self.session, "Ava")

        again = self.lobby.enroll(self.session, "AVA", allow_existing=True)

        self.assertFalse(again.created)
        self.assertEqual(again.participant.participant_id, first.participant.participant_id)
        self.assertEqual(self.session.participant_count, 1)

    def test_blank_name_rejected(self):
        with self.assertRaises(MalformedRequest):
            self.lobby.enroll(self.session, "   ")

    def test_completed_session_accepts_no_new_participants(self):
        self.lobby.enroll(self.session, "Ava")
        self.session.status = SessionStatus.COMPLETED

        with self.assertRaises(InvalidTransition):
            self.lobby.enroll(self.session, "Ben", allow_existing=True)
        self.assertFalse(self.lobby.enroll(self.session, "Ava", allow_existing=True).created)


class TestScoreboard(unittest.TestCase):
    """Test cases for leaderboard snapshots."""

    def _session(self, scores):
        return Session(
            id="s-1",
            session_code="123456",
            quiz_id="q-1",
            participants=[
                Participant(participant_id=f"p{i}", name=name, score=score)
                for i, (name, score) in enumerate(scores)
            ],
        )

    def test_sorted_by_score_descending(self):
        session = self._session([("Ava", 100), ("Ben", 300), ("Cy", 200)])

        rows = Scoreboard().get_top_scorers(session)

        self.assertEqual([row.name for row in rows], ["Ben", "Cy", "Ava"])

    def test_ties_keep_join_order(self):
        session = self._session([("Ava", 100), ("Ben", 100), ("Cy", 200), ("Dee", 100)])

        rows = Scoreboard().get_top_scorers(session)

        self.assertEqual([row.name for row in rows], ["Cy", "Ava", "Ben", "Dee"])

    def test_capped_at_ten_with_full_total(self):
        session = self._session([(f"P{i}", i * 100) for i in range(15)])

        payload = Scoreboard().to_payload(session)

        self.assertEqual(len(payload["leaderboard"]), 10)
        self.assertEqual(payload["totalParticipants"], 15)
        self.assertEqual(payload["leaderboard"][0], {"name": "P14", "score": 1400, "answeredCount": 0})

    def test_empty_session(self):
        payload = Scoreboard().to_payload(self._session([]))
        self.assertEqual(payload, {"leaderboard": [], "totalParticipants": 0})


if __name__ == "__main__":
    unittest.main()
