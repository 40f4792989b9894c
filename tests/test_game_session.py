"""
Unit tests for the session state machine and answer scoring.
"""
import unittest

from live_quiz.core.errors import (
    DuplicateAnswer,
    InvalidOptionIndex,
    InvalidQuestionIndex,
    InvalidTransition,
    ParticipantNotFound,
)
from live_quiz.core.models import Participant, Quiz, Session, SessionStatus
from live_quiz.core.services.game_session import GameSession
from tests.quiz_fixtures import make_questions


class TestGameSessionTransitions(unittest.TestCase):
    """Test cases for start, advance and reset."""

    def setUp(self):
        self.game = GameSession()
        self.quiz = Quiz(
            id="quiz-1",
            title="Sample",
            topic="General",
            difficulty="easy",
            questions=make_questions([1, 0, 2]),
        )
        self.session = Session(id="s-1", session_code="123456", quiz_id="quiz-1")

    def test_start_moves_waiting_to_active_without_revealing(self):
        changed = self.game.start(self.session)

        self.assertTrue(changed)
        self.assertEqual(self.session.status, SessionStatus.ACTIVE)
        self.assertEqual(self.session.current_question_index, -1)
        self.assertIsNotNone(self.session.started_at)

    def test_start_is_idempotent_when_active(self):
        self.game.start(self.session)
        self.assertFalse(self.game.start(self.session))
        self.assertEqual(self.session.status, SessionStatus.ACTIVE)

    def test_advance_requires_active(self):
        with self.assertRaises(InvalidTransition):
            self.game.advance(self.session, self.quiz)
        self.assertEqual(self.session.current_question_index, -1)

    def test_advance_reveals_questions_in_order(self):
        self.game.start(self.session)

        first = self.game.advance(self.session, self.quiz)
        second = self.game.advance(self.session, self.quiz)

        self.assertFalse(first.completed)
        self.assertEqual(first.question_index, 0)
        self.assertEqual(first.question.question_text, "Question 1?")
        self.assertEqual(second.question_index, 1)
        self.assertEqual(self.session.current_question_index, 1)
        self.assertEqual(second.total_questions, 3)

    def test_advance_past_last_question_completes_once(self):
        self.game.start(self.session)
        for _ in range(3):
            self.assertFalse(self.game.advance(self.session, self.quiz).completed)

        outcome = self.game.advance(self.session, self.quiz)

        self.assertTrue(outcome.completed)
        self.assertEqual(self.session.status, SessionStatus.COMPLETED)
        self.assertIsNotNone(self.session.ended_at)
        self.assertEqual(self.session.current_question_index, 2)

        with self.assertRaises(InvalidTransition):
            self.game.advance(self.session, self.quiz)
        self.assertEqual(self.session.current_question_index, 2)

    def test_index_never_exceeds_last_question(self):
        self.game.start(self.session)
        seen = []
        for _ in range(4):
            self.game.advance(self.session, self.quiz)
            seen.append(self.session.current_question_index)

        self.assertEqual(seen, [0, 1, 2, 2])
        self.assertEqual(seen, sorted(seen))

    def test_start_on_completed_session_is_rejected(self):
        self.session.status = SessionStatus.COMPLETED
        with self.assertRaises(InvalidTransition):
            self.game.start(self.session)

    def test_reset_clears_scores_and_keeps_roster(self):
        self.game.start(self.session)
        self.session.participants = [
            Participant(participant_id="p1", name="Ava"),
            Participant(participant_id="p2", name="Ben"),
        ]
        self.game.advance(self.session, self.quiz)
        self.game.record_answer(self.session, self.quiz, "p1", 0, 1)
        self.game.record_answer(self.session, self.quiz, "p2", 0, 3)

        self.game.reset(self.session)

        self.assertEqual(self.session.current_question_index, -1)
        self.assertEqual(self.session.status, SessionStatus.ACTIVE)
        self.assertEqual([p.name for p in self.session.participants], ["Ava", "Ben"])
        self.assertEqual([p.participant_id for p in self.session.participants], ["p1", "p2"])
        for participant in self.session.participants:
            self.assertEqual(participant.score, 0)
            self.assertEqual(participant.answers, [])

    def test_reset_reopens_completed_session(self):
        self.session.status = SessionStatus.COMPLETED
        self.session.current_question_index = 2

        self.game.reset(self.session)

        self.assertEqual(self.session.status, SessionStatus.ACTIVE)
        self.assertIsNone(self.session.ended_at)
        self.assertEqual(self.game.advance(self.session, self.quiz).question_index, 0)


class TestGameSessionScoring(unittest.TestCase):
    """Test cases for recording answers."""

    def setUp(self):
        self.game = GameSession()
        self.quiz = Quiz(
            id="quiz-1",
            title="Sample",
            topic="General",
            difficulty="easy",
            questions=make_questions([1, 0]),
        )
        self.session = Session(
            id="s-1",
            session_code="123456",
            quiz_id="quiz-1",
            status=SessionStatus.ACTIVE,
            participants=[Participant(participant_id="p1", name="Ava")],
        )

    def test_correct_then_incorrect_answer(self):
        first = self.game.record_answer(self.session, self.quiz, "p1", 0, 1)
        second = self.game.record_answer(self.session, self.quiz, "p1", 1, 2)

        self.assertTrue(first.is_correct)
        self.assertEqual(first.points_awarded, 100)
        self.assertEqual(first.total_score, 100)
        self.assertEqual(first.correct_option_index, 1)
        self.assertEqual(first.explanation, "Explanation 1")
        self.assertFalse(second.is_correct)
        self.assertEqual(second.points_awarded, 0)
        self.assertEqual(second.total_score, 100)
        self.assertEqual(len(self.session.participants[0].answers), 2)

    def test_duplicate_answer_rejected_without_score_change(self):
        self.game.record_answer(self.session, self.quiz, "p1", 0, 1)

        with self.assertRaises(DuplicateAnswer):
            self.game.record_answer(self.session, self.quiz, "p1", 0, 1)

        participant = self.session.participants[0]
        self.assertEqual(participant.score, 100)
        self.assertEqual(len(participant.answers), 1)

    def test_unknown_participant(self):
        with self.assertRaises(ParticipantNotFound):
            self.game.record_answer(self.session, self.quiz, "ghost", 0, 1)

    def test_question_index_out_of_range(self):
        for index in (-1, 2, 99):
            with self.assertRaises(InvalidQuestionIndex):
                self.game.record_answer(self.session, self.quiz, "p1", index, 0)
        self.assertEqual(self.session.participants[0].answers, [])

    def test_option_index_out_of_range(self):
        with self.assertRaises(InvalidOptionIndex):
            self.game.record_answer(self.session, self.quiz, "p1", 0, 4)
        self.assertEqual(self.session.participants[0].score, 0)

    def test_score_is_hundred_per_correct_answer(self):
        quiz = Quiz(
            id="quiz-2",
            title="Longer",
            topic="General",
            difficulty="easy",
            questions=make_questions([0, 1, 2, 3, 0]),
        )
        picks = [0, 0, 2, 1, 0]  # correct, wrong, correct, wrong, correct
        for index, pick in enumerate(picks):
            self.game.record_answer(self.session, quiz, "p1", index, pick)

        self.assertEqual(self.session.participants[0].score, 300)


if __name__ == "__main__":
    unittest.main()
