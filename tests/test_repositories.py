"""
Tests for the document stores and the per-session lock registry.
"""
import asyncio
import unittest

from live_quiz.core.models import Session, SessionStatus
from live_quiz.core.services.quiz_repository import QuizRepository
from live_quiz.core.services.session_locks import SessionLockRegistry
from live_quiz.core.services.session_repository import SessionRepository
from tests.quiz_fixtures import make_questions


class TestRepositories(unittest.IsolatedAsyncioTestCase):
    """Test cases for load/save semantics."""

    async def asyncSetUp(self):
        self.quizzes = QuizRepository()
        self.sessions = SessionRepository(self.quizzes)
        self.quiz = await self.quizzes.add("Title", "Topic", "hard", make_questions([0, 1]))

    async def test_loaded_documents_are_independent_copies(self):
        await self.sessions.save(Session(id="s1", session_code="123456", quiz_id=self.quiz.id))

        loaded = await self.sessions.find_by_code("123456")
        loaded.current_question_index = 1

        again = await self.sessions.find_by_id("s1")
        self.assertEqual(again.current_question_index, -1)

    async def test_find_with_quiz_populates_questions(self):
        await self.sessions.save(Session(id="s1", session_code="123456", quiz_id=self.quiz.id))

        session, quiz = await self.sessions.find_with_quiz("123456")

        self.assertEqual(session.id, "s1")
        self.assertEqual(quiz.question_count, 2)
        self.assertIsNone(await self.sessions.find_with_quiz("654321"))

    async def test_find_open_for_quiz_skips_completed(self):
        await self.sessions.save(
            Session(id="s1", session_code="111111", quiz_id=self.quiz.id, status=SessionStatus.COMPLETED)
        )
        self.assertIsNone(await self.sessions.find_open_for_quiz(self.quiz.id))

        await self.sessions.save(Session(id="s2", session_code="222222", quiz_id=self.quiz.id))
        self.assertEqual((await self.sessions.find_open_for_quiz(self.quiz.id)).id, "s2")

    async def test_session_codes_are_unique(self):
        await self.sessions.save(Session(id="s1", session_code="111111", quiz_id=self.quiz.id))

        with self.assertRaises(ValueError):
            await self.sessions.save(Session(id="s2", session_code="111111", quiz_id=self.quiz.id))
        self.assertTrue(await self.sessions.code_in_use("111111"))

    async def test_quiz_session_codes_are_unique(self):
        other = await self.quizzes.add("Other", "Topic", "easy", make_questions([2]))
        self.quiz.session_code = "333333"
        await self.quizzes.save(self.quiz)

        other.session_code = "333333"
        with self.assertRaises(ValueError):
            await self.quizzes.save(other)
        self.assertEqual((await self.quizzes.find_by_session_code("333333")).id, self.quiz.id)

    async def test_delete_for_quiz(self):
        await self.sessions.save(Session(id="s1", session_code="111111", quiz_id=self.quiz.id))
        await self.sessions.save(Session(id="s2", session_code="222222", quiz_id="other"))

        self.assertEqual(await self.sessions.delete_for_quiz(self.quiz.id), 1)
        self.assertIsNotNone(await self.sessions.find_by_id("s2"))


class TestSessionLockRegistry(unittest.IsolatedAsyncioTestCase):
    """Test cases for per-key serialization."""

    async def test_same_key_is_serialized(self):
        registry = SessionLockRegistry()
        order = []

        async def worker(name):
            async with registry.hold("123456"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        self.assertEqual(order, ["a-in", "a-out", "b-in", "b-out"])
        self.assertEqual(registry.active_keys(), set())

    async def test_different_keys_interleave(self):
        registry = SessionLockRegistry()
        order = []

        async def worker(key):
            async with registry.hold(key):
                order.append(f"{key}-in")
                await asyncio.sleep(0.01)
                order.append(f"{key}-out")

        await asyncio.gather(worker("x"), worker("y"))

        self.assertEqual(order[:2], ["x-in", "y-in"])

    async def test_lock_released_on_error(self):
        registry = SessionLockRegistry()

        with self.assertRaises(RuntimeError):
            async with registry.hold("k"):
                raise RuntimeError("boom")

        self.assertEqual(registry.active_keys(), set())
        async with registry.hold("k"):
            self.assertEqual(registry.active_keys(), {"k"})


if __name__ == "__main__":
    unittest.main()
