"""Service for ranking session participants."""

from __future__ import annotations

from live_quiz.constants.quiz_constants import LEADERBOARD_SIZE
from live_quiz.core.models import LeaderboardRow, Session


class Scoreboard:
    """Builds leaderboard snapshots from a session roster."""

    def __init__(self, limit: int = LEADERBOARD_SIZE) -> None:
        self._limit = limit

    def get_top_scorers(self, session: Session) -> list[LeaderboardRow]:
        """Return the top participants by score.

        ``sorted`` is stable and the roster is kept in join order, so equal
        scores keep the earlier joiner ahead.
        """
        ranked = sorted(session.participants, key=lambda p: -p.score)
        return [
            LeaderboardRow(name=p.name, score=p.score, answered_count=len(p.answers))
            for p in ranked[: self._limit]
        ]

    def to_payload(self, session: Session) -> dict[str, object]:
        return {
            "leaderboard": [row.to_payload() for row in self.get_top_scorers(session)],
            "totalParticipants": session.participant_count,
        }
