"""Event names carried over the realtime channel."""

# Client -> server
JOIN_SESSION: str = "join-session"
START_QUIZ: str = "start-quiz"
NEXT_QUESTION: str = "next-question"
ANSWER_SUBMITTED: str = "answer-submitted"
GET_CURRENT_QUESTION: str = "get-current-question"
REQUEST_LEADERBOARD: str = "request-leaderboard"

# Server -> client
SESSION_STATE: str = "session-state"
PARTICIPANT_JOINED: str = "participant-joined"
PARTICIPANT_COUNT: str = "participant-count"
PARTICIPANT_UPDATE: str = "participant-update"
QUIZ_STARTED: str = "quiz-started"
NEW_QUESTION: str = "new-question"
QUIZ_COMPLETED: str = "quiz-completed"
PARTICIPANT_ANSWERED: str = "participant-answered"
LEADERBOARD_UPDATE: str = "leaderboard-update"
ERROR: str = "error"
