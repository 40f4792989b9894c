"""Quiz and session constants shared across the core and server layers."""

OPTION_COUNT: int = 4
POINTS_PER_CORRECT_ANSWER: int = 100
DEFAULT_TIME_PER_QUESTION_SECONDS: int = 30
LEADERBOARD_SIZE: int = 10

SESSION_CODE_MIN: int = 100000
SESSION_CODE_MAX: int = 999999
SESSION_CODE_MAX_ATTEMPTS: int = 20

DIFFICULTY_LEVELS: tuple[str, ...] = ("easy", "medium", "hard")
DEFAULT_DIFFICULTY: str = "medium"
DEFAULT_QUESTION_COUNT: int = 5

QUIZ_STARTED_MESSAGE: str = "Quiz is starting!"
QUIZ_COMPLETED_MESSAGE: str = "Quiz completed! Check final results."
