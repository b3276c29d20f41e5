"""Quiz-related constants shared across the core and server layers."""

AWAY_LIMIT_SECONDS: int = 180
DEFAULT_DURATION_MINUTES: int = 60
DEFAULT_QUESTION_POINTS: int = 1
STUDENT_ID_HEADER: str = "X-Student-Id"
