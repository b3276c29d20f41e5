"""Domain models for the quiz portal."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from quiz_portal.constants.quiz_constants import DEFAULT_DURATION_MINUTES, DEFAULT_QUESTION_POINTS


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"


class SubmissionReason(str, Enum):
    """Why an attempt was closed."""

    MANUAL = "manual"
    TIME_EXPIRED = "time_expired"
    AWAY_TOO_LONG = "away_too_long"


class AwayAction(str, Enum):
    START = "start"
    END = "end"


@dataclass(slots=True)
class Option:
    """Selectable choice of a question. ``is_correct`` is the hidden answer key."""

    id: str
    text: str
    is_correct: bool = False


@dataclass(slots=True)
class Question:
    """Gradable question; ``question_type`` may hold an unsupported value."""

    id: str
    quiz_id: str
    text: str
    question_type: str
    options: list[Option] = field(default_factory=list)
    points: int = DEFAULT_QUESTION_POINTS

    def correct_option_ids(self) -> set[str]:
        return {option.id for option in self.options if option.is_correct}


@dataclass(slots=True)
class Quiz:
    id: str
    title: str
    description: str = ""
    duration_minutes: int = DEFAULT_DURATION_MINUTES
    is_published: bool = False
    question_ids: list[str] = field(default_factory=list)


@dataclass(slots=True)
class TimeAway:
    """Aggregated away windows; ``last_away_start`` is set while a window is open."""

    count: int = 0
    total_duration: float = 0.0
    last_away_start: datetime | None = None

    def is_window_open(self) -> bool:
        return self.last_away_start is not None


@dataclass(slots=True)
class Attempt:
    """One student's pass at a quiz."""

    id: str
    quiz_id: str
    student_id: str
    start_time: datetime
    answers: dict[str, set[str]] = field(default_factory=dict)
    end_time: datetime | None = None
    is_completed: bool = False
    score: int = 0
    max_score: int = 0
    time_away: TimeAway = field(default_factory=TimeAway)
    submitted_automatically: bool = False
    submission_reason: SubmissionReason | None = None
    is_score_published: bool = False
    version: int = 0


@dataclass(slots=True)
class ScoreResult:
    score: int
    max_score: int


@dataclass(slots=True)
class SubmissionResult:
    """Outcome of sealing an attempt."""

    score: int
    max_score: int
    end_time: datetime
    submission_reason: SubmissionReason


@dataclass(slots=True)
class AwayResult:
    """Outcome of an away registration; score fields are set only on auto-submit."""

    action: AwayAction
    auto_submitted: bool = False
    duration_seconds: float | None = None
    score: int | None = None
    max_score: int | None = None
    submission_reason: SubmissionReason | None = None
