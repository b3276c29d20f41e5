"""Service for sealing attempts and publishing their results."""

from __future__ import annotations

from datetime import datetime
import logging

from quiz_portal.core.errors import InvalidArgumentError
from quiz_portal.core.models import Attempt, Question, SubmissionReason, SubmissionResult
from quiz_portal.core.scoring import calculate_score
from quiz_portal.core.services.attempt_store import AttemptStore
from quiz_portal.core.services.quiz_repository import QuizReader
from quiz_portal.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


def parse_submission_reason(value: SubmissionReason | str | None) -> SubmissionReason:
    if value is None:
        return SubmissionReason.MANUAL
    try:
        return SubmissionReason(value)
    except ValueError as exc:
        raise InvalidArgumentError(f"Unknown submission reason: {value!r}.") from exc


def seal_attempt(
    attempt: Attempt,
    reason: SubmissionReason,
    questions: list[Question],
    ended_at: datetime,
) -> SubmissionResult:
    """Mark ``attempt`` completed and store its score. Mutates ``attempt`` in place."""
    result = calculate_score(attempt, questions)
    attempt.is_completed = True
    attempt.end_time = ended_at
    attempt.submitted_automatically = reason is not SubmissionReason.MANUAL
    attempt.submission_reason = reason
    attempt.score = result.score
    attempt.max_score = result.max_score
    return SubmissionResult(
        score=result.score,
        max_score=result.max_score,
        end_time=ended_at,
        submission_reason=reason,
    )


class SubmissionCoordinator:
    """Performs the one-shot transition of an attempt to completed."""

    def __init__(self, store: AttemptStore, quizzes: QuizReader, clock: Clock = utc_now) -> None:
        self._store = store
        self._quizzes = quizzes
        self._clock = clock

    def current_questions(self, attempt_id: str, student_id: str) -> list[Question]:
        """Return the question set an attempt is scored against right now."""
        attempt = self._store.get(attempt_id, student_id)
        return self._quizzes.get_questions(attempt.quiz_id)

    def submit(
        self,
        attempt_id: str,
        student_id: str,
        reason: SubmissionReason | str | None = SubmissionReason.MANUAL,
    ) -> SubmissionResult:
        submission_reason = parse_submission_reason(reason)
        questions = self.current_questions(attempt_id, student_id)
        ended_at = self._clock()

        result = self._store.update(
            attempt_id,
            student_id,
            lambda attempt: seal_attempt(attempt, submission_reason, questions, ended_at),
        )
        logger.info(
            "Attempt %s submitted (%s): %d/%d",
            attempt_id,
            submission_reason.value,
            result.score,
            result.max_score,
        )
        return result

    def publish_results(self, quiz_id: str) -> int:
        """Make scores of all completed attempts on the quiz visible to their students."""
        self._quizzes.get_quiz(quiz_id)
        updated = self._store.publish_results(quiz_id)
        logger.info("Published results for %d attempt(s) on quiz %s", updated, quiz_id)
        return updated
