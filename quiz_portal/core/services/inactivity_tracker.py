"""Service for tracking time a student spends away from an attempt.

Away windows are only evaluated when the client reports the end of one.
Nothing runs on a timer, so a student who never reports ``end`` stays away
without the attempt being closed.
"""

from __future__ import annotations

import logging

from quiz_portal.constants.quiz_constants import AWAY_LIMIT_SECONDS
from quiz_portal.core.errors import InvalidArgumentError, InvalidStateError
from quiz_portal.core.models import Attempt, AwayAction, AwayResult, Question, SubmissionReason
from quiz_portal.core.services.attempt_store import AttemptStore
from quiz_portal.core.services.submission_coordinator import SubmissionCoordinator, seal_attempt
from quiz_portal.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


def parse_away_action(value: AwayAction | str) -> AwayAction:
    try:
        return AwayAction(value)
    except ValueError as exc:
        raise InvalidArgumentError(f"Invalid away action: {value!r}.") from exc


class InactivityTracker:
    """Opens and closes away windows, auto-submitting after one that ran too long."""

    def __init__(
        self,
        store: AttemptStore,
        submissions: SubmissionCoordinator,
        clock: Clock = utc_now,
        away_limit_seconds: float = AWAY_LIMIT_SECONDS,
    ) -> None:
        self._store = store
        self._submissions = submissions
        self._clock = clock
        self._away_limit_seconds = away_limit_seconds

    def register_away(self, attempt_id: str, student_id: str, action: AwayAction | str) -> AwayResult:
        away_action = parse_away_action(action)
        if away_action is AwayAction.START:
            return self._store.update(attempt_id, student_id, self._open_window)

        questions = self._submissions.current_questions(attempt_id, student_id)
        result = self._store.update(attempt_id, student_id, lambda attempt: self._close_window(attempt, questions))
        if result.auto_submitted:
            logger.info(
                "Attempt %s auto-submitted after %.1fs away: %d/%d",
                attempt_id,
                result.duration_seconds,
                result.score,
                result.max_score,
            )
        return result

    def _open_window(self, attempt: Attempt) -> AwayResult:
        if attempt.time_away.is_window_open():
            raise InvalidStateError("An away window is already open for this attempt.")
        attempt.time_away.last_away_start = self._clock()
        logger.debug("Away window opened on attempt %s", attempt.id)
        return AwayResult(action=AwayAction.START)

    def _close_window(self, attempt: Attempt, questions: list[Question]) -> AwayResult:
        started_at = attempt.time_away.last_away_start
        if started_at is None:
            raise InvalidStateError("No away window is open for this attempt.")

        now = self._clock()
        duration = (now - started_at).total_seconds()
        attempt.time_away.count += 1
        attempt.time_away.total_duration += duration
        attempt.time_away.last_away_start = None
        logger.debug("Away window closed on attempt %s after %.1fs", attempt.id, duration)

        if duration <= self._away_limit_seconds:
            return AwayResult(action=AwayAction.END, duration_seconds=duration)

        sealed = seal_attempt(attempt, SubmissionReason.AWAY_TOO_LONG, questions, now)
        return AwayResult(
            action=AwayAction.END,
            auto_submitted=True,
            duration_seconds=duration,
            score=sealed.score,
            max_score=sealed.max_score,
            submission_reason=sealed.submission_reason,
        )
