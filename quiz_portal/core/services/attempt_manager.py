"""Service for creating and resuming quiz attempts."""

from __future__ import annotations

import logging
from uuid import uuid4

from quiz_portal.core.errors import AlreadyCompletedError, DuplicateAttemptError, NotFoundError
from quiz_portal.core.models import Attempt
from quiz_portal.core.services.attempt_store import AttemptStore
from quiz_portal.core.services.quiz_repository import QuizReader
from quiz_portal.utils.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class AttemptManager:
    """Starts attempts while keeping one active and at most one completed attempt per student and quiz."""

    def __init__(self, store: AttemptStore, quizzes: QuizReader, clock: Clock = utc_now) -> None:
        self._store = store
        self._quizzes = quizzes
        self._clock = clock

    def start_attempt(self, quiz_id: str, student_id: str) -> tuple[Attempt, bool]:
        """Return the student's active attempt, creating it if needed.

        The second element is True when a new attempt was created and False
        when an existing one was resumed.
        """
        quiz = self._quizzes.get_quiz(quiz_id)
        if not quiz.is_published:
            raise NotFoundError(f"Quiz {quiz_id} not found or not published.")

        existing = self._existing_attempt(quiz_id, student_id)
        if existing is not None:
            logger.info("Resuming attempt %s for student %s on quiz %s", existing.id, student_id, quiz_id)
            return existing, False

        questions = self._quizzes.get_questions(quiz_id)
        attempt = Attempt(
            id=uuid4().hex,
            quiz_id=quiz_id,
            student_id=student_id,
            start_time=self._clock(),
            answers={question.id: set() for question in questions},
        )
        try:
            created = self._store.create(attempt)
        except DuplicateAttemptError:
            # A concurrent request won the insert; resume whatever it created.
            logger.warning("Concurrent start for student %s on quiz %s; resuming existing attempt", student_id, quiz_id)
            existing = self._existing_attempt(quiz_id, student_id)
            if existing is None:
                raise
            return existing, False

        logger.info(
            "Created attempt %s for student %s on quiz %s with %d questions",
            created.id,
            student_id,
            quiz_id,
            len(created.answers),
        )
        return created, True

    def _existing_attempt(self, quiz_id: str, student_id: str) -> Attempt | None:
        if self._store.find(quiz_id, student_id, completed=True) is not None:
            raise AlreadyCompletedError("You have already completed this quiz and cannot attempt it again.")
        return self._store.find(quiz_id, student_id, completed=False)
