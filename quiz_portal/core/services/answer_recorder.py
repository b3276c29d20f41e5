"""Service for saving a student's selection on a question."""

from __future__ import annotations

from collections.abc import Iterable
import logging

from quiz_portal.core.models import Attempt
from quiz_portal.core.services.attempt_store import AttemptStore

logger = logging.getLogger(__name__)


class AnswerRecorder:
    def __init__(self, store: AttemptStore) -> None:
        self._store = store

    def save_answer(
        self,
        attempt_id: str,
        student_id: str,
        question_id: str,
        option_ids: Iterable[str] | None,
    ) -> None:
        """Replace the selection for ``question_id`` on an active attempt.

        Question and option ids are stored as given. Ids that do not exist
        on the quiz are kept and simply never match when the attempt is
        scored.
        """
        selection = {str(option_id) for option_id in (option_ids or ())}

        def apply(attempt: Attempt) -> None:
            attempt.answers[question_id] = selection

        self._store.update(attempt_id, student_id, apply)
        logger.debug("Saved %d option(s) for question %s on attempt %s", len(selection), question_id, attempt_id)
