"""Business logic entry point shared by the API server and the CLI loader."""

from __future__ import annotations

from collections.abc import Iterable

from quiz_portal.core import student_views
from quiz_portal.core.errors import NotFoundError
from quiz_portal.core.models import Attempt, AwayAction, AwayResult, Question, Quiz, SubmissionReason, SubmissionResult
from quiz_portal.core.services.answer_recorder import AnswerRecorder
from quiz_portal.core.services.attempt_manager import AttemptManager
from quiz_portal.core.services.attempt_store import AttemptStore, InMemoryAttemptStore
from quiz_portal.core.services.inactivity_tracker import InactivityTracker
from quiz_portal.core.services.quiz_repository import QuizRepository
from quiz_portal.core.services.submission_coordinator import SubmissionCoordinator
from quiz_portal.utils.time_utils import Clock, utc_now


class QuizManager:
    """Facade for the attempt services: AttemptManager, AnswerRecorder, InactivityTracker, SubmissionCoordinator."""

    def __init__(
        self,
        repository: QuizRepository | None = None,
        store: AttemptStore | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository if repository is not None else QuizRepository()
        self._store = store if store is not None else InMemoryAttemptStore()

        # Services
        self._attempts = AttemptManager(self._store, self._repository, clock)
        self._answers = AnswerRecorder(self._store)
        self._submissions = SubmissionCoordinator(self._store, self._repository, clock)
        self._inactivity = InactivityTracker(self._store, self._submissions, clock)

    @property
    def repository(self) -> QuizRepository:
        return self._repository

    # --- Quiz Repository Delegation ---

    def load_quiz(self, quiz: Quiz, questions: list[Question]) -> Quiz:
        return self._repository.add_quiz(quiz, questions)

    def list_published_quizzes(self) -> list[dict[str, object]]:
        quizzes = [quiz for quiz in self._repository.list_quizzes() if quiz.is_published]
        return [student_views.quiz_summary(quiz) for quiz in quizzes]

    def get_quiz_for_student(self, quiz_id: str, student_id: str) -> dict[str, object]:
        quiz = self._published_quiz(quiz_id)
        questions = self._repository.get_questions(quiz_id)
        attempts = self._store.list_for_student(quiz_id, student_id)
        return student_views.quiz_for_student(quiz, questions, attempts)

    # --- Attempt Lifecycle Delegation ---

    def start_attempt(self, quiz_id: str, student_id: str) -> tuple[Attempt, bool]:
        return self._attempts.start_attempt(quiz_id, student_id)

    def save_answer(
        self,
        attempt_id: str,
        student_id: str,
        question_id: str,
        option_ids: Iterable[str] | None,
    ) -> None:
        self._answers.save_answer(attempt_id, student_id, question_id, option_ids)

    def register_away(self, attempt_id: str, student_id: str, action: AwayAction | str) -> AwayResult:
        return self._inactivity.register_away(attempt_id, student_id, action)

    def submit(
        self,
        attempt_id: str,
        student_id: str,
        reason: SubmissionReason | str | None = SubmissionReason.MANUAL,
    ) -> SubmissionResult:
        return self._submissions.submit(attempt_id, student_id, reason)

    def publish_results(self, quiz_id: str) -> int:
        return self._submissions.publish_results(quiz_id)

    # --- Attempt Views ---

    def get_attempt(self, attempt_id: str, student_id: str) -> Attempt:
        return self._store.get(attempt_id, student_id)

    def get_attempt_view(self, attempt_id: str, student_id: str) -> dict[str, object]:
        return self.attempt_view(self._store.get(attempt_id, student_id))

    def attempt_view(self, attempt: Attempt) -> dict[str, object]:
        quiz = self._repository.get_quiz(attempt.quiz_id)
        questions = self._repository.get_questions(attempt.quiz_id)
        return student_views.attempt_for_student(attempt, quiz, questions)

    def get_attempt_results(self, attempt_id: str, student_id: str) -> dict[str, object]:
        attempt = self._store.get(attempt_id, student_id)
        if not attempt.is_completed:
            raise NotFoundError(f"Completed quiz attempt {attempt_id} not found.")
        quiz = self._repository.get_quiz(attempt.quiz_id)
        questions = self._repository.get_questions(attempt.quiz_id)
        return student_views.attempt_results(attempt, quiz, questions)

    def list_quiz_attempts(self, quiz_id: str) -> list[dict[str, object]]:
        self._repository.get_quiz(quiz_id)
        return [student_views.attempt_for_instructor(a) for a in self._store.list_for_quiz(quiz_id)]

    def _published_quiz(self, quiz_id: str) -> Quiz:
        quiz = self._repository.get_quiz(quiz_id)
        if not quiz.is_published:
            raise NotFoundError(f"Quiz {quiz_id} not found or not published.")
        return quiz
