"""Service for storing quizzes and their questions, including the answer key."""

from __future__ import annotations

from abc import ABC, abstractmethod
import copy
from threading import Lock

from quiz_portal.core.errors import NotFoundError
from quiz_portal.core.models import Question, QuestionType, Quiz


class QuizReader(ABC):
    """Read access to quizzes used by the attempt services."""

    @abstractmethod
    def get_quiz(self, quiz_id: str) -> Quiz:
        """Return the quiz or raise ``NotFoundError``."""

    @abstractmethod
    def get_questions(self, quiz_id: str) -> list[Question]:
        """Return the quiz's current questions in quiz order, answer key included."""

    @abstractmethod
    def list_quizzes(self) -> list[Quiz]:
        pass


class QuizRepository(QuizReader):
    """In-memory quiz store. Quizzes are loaded by an importer or by tests."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._quizzes: dict[str, Quiz] = {}
        self._questions: dict[tuple[str, str], Question] = {}

    def add_quiz(self, quiz: Quiz, questions: list[Question]) -> Quiz:
        """Store a quiz and its questions, replacing any quiz with the same id."""
        if not quiz.title.strip():
            raise ValueError("Quiz title must not be empty.")
        if quiz.duration_minutes <= 0:
            raise ValueError("Quiz duration must be a positive number of minutes.")

        prepared = [self._prepare_question(quiz.id, question) for question in questions]
        question_ids = [question.id for question in prepared]
        if len(set(question_ids)) != len(question_ids):
            raise ValueError("Question ids must be unique within a quiz.")
        stored = copy.deepcopy(quiz)
        stored.question_ids = question_ids
        with self._lock:
            previous = self._quizzes.get(quiz.id)
            if previous is not None:
                for question_id in previous.question_ids:
                    self._questions.pop((quiz.id, question_id), None)
            self._quizzes[quiz.id] = stored
            for question in prepared:
                self._questions[(quiz.id, question.id)] = question
        return copy.deepcopy(stored)

    def add_question(self, quiz_id: str, question: Question) -> None:
        """Append a question to an existing quiz."""
        prepared = self._prepare_question(quiz_id, question)
        with self._lock:
            quiz = self._require_quiz(quiz_id)
            if prepared.id in quiz.question_ids:
                raise ValueError(f"Question {prepared.id} is already on quiz {quiz_id}.")
            quiz.question_ids.append(prepared.id)
            self._questions[(quiz_id, prepared.id)] = prepared

    def update_question(self, quiz_id: str, question: Question) -> None:
        """Replace the definition of a question, keeping its position in the quiz."""
        prepared = self._prepare_question(quiz_id, question)
        with self._lock:
            if (quiz_id, question.id) not in self._questions:
                raise NotFoundError(f"Question {question.id} not found on quiz {quiz_id}.")
            self._questions[(quiz_id, question.id)] = prepared

    def set_published(self, quiz_id: str, published: bool = True) -> None:
        with self._lock:
            self._require_quiz(quiz_id).is_published = published

    def get_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            return copy.deepcopy(self._require_quiz(quiz_id))

    def get_questions(self, quiz_id: str) -> list[Question]:
        with self._lock:
            quiz = self._require_quiz(quiz_id)
            return [copy.deepcopy(self._questions[(quiz_id, question_id)]) for question_id in quiz.question_ids]

    def list_quizzes(self) -> list[Quiz]:
        with self._lock:
            return [copy.deepcopy(quiz) for quiz in self._quizzes.values()]

    def _require_quiz(self, quiz_id: str) -> Quiz:
        quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise NotFoundError(f"Quiz {quiz_id} not found.")
        return quiz

    def _prepare_question(self, quiz_id: str, question: Question) -> Question:
        """Validate and normalize a question before storage."""
        cleaned_text = question.text.strip()
        if not cleaned_text:
            raise ValueError("Question text must not be empty.")
        if not isinstance(question.points, int) or question.points < 1:
            raise ValueError("Question points must be a positive integer.")

        options = [copy.copy(option) for option in question.options]
        if len(options) < 2:
            raise ValueError("Each question must have at least two options.")
        if len({option.id for option in options}) != len(options):
            raise ValueError("Option ids must be unique within a question.")
        if not any(option.is_correct for option in options):
            raise ValueError("Each question must mark at least one option as correct.")
        if question.question_type == QuestionType.TRUE_FALSE.value:
            if len(options) != 2:
                raise ValueError("True/false questions must have exactly two options.")
            if sum(option.is_correct for option in options) != 1:
                raise ValueError("True/false questions must have exactly one correct option.")

        for option in options:
            option.text = option.text.strip()

        question_type = question.question_type
        if isinstance(question_type, QuestionType):
            question_type = question_type.value

        return Question(
            id=question.id,
            quiz_id=quiz_id,
            text=cleaned_text,
            question_type=question_type,
            options=options,
            points=question.points,
        )
