"""Exceptions raised by the attempt lifecycle services."""

from __future__ import annotations


class QuizPortalError(Exception):
    """Base class for domain errors surfaced to the API layer."""


class NotFoundError(QuizPortalError):
    """Quiz or attempt is absent, or not owned by the caller."""


class InvalidStateError(QuizPortalError):
    """The attempt is not in a state that allows the requested operation."""


class AlreadyCompletedError(InvalidStateError):
    """The student has already completed the quiz and cannot attempt it again."""


class InvalidArgumentError(QuizPortalError):
    """An argument value is not recognised."""


class DuplicateAttemptError(QuizPortalError):
    """Raised by a store when a create would violate an attempt uniqueness constraint."""

    def __init__(self, quiz_id: str, student_id: str, completed: bool) -> None:
        state = "completed" if completed else "active"
        super().__init__(f"An {state} attempt already exists for student {student_id} on quiz {quiz_id}.")
        self.quiz_id = quiz_id
        self.student_id = student_id
        self.completed = completed
