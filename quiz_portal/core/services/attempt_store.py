"""Storage port for attempts and its in-memory implementation.

Every write to an active attempt goes through ``AttemptStore.update``, which
behaves like a conditional update filtered on ``(id, student_id,
is_completed=False)``: the mutation is applied to a private copy of the
current record and the copy replaces the record only if the mutation
returns normally. Two writers can therefore never both observe an active
attempt and both seal it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
import copy
from threading import Lock
from typing import TypeVar

from quiz_portal.core.errors import DuplicateAttemptError, InvalidStateError, NotFoundError
from quiz_portal.core.models import Attempt

T = TypeVar("T")


class AttemptStore(ABC):
    """Persistence port for attempt documents."""

    @abstractmethod
    def create(self, attempt: Attempt) -> Attempt:
        """Insert a new active attempt.

        Raises ``DuplicateAttemptError`` if the student already has an active
        or a completed attempt on the quiz.
        """

    @abstractmethod
    def get(self, attempt_id: str, student_id: str) -> Attempt:
        """Return the attempt owned by ``student_id`` or raise ``NotFoundError``."""

    @abstractmethod
    def find(self, quiz_id: str, student_id: str, *, completed: bool) -> Attempt | None:
        pass

    @abstractmethod
    def update(self, attempt_id: str, student_id: str, mutation: Callable[[Attempt], T]) -> T:
        """Atomically apply ``mutation`` to an active attempt and return its result.

        Raises ``NotFoundError`` if the attempt is missing or owned by another
        student and ``InvalidStateError`` if it is already completed. If the
        mutation raises, the stored attempt is left unchanged.
        """

    @abstractmethod
    def publish_results(self, quiz_id: str) -> int:
        """Flag every completed attempt of the quiz as published; return how many changed."""

    @abstractmethod
    def list_for_quiz(self, quiz_id: str, *, completed_only: bool = True) -> list[Attempt]:
        pass

    @abstractmethod
    def list_for_student(self, quiz_id: str, student_id: str) -> list[Attempt]:
        pass


class InMemoryAttemptStore(AttemptStore):
    """Thread-safe attempt store keeping documents in a dict.

    Uniqueness of the active and the completed attempt per (student, quiz)
    is kept in two indexes checked under the same lock as the insert.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._attempts: dict[str, Attempt] = {}
        self._active_index: dict[tuple[str, str], str] = {}
        self._completed_index: dict[tuple[str, str], str] = {}

    def create(self, attempt: Attempt) -> Attempt:
        if attempt.is_completed:
            raise ValueError("Only active attempts can be created.")
        key = (attempt.quiz_id, attempt.student_id)
        with self._lock:
            if key in self._completed_index:
                raise DuplicateAttemptError(attempt.quiz_id, attempt.student_id, completed=True)
            if key in self._active_index:
                raise DuplicateAttemptError(attempt.quiz_id, attempt.student_id, completed=False)
            if attempt.id in self._attempts:
                raise ValueError(f"Attempt id {attempt.id} is already in use.")
            stored = copy.deepcopy(attempt)
            stored.version = 1
            self._attempts[stored.id] = stored
            self._active_index[key] = stored.id
            return copy.deepcopy(stored)

    def get(self, attempt_id: str, student_id: str) -> Attempt:
        with self._lock:
            return copy.deepcopy(self._owned(attempt_id, student_id))

    def find(self, quiz_id: str, student_id: str, *, completed: bool) -> Attempt | None:
        index = self._completed_index if completed else self._active_index
        with self._lock:
            attempt_id = index.get((quiz_id, student_id))
            if attempt_id is None:
                return None
            return copy.deepcopy(self._attempts[attempt_id])

    def update(self, attempt_id: str, student_id: str, mutation: Callable[[Attempt], T]) -> T:
        with self._lock:
            current = self._owned(attempt_id, student_id)
            if current.is_completed:
                raise InvalidStateError(f"Attempt {attempt_id} is already completed.")

            working = copy.deepcopy(current)
            result = mutation(working)
            working.id = current.id
            working.quiz_id = current.quiz_id
            working.student_id = current.student_id
            working.version = current.version + 1

            self._attempts[attempt_id] = working
            if working.is_completed:
                key = (working.quiz_id, working.student_id)
                self._active_index.pop(key, None)
                self._completed_index[key] = working.id
            return result

    def publish_results(self, quiz_id: str) -> int:
        updated = 0
        with self._lock:
            for attempt in self._attempts.values():
                if attempt.quiz_id == quiz_id and attempt.is_completed and not attempt.is_score_published:
                    attempt.is_score_published = True
                    attempt.version += 1
                    updated += 1
        return updated

    def list_for_quiz(self, quiz_id: str, *, completed_only: bool = True) -> list[Attempt]:
        with self._lock:
            matches = [
                attempt
                for attempt in self._attempts.values()
                if attempt.quiz_id == quiz_id and (attempt.is_completed or not completed_only)
            ]
            return [copy.deepcopy(attempt) for attempt in sorted(matches, key=lambda a: a.start_time)]

    def list_for_student(self, quiz_id: str, student_id: str) -> list[Attempt]:
        with self._lock:
            matches = [
                attempt
                for attempt in self._attempts.values()
                if attempt.quiz_id == quiz_id and attempt.student_id == student_id
            ]
            return [copy.deepcopy(attempt) for attempt in sorted(matches, key=lambda a: a.start_time)]

    def _owned(self, attempt_id: str, student_id: str) -> Attempt:
        attempt = self._attempts.get(attempt_id)
        # Another student's attempt is reported exactly like a missing one.
        if attempt is None or attempt.student_id != student_id:
            raise NotFoundError(f"Quiz attempt {attempt_id} not found.")
        return attempt
