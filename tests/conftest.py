import pytest

from factories import FakeClock, multiple_choice, true_false
from quiz_portal.core.models import Quiz
from quiz_portal.core.quiz_manager import QuizManager
from quiz_portal.core.services.attempt_store import InMemoryAttemptStore
from quiz_portal.core.services.quiz_repository import QuizRepository


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository():
    repo = QuizRepository()
    repo.add_quiz(
        Quiz(id="quiz-1", title="Sets", is_published=True),
        [multiple_choice("q1", {"A", "B"}), multiple_choice("q2", {"C"}), true_false("q3")],
    )
    repo.add_quiz(Quiz(id="draft", title="Draft quiz"), [true_false("d1")])
    return repo


@pytest.fixture
def store():
    return InMemoryAttemptStore()


@pytest.fixture
def manager(repository, store, clock):
    return QuizManager(repository=repository, store=store, clock=clock)
