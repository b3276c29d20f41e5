"""Builders shared by the test modules."""

from datetime import datetime, timedelta, timezone

from quiz_portal.core.models import Option, Question, QuestionType


class FakeClock:
    def __init__(self, start=None):
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


def multiple_choice(question_id, correct, points=2, letters="ABCD"):
    return Question(
        id=question_id,
        quiz_id="",
        text=f"Question {question_id}",
        question_type=QuestionType.MULTIPLE_CHOICE.value,
        options=[Option(id=letter, text=f"Option {letter}", is_correct=letter in correct) for letter in letters],
        points=points,
    )


def true_false(question_id, answer_is_true=True, points=1):
    return Question(
        id=question_id,
        quiz_id="",
        text=f"Statement {question_id}",
        question_type=QuestionType.TRUE_FALSE.value,
        options=[
            Option(id=f"{question_id}-true", text="True", is_correct=answer_is_true),
            Option(id=f"{question_id}-false", text="False", is_correct=not answer_is_true),
        ],
        points=points,
    )
