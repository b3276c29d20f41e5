"""Scoring of attempt selections against the answer key.

Scoring always uses the question definitions passed in by the caller, which
are read when the attempt is submitted. If an instructor edits a question's
options after a student answered it, the new answer key is what counts.

Grading rules:
    multiple-choice: the selected set must equal the set of correct options.
        There is no partial credit for a subset or superset.
    true-false: exactly one option selected, and it is the correct one.
    anything else: contributes points to the maximum but never scores.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from quiz_portal.core.models import Attempt, Question, QuestionType, ScoreResult


def grade_question(question: Question, selected_option_ids: Iterable[str]) -> bool:
    """Return True if the selection earns the question's points."""
    selected = set(selected_option_ids)
    correct = question.correct_option_ids()

    if question.question_type == QuestionType.MULTIPLE_CHOICE.value:
        return selected == correct
    if question.question_type == QuestionType.TRUE_FALSE.value:
        return len(selected) == 1 and selected <= correct
    return False


def score_answers(answers: Mapping[str, Iterable[str]], questions: Iterable[Question]) -> ScoreResult:
    score = 0
    max_score = 0
    for question in questions:
        max_score += question.points
        # Questions added after the attempt started have no entry yet.
        if grade_question(question, answers.get(question.id, ())):
            score += question.points
    return ScoreResult(score=score, max_score=max_score)


def calculate_score(attempt: Attempt, questions: Iterable[Question]) -> ScoreResult:
    """Score ``attempt`` against the current question set of its quiz. Pure."""
    return score_answers(attempt.answers, questions)
