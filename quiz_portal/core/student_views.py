"""Serializable views of quizzes and attempts.

Views built for students never contain ``is_correct`` unless the attempt is
completed and its results have been published.
"""

from __future__ import annotations

from quiz_portal.core.markdown_math_renderer import renderer
from quiz_portal.core.models import Attempt, Question, Quiz
from quiz_portal.core.scoring import grade_question
from quiz_portal.utils.time_utils import to_iso


def quiz_summary(quiz: Quiz) -> dict[str, object]:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "duration_minutes": quiz.duration_minutes,
        "question_count": len(quiz.question_ids),
    }


def question_for_student(question: Question) -> dict[str, object]:
    """Question with its options stripped of the answer key."""
    return {
        "id": question.id,
        "text": question.text,
        "html": renderer.render_fragment(question.text),
        "question_type": question.question_type,
        "points": question.points,
        "options": [{"id": option.id, "text": option.text} for option in question.options],
    }


def _selections(attempt: Attempt) -> dict[str, list[str]]:
    return {question_id: sorted(selected) for question_id, selected in attempt.answers.items()}


def _time_away(attempt: Attempt) -> dict[str, object]:
    return {
        "count": attempt.time_away.count,
        "total_duration": attempt.time_away.total_duration,
        "last_away_start": to_iso(attempt.time_away.last_away_start),
    }


def attempt_summary(attempt: Attempt) -> dict[str, object]:
    summary: dict[str, object] = {
        "id": attempt.id,
        "start_time": to_iso(attempt.start_time),
        "end_time": to_iso(attempt.end_time),
        "is_completed": attempt.is_completed,
        "is_score_published": attempt.is_score_published,
    }
    if attempt.is_completed and attempt.is_score_published:
        summary["score"] = attempt.score
        summary["max_score"] = attempt.max_score
    return summary


def quiz_for_student(quiz: Quiz, questions: list[Question], attempts: list[Attempt]) -> dict[str, object]:
    return {
        "quiz": {**quiz_summary(quiz), "questions": [question_for_student(q) for q in questions]},
        "attempts": [attempt_summary(attempt) for attempt in attempts],
    }


def attempt_for_student(attempt: Attempt, quiz: Quiz, questions: list[Question]) -> dict[str, object]:
    """Full attempt as the student sees it while working on the quiz."""
    return {
        **attempt_summary(attempt),
        "quiz": {**quiz_summary(quiz), "questions": [question_for_student(q) for q in questions]},
        "student_id": attempt.student_id,
        "answers": _selections(attempt),
        "time_away": _time_away(attempt),
        "submitted_automatically": attempt.submitted_automatically,
        "submission_reason": attempt.submission_reason.value if attempt.submission_reason else None,
    }


def attempt_results(attempt: Attempt, quiz: Quiz, questions: list[Question]) -> dict[str, object]:
    """Results of a completed attempt; the score and answer key appear once published.

    ``score`` and ``max_score`` are the values sealed at submission. The
    per-question ``is_correct`` marks are graded against ``questions`` as they
    are now, so an answer key edited after submission shows up in the marks
    but not in the score.
    """
    results: dict[str, object] = {
        "id": attempt.id,
        "quiz": quiz_summary(quiz),
        "start_time": to_iso(attempt.start_time),
        "end_time": to_iso(attempt.end_time),
        "submission_reason": attempt.submission_reason.value if attempt.submission_reason else None,
        "submitted_automatically": attempt.submitted_automatically,
        "is_score_published": attempt.is_score_published,
    }
    if not attempt.is_score_published:
        results["status"] = "pending"
        return results

    breakdown = []
    for question in questions:
        selected = attempt.answers.get(question.id, set())
        breakdown.append(
            {
                "id": question.id,
                "text": question.text,
                "question_type": question.question_type,
                "points": question.points,
                "options": [
                    {"id": option.id, "text": option.text, "is_correct": option.is_correct}
                    for option in question.options
                ],
                "selected": sorted(selected),
                "is_correct": grade_question(question, selected),
            }
        )
    results.update(status="published", score=attempt.score, max_score=attempt.max_score, questions=breakdown)
    return results


def attempt_for_instructor(attempt: Attempt) -> dict[str, object]:
    return {
        "id": attempt.id,
        "quiz_id": attempt.quiz_id,
        "student_id": attempt.student_id,
        "start_time": to_iso(attempt.start_time),
        "end_time": to_iso(attempt.end_time),
        "is_completed": attempt.is_completed,
        "score": attempt.score,
        "max_score": attempt.max_score,
        "time_away": _time_away(attempt),
        "submitted_automatically": attempt.submitted_automatically,
        "submission_reason": attempt.submission_reason.value if attempt.submission_reason else None,
        "is_score_published": attempt.is_score_published,
    }
