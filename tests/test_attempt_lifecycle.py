import pytest

from factories import multiple_choice
from quiz_portal.core.errors import AlreadyCompletedError, InvalidArgumentError, InvalidStateError, NotFoundError
from quiz_portal.core.models import Option, Quiz, SubmissionReason
from quiz_portal.core.quiz_manager import QuizManager


def test_new_attempt_has_one_empty_answer_per_question(manager, clock):
    attempt, created = manager.start_attempt("quiz-1", "alice")

    assert created
    assert attempt.answers == {"q1": set(), "q2": set(), "q3": set()}
    assert attempt.start_time == clock.now
    assert not attempt.is_completed
    assert attempt.submission_reason is None


def test_start_attempt_resumes_active_attempt(manager):
    first, _ = manager.start_attempt("quiz-1", "alice")
    manager.save_answer(first.id, "alice", "q1", ["A"])

    resumed, created = manager.start_attempt("quiz-1", "alice")

    assert not created
    assert resumed.id == first.id
    assert resumed.answers["q1"] == {"A"}


def test_start_attempt_rejects_unpublished_or_missing_quiz(manager):
    with pytest.raises(NotFoundError):
        manager.start_attempt("draft", "alice")
    with pytest.raises(NotFoundError):
        manager.start_attempt("nope", "alice")


def test_no_reattempt_after_completion(manager):
    attempt, _ = manager.start_attempt("quiz-1", "alice")
    manager.submit(attempt.id, "alice")

    with pytest.raises(AlreadyCompletedError):
        manager.start_attempt("quiz-1", "alice")


def test_attempts_are_per_student(manager):
    alice, _ = manager.start_attempt("quiz-1", "alice")
    bob, created = manager.start_attempt("quiz-1", "bob")

    assert created
    assert alice.id != bob.id


def test_save_answer_replaces_previous_selection(manager):
    attempt, _ = manager.start_attempt("quiz-1", "alice")
    manager.save_answer(attempt.id, "alice", "q1", ["A", "B"])
    manager.save_answer(attempt.id, "alice", "q1", ["C"])

    assert manager.get_attempt(attempt.id, "alice").answers["q1"] == {"C"}


def test_save_answer_accepts_unknown_ids(manager):
    attempt, _ = manager.start_attempt("quiz-1", "alice")
    manager.save_answer(attempt.id, "alice", "not-a-question", ["zzz"])

    assert manager.get_attempt(attempt.id, "alice").answers["not-a-question"] == {"zzz"}


def test_save_answer_hides_other_students_attempts(manager):
    attempt, _ = manager.start_attempt("quiz-1", "alice")

    with pytest.raises(NotFoundError):
        manager.save_answer(attempt.id, "mallory", "q1", ["A"])
    with pytest.raises(NotFoundError):
        manager.save_answer("missing", "alice", "q1", ["A"])


def test_save_answer_after_submit_is_rejected(manager):
    attempt, _ = manager.start_attempt("quiz-1", "alice")
    manager.submit(attempt.id, "alice")

    with pytest.raises(InvalidStateError):
        manager.save_answer(attempt.id, "alice", "q1", ["A"])
    assert manager.get_attempt(attempt.id, "alice").answers["q1"] == set()


def test_submit_scores_and_seals(manager, clock):
    attempt, _ = manager.start_attempt("quiz-1", "alice")
    manager.save_answer(attempt.id, "alice", "q1", ["A", "B"])
    manager.save_answer(attempt.id, "alice", "q2", ["D"])
    manager.save_answer(attempt.id, "alice", "q3", ["q3-true"])
    clock.advance(300)

    result = manager.submit(attempt.id, "alice")

    assert (result.score, result.max_score) == (3, 5)
    assert result.end_time == clock.now
    assert result.submission_reason is SubmissionReason.MANUAL
    stored = manager.get_attempt(attempt.id, "alice")
    assert stored.is_completed
    assert stored.end_time == clock.now
    assert not stored.submitted_automatically
    assert (stored.score, stored.max_score) == (3, 5)


def test_second_submit_fails_and_keeps_score(manager):
    attempt, _ = manager.start_attempt("quiz-1", "alice")
    manager.save_answer(attempt.id, "alice", "q2", ["C"])
    manager.submit(attempt.id, "alice")

    with pytest.raises(InvalidStateError):
        manager.submit(attempt.id, "alice", "time_expired")

    stored = manager.get_attempt(attempt.id, "alice")
    assert (stored.score, stored.max_score) == (2, 5)
    assert stored.submission_reason is SubmissionReason.MANUAL


def test_time_expired_submission_is_automatic(manager):
    attempt, _ = manager.start_attempt("quiz-1", "alice")

    result = manager.submit(attempt.id, "alice", "time_expired")

    assert result.submission_reason is SubmissionReason.TIME_EXPIRED
    assert manager.get_attempt(attempt.id, "alice").submitted_automatically


def test_unknown_submission_reason_leaves_attempt_active(manager):
    attempt, _ = manager.start_attempt("quiz-1", "alice")

    with pytest.raises(InvalidArgumentError):
        manager.submit(attempt.id, "alice", "bored")
    assert not manager.get_attempt(attempt.id, "alice").is_completed


def test_submit_uses_question_set_at_submission_time(manager, repository):
    attempt, _ = manager.start_attempt("quiz-1", "alice")
    manager.save_answer(attempt.id, "alice", "q2", ["C"])
    repository.add_question("quiz-1", multiple_choice("q4", {"A"}, points=4))
    edited = multiple_choice("q2", {"D"})
    repository.update_question("quiz-1", edited)

    result = manager.submit(attempt.id, "alice")

    assert (result.score, result.max_score) == (0, 9)


def test_publish_results_flags_completed_attempts_only(manager):
    done, _ = manager.start_attempt("quiz-1", "alice")
    manager.submit(done.id, "alice")
    active, _ = manager.start_attempt("quiz-1", "bob")

    assert manager.publish_results("quiz-1") == 1
    assert manager.get_attempt(done.id, "alice").is_score_published
    assert not manager.get_attempt(active.id, "bob").is_score_published
    assert manager.publish_results("quiz-1") == 0


def test_publish_results_for_missing_quiz(manager):
    with pytest.raises(NotFoundError):
        manager.publish_results("nope")


def test_student_view_never_exposes_answer_key(manager):
    attempt, _ = manager.start_attempt("quiz-1", "alice")

    view = manager.attempt_view(attempt)

    for question in view["quiz"]["questions"]:
        assert question["html"].startswith("<p>")
        for option in question["options"]:
            assert set(option) == {"id", "text"}
    assert "score" not in view


def test_results_are_pending_until_published(manager):
    attempt, _ = manager.start_attempt("quiz-1", "alice")
    manager.save_answer(attempt.id, "alice", "q1", ["A", "B"])

    with pytest.raises(NotFoundError):
        manager.get_attempt_results(attempt.id, "alice")

    manager.submit(attempt.id, "alice")
    pending = manager.get_attempt_results(attempt.id, "alice")
    assert pending["status"] == "pending"
    assert "score" not in pending

    manager.publish_results("quiz-1")
    published = manager.get_attempt_results(attempt.id, "alice")
    assert published["status"] == "published"
    assert (published["score"], published["max_score"]) == (2, 5)
    assert [q["is_correct"] for q in published["questions"]] == [True, False, False]


def test_quiz_for_student_lists_own_attempts(manager):
    attempt, _ = manager.start_attempt("quiz-1", "alice")
    manager.start_attempt("quiz-1", "bob")

    detail = manager.get_quiz_for_student("quiz-1", "alice")

    assert [a["id"] for a in detail["attempts"]] == [attempt.id]
    assert detail["quiz"]["question_count"] == 3
    with pytest.raises(NotFoundError):
        manager.get_quiz_for_student("draft", "alice")


def test_list_quiz_attempts_returns_completed_only(manager):
    done, _ = manager.start_attempt("quiz-1", "alice")
    manager.submit(done.id, "alice")
    manager.start_attempt("quiz-1", "bob")

    listing = manager.list_quiz_attempts("quiz-1")

    assert [row["student_id"] for row in listing] == ["alice"]


def test_questions_need_a_correct_option(repository):
    broken = multiple_choice("bad", set())

    with pytest.raises(ValueError):
        repository.add_question("quiz-1", broken)


def test_true_false_needs_two_options(repository):
    broken = multiple_choice("bad", {"A"}, letters="ABC")
    broken.question_type = "true-false"
    broken.options.append(Option(id="Z", text="Z"))

    with pytest.raises(ValueError):
        repository.add_question("quiz-1", broken)


def test_quizzes_sharing_question_ids_keep_their_own_answer_keys(repository, store, clock):
    repository.add_quiz(Quiz(id="a", title="A", is_published=True), [multiple_choice("q1", {"A"})])
    repository.add_quiz(Quiz(id="b", title="B", is_published=True), [multiple_choice("q1", {"D"})])
    manager = QuizManager(repository=repository, store=store, clock=clock)
    attempt, _ = manager.start_attempt("a", "alice")
    manager.save_answer(attempt.id, "alice", "q1", ["A"])

    result = manager.submit(attempt.id, "alice")

    assert (result.score, result.max_score) == (2, 2)
    assert repository.get_questions("b")[0].correct_option_ids() == {"D"}


def test_adding_a_question_id_already_on_the_quiz_is_rejected(repository):
    with pytest.raises(ValueError):
        repository.add_question("quiz-1", multiple_choice("q1", {"D"}))

    assert [question.id for question in repository.get_questions("quiz-1")] == ["q1", "q2", "q3"]


def test_quiz_with_repeated_question_ids_is_rejected(repository):
    with pytest.raises(ValueError):
        repository.add_quiz(
            Quiz(id="dup", title="Dup"),
            [multiple_choice("x1", {"A"}), multiple_choice("x1", {"B"})],
        )

    with pytest.raises(NotFoundError):
        repository.get_quiz("dup")


def test_updating_a_question_on_another_quiz_is_not_found(repository):
    with pytest.raises(NotFoundError):
        repository.update_question("draft", multiple_choice("q1", {"D"}))


def test_results_keep_sealed_score_while_marks_follow_current_key(manager, repository):
    attempt, _ = manager.start_attempt("quiz-1", "alice")
    manager.save_answer(attempt.id, "alice", "q2", ["C"])
    manager.submit(attempt.id, "alice")
    manager.publish_results("quiz-1")
    repository.update_question("quiz-1", multiple_choice("q2", {"D"}))

    results = manager.get_attempt_results(attempt.id, "alice")

    assert (results["score"], results["max_score"]) == (2, 5)
    marks = {question["id"]: question["is_correct"] for question in results["questions"]}
    assert marks == {"q1": False, "q2": False, "q3": False}
