from datetime import UTC, datetime
from types import SimpleNamespace

from aggregate import (
    GRADED,
    SUBMITTED,
    aggregate,
    apply_totals,
    grade_letter,
    percentage,
    question_set_statistics,
)
from schemas.marking import AnswerResult


def _r(marks, manual=False, auto=None):
    return AnswerResult(
        is_correct=False,
        marks_obtained=marks,
        needs_manual_grading=manual,
        feedback="",
        auto_graded=(not manual) if auto is None else auto,
    )


def test_totals_partition_by_auto_graded():
    totals = aggregate([_r(5), _r(2.5), _r(3, manual=False, auto=False), _r(8, manual=True)])
    assert totals.total_marks_obtained == 18.5
    assert totals.auto_graded_marks == 7.5
    assert totals.manual_graded_marks == 11
    assert totals.all_graded is False
    assert totals.status == SUBMITTED


def test_all_resolved_means_graded():
    totals = aggregate([_r(1), _r(0.1), _r(0.2)])
    assert totals.all_graded is True
    assert totals.status == GRADED
    # no float drift
    assert totals.total_marks_obtained == 1.3


def test_empty_result_set_is_graded():
    totals = aggregate([])
    assert totals.total_marks_obtained == 0
    assert totals.status == GRADED


def test_apply_totals_stamps_graded_at_only_on_transition():
    attempt = SimpleNamespace(status=SUBMITTED, graded_at=None)
    first = datetime(2026, 1, 1, tzinfo=UTC)
    assert apply_totals(attempt, aggregate([_r(2)]), first) is True
    assert attempt.status == GRADED and attempt.graded_at == first

    later = datetime(2026, 2, 1, tzinfo=UTC)
    assert apply_totals(attempt, aggregate([_r(2)]), later) is False
    assert attempt.graded_at == first


def test_apply_totals_leaves_pending_attempt_ungraded():
    attempt = SimpleNamespace(status=SUBMITTED, graded_at=None)
    apply_totals(attempt, aggregate([_r(2), _r(0, manual=True)]), datetime.now(UTC))
    assert attempt.status == SUBMITTED
    assert attempt.graded_at is None
    assert attempt.total_marks_obtained == 2


def test_percentage_and_letters():
    assert percentage(9, 12) == 75
    assert percentage(3, 0) == 0
    assert [grade_letter(p) for p in (95, 80, 70, 65, 50, 40, 39)] == [
        "A+",
        "A",
        "B+",
        "B",
        "C",
        "D",
        "F",
    ]


def test_question_set_statistics_counts_graded_only():
    attempts = [
        SimpleNamespace(status=GRADED, total_marks_obtained=10),
        SimpleNamespace(status=GRADED, total_marks_obtained=4),
        SimpleNamespace(status=GRADED, total_marks_obtained=7),
        SimpleNamespace(status=SUBMITTED, total_marks_obtained=20),
    ]
    stats = question_set_statistics(attempts, passing_marks=7)
    assert stats == {
        "graded_attempts": 3,
        "average_score": 7.0,
        "highest_score": 10,
        "lowest_score": 4,
        "pass_rate": 67,
    }


def test_question_set_statistics_empty():
    assert question_set_statistics([], 5)["graded_attempts"] == 0


def test_percentage_rounds_half_up():
    assert percentage(5, 8) == 63
    assert percentage(1, 8) == 13
    assert percentage(0.5, 1) == 50
    assert percentage(1, 3) == 33


def test_pass_rate_rounds_half_up():
    attempts = [SimpleNamespace(status=GRADED, total_marks_obtained=10)] + [
        SimpleNamespace(status=GRADED, total_marks_obtained=1) for _ in range(7)
    ]
    assert question_set_statistics(attempts, passing_marks=5)["pass_rate"] == 13
