# aggregate.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sympy import Rational, floor

# Attempt statuses
NOT_STARTED = "not_started"
IN_PROGRESS = "in_progress"
SUBMITTED = "submitted"
GRADED = "graded"

OPEN_STATUSES = frozenset({NOT_STARTED, IN_PROGRESS})
CLOSED_STATUSES = frozenset({SUBMITTED, GRADED})

# (minimum percentage, letter), highest first
GRADE_BANDS = [(90, "A+"), (80, "A"), (70, "B+"), (60, "B"), (50, "C"), (40, "D")]


@dataclass(frozen=True)
class AttemptTotals:
    total_marks_obtained: float
    auto_graded_marks: float
    manual_graded_marks: float
    all_graded: bool

    @property
    def status(self) -> str:
        return GRADED if self.all_graded else SUBMITTED


def aggregate(results: Iterable[Any]) -> AttemptTotals:
    """
    Fold per-answer results into attempt totals. Works on anything exposing
    `marks_obtained`, `auto_graded` and `needs_manual_grading` (AnswerResult
    models or Answer rows).
    """
    total = auto = manual = 0.0
    all_graded = True
    for r in results:
        marks = r.marks_obtained or 0.0
        total += marks
        if r.auto_graded:
            auto += marks
        else:
            manual += marks
        if r.needs_manual_grading:
            all_graded = False
    return AttemptTotals(
        total_marks_obtained=round(total, 2),
        auto_graded_marks=round(auto, 2),
        manual_graded_marks=round(manual, 2),
        all_graded=all_graded,
    )


def apply_totals(attempt: Any, totals: AttemptTotals, now: datetime) -> bool:
    """
    Write totals and status onto an attempt. `graded_at` is stamped only on
    the transition into graded, so re-aggregating an unchanged graded attempt
    leaves it alone. Returns True when that transition happened.
    """
    attempt.total_marks_obtained = totals.total_marks_obtained
    attempt.auto_graded_marks = totals.auto_graded_marks
    attempt.manual_graded_marks = totals.manual_graded_marks

    became_graded = totals.all_graded and attempt.status != GRADED
    attempt.status = totals.status
    if became_graded:
        attempt.graded_at = now
    return became_graded


# --- Reporting helpers ------------------------------------------------------------


def _half_up(value: Rational) -> int:
    return int(floor(value + Rational(1, 2)))


def _ratio(part: Any, whole: Any) -> Rational:
    return Rational(str(part)) / Rational(str(whole))


def percentage(obtained: Optional[float], total: Optional[float]) -> int:
    """Whole-number percentage with .5 rounded up, so 5 of 8 is 63."""
    if not total:
        return 0
    return _half_up(_ratio(obtained or 0, total) * 100)


def grade_letter(pct: float) -> str:
    for floor_pct, letter in GRADE_BANDS:
        if pct >= floor_pct:
            return letter
    return "F"


def question_set_statistics(attempts: Iterable[Any], passing_marks: float) -> Dict[str, Any]:
    """Summary over graded attempts only; ungraded ones have no final score yet."""
    scores: List[float] = [
        a.total_marks_obtained or 0.0 for a in attempts if a.status == GRADED
    ]
    if not scores:
        return {
            "graded_attempts": 0,
            "average_score": 0,
            "highest_score": 0,
            "lowest_score": 0,
            "pass_rate": 0,
        }
    passed = sum(1 for s in scores if s >= passing_marks)
    return {
        "graded_attempts": len(scores),
        "average_score": round(sum(scores) / len(scores), 2),
        "highest_score": max(scores),
        "lowest_score": min(scores),
        "pass_rate": _half_up(_ratio(passed, len(scores)) * 100),
    }
