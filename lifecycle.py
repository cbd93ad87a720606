# lifecycle.py
"""
Attempt lifecycle and manual reconciliation.

These functions are the only place an attempt changes state:
not_started -> in_progress -> submitted -> graded, and a retake of a
submitted or graded attempt replaces it with a new not_started one.

Each operation runs as one transaction on the given Session. The attempt row
is read with SELECT ... FOR UPDATE where the database supports it, and the
`version_id` column turns every write into a compare-and-set, so two racing
writers can never both commit against the same snapshot. Any rejected
operation rolls back and leaves the attempt as it was.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Dict, Iterator, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

import bank
from aggregate import (
    CLOSED_STATUSES,
    GRADED,
    IN_PROGRESS,
    NOT_STARTED,
    SUBMITTED,
    aggregate,
    apply_totals,
    grade_letter,
    percentage,
    question_set_statistics,
)
from errors import (
    AlreadySubmitted,
    AnswerNotFound,
    AttemptNotFound,
    ConcurrentModification,
    InvalidState,
    OutOfRange,
    QuestionNotFound,
    QuestionSetNotFound,
    StateError,
    ValidationError,
)
from grader import grade_answer
from models import Answer, Attempt
from schemas.attempts import AnswerOut, AttemptOut, AttemptReview, ReviewItem
from schemas.marking import AnswerIn, AnswerResult
from schemas.questions import QuestionOut, QuestionSet

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Transaction helpers ----------------------------------------------------------


def _conflict(db: Session, attempt_id: str, submitting: bool) -> StateError | AttemptNotFound:
    current = db.get(Attempt, attempt_id, populate_existing=True)
    if current is None:
        return AttemptNotFound(attempt_id)
    if submitting and current.status in CLOSED_STATUSES:
        return AlreadySubmitted(attempt_id)
    return ConcurrentModification(attempt_id)


@contextmanager
def _transaction(db: Session, attempt_id: str, submitting: bool = False) -> Iterator[None]:
    try:
        yield
        db.commit()
    except StaleDataError:
        db.rollback()
        err = _conflict(db, attempt_id, submitting)
        logger.warning("write conflict on attempt %s: %s", attempt_id, err)
        raise err from None
    except Exception:
        db.rollback()
        raise


def _lock_attempt(db: Session, attempt_id: str) -> Attempt:
    stmt = (
        select(Attempt)
        .where(Attempt.id == attempt_id)
        .options(selectinload(Attempt.answers))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    attempt = db.execute(stmt).scalar_one_or_none()
    if attempt is None:
        raise AttemptNotFound(attempt_id)
    return attempt


def _question_set_for(attempt: Attempt) -> QuestionSet:
    qs = bank.get_question_set(attempt.question_set_id)
    if qs is None:
        raise QuestionSetNotFound(attempt.question_set_id)
    return qs


# --- Row helpers ------------------------------------------------------------------


def _apply_content(row: Answer, answer: AnswerIn, now: datetime) -> None:
    row.selected_options = list(answer.selected_options)
    row.text_answer = answer.text_answer
    row.attachment_ref = answer.attachment_ref
    row.answered_at = now


def _answer_in(row: Answer) -> AnswerIn:
    return AnswerIn(
        question_id=row.question_id,
        selected_options=row.selected_options or [],
        text_answer=row.text_answer,
        attachment_ref=row.attachment_ref,
    )


def _apply_result(row: Answer, result: AnswerResult) -> None:
    row.is_correct = result.is_correct
    row.marks_obtained = result.marks_obtained
    row.needs_manual_grading = result.needs_manual_grading
    row.feedback = result.feedback
    row.auto_graded = result.auto_graded
    row.graded_by = None
    row.manually_graded_at = None


def _duration_ms(start: datetime, end: datetime) -> int:
    return max(0, int(round((end - start).total_seconds() * 1000)))


# --- Lifecycle --------------------------------------------------------------------


def start_attempt(db: Session, question_set_id: str, learner_id: str) -> Attempt:
    if not learner_id or not learner_id.strip():
        raise ValidationError("learner_id is required")
    qs = bank.get_question_set(question_set_id)
    if qs is None:
        raise QuestionSetNotFound(question_set_id)
    if not qs.is_active(_utcnow()):
        logger.warning("rejected start on inactive question set %s (%s)", qs.id, qs.status.value)
        raise InvalidState(f"question set {qs.id} is not currently active")

    attempt = Attempt(
        question_set_id=qs.id,
        learner_id=learner_id.strip(),
        status=NOT_STARTED,
        max_marks=qs.max_marks,
    )
    db.add(attempt)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("attempt %s started: set=%s learner=%s", attempt.id, qs.id, attempt.learner_id)
    return attempt


def save_answer(db: Session, attempt_id: str, answer: AnswerIn) -> Attempt:
    """Record (or overwrite) one answer; the first write opens the attempt."""
    with _transaction(db, attempt_id):
        attempt = _lock_attempt(db, attempt_id)
        if attempt.status in CLOSED_STATUSES:
            raise AlreadySubmitted(attempt_id)
        qs = _question_set_for(attempt)
        positions = {q.id: i for i, q in enumerate(qs.questions)}
        if answer.question_id not in positions:
            raise QuestionNotFound(answer.question_id)

        now = _utcnow()
        row = next((r for r in attempt.answers if r.question_id == answer.question_id), None)
        if row is None:
            row = Answer(question_id=answer.question_id, position=positions[answer.question_id])
            attempt.answers.append(row)
        _apply_content(row, answer, now)

        if attempt.status == NOT_STARTED:
            attempt.status = IN_PROGRESS
            attempt.started_at = now
            logger.info("attempt %s in progress", attempt_id)
        attempt.updated_at = now
    return attempt


def submit_attempt(
    db: Session, attempt_id: str, answers: Optional[Sequence[AnswerIn]] = None
) -> Attempt:
    """
    One-shot submission. Supplied answers override saved ones, unanswered
    questions get empty placeholders, then every answer is graded and the
    attempt aggregated, all in one commit. Lands on `graded` directly when
    nothing needs manual review.
    """
    supplied = list(answers or [])

    with _transaction(db, attempt_id, submitting=True):
        attempt = _lock_attempt(db, attempt_id)
        ids = [a.question_id for a in supplied]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValidationError(f"duplicate answers for questions: {dupes}")
        if attempt.status in CLOSED_STATUSES:
            logger.warning("rejected re-submission of attempt %s (%s)", attempt_id, attempt.status)
            raise AlreadySubmitted(attempt_id)
        qs = _question_set_for(attempt)
        for a in supplied:
            if qs.question(a.question_id) is None:
                raise QuestionNotFound(a.question_id)

        now = _utcnow()
        rows: Dict[str, Answer] = {}
        for r in list(attempt.answers):
            if qs.question(r.question_id) is None:
                # question was dropped from the set after the answer was saved
                logger.warning("discarding answer to retired question %s", r.question_id)
                attempt.answers.remove(r)
            else:
                rows[r.question_id] = r

        supplied_by_id = {a.question_id: a for a in supplied}
        for position, q in enumerate(qs.questions):
            row = rows.get(q.id)
            if row is None:
                row = Answer(question_id=q.id, selected_options=[])
                attempt.answers.append(row)
            row.position = position
            if q.id in supplied_by_id:
                _apply_content(row, supplied_by_id[q.id], now)
            _apply_result(row, grade_answer(q, _answer_in(row), qs.options_for))
        attempt.answers.sort(key=lambda r: r.position)

        attempt.status = SUBMITTED
        attempt.submitted_at = now
        attempt.duration_ms = _duration_ms(attempt.started_at or attempt.created_at, now)
        attempt.max_marks = qs.max_marks
        attempt.updated_at = now
        apply_totals(attempt, aggregate(attempt.answers), now)

    logger.info(
        "attempt %s submitted: status=%s total=%s/%s",
        attempt_id,
        attempt.status,
        attempt.total_marks_obtained,
        attempt.max_marks,
    )
    return attempt


def reconcile_answer(
    db: Session,
    attempt_id: str,
    answer_id: str,
    marks: float,
    feedback: str,
    graded_by: Optional[str] = None,
) -> Attempt:
    """
    Apply a teacher's grade to one answer and re-aggregate the attempt from
    all of its current answers. Always resolves the manual-review flag and
    freezes the answer as manually graded. Safe to repeat.
    """
    with _transaction(db, attempt_id):
        attempt = _lock_attempt(db, attempt_id)
        row = next((r for r in attempt.answers if r.id == answer_id), None)
        if row is None:
            raise AnswerNotFound(answer_id)
        if attempt.status not in CLOSED_STATUSES:
            raise InvalidState(f"attempt {attempt_id} is {attempt.status}; submit it before grading")
        qs = _question_set_for(attempt)
        q = qs.question(row.question_id)
        if q is None:
            raise QuestionNotFound(row.question_id)
        if marks is None or not (0 <= marks <= q.marks):
            raise OutOfRange(marks, q.marks)

        now = _utcnow()
        row.marks_obtained = round(float(marks), 2)
        row.feedback = feedback
        row.needs_manual_grading = False
        row.auto_graded = False
        row.graded_by = graded_by
        row.manually_graded_at = now

        attempt.updated_at = now
        became_graded = apply_totals(attempt, aggregate(attempt.answers), now)
        if became_graded:
            attempt.graded_by = graded_by

    logger.info("answer %s on attempt %s graded manually: %s", answer_id, attempt_id, marks)
    if became_graded:
        logger.info("attempt %s fully graded by %s", attempt_id, graded_by or "unknown")
    return attempt


def retake_attempt(db: Session, attempt_id: str) -> Attempt:
    """
    Destroy a submitted/graded attempt with all of its answers and open a
    fresh one for the same learner and question set. Irreversible.
    """
    with _transaction(db, attempt_id):
        attempt = _lock_attempt(db, attempt_id)
        if attempt.status not in CLOSED_STATUSES:
            raise InvalidState(f"attempt {attempt_id} is {attempt.status}; nothing to retake")
        qs = bank.get_question_set(attempt.question_set_id)
        if qs is not None and not qs.is_active(_utcnow()):
            raise InvalidState(f"question set {qs.id} is not currently active")
        fresh = Attempt(
            question_set_id=attempt.question_set_id,
            learner_id=attempt.learner_id,
            status=NOT_STARTED,
            max_marks=qs.max_marks if qs is not None else attempt.max_marks,
        )
        db.delete(attempt)
        db.add(fresh)

    logger.info("attempt %s retaken as %s", attempt_id, fresh.id)
    return fresh


# --- Read side --------------------------------------------------------------------


def get_attempt(db: Session, attempt_id: str) -> Attempt:
    attempt = db.get(Attempt, attempt_id)
    if attempt is None:
        raise AttemptNotFound(attempt_id)
    return attempt


def list_recent_attempts(
    db: Session,
    limit: int = 20,
    learner_id: Optional[str] = None,
    question_set_id: Optional[str] = None,
    status: Optional[str] = None,
) -> List[Attempt]:
    stmt = select(Attempt)
    if learner_id:
        stmt = stmt.where(Attempt.learner_id == learner_id)
    if question_set_id:
        stmt = stmt.where(Attempt.question_set_id == question_set_id)
    if status:
        stmt = stmt.where(Attempt.status == status)
    stmt = stmt.order_by(Attempt.created_at.desc()).limit(limit)
    return list(db.execute(stmt).scalars())


def pending_answers(db: Session, attempt_id: str) -> List[Answer]:
    """Answers still waiting on a teacher, in question order."""
    attempt = get_attempt(db, attempt_id)
    return [r for r in attempt.answers if r.needs_manual_grading]


def review_attempt(db: Session, attempt_id: str) -> AttemptReview:
    """Read-only view of a submitted or graded attempt. Performs no transition."""
    attempt = get_attempt(db, attempt_id)
    if attempt.status not in CLOSED_STATUSES:
        raise InvalidState(f"attempt {attempt_id} is {attempt.status}; nothing to review yet")
    qs = _question_set_for(attempt)

    items: List[ReviewItem] = []
    for row in attempt.answers:
        q = qs.question(row.question_id)
        if q is None:
            continue
        items.append(ReviewItem(question=QuestionOut.from_question(q), answer=AnswerOut.model_validate(row)))

    pct = percentage(attempt.total_marks_obtained, attempt.max_marks)
    return AttemptReview(
        attempt=AttemptOut.model_validate(attempt),
        percentage=pct,
        grade_letter=grade_letter(pct),
        passed=attempt.status == GRADED and (attempt.total_marks_obtained or 0) >= qs.passing_marks,
        pending_count=sum(1 for r in attempt.answers if r.needs_manual_grading),
        items=items,
    )


def question_set_stats(db: Session, question_set_id: str) -> dict:
    qs = bank.get_question_set(question_set_id)
    if qs is None:
        raise QuestionSetNotFound(question_set_id)
    attempts = list(
        db.execute(select(Attempt).where(Attempt.question_set_id == question_set_id)).scalars()
    )
    stats = question_set_statistics(attempts, qs.passing_marks)
    stats.update(
        question_set_id=qs.id,
        total_attempts=len(attempts),
        max_marks=qs.max_marks,
        passing_marks=qs.passing_marks,
    )
    return stats
