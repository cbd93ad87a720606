# routers/attempts.py

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import lifecycle
from db import get_db
from deps.auth import require_admin, require_client
from schemas.attempts import (
    AnswerOut,
    AttemptOut,
    AttemptReview,
    AttemptStart,
    ReconcileRequest,
    SubmitRequest,
)
from schemas.marking import AnswerIn

router = APIRouter(prefix="/attempts", tags=["attempts"])


@router.post("", response_model=AttemptOut, status_code=201, dependencies=[Depends(require_client)])
def start_attempt(req: AttemptStart, db: Session = Depends(get_db)):
    attempt = lifecycle.start_attempt(db, req.question_set_id, req.learner_id)
    return AttemptOut.model_validate(attempt)


@router.get("/recent-list", dependencies=[Depends(require_client)])
def attempts_recent(
    limit: int = 20,
    learner_id: Optional[str] = None,
    question_set_id: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
):
    limit = max(1, min(limit, 100))
    items = lifecycle.list_recent_attempts(
        db, limit=limit, learner_id=learner_id, question_set_id=question_set_id, status=status
    )
    # Reuse schema; exclude per-answer rows
    rows = [AttemptOut.model_validate(a).model_dump(exclude={"answers"}) for a in items]
    return {"ok": True, "items": rows, "count": len(rows)}


@router.get("/{attempt_id}", response_model=AttemptOut, dependencies=[Depends(require_client)])
def get_attempt(attempt_id: str, db: Session = Depends(get_db)):
    return AttemptOut.model_validate(lifecycle.get_attempt(db, attempt_id))


@router.put("/{attempt_id}/answers", response_model=AttemptOut, dependencies=[Depends(require_client)])
def save_answer(attempt_id: str, answer: AnswerIn, db: Session = Depends(get_db)):
    return AttemptOut.model_validate(lifecycle.save_answer(db, attempt_id, answer))


@router.post("/{attempt_id}/submit", response_model=AttemptOut, dependencies=[Depends(require_client)])
def submit_attempt(attempt_id: str, req: SubmitRequest | None = None, db: Session = Depends(get_db)):
    answers = req.answers if req is not None else []
    return AttemptOut.model_validate(lifecycle.submit_attempt(db, attempt_id, answers))


@router.get("/{attempt_id}/review", response_model=AttemptReview, dependencies=[Depends(require_client)])
def review_attempt(attempt_id: str, db: Session = Depends(get_db)):
    return lifecycle.review_attempt(db, attempt_id)


@router.post("/{attempt_id}/retake", response_model=AttemptOut, dependencies=[Depends(require_client)])
def retake_attempt(attempt_id: str, db: Session = Depends(get_db)):
    return AttemptOut.model_validate(lifecycle.retake_attempt(db, attempt_id))


# --- Reviewer side ----------------------------------------------------------------


@router.get(
    "/{attempt_id}/pending", response_model=List[AnswerOut], dependencies=[Depends(require_admin)]
)
def pending_answers(attempt_id: str, db: Session = Depends(get_db)):
    return [AnswerOut.model_validate(r) for r in lifecycle.pending_answers(db, attempt_id)]


@router.post(
    "/{attempt_id}/answers/{answer_id}/grade",
    response_model=AttemptOut,
    dependencies=[Depends(require_admin)],
)
def grade_answer(
    attempt_id: str,
    answer_id: str,
    req: ReconcileRequest,
    db: Session = Depends(get_db),
):
    attempt = lifecycle.reconcile_answer(
        db, attempt_id, answer_id, req.marks, req.feedback, req.graded_by
    )
    return AttemptOut.model_validate(attempt)
