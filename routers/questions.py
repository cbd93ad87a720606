from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import lifecycle
from bank import get_question_set, get_question_sets
from db import get_db
from deps.auth import require_admin
from errors import QuestionSetNotFound
from schemas.attempts import QuestionSetStats
from schemas.questions import QuestionSetOut

router = APIRouter(prefix="/question-sets", tags=["questions"])


@router.get("", response_model=List[QuestionSetOut])
def list_question_sets(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
):
    sets = get_question_sets()
    if limit is not None:
        sets = sets[:limit]
    # summaries only; fetch one set for its questions
    return [QuestionSetOut.from_set(qs, with_questions=False) for qs in sets]


@router.get("/{question_set_id}", response_model=QuestionSetOut)
def get_question_set_detail(question_set_id: str):
    qs = get_question_set(question_set_id)
    if qs is None:
        raise QuestionSetNotFound(question_set_id)
    return QuestionSetOut.from_set(qs)


@router.get(
    "/{question_set_id}/stats",
    response_model=QuestionSetStats,
    dependencies=[Depends(require_admin)],
)
def question_set_stats(question_set_id: str, db: Session = Depends(get_db)):
    return lifecycle.question_set_stats(db, question_set_id)
