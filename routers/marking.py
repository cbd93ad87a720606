from __future__ import annotations

from fastapi import APIRouter

from bank import get_question_set
from errors import QuestionNotFound, QuestionSetNotFound
from grader import grade_answer
from schemas.marking import MarkRequest, MarkResponse

router = APIRouter(tags=["marking"])


@router.post("/mark", response_model=MarkResponse)
def mark(req: MarkRequest):
    """
    Grade one answer against a bank question without touching any attempt.
    Useful for practice mode and for previewing how an answer would score.
    """
    qs = get_question_set(req.question_set_id)
    if qs is None:
        raise QuestionSetNotFound(req.question_set_id)
    q = qs.question(req.question_id)
    if q is None:
        raise QuestionNotFound(req.question_id)

    result = grade_answer(q, req, qs.options_for)
    return MarkResponse(question_id=q.id, max_marks=q.marks, **result.model_dump())
