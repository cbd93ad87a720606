from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.marking import AnswerIn
from schemas.questions import QuestionOut


class AttemptStart(BaseModel):
    question_set_id: str
    learner_id: str


class AnswerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    question_id: str
    position: int
    selected_options: List[str] | None = None
    text_answer: str | None = None
    attachment_ref: str | None = None
    answered_at: datetime | None = None
    # result; null until submitted
    is_correct: bool | None = None
    marks_obtained: float | None = None
    needs_manual_grading: bool | None = None
    feedback: str | None = None
    auto_graded: bool | None = None
    graded_by: str | None = None
    manually_graded_at: datetime | None = None


class AttemptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    question_set_id: str
    learner_id: str
    status: str
    created_at: datetime | None
    started_at: datetime | None = None
    submitted_at: datetime | None = None
    graded_at: datetime | None = None
    graded_by: str | None = None
    duration_ms: int | None = None
    max_marks: float
    total_marks_obtained: float
    auto_graded_marks: float
    manual_graded_marks: float
    version_id: int
    # usually excluded in list views
    answers: List[AnswerOut] = []


class SubmitRequest(BaseModel):
    answers: List[AnswerIn] = []


class ReconcileRequest(BaseModel):
    # range is checked against the question's marks by the lifecycle, not here,
    # so the rejection names the offending value
    marks: float
    feedback: str = ""
    graded_by: Optional[str] = None


class ReviewItem(BaseModel):
    question: QuestionOut
    answer: AnswerOut


class AttemptReview(BaseModel):
    attempt: AttemptOut
    percentage: int
    grade_letter: str
    passed: bool
    pending_count: int
    items: List[ReviewItem] = []


class QuestionSetStats(BaseModel):
    question_set_id: str
    total_attempts: int
    graded_attempts: int
    max_marks: float
    passing_marks: float
    average_score: float
    highest_score: float
    lowest_score: float
    pass_rate: int = Field(ge=0, le=100)
