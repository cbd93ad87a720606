# schemas/marking.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------- Answer ----------


class AnswerIn(BaseModel):
    """
    A learner's raw response to one question. Every field may be present;
    the grader only reads the one that matters for the question type.
    """

    question_id: str
    selected_options: List[str] = []
    text_answer: Optional[str] = None
    attachment_ref: Optional[str] = None

    @field_validator("selected_options", mode="before")
    @classmethod
    def none_is_empty(cls, v):
        return [] if v is None else v

    @property
    def is_empty(self) -> bool:
        return (
            not self.selected_options
            and not (self.text_answer or "").strip()
            and not self.attachment_ref
        )


# ---------- Result ----------


class AnswerResult(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_correct: bool
    marks_obtained: float = Field(ge=0)
    needs_manual_grading: bool
    feedback: str = ""
    auto_graded: bool


# ---------- Mark single ----------


class MarkRequest(AnswerIn):
    question_set_id: str


class MarkResponse(AnswerResult):
    ok: bool = True
    question_id: str
    max_marks: float
