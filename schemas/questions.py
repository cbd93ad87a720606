# schemas/questions.py
from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator


class QuestionType(str, Enum):
    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"
    TRUE_FALSE = "true_false"
    SHORT_TEXT = "short_text"
    LONG_TEXT = "long_text"
    ATTACHMENT_BASED = "attachment_based"


# Older banks used these tags; they map onto the closed set above.
LEGACY_TYPES = {
    "mcq_single": QuestionType.SINGLE_CHOICE.value,
    "multiple_choice": QuestionType.SINGLE_CHOICE.value,
    "mcq_multiple": QuestionType.MULTI_CHOICE.value,
    "short_answer": QuestionType.SHORT_TEXT.value,
    "equation": QuestionType.ATTACHMENT_BASED.value,
    "image_based": QuestionType.ATTACHMENT_BASED.value,
}

MANUAL_TYPES = frozenset({QuestionType.LONG_TEXT, QuestionType.ATTACHMENT_BASED})


class SetStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"


def normalize_question(raw: Any) -> Any:
    """
    Accept `question_type` as an alias of `type` and rewrite legacy tags.
    Non-dict input is passed through for pydantic to reject.
    """
    if not isinstance(raw, dict):
        return raw
    data = dict(raw)
    tag = data.get("type", data.pop("question_type", None))
    if isinstance(tag, str):
        tag = tag.strip().lower()
        tag = LEGACY_TYPES.get(tag, tag)
    data["type"] = tag
    return data


# ---------- Options ----------


class OptionModel(BaseModel):
    id: str
    text: str = ""
    is_correct: bool = False


class OptionOut(BaseModel):
    id: str
    text: str = ""


# ---------- Question variants ----------


class _QuestionBase(BaseModel):
    id: str
    marks: float = Field(gt=0)
    prompt: str = ""
    topic: Optional[str] = None
    # informational only, never read by the grader
    sample_answer: Optional[str] = None


def _require_text(v: str) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError("correct_answer is required for this question type")
    return v.strip()


def _check_option_count(options: List[OptionModel]) -> List[OptionModel]:
    if options and len(options) < 2:
        raise ValueError("choice questions must have at least 2 options")
    return options


class SingleChoiceQuestion(_QuestionBase):
    type: Literal["single_choice"]
    correct_answer: str
    options: List[OptionModel] = []

    @field_validator("correct_answer")
    @classmethod
    def check_correct_answer(cls, v: str) -> str:
        return _require_text(v)

    @field_validator("options")
    @classmethod
    def check_options(cls, v: List[OptionModel]) -> List[OptionModel]:
        return _check_option_count(v)


class MultiChoiceQuestion(_QuestionBase):
    type: Literal["multi_choice"]
    # may be empty when the correctness map is looked up externally
    options: List[OptionModel] = []

    @field_validator("options")
    @classmethod
    def check_options(cls, v: List[OptionModel]) -> List[OptionModel]:
        return _check_option_count(v)

    @property
    def correct_option_ids(self) -> frozenset[str]:
        return frozenset(o.id for o in self.options if o.is_correct)


class TrueFalseQuestion(_QuestionBase):
    type: Literal["true_false"]
    correct_answer: str

    @field_validator("correct_answer", mode="before")
    @classmethod
    def boolean_token(cls, v: Any) -> str:
        if isinstance(v, bool):
            v = "true" if v else "false"
        v = _require_text(v)
        if v.lower() not in ("true", "false"):
            raise ValueError("true_false correct_answer must be 'true' or 'false'")
        return v.lower()


class ShortTextQuestion(_QuestionBase):
    type: Literal["short_text"]
    correct_answer: str
    keywords: List[str] = []

    @field_validator("correct_answer")
    @classmethod
    def check_correct_answer(cls, v: str) -> str:
        return _require_text(v)

    @field_validator("keywords")
    @classmethod
    def clean_keywords(cls, v: List[str]) -> List[str]:
        return [k.strip() for k in v if k and k.strip()]


class LongTextQuestion(_QuestionBase):
    type: Literal["long_text"]


class AttachmentQuestion(_QuestionBase):
    type: Literal["attachment_based"]


Question = Annotated[
    Union[
        SingleChoiceQuestion,
        MultiChoiceQuestion,
        TrueFalseQuestion,
        ShortTextQuestion,
        LongTextQuestion,
        AttachmentQuestion,
    ],
    Field(discriminator="type"),
]


# ---------- Question sets ----------


class QuestionSet(BaseModel):
    id: str
    title: str = ""
    passing_marks: float = Field(default=0, ge=0)
    questions: List[Question] = Field(min_length=1)
    # bank files without a status are live
    status: SetStatus = SetStatus.PUBLISHED
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None

    @field_validator("questions", mode="before")
    @classmethod
    def normalize_types(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [normalize_question(q) for q in v]
        return v

    @field_validator("scheduled_start", "scheduled_end")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @model_validator(mode="after")
    def check_set(self) -> "QuestionSet":
        ids = [q.id for q in self.questions]
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        if dupes:
            raise ValueError(f"duplicate question ids: {dupes}")
        if self.passing_marks > self.max_marks:
            raise ValueError("passing_marks cannot exceed total marks")
        if self.scheduled_start and self.scheduled_end and self.scheduled_end <= self.scheduled_start:
            raise ValueError("scheduled_end must be after scheduled_start")
        return self

    @property
    def max_marks(self) -> float:
        return round(sum(q.marks for q in self.questions), 2)

    def is_active(self, now: datetime) -> bool:
        """Open for new attempts: published and inside its schedule window, if any."""
        if self.status != SetStatus.PUBLISHED:
            return False
        if self.scheduled_start and now < self.scheduled_start:
            return False
        if self.scheduled_end and now > self.scheduled_end:
            return False
        return True

    def question(self, question_id: str) -> Optional[Question]:
        return next((q for q in self.questions if q.id == question_id), None)

    def options_for(self, question_id: str) -> Optional[List[OptionModel]]:
        q = self.question(question_id)
        return getattr(q, "options", None) if q is not None else None


# ---------- Public views (never expose answers) ----------


class QuestionOut(BaseModel):
    id: str
    type: QuestionType
    prompt: str
    topic: Optional[str] = None
    marks: float
    options: List[OptionOut] = []

    @classmethod
    def from_question(cls, q: Question) -> "QuestionOut":
        return cls(
            id=q.id,
            type=QuestionType(q.type),
            prompt=q.prompt,
            topic=q.topic,
            marks=q.marks,
            options=[OptionOut(id=o.id, text=o.text) for o in getattr(q, "options", [])],
        )


class QuestionSetOut(BaseModel):
    id: str
    title: str
    passing_marks: float
    max_marks: float
    question_count: int
    status: SetStatus
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    questions: List[QuestionOut] = []

    @classmethod
    def from_set(cls, qs: QuestionSet, with_questions: bool = True) -> "QuestionSetOut":
        return cls(
            id=qs.id,
            title=qs.title,
            passing_marks=qs.passing_marks,
            max_marks=qs.max_marks,
            question_count=len(qs.questions),
            status=qs.status,
            scheduled_start=qs.scheduled_start,
            scheduled_end=qs.scheduled_end,
            questions=[QuestionOut.from_question(q) for q in qs.questions] if with_questions else [],
        )


_QUESTION_ADAPTER: TypeAdapter = TypeAdapter(Question)


def parse_question(raw: Any) -> Question:
    """Validate one raw question record into its typed variant."""
    return _QUESTION_ADAPTER.validate_python(normalize_question(raw))
