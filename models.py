from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from aggregate import NOT_STARTED
from db import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator):
    """Timezone-aware DateTime that stays aware on SQLite, which drops tzinfo."""

    impl = DateTime
    cache_ok = True

    def __init__(self):
        super().__init__(timezone=True)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value


class Attempt(Base):
    __tablename__ = "attempts"
    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    question_set_id: Mapped[str] = mapped_column(String(64), index=True)
    learner_id: Mapped[str] = mapped_column(String(64), index=True)
    status: Mapped[str] = mapped_column(String(16), index=True, default=NOT_STARTED)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=_utcnow, onupdate=_utcnow
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(), nullable=True
    )
    graded_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    graded_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    max_marks: Mapped[float] = mapped_column(Float, default=0)
    total_marks_obtained: Mapped[float] = mapped_column(Float, default=0)
    auto_graded_marks: Mapped[float] = mapped_column(Float, default=0)
    manual_graded_marks: Mapped[float] = mapped_column(Float, default=0)

    # optimistic concurrency: every UPDATE/DELETE checks and bumps this
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    answers: Mapped[List["Answer"]] = relationship(
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="Answer.position",
    )

    __mapper_args__ = {"version_id_col": version_id}


class Answer(Base):
    __tablename__ = "answers"
    __table_args__ = (sa.UniqueConstraint("attempt_id", "question_id"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    attempt_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("attempts.id", ondelete="CASCADE"), index=True
    )
    question_id: Mapped[str] = mapped_column(String(64))
    position: Mapped[int] = mapped_column(Integer, default=0)

    # learner content
    selected_options: Mapped[list] = mapped_column(JSON, default=list)
    text_answer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    attachment_ref: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    answered_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    # result; null until the attempt is submitted
    is_correct: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    marks_obtained: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    needs_manual_grading: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    auto_graded: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    graded_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    manually_graded_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(), nullable=True
    )

    attempt: Mapped[Attempt] = relationship(back_populates="answers")
