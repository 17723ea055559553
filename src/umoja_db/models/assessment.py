"""Assessment ORM models — catalog (buckets, questions) and attempts
(sessions, responses).

Buckets and questions are static reference data loaded by ``umoja-seed``.
Sessions and responses are written by the recorder; responses are
append-only.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from umoja_db.models.base import Base, Timestamps, UUIDPrimaryKey, utcnow
from umoja_db.models.enums import SessionStatus


class AssessmentBucket(UUIDPrimaryKey, Base):
    """A named question category scoped to an age band."""

    __tablename__ = "assessment_buckets"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    purpose: Mapped[str | None] = mapped_column(Text, nullable=True)
    age_band: Mapped[str] = mapped_column(String(8), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("name", "age_band", name="uq_bucket_name_band"),
        CheckConstraint(
            "age_band IN ('K-2', '3-5', 'MS', 'HS+')", name="ck_bucket_age_band"
        ),
    )


class AssessmentQuestion(UUIDPrimaryKey, Base):
    """One question within a bucket, shown in ``order_index`` order."""

    __tablename__ = "assessment_questions"

    bucket_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("assessment_buckets.id", ondelete="CASCADE"),
        nullable=False,
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(20), nullable=False)
    # [{value, label, imageDescription?}] for choice / image questions,
    # {min, max, labels} for likert scales
    response_options: Mapped[Any | None] = mapped_column(
        JSONB(none_as_null=True), nullable=True
    )
    section: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow
    )

    bucket: Mapped[AssessmentBucket] = relationship()

    __table_args__ = (
        Index("ix_question_bucket_order", "bucket_id", "order_index"),
        CheckConstraint(
            "question_type IN ('multiple_choice', 'likert_scale', "
            "'open_ended', 'image_selection')",
            name="ck_question_type",
        ),
    )


class AssessmentSession(UUIDPrimaryKey, Timestamps, Base):
    """One attempt at a bucket by a user.

    A user may hold several sessions for the same bucket (retakes); whether
    more than one may be ``in_progress`` at once is a service-level policy.
    """

    __tablename__ = "assessment_sessions"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    bucket_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("assessment_buckets.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SessionStatus.IN_PROGRESS.value,
    )
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    answered_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    started_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    bucket: Mapped[AssessmentBucket] = relationship()

    __table_args__ = (
        Index("ix_session_user_bucket", "user_id", "bucket_id", "status"),
        CheckConstraint(
            "status IN ('in_progress', 'completed', 'abandoned')",
            name="ck_session_status",
        ),
        CheckConstraint("answered_questions >= 0", name="ck_answered_non_negative"),
        # Completed sessions must record when they finished
        CheckConstraint(
            "status != 'completed' OR completed_at IS NOT NULL",
            name="ck_completed_has_timestamp",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<AssessmentSession(id={self.id!s}, user={self.user_id!s}, "
            f"bucket={self.bucket_id!s}, status={self.status!r}, "
            f"answered={self.answered_questions}/{self.total_questions})>"
        )


class AssessmentResponse(UUIDPrimaryKey, Base):
    """One answered question within a session.

    Exactly one of the three value columns is populated, chosen by the
    question's declared type.  Rows are never updated in place.
    """

    __tablename__ = "assessment_responses"

    session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("assessment_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("assessment_questions.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    response_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    response_numeric: Mapped[float | None] = mapped_column(Float, nullable=True)
    response_json: Mapped[Any | None] = mapped_column(
        JSONB(none_as_null=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow
    )

    question: Mapped[AssessmentQuestion] = relationship()

    __table_args__ = (
        UniqueConstraint("session_id", "question_id", name="uq_session_question"),
        CheckConstraint(
            "num_nonnulls(response_value, response_numeric, response_json) = 1",
            name="ck_single_response_value",
        ),
    )
