"""Cached LLM analysis — at most one row per user.

Written once by the analysis trigger and served verbatim afterwards.  The
JSONB columns keep the shapes the model returned so the front end can chart
them directly.
"""

import uuid
from typing import Any

from sqlalchemy import ForeignKey, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from umoja_db.models.base import Base, Timestamps, UUIDPrimaryKey


class UserAssessmentResult(UUIDPrimaryKey, Timestamps, Base):
    """The derived personality / learning profile for a user."""

    __tablename__ = "user_assessment_results"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    personality_summary: Mapped[str] = mapped_column(Text, nullable=False)
    # {"primary": ..., "secondary": ..., "description": ...}
    learning_style: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    # [{"trait": ..., "score": 0-100, "fullMark": 100}, ...]
    trait_scores: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False)
    strengths: Mapped[list[str]] = mapped_column(JSONB, nullable=False)
    areas_for_growth: Mapped[list[str]] = mapped_column(JSONB, nullable=False)
    pod_recommendation: Mapped[str] = mapped_column(Text, nullable=False)
