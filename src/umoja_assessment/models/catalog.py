"""Catalog models — buckets and questions as exposed to API callers, plus the
typed shape of the YAML seed catalog.
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from umoja_db.models.enums import AgeBand, QuestionType


class BucketInfo(BaseModel):
    """Public view of an assessment bucket."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None = None
    purpose: str | None = None
    age_band: str
    created_at: datetime | None = None


class QuestionInfo(BaseModel):
    """Public view of a question, in presentation order."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    bucket_id: uuid.UUID
    question_text: str
    question_type: str
    response_options: Any = None
    section: str | None = None
    order_index: int
    is_required: bool = True


# ------------------------------------------------------------------
# Seed catalog (YAML)
# ------------------------------------------------------------------

class CatalogQuestion(BaseModel):
    """One question entry in ``catalog.yaml``; order follows list position."""

    text: str
    type: QuestionType
    section: str | None = None
    required: bool = True
    options: Any = None


class CatalogBucket(BaseModel):
    """One bucket entry in ``catalog.yaml``."""

    name: str
    age_band: AgeBand
    description: str | None = None
    purpose: str | None = None
    questions: list[CatalogQuestion] = Field(default_factory=list)


class Catalog(BaseModel):
    """Root of ``catalog.yaml``."""

    version: str = "v1"
    buckets: list[CatalogBucket] = Field(default_factory=list)
