"""Session and response models — the contract between the recorder and API
callers.

These models are intentionally decoupled from the ORM models in
``umoja_db`` so that API consumers never see database internals.

Response values are a tagged variant selected by ``kind``:
  - ``text``: multiple-choice and open-ended answers
  - ``numeric``: likert-scale answers
  - ``structured``: image selections and other composite answers
"""

import uuid
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class TextValue(BaseModel):
    kind: Literal["text"] = "text"
    text: str


class NumericValue(BaseModel):
    kind: Literal["numeric"] = "numeric"
    number: float


class StructuredValue(BaseModel):
    kind: Literal["structured"] = "structured"
    # An object or array; JSON null and bare scalars are rejected.
    data: dict[str, Any] | list[Any]


ResponseValue = Annotated[
    Union[TextValue, NumericValue, StructuredValue],
    Field(discriminator="kind"),
]


def value_columns(value: TextValue | NumericValue | StructuredValue) -> dict[str, Any]:
    """Map a tagged value onto the three nullable response columns."""
    if isinstance(value, TextValue):
        return {"response_value": value.text}
    if isinstance(value, NumericValue):
        return {"response_numeric": value.number}
    return {"response_json": value.data}


def value_from_row(row: Any) -> TextValue | NumericValue | StructuredValue:
    """Rebuild the tagged value from whichever response column is populated."""
    if row.response_json is not None:
        return StructuredValue(data=row.response_json)
    if row.response_numeric is not None:
        return NumericValue(number=row.response_numeric)
    return TextValue(text=row.response_value or "")


class SessionInfo(BaseModel):
    """Public view of an assessment session."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    bucket_id: uuid.UUID
    status: str
    total_questions: int
    answered_questions: int
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None


class SessionSummary(SessionInfo):
    """Session plus the bucket name, for history listings."""

    bucket_name: str | None = None
    bucket_description: str | None = None


class ResponseInfo(BaseModel):
    """One stored response, value re-tagged by kind."""

    id: uuid.UUID
    session_id: uuid.UUID
    question_id: uuid.UUID
    user_id: uuid.UUID
    value: ResponseValue
    question_text: str | None = None
    question_type: str | None = None
    created_at: datetime | None = None


class BucketProgress(BaseModel):
    """Completion state of one bucket for one user."""

    bucket_id: uuid.UUID
    bucket_name: str
    completed: bool
    # Percentage 0-100 of the most recent session's answered/total
    progress: float
    session_id: uuid.UUID | None = None


class CompletionSummary(BaseModel):
    completed: bool
    completed_buckets: list[uuid.UUID]
    total_buckets: int


class ProgressReport(BaseModel):
    """Everything the overview page needs for one age band."""

    age_band: str
    buckets: list[BucketProgress]
    completion: CompletionSummary
