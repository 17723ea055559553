"""Assessment endpoints — catalog reads, session lifecycle, responses, progress.

Catalog reads use the read-only connection and do not require identity.
Every session endpoint resolves the caller through ``X-User-ID`` and
auto-creates a ``child`` user on first contact.  Sessions belonging to
another user are reported as not found.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from umoja_db.models.enums import AgeBand
from umoja_db.models.user import User

from umoja_assessment.age_band import band_for
from umoja_assessment.catalog import CatalogReader, parse_age_band
from umoja_assessment.errors import InvalidInputError
from umoja_assessment.models.catalog import BucketInfo, QuestionInfo
from umoja_assessment.models.session import (
    ProgressReport,
    ResponseInfo,
    ResponseValue,
    SessionInfo,
    SessionSummary,
)
from umoja_assessment.recorder import AssessmentRecorder

from umoja_server.dependencies import (
    get_assessment_user,
    get_catalog,
    get_db,
    get_read_db,
    get_recorder,
)

router = APIRouter(tags=["assessment"])


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class StartSessionRequest(BaseModel):
    """Body for POST /assessment/sessions."""
    bucket_id: uuid.UUID
    total_questions: int | None = Field(default=None, ge=0)


class RecordResponseRequest(BaseModel):
    """Body for POST /assessment/sessions/{id}/responses."""
    question_id: uuid.UUID
    value: ResponseValue


class ProgressRequest(BaseModel):
    """Body for PUT /assessment/sessions/{id}/progress."""
    answered_questions: int


def _resolve_band(age_band: str | None, dob: str | None) -> AgeBand:
    """An explicit ``age_band`` wins; otherwise derive it from ``dob``."""
    if age_band:
        return parse_age_band(age_band)
    if dob:
        return band_for(dob)
    raise InvalidInputError("Either age_band or dob is required")


# ------------------------------------------------------------------
# Catalog
# ------------------------------------------------------------------

@router.get("/assessment/age-band")
async def get_age_band(dob: str = Query(...)) -> dict:
    """Age band for a date of birth (``YYYY-MM-DD``)."""
    return {"ageBand": band_for(dob).value}


@router.get("/assessment/buckets")
async def list_buckets(
    age_band: str | None = Query(None),
    dob: str | None = Query(None),
    db: AsyncSession = Depends(get_read_db),
    catalog: CatalogReader = Depends(get_catalog),
) -> list[BucketInfo]:
    """Buckets for an age band, in canonical display order."""
    return await catalog.list_buckets(db, _resolve_band(age_band, dob))


@router.get("/assessment/buckets/{bucket_id}/questions")
async def list_questions(
    bucket_id: uuid.UUID,
    db: AsyncSession = Depends(get_read_db),
    catalog: CatalogReader = Depends(get_catalog),
) -> list[QuestionInfo]:
    """Questions of a bucket ordered by ``order_index``."""
    return await catalog.list_questions(db, bucket_id)


# ------------------------------------------------------------------
# Sessions
# ------------------------------------------------------------------

@router.post("/assessment/sessions", status_code=201)
async def start_session(
    body: StartSessionRequest,
    user: User = Depends(get_assessment_user),
    db: AsyncSession = Depends(get_db),
    recorder: AssessmentRecorder = Depends(get_recorder),
) -> SessionInfo:
    """Start a new attempt at a bucket.

    Raises 404 for an unknown bucket and 409 when concurrent sessions are
    disabled and one is already in progress.
    """
    return await recorder.start_session(
        db, user_id=user.id, bucket_id=body.bucket_id, total_questions=body.total_questions,
    )


@router.get("/assessment/sessions")
async def list_sessions(
    user: User = Depends(get_assessment_user),
    db: AsyncSession = Depends(get_db),
    recorder: AssessmentRecorder = Depends(get_recorder),
) -> list[SessionSummary]:
    """The caller's sessions, most recent first."""
    return await recorder.list_sessions(db, user_id=user.id)


@router.get("/assessment/sessions/{session_id}")
async def get_session(
    session_id: uuid.UUID,
    user: User = Depends(get_assessment_user),
    db: AsyncSession = Depends(get_db),
    recorder: AssessmentRecorder = Depends(get_recorder),
) -> SessionInfo:
    return await recorder.get_session(db, session_id=session_id, user_id=user.id)


@router.post("/assessment/sessions/{session_id}/responses", status_code=201)
async def record_response(
    session_id: uuid.UUID,
    body: RecordResponseRequest,
    user: User = Depends(get_assessment_user),
    db: AsyncSession = Depends(get_db),
    recorder: AssessmentRecorder = Depends(get_recorder),
) -> ResponseInfo:
    """Store one answer; the session's answered count is refreshed with it.

    Raises 400 when the value kind does not fit the question type and 409
    when the question was already answered or the session is closed.
    """
    return await recorder.record_response(
        db,
        session_id=session_id,
        question_id=body.question_id,
        user_id=user.id,
        value=body.value,
    )


@router.get("/assessment/sessions/{session_id}/responses")
async def list_responses(
    session_id: uuid.UUID,
    user: User = Depends(get_assessment_user),
    db: AsyncSession = Depends(get_db),
    recorder: AssessmentRecorder = Depends(get_recorder),
) -> list[ResponseInfo]:
    return await recorder.list_responses(db, session_id=session_id, user_id=user.id)


@router.put("/assessment/sessions/{session_id}/progress")
async def update_progress(
    session_id: uuid.UUID,
    body: ProgressRequest,
    user: User = Depends(get_assessment_user),
    db: AsyncSession = Depends(get_db),
    recorder: AssessmentRecorder = Depends(get_recorder),
) -> SessionInfo:
    """Overwrite the answered-question counter."""
    return await recorder.advance_progress(
        db, session_id=session_id, answered_count=body.answered_questions, user_id=user.id,
    )


@router.post("/assessment/sessions/{session_id}/complete")
async def complete_session(
    session_id: uuid.UUID,
    user: User = Depends(get_assessment_user),
    db: AsyncSession = Depends(get_db),
    recorder: AssessmentRecorder = Depends(get_recorder),
) -> SessionInfo:
    return await recorder.complete_session(db, session_id=session_id, user_id=user.id)


@router.post("/assessment/sessions/{session_id}/abandon")
async def abandon_session(
    session_id: uuid.UUID,
    user: User = Depends(get_assessment_user),
    db: AsyncSession = Depends(get_db),
    recorder: AssessmentRecorder = Depends(get_recorder),
) -> SessionInfo:
    return await recorder.abandon_session(db, session_id=session_id, user_id=user.id)


# ------------------------------------------------------------------
# Progress
# ------------------------------------------------------------------

@router.get("/assessment/progress")
async def get_progress(
    age_band: str | None = Query(None),
    dob: str | None = Query(None),
    user: User = Depends(get_assessment_user),
    db: AsyncSession = Depends(get_db),
    recorder: AssessmentRecorder = Depends(get_recorder),
) -> ProgressReport:
    """Per-bucket progress for an age band plus the completion summary."""
    return await recorder.get_progress(
        db, user_id=user.id, age_band=_resolve_band(age_band, dob),
    )
