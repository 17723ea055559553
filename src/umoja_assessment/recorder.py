"""AssessmentRecorder — drives one question-by-question attempt at a bucket.

Lifecycle::

    in_progress ──► completed
         │
         └────────► abandoned

Usage::

    recorder = AssessmentRecorder()

    session = await recorder.start_session(db, user_id=uid, bucket_id=bid)
    await recorder.record_response(
        db, session_id=session.id, question_id=qid, user_id=uid,
        value=NumericValue(number=4),
    )
    # answered_questions is already recomputed from the stored rows
    await recorder.complete_session(db, session_id=session.id, user_id=uid)

Writing a response and refreshing ``answered_questions`` happen in the same
transaction (the caller's ``AsyncSession``), and the count is derived from
the response rows, so the counter cannot drift from what was persisted.
``advance_progress`` remains available as an explicit overwrite.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from umoja_db.models.assessment import AssessmentSession
from umoja_db.models.enums import AgeBand, SessionStatus
from umoja_db.repository import AssessmentRepository

from umoja_assessment.catalog import bucket_sort_key
from umoja_assessment.constants import RESPONSE_KIND_BY_QUESTION_TYPE
from umoja_assessment.errors import ConflictError, InvalidInputError, NotFoundError
from umoja_assessment.models.session import (
    BucketProgress,
    CompletionSummary,
    NumericValue,
    ProgressReport,
    ResponseInfo,
    SessionInfo,
    SessionSummary,
    StructuredValue,
    TextValue,
    value_columns,
    value_from_row,
)

logger = logging.getLogger(__name__)

_ALREADY_ANSWERED = "This question has already been answered in this session"


class AssessmentRecorder:
    """Creates sessions, appends responses, and tracks progress.

    Args:
        repo: repository used for all reads/writes; a fresh
            :class:`AssessmentRepository` when omitted.
        allow_concurrent_sessions: when ``False``, starting a session for a
            bucket that already has an ``in_progress`` session for the same
            user raises :class:`ConflictError`.  ``True`` allows retakes
            while an earlier attempt is still open.
    """

    def __init__(
        self,
        repo: AssessmentRepository | None = None,
        *,
        allow_concurrent_sessions: bool = True,
    ) -> None:
        self._repo = repo or AssessmentRepository()
        self._allow_concurrent = allow_concurrent_sessions

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    async def start_session(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        bucket_id: uuid.UUID,
        total_questions: int | None = None,
    ) -> SessionInfo:
        """Create an ``in_progress`` session with nothing answered.

        ``total_questions`` defaults to the bucket's question count.
        """
        bucket = await self._repo.get_bucket(db, bucket_id)
        if bucket is None:
            raise NotFoundError(f"Assessment bucket not found: {bucket_id}")

        if not self._allow_concurrent:
            active = await self._repo.find_active_session(db, user_id, bucket_id)
            if active is not None:
                raise ConflictError(
                    "An assessment for this bucket is already in progress",
                    details=str(active.id),
                )

        if total_questions is None:
            total_questions = await self._repo.count_questions(db, bucket_id)
        elif total_questions < 0:
            raise InvalidInputError("total_questions must not be negative")

        row = await self._repo.create_session(
            db, user_id=user_id, bucket_id=bucket_id, total_questions=total_questions,
        )
        logger.info(
            "Session started: session=%s user=%s bucket=%s total=%d",
            row.id, user_id, bucket_id, total_questions,
        )
        return SessionInfo.model_validate(row)

    async def record_response(
        self,
        db: AsyncSession,
        *,
        session_id: uuid.UUID,
        question_id: uuid.UUID,
        user_id: uuid.UUID,
        value: TextValue | NumericValue | StructuredValue,
    ) -> ResponseInfo:
        """Store one answer and refresh the session's answered count.

        Raises:
            NotFoundError: unknown session (or not the caller's) / question
            InvalidInputError: question from another bucket, or a value
                whose kind does not match the question type
            ConflictError: session not in progress, or question already
                answered in this session
        """
        session = await self._load_owned_session(db, session_id, user_id)
        self._require_in_progress(session)

        question = await self._repo.get_question(db, question_id)
        if question is None:
            raise NotFoundError(f"Assessment question not found: {question_id}")
        if question.bucket_id != session.bucket_id:
            raise InvalidInputError("Question does not belong to this session's bucket")

        expected = RESPONSE_KIND_BY_QUESTION_TYPE.get(question.question_type)
        if expected != value.kind:
            raise InvalidInputError(
                f"A {question.question_type} question expects a {expected} "
                f"value, got {value.kind}"
            )

        if await self._repo.get_response(db, session_id, question_id) is not None:
            raise ConflictError(_ALREADY_ANSWERED)

        try:
            row = await self._repo.create_response(
                db,
                session_id=session_id,
                question_id=question_id,
                user_id=user_id,
                **value_columns(value),
            )
        except IntegrityError as exc:
            # A concurrent request answered the same question first.
            if "uq_session_question" not in str(exc):
                raise
            raise ConflictError(_ALREADY_ANSWERED) from None

        answered = await self._repo.count_responses(db, session_id)
        await self._repo.set_answered(db, session, answered)

        return ResponseInfo(
            id=row.id,
            session_id=row.session_id,
            question_id=row.question_id,
            user_id=row.user_id,
            value=value,
            question_text=question.question_text,
            question_type=question.question_type,
            created_at=row.created_at,
        )

    async def advance_progress(
        self,
        db: AsyncSession,
        *,
        session_id: uuid.UUID,
        answered_count: int,
        user_id: uuid.UUID,
    ) -> SessionInfo:
        """Overwrite the answered-question counter with ``answered_count``."""
        if answered_count < 0:
            raise InvalidInputError("answered_questions must not be negative")
        session = await self._load_owned_session(db, session_id, user_id)
        if answered_count < session.answered_questions:
            logger.warning(
                "Progress moved backwards: session=%s %d -> %d",
                session_id, session.answered_questions, answered_count,
            )
        await self._repo.set_answered(db, session, answered_count)
        return SessionInfo.model_validate(session)

    async def complete_session(
        self,
        db: AsyncSession,
        *,
        session_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> SessionInfo:
        """Mark the session completed.  Full coverage is not required."""
        session = await self._load_owned_session(db, session_id, user_id)
        self._require_in_progress(session)
        await self._repo.complete_session(db, session)
        logger.info(
            "Session completed: session=%s answered=%d/%d",
            session_id, session.answered_questions, session.total_questions,
        )
        return SessionInfo.model_validate(session)

    async def abandon_session(
        self,
        db: AsyncSession,
        *,
        session_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> SessionInfo:
        session = await self._load_owned_session(db, session_id, user_id)
        self._require_in_progress(session)
        await self._repo.abandon_session(db, session)
        logger.info("Session abandoned: session=%s", session_id)
        return SessionInfo.model_validate(session)

    # ==================================================================
    # Reads
    # ==================================================================

    async def get_session(
        self, db: AsyncSession, *, session_id: uuid.UUID, user_id: uuid.UUID
    ) -> SessionInfo:
        session = await self._load_owned_session(db, session_id, user_id)
        return SessionInfo.model_validate(session)

    async def list_sessions(
        self, db: AsyncSession, *, user_id: uuid.UUID
    ) -> list[SessionSummary]:
        """All of a user's sessions, most recent first."""
        rows = await self._repo.list_sessions(db, user_id)
        summaries = []
        for row in rows:
            summary = SessionSummary.model_validate(row)
            if row.bucket is not None:
                summary.bucket_name = row.bucket.name
                summary.bucket_description = row.bucket.description
            summaries.append(summary)
        return summaries

    async def list_responses(
        self, db: AsyncSession, *, session_id: uuid.UUID, user_id: uuid.UUID
    ) -> list[ResponseInfo]:
        """Responses of one session in the order they were given."""
        await self._load_owned_session(db, session_id, user_id)
        rows = await self._repo.list_session_responses(db, session_id)
        return [
            ResponseInfo(
                id=r.id,
                session_id=r.session_id,
                question_id=r.question_id,
                user_id=r.user_id,
                value=value_from_row(r),
                question_text=r.question.question_text if r.question else None,
                question_type=r.question.question_type if r.question else None,
                created_at=r.created_at,
            )
            for r in rows
        ]

    async def get_progress(
        self, db: AsyncSession, *, user_id: uuid.UUID, age_band: AgeBand
    ) -> ProgressReport:
        """Per-bucket progress for one age band.

        Each bucket reflects the user's most recent session for it.  A
        bucket counts as completed when that session is completed.
        """
        buckets = await self._repo.list_buckets(db, age_band.value)
        buckets = sorted(buckets, key=lambda b: bucket_sort_key(b.name))
        # list_sessions is newest-first, so the first hit per bucket wins
        latest: dict[uuid.UUID, AssessmentSession] = {}
        for row in await self._repo.list_sessions(db, user_id):
            latest.setdefault(row.bucket_id, row)

        entries = []
        for bucket in buckets:
            session = latest.get(bucket.id)
            if session is None:
                entries.append(BucketProgress(
                    bucket_id=bucket.id, bucket_name=bucket.name,
                    completed=False, progress=0.0,
                ))
                continue
            percent = (
                session.answered_questions / session.total_questions * 100
                if session.total_questions > 0
                else 0.0
            )
            entries.append(BucketProgress(
                bucket_id=bucket.id,
                bucket_name=bucket.name,
                completed=session.status == SessionStatus.COMPLETED.value,
                progress=round(percent, 2),
                session_id=session.id,
            ))

        completed_ids = [e.bucket_id for e in entries if e.completed]
        return ProgressReport(
            age_band=age_band.value,
            buckets=entries,
            completion=CompletionSummary(
                completed=bool(entries) and len(completed_ids) == len(entries),
                completed_buckets=completed_ids,
                total_buckets=len(entries),
            ),
        )

    async def check_completion(
        self, db: AsyncSession, *, user_id: uuid.UUID, age_band: AgeBand
    ) -> CompletionSummary:
        """Whether every bucket of the age band has a completed latest session."""
        report = await self.get_progress(db, user_id=user_id, age_band=age_band)
        return report.completion

    # ==================================================================
    # Internal helpers
    # ==================================================================

    async def _load_owned_session(
        self, db: AsyncSession, session_id: uuid.UUID, user_id: uuid.UUID
    ) -> AssessmentSession:
        """Load a session or raise NotFoundError (also for other users' sessions)."""
        session = await self._repo.get_session(db, session_id)
        if session is None or session.user_id != user_id:
            raise NotFoundError(f"Assessment session not found: {session_id}")
        return session

    @staticmethod
    def _require_in_progress(session: AssessmentSession) -> None:
        if session.status != SessionStatus.IN_PROGRESS.value:
            raise ConflictError(
                f"Assessment session is {session.status}, not in progress"
            )
