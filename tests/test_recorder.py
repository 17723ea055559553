"""AssessmentRecorder tests — session lifecycle, tagged values, and progress.

Verifies that:
  - Sessions start in_progress with nothing answered
  - Recording a response recomputes answered_questions from stored rows
  - Value kinds must match the question type
  - Closed sessions reject responses and further transitions
  - Other users' sessions are invisible
  - Progress and completion reflect each bucket's most recent session
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from umoja_db.models.enums import AgeBand, SessionStatus
from umoja_assessment.constants import BUCKET_ORDER
from umoja_assessment.errors import ConflictError, InvalidInputError, NotFoundError
from umoja_assessment.models.session import NumericValue, StructuredValue, TextValue
from umoja_assessment.recorder import AssessmentRecorder

USER = uuid.uuid4()
OTHER_USER = uuid.uuid4()


# =====================================================================
# Fixtures
# =====================================================================


@pytest.fixture
def recorder(assessment_repo):
    return AssessmentRecorder(assessment_repo)


@pytest.fixture
def bucket(assessment_repo):
    """A bucket with one question of each type."""
    b = assessment_repo.add_bucket(BUCKET_ORDER[0])
    assessment_repo.add_question(b, "Pick one", "multiple_choice")
    assessment_repo.add_question(b, "Agree?", "likert_scale")
    assessment_repo.add_question(b, "Tell us", "open_ended")
    assessment_repo.add_question(b, "Pick a picture", "image_selection")
    return b


def questions_of(repo, bucket):
    return sorted(
        (q for q in repo.questions.values() if q.bucket_id == bucket.id),
        key=lambda q: q.order_index,
    )


# =====================================================================
# Session lifecycle
# =====================================================================


class TestStartSession:

    @pytest.mark.asyncio
    async def test_defaults_total_to_question_count(self, recorder, bucket, mock_db):
        info = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        assert info.status == SessionStatus.IN_PROGRESS.value
        assert info.answered_questions == 0
        assert info.total_questions == 4, "Total should default to the bucket size"

    @pytest.mark.asyncio
    async def test_explicit_total(self, recorder, bucket, mock_db):
        info = await recorder.start_session(
            mock_db, user_id=USER, bucket_id=bucket.id, total_questions=10,
        )
        assert info.total_questions == 10

    @pytest.mark.asyncio
    async def test_unknown_bucket(self, recorder, mock_db):
        with pytest.raises(NotFoundError):
            await recorder.start_session(mock_db, user_id=USER, bucket_id=uuid.uuid4())

    @pytest.mark.asyncio
    async def test_concurrent_sessions_allowed_by_default(self, recorder, bucket, mock_db):
        first = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        second = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_concurrent_sessions_rejected_when_disabled(
        self, assessment_repo, bucket, mock_db,
    ):
        recorder = AssessmentRecorder(assessment_repo, allow_concurrent_sessions=False)
        await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        with pytest.raises(ConflictError, match="already in progress"):
            await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)


class TestTransitions:

    @pytest.mark.asyncio
    async def test_complete_sets_timestamp(self, recorder, bucket, mock_db):
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        done = await recorder.complete_session(mock_db, session_id=s.id, user_id=USER)
        assert done.status == SessionStatus.COMPLETED.value
        assert done.completed_at is not None, "completed_at must be set on completion"

    @pytest.mark.asyncio
    async def test_complete_does_not_require_full_coverage(
        self, recorder, bucket, mock_db,
    ):
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        done = await recorder.complete_session(mock_db, session_id=s.id, user_id=USER)
        assert done.answered_questions == 0

    @pytest.mark.asyncio
    async def test_abandon(self, recorder, bucket, mock_db):
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        out = await recorder.abandon_session(mock_db, session_id=s.id, user_id=USER)
        assert out.status == SessionStatus.ABANDONED.value
        assert out.completed_at is None

    @pytest.mark.asyncio
    async def test_completed_session_cannot_be_completed_again(
        self, recorder, bucket, mock_db,
    ):
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        await recorder.complete_session(mock_db, session_id=s.id, user_id=USER)
        with pytest.raises(ConflictError):
            await recorder.complete_session(mock_db, session_id=s.id, user_id=USER)
        with pytest.raises(ConflictError):
            await recorder.abandon_session(mock_db, session_id=s.id, user_id=USER)

    @pytest.mark.asyncio
    async def test_other_users_session_is_not_found(self, recorder, bucket, mock_db):
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        with pytest.raises(NotFoundError):
            await recorder.get_session(mock_db, session_id=s.id, user_id=OTHER_USER)
        with pytest.raises(NotFoundError):
            await recorder.complete_session(mock_db, session_id=s.id, user_id=OTHER_USER)


# =====================================================================
# Responses
# =====================================================================


class TestRecordResponse:

    @pytest.mark.asyncio
    async def test_answered_count_follows_stored_rows(
        self, recorder, assessment_repo, bucket, mock_db,
    ):
        choice, likert, open_q, image = questions_of(assessment_repo, bucket)
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)

        await recorder.record_response(
            mock_db, session_id=s.id, question_id=choice.id, user_id=USER,
            value=TextValue(text="leader"),
        )
        await recorder.record_response(
            mock_db, session_id=s.id, question_id=likert.id, user_id=USER,
            value=NumericValue(number=4),
        )

        info = await recorder.get_session(mock_db, session_id=s.id, user_id=USER)
        assert info.answered_questions == 2, (
            "answered_questions should equal the number of stored responses"
        )

    @pytest.mark.asyncio
    async def test_each_kind_lands_in_its_column(
        self, recorder, assessment_repo, bucket, mock_db,
    ):
        choice, likert, open_q, image = questions_of(assessment_repo, bucket)
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        await recorder.record_response(
            mock_db, session_id=s.id, question_id=likert.id, user_id=USER,
            value=NumericValue(number=3),
        )
        await recorder.record_response(
            mock_db, session_id=s.id, question_id=image.id, user_id=USER,
            value=StructuredValue(data={"selected": "robotics"}),
        )

        numeric_row, json_row = assessment_repo.responses
        assert numeric_row.response_numeric == 3
        assert numeric_row.response_value is None and numeric_row.response_json is None
        assert json_row.response_json == {"selected": "robotics"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("index, value", [
        (0, NumericValue(number=1)),
        (1, TextValue(text="4")),
        (2, StructuredValue(data=["x"])),
        (3, TextValue(text="robotics")),
    ])
    async def test_kind_must_match_question_type(
        self, recorder, assessment_repo, bucket, mock_db, index, value,
    ):
        question = questions_of(assessment_repo, bucket)[index]
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        with pytest.raises(InvalidInputError, match="expects a"):
            await recorder.record_response(
                mock_db, session_id=s.id, question_id=question.id, user_id=USER,
                value=value,
            )
        assert assessment_repo.responses == [], "Rejected values must not be stored"

    @pytest.mark.asyncio
    async def test_duplicate_answer_rejected(
        self, recorder, assessment_repo, bucket, mock_db,
    ):
        choice = questions_of(assessment_repo, bucket)[0]
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        await recorder.record_response(
            mock_db, session_id=s.id, question_id=choice.id, user_id=USER,
            value=TextValue(text="leader"),
        )
        with pytest.raises(ConflictError, match="already been answered"):
            await recorder.record_response(
                mock_db, session_id=s.id, question_id=choice.id, user_id=USER,
                value=TextValue(text="mediator"),
            )

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_reported_as_conflict(
        self, recorder, assessment_repo, bucket, mock_db, monkeypatch,
    ):
        choice = questions_of(assessment_repo, bucket)[0]
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        duplicate = IntegrityError(
            "INSERT INTO assessment_responses ...", {},
            Exception('duplicate key value violates unique constraint "uq_session_question"'),
        )
        monkeypatch.setattr(
            assessment_repo, "create_response", AsyncMock(side_effect=duplicate),
        )

        with pytest.raises(ConflictError, match="already been answered"):
            await recorder.record_response(
                mock_db, session_id=s.id, question_id=choice.id, user_id=USER,
                value=TextValue(text="leader"),
            )

    @pytest.mark.asyncio
    async def test_other_integrity_errors_propagate(
        self, recorder, assessment_repo, bucket, mock_db, monkeypatch,
    ):
        choice = questions_of(assessment_repo, bucket)[0]
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        broken = IntegrityError(
            "INSERT INTO assessment_responses ...", {},
            Exception('new row violates check constraint "ck_single_response_value"'),
        )
        monkeypatch.setattr(
            assessment_repo, "create_response", AsyncMock(side_effect=broken),
        )

        with pytest.raises(IntegrityError):
            await recorder.record_response(
                mock_db, session_id=s.id, question_id=choice.id, user_id=USER,
                value=TextValue(text="leader"),
            )

    @pytest.mark.asyncio
    async def test_question_from_another_bucket(
        self, recorder, assessment_repo, bucket, mock_db,
    ):
        other = assessment_repo.add_bucket(BUCKET_ORDER[1])
        foreign = assessment_repo.add_question(other, "Elsewhere", "open_ended")
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        with pytest.raises(InvalidInputError, match="does not belong"):
            await recorder.record_response(
                mock_db, session_id=s.id, question_id=foreign.id, user_id=USER,
                value=TextValue(text="hi"),
            )

    @pytest.mark.asyncio
    async def test_closed_session_rejects_responses(
        self, recorder, assessment_repo, bucket, mock_db,
    ):
        choice = questions_of(assessment_repo, bucket)[0]
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        await recorder.abandon_session(mock_db, session_id=s.id, user_id=USER)
        with pytest.raises(ConflictError, match="not in progress"):
            await recorder.record_response(
                mock_db, session_id=s.id, question_id=choice.id, user_id=USER,
                value=TextValue(text="leader"),
            )

    @pytest.mark.asyncio
    async def test_list_responses_retags_values(
        self, recorder, assessment_repo, bucket, mock_db,
    ):
        choice, likert, _, _ = questions_of(assessment_repo, bucket)
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        await recorder.record_response(
            mock_db, session_id=s.id, question_id=choice.id, user_id=USER,
            value=TextValue(text="leader"),
        )
        await recorder.record_response(
            mock_db, session_id=s.id, question_id=likert.id, user_id=USER,
            value=NumericValue(number=5),
        )

        responses = await recorder.list_responses(mock_db, session_id=s.id, user_id=USER)
        assert [r.value.kind for r in responses] == ["text", "numeric"]
        assert responses[0].question_text == "Pick one"


# =====================================================================
# Progress counter
# =====================================================================


class TestAdvanceProgress:

    @pytest.mark.asyncio
    async def test_overwrites_counter(self, recorder, bucket, mock_db):
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        info = await recorder.advance_progress(
            mock_db, session_id=s.id, answered_count=3, user_id=USER,
        )
        assert info.answered_questions == 3

    @pytest.mark.asyncio
    async def test_decrease_is_allowed(self, recorder, bucket, mock_db):
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        await recorder.advance_progress(mock_db, session_id=s.id, answered_count=3, user_id=USER)
        info = await recorder.advance_progress(
            mock_db, session_id=s.id, answered_count=1, user_id=USER,
        )
        assert info.answered_questions == 1, "The counter is an explicit overwrite"

    @pytest.mark.asyncio
    async def test_negative_rejected(self, recorder, bucket, mock_db):
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        with pytest.raises(InvalidInputError):
            await recorder.advance_progress(
                mock_db, session_id=s.id, answered_count=-1, user_id=USER,
            )


# =====================================================================
# Progress / completion across buckets
# =====================================================================


class TestProgress:

    @pytest.fixture
    def ms_buckets(self, assessment_repo):
        buckets = [assessment_repo.add_bucket(name) for name in reversed(BUCKET_ORDER)]
        for b in buckets:
            assessment_repo.add_question(b, f"{b.name} q1")
            assessment_repo.add_question(b, f"{b.name} q2")
        return {b.name: b for b in buckets}

    @pytest.mark.asyncio
    async def test_empty_progress(self, recorder, ms_buckets, mock_db):
        report = await recorder.get_progress(
            mock_db, user_id=USER, age_band=AgeBand.MIDDLE_SCHOOL,
        )
        assert [b.bucket_name for b in report.buckets] == BUCKET_ORDER
        assert all(b.progress == 0 and not b.completed for b in report.buckets)
        assert report.completion.completed is False
        assert report.completion.total_buckets == 4

    @pytest.mark.asyncio
    async def test_percent_from_latest_session(self, recorder, ms_buckets, mock_db):
        bucket = ms_buckets[BUCKET_ORDER[0]]
        s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        await recorder.advance_progress(mock_db, session_id=s.id, answered_count=1, user_id=USER)

        report = await recorder.get_progress(
            mock_db, user_id=USER, age_band=AgeBand.MIDDLE_SCHOOL,
        )
        first = report.buckets[0]
        assert first.progress == 50.0
        assert first.session_id == s.id

    @pytest.mark.asyncio
    async def test_retake_supersedes_completed_attempt(self, recorder, ms_buckets, mock_db):
        bucket = ms_buckets[BUCKET_ORDER[0]]
        old = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
        await recorder.complete_session(mock_db, session_id=old.id, user_id=USER)
        await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)

        report = await recorder.get_progress(
            mock_db, user_id=USER, age_band=AgeBand.MIDDLE_SCHOOL,
        )
        assert report.buckets[0].completed is False, (
            "A newer in-progress attempt should define the bucket's state"
        )

    @pytest.mark.asyncio
    async def test_all_completed(self, recorder, ms_buckets, mock_db):
        for bucket in ms_buckets.values():
            s = await recorder.start_session(mock_db, user_id=USER, bucket_id=bucket.id)
            await recorder.complete_session(mock_db, session_id=s.id, user_id=USER)

        summary = await recorder.check_completion(
            mock_db, user_id=USER, age_band=AgeBand.MIDDLE_SCHOOL,
        )
        assert summary.completed is True
        assert set(summary.completed_buckets) == {b.id for b in ms_buckets.values()}

    @pytest.mark.asyncio
    async def test_other_users_sessions_ignored(self, recorder, ms_buckets, mock_db):
        for bucket in ms_buckets.values():
            s = await recorder.start_session(mock_db, user_id=OTHER_USER, bucket_id=bucket.id)
            await recorder.complete_session(mock_db, session_id=s.id, user_id=OTHER_USER)

        summary = await recorder.check_completion(
            mock_db, user_id=USER, age_band=AgeBand.MIDDLE_SCHOOL,
        )
        assert summary.completed is False
        assert summary.completed_buckets == []

    @pytest.mark.asyncio
    async def test_band_without_buckets_is_not_complete(self, recorder, mock_db):
        summary = await recorder.check_completion(
            mock_db, user_id=USER, age_band=AgeBand.HIGH_SCHOOL_PLUS,
        )
        assert summary.completed is False
        assert summary.total_buckets == 0


# =====================================================================
# Tagged values
# =====================================================================


class TestStructuredValue:

    @pytest.mark.parametrize("data", [{"selected": ["a"]}, ["a", "b"], []])
    def test_object_or_array_accepted(self, data):
        assert StructuredValue(data=data).data == data

    @pytest.mark.parametrize("data", [None, "robotics", 3])
    def test_null_and_scalars_rejected(self, data):
        with pytest.raises(ValidationError):
            StructuredValue(data=data)
