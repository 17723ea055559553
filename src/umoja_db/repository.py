"""Async CRUD repositories for the umoja tables.

All public methods accept an ``AsyncSession`` so the caller controls
transaction boundaries.  Repositories call ``flush()`` but never
``commit()``; the request-scoped session in the server commits once at the
end of a successful request.

The repositories deliberately avoid business-logic validation — that
belongs in the ``umoja_assessment`` SDK.  Structural invariants (one
response per question per session, one primary guardian per child, one
cached analysis per user) are enforced by DB constraints.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import delete, func, select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from umoja_db.models.assessment import (
    AssessmentBucket,
    AssessmentQuestion,
    AssessmentResponse,
    AssessmentSession,
)
from umoja_db.models.enums import SessionStatus
from umoja_db.models.profile import (
    ChildGuardianRelationship,
    ChildProfile,
    EmergencyContact,
    GuardianProfile,
)
from umoja_db.models.result import UserAssessmentResult
from umoja_db.models.user import User


async def advisory_xact_lock(db: AsyncSession, key: str) -> None:
    """Take a PostgreSQL advisory lock held until the transaction ends.

    Serialises check-then-act sequences across processes without a
    dedicated lock table.
    """
    await db.execute(
        text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key}
    )


class UserRepository:
    """Async read/write operations on the ``users`` table."""

    async def get_by_external_id(
        self, db: AsyncSession, external_id: str
    ) -> User | None:
        """Fetch a user by identity-provider subject."""
        stmt = select(User).where(User.external_id == external_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(
        self, db: AsyncSession, *, external_id: str, email: str, role: str
    ) -> User:
        """Insert a new user row and return it."""
        user = User(external_id=external_id, email=email, role=role)
        db.add(user)
        await db.flush()  # Populate defaults (id, timestamps)
        return user

    async def set_role(self, db: AsyncSession, user: User, role: str) -> User:
        user.role = role
        user.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return user


class ProfileRepository:
    """Child/guardian profiles, their links, and emergency contacts."""

    # ------------------------------------------------------------------
    # Child profiles
    # ------------------------------------------------------------------

    async def get_child_profile(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> ChildProfile | None:
        stmt = select(ChildProfile).where(ChildProfile.user_id == user_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def save_child_profile(
        self, db: AsyncSession, user_id: uuid.UUID, fields: dict[str, Any]
    ) -> ChildProfile:
        """Create or update the child profile owned by ``user_id``.

        Python-side upsert: the unique ``user_id`` column guarantees there
        is at most one row to update.
        """
        profile = await self.get_child_profile(db, user_id)
        if profile is None:
            profile = ChildProfile(user_id=user_id, **fields)
            db.add(profile)
        else:
            for key, value in fields.items():
                setattr(profile, key, value)
            profile.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return profile

    async def find_children(
        self,
        db: AsyncSession,
        *,
        first_name: str,
        last_name: str,
        date_of_birth: date,
        school_name: str | None = None,
        grade: str | None = None,
    ) -> list[ChildProfile]:
        """Exact-match search on name + DOB, with optional narrowing filters."""
        stmt = select(ChildProfile).where(
            ChildProfile.first_name == first_name,
            ChildProfile.last_name == last_name,
            ChildProfile.date_of_birth == date_of_birth,
        )
        if school_name is not None:
            stmt = stmt.where(ChildProfile.school_name == school_name)
        if grade is not None:
            stmt = stmt.where(ChildProfile.grade == grade)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Guardian profiles
    # ------------------------------------------------------------------

    async def get_guardian_profile(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> GuardianProfile | None:
        stmt = select(GuardianProfile).where(GuardianProfile.user_id == user_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_guardian_profile(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        first_name: str,
        last_name: str,
        relationship_to_child: str | None = None,
    ) -> GuardianProfile:
        profile = GuardianProfile(
            user_id=user_id,
            first_name=first_name,
            last_name=last_name,
            relationship_to_child=relationship_to_child,
        )
        db.add(profile)
        await db.flush()
        return profile

    # ------------------------------------------------------------------
    # Child <-> guardian links
    # ------------------------------------------------------------------

    async def lock_child(self, db: AsyncSession, child_profile_id: uuid.UUID) -> None:
        """Serialise link attempts for one child until the transaction ends."""
        await advisory_xact_lock(db, f"child-link:{child_profile_id}")

    async def get_relationship(
        self,
        db: AsyncSession,
        child_profile_id: uuid.UUID,
        guardian_profile_id: uuid.UUID,
    ) -> ChildGuardianRelationship | None:
        stmt = select(ChildGuardianRelationship).where(
            ChildGuardianRelationship.child_profile_id == child_profile_id,
            ChildGuardianRelationship.guardian_profile_id == guardian_profile_id,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def has_primary_guardian(
        self, db: AsyncSession, child_profile_id: uuid.UUID
    ) -> bool:
        stmt = select(func.count()).select_from(ChildGuardianRelationship).where(
            ChildGuardianRelationship.child_profile_id == child_profile_id,
            ChildGuardianRelationship.is_primary_guardian.is_(True),
        )
        result = await db.execute(stmt)
        return result.scalar_one() > 0

    async def create_relationship(
        self,
        db: AsyncSession,
        *,
        child_profile_id: uuid.UUID,
        guardian_profile_id: uuid.UUID,
        relationship_type: str,
        is_primary_guardian: bool,
    ) -> ChildGuardianRelationship:
        link = ChildGuardianRelationship(
            child_profile_id=child_profile_id,
            guardian_profile_id=guardian_profile_id,
            relationship_type=relationship_type,
            is_primary_guardian=is_primary_guardian,
        )
        db.add(link)
        await db.flush()
        return link

    async def list_guardian_children(
        self, db: AsyncSession, guardian_profile_id: uuid.UUID
    ) -> list[ChildGuardianRelationship]:
        """All links for a guardian with the child profile eagerly loaded."""
        stmt = (
            select(ChildGuardianRelationship)
            .options(selectinload(ChildGuardianRelationship.child_profile))
            .where(ChildGuardianRelationship.guardian_profile_id == guardian_profile_id)
            .order_by(ChildGuardianRelationship.created_at)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Emergency contacts
    # ------------------------------------------------------------------

    async def replace_emergency_contacts(
        self,
        db: AsyncSession,
        child_profile_id: uuid.UUID,
        contacts: list[dict[str, Any]],
    ) -> list[EmergencyContact]:
        """Delete every contact for the child, then insert ``contacts``."""
        await db.execute(
            delete(EmergencyContact).where(
                EmergencyContact.child_profile_id == child_profile_id
            )
        )
        rows = [
            EmergencyContact(child_profile_id=child_profile_id, **contact)
            for contact in contacts
        ]
        db.add_all(rows)
        await db.flush()
        return rows

    async def list_emergency_contacts(
        self, db: AsyncSession, child_profile_id: uuid.UUID
    ) -> list[EmergencyContact]:
        stmt = (
            select(EmergencyContact)
            .where(EmergencyContact.child_profile_id == child_profile_id)
            .order_by(EmergencyContact.created_at)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())


class AssessmentRepository:
    """Catalog reads plus session / response writes."""

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def list_buckets(
        self, db: AsyncSession, age_band: str
    ) -> list[AssessmentBucket]:
        stmt = select(AssessmentBucket).where(AssessmentBucket.age_band == age_band)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get_bucket(
        self, db: AsyncSession, bucket_id: uuid.UUID
    ) -> AssessmentBucket | None:
        return await db.get(AssessmentBucket, bucket_id)

    async def find_bucket(
        self, db: AsyncSession, name: str, age_band: str
    ) -> AssessmentBucket | None:
        stmt = select(AssessmentBucket).where(
            AssessmentBucket.name == name,
            AssessmentBucket.age_band == age_band,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_bucket(
        self,
        db: AsyncSession,
        *,
        name: str,
        age_band: str,
        description: str | None = None,
        purpose: str | None = None,
    ) -> AssessmentBucket:
        bucket = AssessmentBucket(
            name=name, age_band=age_band, description=description, purpose=purpose
        )
        db.add(bucket)
        await db.flush()
        return bucket

    async def list_questions(
        self, db: AsyncSession, bucket_id: uuid.UUID
    ) -> list[AssessmentQuestion]:
        stmt = (
            select(AssessmentQuestion)
            .where(AssessmentQuestion.bucket_id == bucket_id)
            .order_by(AssessmentQuestion.order_index)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def count_questions(self, db: AsyncSession, bucket_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(AssessmentQuestion).where(
            AssessmentQuestion.bucket_id == bucket_id
        )
        result = await db.execute(stmt)
        return result.scalar_one()

    async def get_question(
        self, db: AsyncSession, question_id: uuid.UUID
    ) -> AssessmentQuestion | None:
        return await db.get(AssessmentQuestion, question_id)

    async def create_question(
        self,
        db: AsyncSession,
        *,
        bucket_id: uuid.UUID,
        question_text: str,
        question_type: str,
        order_index: int,
        response_options: Any = None,
        section: str | None = None,
        is_required: bool = True,
    ) -> AssessmentQuestion:
        question = AssessmentQuestion(
            bucket_id=bucket_id,
            question_text=question_text,
            question_type=question_type,
            order_index=order_index,
            response_options=response_options,
            section=section,
            is_required=is_required,
        )
        db.add(question)
        await db.flush()
        return question

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def create_session(
        self,
        db: AsyncSession,
        *,
        user_id: uuid.UUID,
        bucket_id: uuid.UUID,
        total_questions: int,
    ) -> AssessmentSession:
        """Insert an ``in_progress`` session with nothing answered yet."""
        session = AssessmentSession(
            user_id=user_id,
            bucket_id=bucket_id,
            total_questions=total_questions,
            answered_questions=0,
            status=SessionStatus.IN_PROGRESS.value,
        )
        db.add(session)
        await db.flush()
        return session

    async def get_session(
        self, db: AsyncSession, session_id: uuid.UUID
    ) -> AssessmentSession | None:
        return await db.get(AssessmentSession, session_id)

    async def find_active_session(
        self, db: AsyncSession, user_id: uuid.UUID, bucket_id: uuid.UUID
    ) -> AssessmentSession | None:
        """Most recent ``in_progress`` session for the (user, bucket) pair."""
        stmt = (
            select(AssessmentSession)
            .where(
                AssessmentSession.user_id == user_id,
                AssessmentSession.bucket_id == bucket_id,
                AssessmentSession.status == SessionStatus.IN_PROGRESS.value,
            )
            .order_by(AssessmentSession.created_at.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_sessions(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> list[AssessmentSession]:
        """All sessions for a user, most recent first, bucket loaded."""
        stmt = (
            select(AssessmentSession)
            .options(selectinload(AssessmentSession.bucket))
            .where(AssessmentSession.user_id == user_id)
            .order_by(AssessmentSession.created_at.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def set_answered(
        self, db: AsyncSession, session: AssessmentSession, answered: int
    ) -> AssessmentSession:
        session.answered_questions = answered
        session.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return session

    async def complete_session(
        self, db: AsyncSession, session: AssessmentSession
    ) -> AssessmentSession:
        """Mark the session completed.

        The CHECK constraint ``ck_completed_has_timestamp`` enforces that
        ``completed_at`` is set whenever status is completed.
        """
        now = datetime.now(timezone.utc)
        session.status = SessionStatus.COMPLETED.value
        session.completed_at = now
        session.updated_at = now
        await db.flush()
        return session

    async def abandon_session(
        self, db: AsyncSession, session: AssessmentSession
    ) -> AssessmentSession:
        session.status = SessionStatus.ABANDONED.value
        session.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return session

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    async def get_response(
        self, db: AsyncSession, session_id: uuid.UUID, question_id: uuid.UUID
    ) -> AssessmentResponse | None:
        stmt = select(AssessmentResponse).where(
            AssessmentResponse.session_id == session_id,
            AssessmentResponse.question_id == question_id,
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def create_response(
        self,
        db: AsyncSession,
        *,
        session_id: uuid.UUID,
        question_id: uuid.UUID,
        user_id: uuid.UUID,
        response_value: str | None = None,
        response_numeric: float | None = None,
        response_json: Any = None,
    ) -> AssessmentResponse:
        """Insert one response; only the populated value column is set."""
        values = {
            name: value
            for name, value in (
                ("response_value", response_value),
                ("response_numeric", response_numeric),
                ("response_json", response_json),
            )
            if value is not None
        }
        if len(values) != 1:
            raise ValueError(
                f"Exactly one response value column must be set, got {sorted(values)}"
            )
        response = AssessmentResponse(
            session_id=session_id,
            question_id=question_id,
            user_id=user_id,
            **values,
        )
        db.add(response)
        await db.flush()
        return response

    async def count_responses(self, db: AsyncSession, session_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(AssessmentResponse).where(
            AssessmentResponse.session_id == session_id
        )
        result = await db.execute(stmt)
        return result.scalar_one()

    async def list_session_responses(
        self, db: AsyncSession, session_id: uuid.UUID
    ) -> list[AssessmentResponse]:
        """Responses in answer order, question loaded."""
        stmt = (
            select(AssessmentResponse)
            .options(selectinload(AssessmentResponse.question))
            .where(AssessmentResponse.session_id == session_id)
            .order_by(AssessmentResponse.created_at)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_user_responses(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> list[AssessmentResponse]:
        """Every response a user has given, with question and bucket loaded."""
        stmt = (
            select(AssessmentResponse)
            .options(
                selectinload(AssessmentResponse.question).selectinload(
                    AssessmentQuestion.bucket
                )
            )
            .where(AssessmentResponse.user_id == user_id)
            .order_by(AssessmentResponse.created_at)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())


class AnalysisRepository:
    """The ``user_assessment_results`` cache."""

    async def get_by_user(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> UserAssessmentResult | None:
        stmt = (
            select(UserAssessmentResult)
            .where(UserAssessmentResult.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def lock_user(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        """Serialise analysis generation for one user until commit/rollback."""
        await advisory_xact_lock(db, f"analysis:{user_id}")

    async def upsert(
        self, db: AsyncSession, user_id: uuid.UUID, profile: dict[str, Any]
    ) -> UserAssessmentResult:
        """Insert or replace the cached analysis atomically (keyed by user)."""
        now = datetime.now(timezone.utc)
        values = {**profile, "updated_at": now}
        stmt = (
            pg_insert(UserAssessmentResult)
            .values(id=uuid.uuid4(), user_id=user_id, created_at=now, **values)
            .on_conflict_do_update(
                index_elements=[UserAssessmentResult.user_id],
                set_=values,
            )
        )
        await db.execute(stmt)
        result = await db.execute(
            select(UserAssessmentResult)
            .where(UserAssessmentResult.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
