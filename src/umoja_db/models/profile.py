"""Child/guardian profile ORM models and the many-to-many link between them."""

import uuid
from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, Index, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from umoja_db.models.base import Base, Timestamps, UUIDPrimaryKey


class ChildProfile(UUIDPrimaryKey, Timestamps, Base):
    """A child's demographic and medical record, one per child user."""

    __tablename__ = "child_profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # --- Demographics (exact-match lookup keys for guardian verification) ---
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[str | None] = mapped_column(Text, nullable=True)
    grade: Mapped[str | None] = mapped_column(Text, nullable=True)
    school_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Medical ---
    physician_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    physician_phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    health_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    consent_given: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    profile_completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    __table_args__ = (
        Index("ix_child_identity", "first_name", "last_name", "date_of_birth"),
    )


class GuardianProfile(UUIDPrimaryKey, Timestamps, Base):
    """A guardian's contact record, created lazily on first guardian action."""

    __tablename__ = "guardian_profiles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    relationship_to_child: Mapped[str | None] = mapped_column(Text, nullable=True)


class ChildGuardianRelationship(UUIDPrimaryKey, Timestamps, Base):
    """Link row between a child and one of their guardians."""

    __tablename__ = "child_guardian_relationships"

    child_profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    guardian_profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("guardian_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    relationship_type: Mapped[str] = mapped_column(
        Text, nullable=False, default="parent"
    )
    is_primary_guardian: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    child_profile: Mapped[ChildProfile] = relationship()

    __table_args__ = (
        UniqueConstraint(
            "child_profile_id", "guardian_profile_id", name="uq_child_guardian"
        ),
        # At most one primary guardian per child
        Index(
            "ix_one_primary_guardian",
            "child_profile_id",
            unique=True,
            postgresql_where=text("is_primary_guardian"),
        ),
    )


class EmergencyContact(UUIDPrimaryKey, Timestamps, Base):
    """Emergency contact for a child; the whole list is replaced on save."""

    __tablename__ = "emergency_contacts"

    child_profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("child_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    relationship: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone_number: Mapped[str] = mapped_column(Text, nullable=False)
    can_pick_up: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
