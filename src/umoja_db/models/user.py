"""User ORM model — one internal row per identity-provider subject."""

from sqlalchemy import CheckConstraint, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from umoja_db.models.base import Base, Timestamps, UUIDPrimaryKey
from umoja_db.models.enums import UserRole


class User(UUIDPrimaryKey, Timestamps, Base):
    """An authenticated principal.

    ``external_id`` is the subject issued by the identity provider; the
    application trusts it and maps it 1:1 to this row.  Rows are never
    deleted.
    """

    __tablename__ = "users"

    external_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, default="")
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.CHILD.value
    )

    __table_args__ = (
        CheckConstraint("role IN ('child', 'guardian')", name="ck_user_role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id!s}, external_id={self.external_id!r}, role={self.role!r})>"
