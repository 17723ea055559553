"""AccountService — maps gateway identities to users and their profiles.

The identity gateway authenticates people and passes an opaque subject id;
this module owns everything keyed off it: the ``users`` row, its role, the
role-specific dashboard, the child profile and its emergency contacts.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from umoja_db.models.enums import UserRole
from umoja_db.models.profile import ChildProfile
from umoja_db.models.user import User
from umoja_db.repository import ProfileRepository, UserRepository

from umoja_assessment.constants import DASHBOARD_URLS
from umoja_assessment.errors import InvalidInputError, NotFoundError
from umoja_assessment.models.accounts import (
    ChildDashboard,
    ChildProfileData,
    ChildProfileInfo,
    EmergencyContactData,
    EmergencyContactInfo,
    GuardianDashboard,
    GuardianProfileInfo,
    LinkedChild,
    SyncResult,
    UserInfo,
)

logger = logging.getLogger(__name__)


def parse_role(value: str | None) -> UserRole:
    try:
        return UserRole(value)
    except ValueError:
        raise InvalidInputError("Invalid user type") from None


class AccountService:
    """User sync, dashboards, and child-profile maintenance.

    Args:
        users: user repository; created when omitted.
        profiles: profile repository; created when omitted.
    """

    def __init__(
        self,
        users: UserRepository | None = None,
        profiles: ProfileRepository | None = None,
    ) -> None:
        self._users = users or UserRepository()
        self._profiles = profiles or ProfileRepository()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def sync_user(
        self, db: AsyncSession, *, external_id: str, email: str, role: str | None
    ) -> SyncResult:
        """Create the user on first sign-in, or update the role if it changed."""
        user_role = parse_role(role)
        user = await self._users.get_by_external_id(db, external_id)
        created = False
        if user is None:
            user = await self._users.create_user(
                db, external_id=external_id, email=email, role=user_role.value,
            )
            created = True
            logger.info("User created: id=%s role=%s", user.id, user_role.value)
        elif user.role != user_role.value:
            logger.info(
                "User role changed: id=%s %s -> %s", user.id, user.role, user_role.value,
            )
            user = await self._users.set_role(db, user, user_role.value)

        return SyncResult(
            user=UserInfo.model_validate(user),
            redirect_url=DASHBOARD_URLS[user_role.value],
            created=created,
        )

    async def get_or_create_user(
        self, db: AsyncSession, external_id: str, email: str = ""
    ) -> User:
        """Look up a user, creating a ``child`` user when none exists yet."""
        user = await self._users.get_by_external_id(db, external_id)
        if user is not None:
            return user
        user = await self._users.create_user(
            db, external_id=external_id, email=email, role=UserRole.CHILD.value,
        )
        logger.info("User auto-created as child: id=%s", user.id)
        return user

    async def require_user(self, db: AsyncSession, external_id: str) -> User:
        user = await self._users.get_by_external_id(db, external_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def get_dashboard(
        self, db: AsyncSession, external_id: str
    ) -> GuardianDashboard | ChildDashboard:
        user = await self.require_user(db, external_id)

        if user.role == UserRole.GUARDIAN.value:
            guardian = await self._profiles.get_guardian_profile(db, user.id)
            if guardian is None:
                return GuardianDashboard()
            links = await self._profiles.list_guardian_children(db, guardian.id)
            return GuardianDashboard(
                guardian=GuardianProfileInfo.model_validate(guardian),
                children=[LinkedChild.model_validate(link) for link in links],
            )

        if user.role == UserRole.CHILD.value:
            child = await self._profiles.get_child_profile(db, user.id)
            return ChildDashboard(
                child=ChildProfileInfo.model_validate(child) if child else None,
            )

        raise InvalidInputError("Invalid user role")

    # ------------------------------------------------------------------
    # Child profile
    # ------------------------------------------------------------------

    async def save_child_profile(
        self, db: AsyncSession, external_id: str, data: ChildProfileData
    ) -> ChildProfileInfo:
        """Upsert the caller's child profile and mark it completed."""
        user = await self.require_user(db, external_id)
        fields = data.model_dump()
        for key in ("first_name", "last_name"):
            fields[key] = fields[key].strip()
        fields["profile_completed"] = True
        profile = await self._profiles.save_child_profile(db, user.id, fields)
        logger.info("Child profile saved: user=%s profile=%s", user.id, profile.id)
        return ChildProfileInfo.model_validate(profile)

    async def get_child_profile(
        self, db: AsyncSession, external_id: str
    ) -> ChildProfileInfo | None:
        user = await self.require_user(db, external_id)
        profile = await self._profiles.get_child_profile(db, user.id)
        return ChildProfileInfo.model_validate(profile) if profile else None

    async def save_emergency_contacts(
        self,
        db: AsyncSession,
        external_id: str,
        contacts: list[EmergencyContactData],
    ) -> list[EmergencyContactInfo]:
        """Replace every emergency contact of the caller's child profile."""
        profile = await self._require_child_profile(db, external_id)
        rows = await self._profiles.replace_emergency_contacts(
            db, profile.id, [c.model_dump() for c in contacts],
        )
        return [EmergencyContactInfo.model_validate(r) for r in rows]

    async def list_emergency_contacts(
        self, db: AsyncSession, external_id: str
    ) -> list[EmergencyContactInfo]:
        profile = await self._require_child_profile(db, external_id)
        rows = await self._profiles.list_emergency_contacts(db, profile.id)
        return [EmergencyContactInfo.model_validate(r) for r in rows]

    async def _require_child_profile(
        self, db: AsyncSession, external_id: str
    ) -> ChildProfile:
        user = await self.require_user(db, external_id)
        profile = await self._profiles.get_child_profile(db, user.id)
        if profile is None:
            raise NotFoundError("Child profile not found")
        return profile
