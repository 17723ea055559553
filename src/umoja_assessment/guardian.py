"""GuardianLinkResolver — lets a guardian find and claim a child profile.

A guardian identifies a child by exact first name, last name and date of
birth, optionally narrowed by school and grade.  Exactly one match is
required to link.  The first guardian linked to a child becomes its primary
guardian; later guardians are linked as non-primary.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from umoja_db.models.profile import GuardianProfile
from umoja_db.repository import ProfileRepository

from umoja_assessment.constants import (
    DEFAULT_GUARDIAN_FIRST_NAME,
    DEFAULT_GUARDIAN_LAST_NAME,
)
from umoja_assessment.errors import (
    AlreadyLinkedError,
    AmbiguousChildError,
    ChildNotFoundError,
    InvalidInputError,
)
from umoja_assessment.models.accounts import (
    ChildMatch,
    ChildSearch,
    LinkResult,
    RelationshipInfo,
)

logger = logging.getLogger(__name__)

DEFAULT_RELATIONSHIP_TYPE = "parent"


def _clean_optional(value: str | None) -> str | None:
    """Trim an optional filter; blank means "not given"."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_search(criteria: ChildSearch) -> ChildSearch:
    first_name = criteria.first_name.strip()
    last_name = criteria.last_name.strip()
    if not first_name or not last_name:
        raise InvalidInputError("First name, last name, and date of birth are required")
    return ChildSearch(
        first_name=first_name,
        last_name=last_name,
        date_of_birth=criteria.date_of_birth,
        school_name=_clean_optional(criteria.school_name),
        grade=_clean_optional(criteria.grade),
    )


class GuardianLinkResolver:
    """Search and link operations on child/guardian relationships.

    Args:
        repo: profile repository; a fresh :class:`ProfileRepository` when
            omitted.
    """

    def __init__(self, repo: ProfileRepository | None = None) -> None:
        self._repo = repo or ProfileRepository()

    async def find_children(
        self, db: AsyncSession, criteria: ChildSearch
    ) -> list[ChildMatch]:
        """Exact, case-sensitive match on the trimmed criteria."""
        search = normalize_search(criteria)
        rows = await self._repo.find_children(
            db,
            first_name=search.first_name,
            last_name=search.last_name,
            date_of_birth=search.date_of_birth,
            school_name=search.school_name,
            grade=search.grade,
        )
        return [ChildMatch.model_validate(r) for r in rows]

    async def ensure_guardian_profile(
        self,
        db: AsyncSession,
        guardian_user_id: uuid.UUID,
        relationship_type: str = DEFAULT_RELATIONSHIP_TYPE,
    ) -> GuardianProfile:
        """Fetch the guardian's profile, creating a placeholder one if absent."""
        profile = await self._repo.get_guardian_profile(db, guardian_user_id)
        if profile is not None:
            return profile
        logger.info("Creating guardian profile for user=%s", guardian_user_id)
        return await self._repo.create_guardian_profile(
            db,
            user_id=guardian_user_id,
            first_name=DEFAULT_GUARDIAN_FIRST_NAME,
            last_name=DEFAULT_GUARDIAN_LAST_NAME,
            relationship_to_child=relationship_type,
        )

    async def link_child(
        self,
        db: AsyncSession,
        guardian_user_id: uuid.UUID,
        criteria: ChildSearch,
        relationship_type: str = DEFAULT_RELATIONSHIP_TYPE,
    ) -> LinkResult:
        """Link the guardian to the single child matching ``criteria``.

        Raises:
            ChildNotFoundError: no child matches
            AmbiguousChildError: more than one child matches
            AlreadyLinkedError: this guardian is already linked to the child
        """
        relationship_type = relationship_type.strip() or DEFAULT_RELATIONSHIP_TYPE
        guardian = await self.ensure_guardian_profile(
            db, guardian_user_id, relationship_type,
        )

        matches = await self.find_children(db, criteria)
        if not matches:
            raise ChildNotFoundError()
        if len(matches) > 1:
            raise AmbiguousChildError(len(matches))
        child = matches[0]

        # Held until commit, so two guardians racing for the same child
        # cannot both observe "no primary guardian".
        await self._repo.lock_child(db, child.id)

        existing = await self._repo.get_relationship(db, child.id, guardian.id)
        if existing is not None:
            raise AlreadyLinkedError()

        is_primary = not await self._repo.has_primary_guardian(db, child.id)
        link = await self._repo.create_relationship(
            db,
            child_profile_id=child.id,
            guardian_profile_id=guardian.id,
            relationship_type=relationship_type,
            is_primary_guardian=is_primary,
        )
        logger.info(
            "Guardian linked: guardian=%s child=%s primary=%s",
            guardian.id, child.id, is_primary,
        )
        return LinkResult(child=child, relationship=RelationshipInfo.model_validate(link))
