"""Guardian endpoints — search for a child and link to it.

Search outcomes that the guardian can fix by changing the input (no match,
several matches, already linked) are reported as ``200`` with
``success: false`` and a human-readable ``message``.
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from umoja_assessment.accounts import AccountService
from umoja_assessment.age_band import parse_dob
from umoja_assessment.errors import LINK_OUTCOME_ERRORS, InvalidInputError, NotFoundError
from umoja_assessment.guardian import DEFAULT_RELATIONSHIP_TYPE, GuardianLinkResolver
from umoja_assessment.models.accounts import ChildSearch

from umoja_server.dependencies import (
    get_accounts,
    get_db,
    get_external_id,
    get_guardian_resolver,
)

router = APIRouter(tags=["guardian"])

_MISSING_FIELDS = "First name, last name, and date of birth are required"
_GUARDIAN_NOT_FOUND = (
    "Guardian account not found. Please ensure you have signed up as a guardian."
)


# ------------------------------------------------------------------
# Request models
# ------------------------------------------------------------------

class VerifyChildRequest(BaseModel):
    """Body for POST /guardian/verify-child."""
    model_config = ConfigDict(populate_by_name=True)

    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    date_of_birth: str | None = Field(default=None, alias="dateOfBirth")
    school_name: str | None = Field(default=None, alias="schoolName")
    grade: str | None = Field(default=None, alias="grade")
    relationship_type: str = Field(default=DEFAULT_RELATIONSHIP_TYPE, alias="relationshipType")


def _build_search(
    first_name: str | None,
    last_name: str | None,
    date_of_birth: str | None,
    school_name: str | None,
    grade: str | None,
) -> ChildSearch:
    if not first_name or not last_name or not date_of_birth:
        raise InvalidInputError(_MISSING_FIELDS)
    return ChildSearch(
        first_name=first_name,
        last_name=last_name,
        date_of_birth=parse_dob(date_of_birth),
        school_name=school_name,
        grade=grade,
    )


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/guardian/verify-child")
async def verify_child(
    body: VerifyChildRequest,
    external_id: str = Depends(get_external_id),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_accounts),
    resolver: GuardianLinkResolver = Depends(get_guardian_resolver),
) -> dict:
    """Link the caller (a guardian) to the single child matching the details."""
    search = _build_search(
        body.first_name, body.last_name, body.date_of_birth, body.school_name, body.grade,
    )
    try:
        user = await accounts.require_user(db, external_id)
    except NotFoundError:
        raise NotFoundError(_GUARDIAN_NOT_FOUND) from None

    try:
        result = await resolver.link_child(
            db, user.id, search, relationship_type=body.relationship_type,
        )
    except LINK_OUTCOME_ERRORS as exc:
        return {"success": False, "message": exc.message}

    child = result.child
    return {
        "success": True,
        "message": f"Successfully linked to {child.first_name} {child.last_name}",
        "child": child,
        "relationship": result.relationship,
    }


@router.get("/guardian/verify-child")
async def search_children(
    first_name: str | None = Query(None, alias="firstName"),
    last_name: str | None = Query(None, alias="lastName"),
    date_of_birth: str | None = Query(None, alias="dateOfBirth"),
    school_name: str | None = Query(None, alias="schoolName"),
    grade: str | None = Query(None),
    external_id: str = Depends(get_external_id),
    db: AsyncSession = Depends(get_db),
    resolver: GuardianLinkResolver = Depends(get_guardian_resolver),
) -> dict:
    """Search for matching children without linking."""
    search = _build_search(first_name, last_name, date_of_birth, school_name, grade)
    children = await resolver.find_children(db, search)
    return {"children": children, "found": len(children) > 0}
