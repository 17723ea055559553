"""Child profile and emergency contact endpoints (child users only)."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from umoja_assessment.accounts import AccountService
from umoja_assessment.models.accounts import ChildProfileData, EmergencyContactData

from umoja_server.dependencies import get_accounts, get_db, get_external_id

router = APIRouter(tags=["profile"])


class EmergencyContactsRequest(BaseModel):
    """Body for PUT /profile/child/emergency-contacts."""
    contacts: list[EmergencyContactData]


@router.get("/profile/child")
async def get_child_profile(
    external_id: str = Depends(get_external_id),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_accounts),
) -> dict:
    """The caller's child profile, or ``null`` before it is filled in."""
    return {"child": await accounts.get_child_profile(db, external_id)}


@router.put("/profile/child")
async def save_child_profile(
    body: ChildProfileData,
    external_id: str = Depends(get_external_id),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_accounts),
) -> dict:
    """Create or update the caller's child profile; marks it completed."""
    return {"child": await accounts.save_child_profile(db, external_id, body)}


@router.get("/profile/child/emergency-contacts")
async def list_emergency_contacts(
    external_id: str = Depends(get_external_id),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_accounts),
) -> dict:
    return {"contacts": await accounts.list_emergency_contacts(db, external_id)}


@router.put("/profile/child/emergency-contacts")
async def replace_emergency_contacts(
    body: EmergencyContactsRequest,
    external_id: str = Depends(get_external_id),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_accounts),
) -> dict:
    """Replace the whole contact list (an empty list clears it)."""
    contacts = await accounts.save_emergency_contacts(db, external_id, body.contacts)
    return {"contacts": contacts}
