"""Account sync endpoint — called by the front end right after sign-up/sign-in."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from umoja_assessment.accounts import AccountService

from umoja_server.dependencies import get_accounts, get_db, get_external_id, get_user_email

router = APIRouter(tags=["auth"])


class SyncUserRequest(BaseModel):
    """Body for POST /auth/sync-user."""
    user_type: str | None = Field(default=None, alias="userType")


@router.post("/auth/sync-user")
async def sync_user(
    body: SyncUserRequest,
    external_id: str = Depends(get_external_id),
    email: str = Depends(get_user_email),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_accounts),
) -> dict:
    """Create or update the caller's user row with the chosen role.

    Returns 400 ``Invalid user type`` unless ``userType`` is ``child`` or
    ``guardian``.
    """
    result = await accounts.sync_user(
        db, external_id=external_id, email=email, role=body.user_type,
    )
    return {
        "success": True,
        "user": result.user,
        "redirectUrl": result.redirect_url,
    }
