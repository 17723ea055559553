"""Role-specific dashboard endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from umoja_assessment.accounts import AccountService
from umoja_assessment.models.accounts import GuardianDashboard

from umoja_server.dependencies import get_accounts, get_db, get_external_id

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
async def get_dashboard(
    external_id: str = Depends(get_external_id),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_accounts),
) -> dict:
    """Guardian: profile plus linked children.  Child: own profile.

    Raises 404 for an unknown user and 400 for a user with no usable role.
    """
    dashboard = await accounts.get_dashboard(db, external_id)
    if isinstance(dashboard, GuardianDashboard):
        return {
            "guardian": dashboard.guardian,
            "children": dashboard.children,
            "userRole": dashboard.user_role,
        }
    return {"child": dashboard.child, "userRole": dashboard.user_role}
