"""Profile analysis endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from umoja_assessment.accounts import AccountService
from umoja_assessment.analysis import AnalysisService

from umoja_server.dependencies import (
    get_accounts,
    get_analysis_service,
    get_db,
    get_external_id,
)

router = APIRouter(tags=["analysis"])


@router.post("/assessment/analyze")
async def analyze(
    # Resolved first: a missing API key is reported before identity or DB.
    analysis: AnalysisService = Depends(get_analysis_service),
    external_id: str = Depends(get_external_id),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_accounts),
) -> dict:
    """Return the caller's cached profile, generating it on first request.

    Raises 404 when the user has no responses and 500 when the LLM call
    fails or returns an unusable reply.
    """
    user = await accounts.require_user(db, external_id)
    result = await analysis.get_or_create_analysis(db, user.id)
    return {"analysis": result}
