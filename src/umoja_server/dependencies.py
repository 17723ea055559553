"""FastAPI dependency injection — provides DB sessions, services, and user identity.

Each request that touches the database gets a fresh ``AsyncSession`` via
``get_db()``.  The session is committed on success and rolled back on error,
matching the SDK convention where services and repositories call ``flush()``
but never ``commit()``.

Session factories, services and the analysis backend are built once in the
application lifespan and stashed on ``app.state``.
"""

import hmac
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from umoja_db.models.user import User

from umoja_assessment.accounts import AccountService
from umoja_assessment.analysis import AnalysisService
from umoja_assessment.catalog import CatalogReader
from umoja_assessment.errors import ConfigurationError, UnauthorizedError
from umoja_assessment.guardian import GuardianLinkResolver
from umoja_assessment.recorder import AssessmentRecorder


# ------------------------------------------------------------------
# Database sessions: transaction boundary lives here
# ------------------------------------------------------------------

async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a service-role DB session; commit on success, rollback on error."""
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        raise ConfigurationError("DATABASE_URL (or PG_PASSWORD) is not configured")
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_read_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a read-only session for catalog reads; never commits."""
    factory = getattr(request.app.state, "readonly_session_factory", None)
    if factory is None:
        raise ConfigurationError("DATABASE_READONLY_URL (or DATABASE_URL) is not configured")
    async with factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


# ------------------------------------------------------------------
# Services: stashed on app.state during lifespan
# ------------------------------------------------------------------

def get_accounts(request: Request) -> AccountService:
    return request.app.state.accounts


def get_catalog(request: Request) -> CatalogReader:
    return request.app.state.catalog


def get_recorder(request: Request) -> AssessmentRecorder:
    return request.app.state.recorder


def get_guardian_resolver(request: Request) -> GuardianLinkResolver:
    return request.app.state.guardian_resolver


def get_analysis_service(request: Request) -> AnalysisService:
    """Return the analysis service, or fail if no LLM key was configured.

    Resolved before the DB session so a missing key is reported without
    touching the database.
    """
    service = getattr(request.app.state, "analysis", None)
    if service is None:
        raise ConfigurationError("OPENAI_API_KEY is not configured")
    return service


# ------------------------------------------------------------------
# User identity: extracted from gateway headers
# ------------------------------------------------------------------

async def get_external_id(
    request: Request,
    x_user_id: str | None = Header(None, alias="X-User-ID"),
    x_proxy_secret: str | None = Header(None, alias="X-Proxy-Secret"),
) -> str:
    """Extract the caller's identity-provider subject from ``X-User-ID``.

    Returns 401 if the header is missing.

    When ``TRUSTED_PROXY_SECRET`` is configured, the request must also
    carry a matching ``X-Proxy-Secret`` header.  This proves the
    ``X-User-ID`` was injected by the identity gateway and not forged
    by an external client.
    """
    if not x_user_id:
        raise UnauthorizedError("Unauthorized")

    expected_secret: str | None = request.app.state.settings.trusted_proxy_secret
    if expected_secret:
        if not x_proxy_secret:
            raise HTTPException(status_code=403, detail="X-Proxy-Secret header is required")
        # Constant-time comparison to prevent timing side-channels.
        if not hmac.compare_digest(x_proxy_secret, expected_secret):
            raise HTTPException(status_code=403, detail="Invalid proxy secret")

    return x_user_id


def get_user_email(
    x_user_email: str | None = Header(None, alias="X-User-Email"),
) -> str:
    """Primary e-mail forwarded by the gateway, or an empty string."""
    return x_user_email or ""


async def get_assessment_user(
    external_id: str = Depends(get_external_id),
    email: str = Depends(get_user_email),
    db: AsyncSession = Depends(get_db),
    accounts: AccountService = Depends(get_accounts),
) -> User:
    """Resolve the caller to a ``users`` row, auto-creating a child user."""
    return await accounts.get_or_create_user(db, external_id, email)
