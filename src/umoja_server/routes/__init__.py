"""Route registration — mounts all routers under ``/api``."""

from fastapi import FastAPI

from umoja_server.routes.analysis import router as analysis_router
from umoja_server.routes.assessment import router as assessment_router
from umoja_server.routes.auth import router as auth_router
from umoja_server.routes.dashboard import router as dashboard_router
from umoja_server.routes.guardian import router as guardian_router
from umoja_server.routes.profiles import router as profiles_router

API_PREFIX = "/api"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the API prefix."""
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(dashboard_router, prefix=API_PREFIX)
    app.include_router(guardian_router, prefix=API_PREFIX)
    app.include_router(profiles_router, prefix=API_PREFIX)
    app.include_router(assessment_router, prefix=API_PREFIX)
    app.include_router(analysis_router, prefix=API_PREFIX)
