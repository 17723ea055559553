"""umoja_db — PostgreSQL persistence layer for the UMOJA assessment backend.

This package provides the ORM models, async engine builders, and
repositories for users, profiles, the assessment catalog, sessions,
responses, and the cached analysis.  It is consumed by the
``umoja_assessment`` SDK and the FastAPI server.
"""

from umoja_db.engine import build_engine, build_session_factory, dispose_engine
from umoja_db.models.enums import AgeBand, QuestionType, SessionStatus, UserRole
from umoja_db.repository import (
    AnalysisRepository,
    AssessmentRepository,
    ProfileRepository,
    UserRepository,
)

__all__ = [
    "AgeBand",
    "QuestionType",
    "SessionStatus",
    "UserRole",
    "build_engine",
    "build_session_factory",
    "dispose_engine",
    "AnalysisRepository",
    "AssessmentRepository",
    "ProfileRepository",
    "UserRepository",
]
