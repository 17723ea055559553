"""ORM models for umoja_db."""

from umoja_db.models.assessment import (
    AssessmentBucket,
    AssessmentQuestion,
    AssessmentResponse,
    AssessmentSession,
)
from umoja_db.models.base import Base
from umoja_db.models.enums import AgeBand, QuestionType, SessionStatus, UserRole
from umoja_db.models.profile import (
    ChildGuardianRelationship,
    ChildProfile,
    EmergencyContact,
    GuardianProfile,
)
from umoja_db.models.result import UserAssessmentResult
from umoja_db.models.user import User

__all__ = [
    "Base",
    # Enums
    "AgeBand",
    "QuestionType",
    "SessionStatus",
    "UserRole",
    # Accounts
    "User",
    "ChildProfile",
    "GuardianProfile",
    "ChildGuardianRelationship",
    "EmergencyContact",
    # Assessment
    "AssessmentBucket",
    "AssessmentQuestion",
    "AssessmentSession",
    "AssessmentResponse",
    "UserAssessmentResult",
]
