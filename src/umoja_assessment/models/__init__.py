"""Public model re-exports for umoja_assessment.

Consumers should import from ``umoja_assessment.models`` rather than
reaching into sub-modules directly.
"""

# --- Accounts ---
from umoja_assessment.models.accounts import (
    ChildDashboard,
    ChildMatch,
    ChildProfileData,
    ChildProfileInfo,
    ChildSearch,
    EmergencyContactData,
    EmergencyContactInfo,
    GuardianDashboard,
    GuardianProfileInfo,
    LinkedChild,
    LinkResult,
    RelationshipInfo,
    SyncResult,
    UserInfo,
)

# --- Analysis ---
from umoja_assessment.models.analysis import (
    AnalysisProfile,
    AnalysisResult,
    LearningStyle,
    TraitScore,
)

# --- Catalog ---
from umoja_assessment.models.catalog import (
    BucketInfo,
    Catalog,
    CatalogBucket,
    CatalogQuestion,
    QuestionInfo,
)

# --- Sessions / responses ---
from umoja_assessment.models.session import (
    BucketProgress,
    CompletionSummary,
    NumericValue,
    ProgressReport,
    ResponseInfo,
    ResponseValue,
    SessionInfo,
    SessionSummary,
    StructuredValue,
    TextValue,
)

__all__ = [
    # Accounts
    "ChildDashboard",
    "ChildMatch",
    "ChildProfileData",
    "ChildProfileInfo",
    "ChildSearch",
    "EmergencyContactData",
    "EmergencyContactInfo",
    "GuardianDashboard",
    "GuardianProfileInfo",
    "LinkedChild",
    "LinkResult",
    "RelationshipInfo",
    "SyncResult",
    "UserInfo",
    # Analysis
    "AnalysisProfile",
    "AnalysisResult",
    "LearningStyle",
    "TraitScore",
    # Catalog
    "BucketInfo",
    "Catalog",
    "CatalogBucket",
    "CatalogQuestion",
    "QuestionInfo",
    # Sessions
    "BucketProgress",
    "CompletionSummary",
    "NumericValue",
    "ProgressReport",
    "ResponseInfo",
    "ResponseValue",
    "SessionInfo",
    "SessionSummary",
    "StructuredValue",
    "TextValue",
]
