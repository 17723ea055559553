"""umoja_assessment — learner-assessment SDK.

Public API:
    AssessmentRecorder   — session lifecycle, responses, progress/completion
    CatalogReader        — buckets/questions reads and YAML catalog seeding
    AnalysisService      — cache-first LLM personality/learning profile
    GuardianLinkResolver — guardian-to-child search and linking
    AccountService       — user sync, dashboards, child profile upkeep
    band_for             — date of birth to age band

Analysis backend:
    ProfileAnalyzer       — ABC for the profile-analysis backend
    OpenAIProfileAnalyzer — OpenAI chat-completions implementation
    PromptManager         — Jinja2 renderer for the analysis prompts
"""

from umoja_assessment.accounts import AccountService
from umoja_assessment.age_band import band_for, parse_dob
from umoja_assessment.analysis import AnalysisService
from umoja_assessment.catalog import CatalogReader, load_catalog
from umoja_assessment.errors import (
    ConfigurationError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    UmojaError,
    UnauthorizedError,
    UpstreamError,
)
from umoja_assessment.guardian import GuardianLinkResolver
from umoja_assessment.interfaces import ProfileAnalyzer
from umoja_assessment.llm import OpenAIProfileAnalyzer
from umoja_assessment.prompt import PromptManager
from umoja_assessment.recorder import AssessmentRecorder

__all__ = [
    # Services
    "AccountService",
    "AnalysisService",
    "AssessmentRecorder",
    "CatalogReader",
    "GuardianLinkResolver",
    # Helpers
    "band_for",
    "load_catalog",
    "parse_dob",
    # Analysis backend
    "OpenAIProfileAnalyzer",
    "ProfileAnalyzer",
    "PromptManager",
    # Errors
    "ConfigurationError",
    "ConflictError",
    "InvalidInputError",
    "NotFoundError",
    "UmojaError",
    "UnauthorizedError",
    "UpstreamError",
]
