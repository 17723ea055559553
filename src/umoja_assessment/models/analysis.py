"""Analysis models — the JSON schema the LLM must return, and the cached
result served to callers.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from umoja_assessment.constants import TRAIT_FULL_MARK


class LearningStyle(BaseModel):
    """VARK learning style pair with a free-text description."""

    primary: str
    secondary: str
    description: str


class TraitScore(BaseModel):
    # ``fullMark`` keeps the camelCase key the charting front end expects.
    model_config = ConfigDict(populate_by_name=True)

    trait: str
    score: int = Field(ge=0, le=100)
    full_mark: int = Field(default=TRAIT_FULL_MARK, alias="fullMark")


class AnalysisProfile(BaseModel):
    """The structured profile requested from the LLM.

    Only presence and basic types are validated; list lengths are guidance
    in the prompt, not enforced here.
    """

    personality_summary: str
    learning_style: LearningStyle
    trait_scores: list[TraitScore]
    strengths: list[str]
    areas_for_growth: list[str]
    pod_recommendation: str

    def to_columns(self) -> dict:
        """Column values for ``user_assessment_results``."""
        return self.model_dump(by_alias=True)


class AnalysisResult(AnalysisProfile):
    """A cached analysis row as returned by ``/api/assessment/analyze``."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None
