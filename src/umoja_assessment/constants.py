"""Assessment constants shared across the SDK."""

from umoja_db.models.enums import QuestionType

# Canonical display order for buckets; unknown names sort after these,
# alphabetically.
BUCKET_ORDER: list[str] = [
    "Relational & Interactional Fit",
    "Interests, Motivation & Growth Potential",
    "Foundational Skills & Readiness",
    "Contextual & Holistic Insights",
]

# The six traits the analysis scores, in chart order.
TRAIT_NAMES: list[str] = [
    "Leadership",
    "Collaboration",
    "Empathy",
    "Problem Solving",
    "Digital Literacy",
    "Growth Mindset",
]

# Maximum score for every trait (the chart's full mark).
TRAIT_FULL_MARK = 100

# Which tagged value kind each question type accepts.
RESPONSE_KIND_BY_QUESTION_TYPE: dict[str, str] = {
    QuestionType.MULTIPLE_CHOICE.value: "text",
    QuestionType.OPEN_ENDED.value: "text",
    QuestionType.LIKERT_SCALE.value: "numeric",
    QuestionType.IMAGE_SELECTION.value: "structured",
}

# Dashboards a freshly synced user is sent to, by role.
DASHBOARD_URLS: dict[str, str] = {
    "child": "/child-dashboard",
    "guardian": "/guardian-dashboard",
}

# Default model and upper bound (seconds) for the analysis call.
DEFAULT_ANALYSIS_MODEL = "gpt-4o"
DEFAULT_LLM_TIMEOUT_SECONDS = 60.0

# Placeholder names for a guardian profile created implicitly on first link.
DEFAULT_GUARDIAN_FIRST_NAME = "Guardian"
DEFAULT_GUARDIAN_LAST_NAME = "User"
