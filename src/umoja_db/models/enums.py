"""Database-level enumerations shared by the ORM models and the SDK."""

import enum


class UserRole(str, enum.Enum):
    """Role chosen at sign-up; decides which dashboard the user sees."""

    CHILD = "child"
    GUARDIAN = "guardian"


class AgeBand(str, enum.Enum):
    """Coarse grade-level grouping that scopes an assessment bucket."""

    K_2 = "K-2"
    GRADES_3_5 = "3-5"
    MIDDLE_SCHOOL = "MS"
    HIGH_SCHOOL_PLUS = "HS+"


class QuestionType(str, enum.Enum):
    """How a question is answered (and which response field it fills)."""

    MULTIPLE_CHOICE = "multiple_choice"
    LIKERT_SCALE = "likert_scale"
    OPEN_ENDED = "open_ended"
    IMAGE_SELECTION = "image_selection"


class SessionStatus(str, enum.Enum):
    """Lifecycle states for an assessment session.

    Transitions:
        in_progress -> completed  (user finished the bucket)
        in_progress -> abandoned  (user gave up; kept for history)
    """

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
