"""Age-band classifier — maps a date of birth to the question set to use.

Bands are checked in order and the first match wins, so the shared
boundary ages (8, 11, 14) fall into the *younger* band.  Children under 5
fall back to K-2.
"""

from datetime import date

from umoja_db.models.enums import AgeBand

from umoja_assessment.errors import InvalidInputError

# (min_age, max_age inclusive, band): first match wins
_BANDS: list[tuple[int, int | None, AgeBand]] = [
    (5, 8, AgeBand.K_2),
    (8, 11, AgeBand.GRADES_3_5),
    (11, 14, AgeBand.MIDDLE_SCHOOL),
    (14, None, AgeBand.HIGH_SCHOOL_PLUS),
]

FALLBACK_BAND = AgeBand.K_2


def parse_dob(value: str | date) -> date:
    """Parse an ISO ``YYYY-MM-DD`` date of birth."""
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidInputError(
            f"Invalid date of birth {value!r}; expected YYYY-MM-DD"
        ) from None


def age_on(dob: date, today: date) -> int:
    """Whole years between *dob* and *today*, birthday-aware."""
    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1
    return age


def band_for(dob: str | date, today: date | None = None) -> AgeBand:
    """Return the age band for a date of birth as of *today*."""
    age = age_on(parse_dob(dob), today or date.today())
    for low, high, band in _BANDS:
        if age >= low and (high is None or age <= high):
            return band
    return FALLBACK_BAND
