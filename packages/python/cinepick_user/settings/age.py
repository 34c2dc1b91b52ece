from datetime import date, datetime

from cinepick_core.config import ADULT_AGE


def _parse_birth_date(value: str | date | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def age_on(birth: date, today: date) -> int:
    years = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        years -= 1
    return years


def should_filter_adult(
    birth_date: str | date | None,
    *,
    default: bool = True,
    today: date | None = None,
) -> bool:
    """True when adult-flagged titles must be hidden. Unknown or unparsable birth date -> `default`."""
    try:
        birth = _parse_birth_date(birth_date)
    except ValueError:
        return default
    if birth is None:
        return default
    return age_on(birth, today or date.today()) < ADULT_AGE
