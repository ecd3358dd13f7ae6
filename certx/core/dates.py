"""
Date helpers shared by the policy, the status resolver and the wire schemas.

The registry sends dates either as "YYYY-MM-DD" or as full ISO timestamps
("2025-01-01T00:00:00.000Z"). Calendar dates are always taken from the
first ten characters, i.e. the date the server wrote, not a local shift of it.
"""

from datetime import date, datetime

from dateutil.parser import isoparse


def parse_date(value: date | datetime | str | None) -> date | None:
    """
    Coerce a wire/date value to a calendar date.

    Raises:
        ValueError: if a non-empty string is not an ISO date or timestamp.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    return date.fromisoformat(text[:10])


def parse_datetime(value: datetime | str | None) -> datetime | None:
    """Coerce an ISO timestamp (``Z`` suffix and millisecond precision allowed) to a datetime."""
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if not text:
        return None
    return isoparse(text)


def to_local_naive(moment: datetime) -> datetime:
    """Aware datetimes are converted to local wall-clock time; naive ones pass through."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)
