"""Calendar-day helpers in the configured reporting timezone."""

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser

from src.core.config import settings
from src.core.errors import InvalidTaskInputError


DATE_FORMAT = "%Y-%m-%d"


def now_in_reporting_tz(tz_name: str | None = None) -> datetime:
    """Return the current time in the reporting timezone."""
    return datetime.now(ZoneInfo(tz_name or settings.reporting_timezone))


def today_string(tz_name: str | None = None) -> str:
    """Return today's date as YYYY-MM-DD in the reporting timezone."""
    return now_in_reporting_tz(tz_name).strftime(DATE_FORMAT)


def iso_now() -> str:
    """Return the current UTC time as an ISO-8601 string with a Z suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def date_prefix(value: object) -> str | None:
    """Return the YYYY-MM-DD prefix of an ISO timestamp or date string.

    Non-string and too-short values yield None instead of raising.
    """
    if not isinstance(value, str) or len(value) < 10:
        return None
    return value[:10]


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD (or longer ISO) string into a date.

    Raises:
        ValueError: If the string is not a valid ISO date
    """
    try:
        return date_parser.isoparse(value).date()
    except (ValueError, OverflowError) as e:
        msg = f"Invalid date: {value}"
        raise ValueError(msg) from e


def format_date(day: date) -> str:
    """Format a date as YYYY-MM-DD."""
    return day.strftime(DATE_FORMAT)


def date_range(start: date, end: date) -> list[date]:
    """Return every date from start to end inclusive."""
    days = (end - start).days
    return [start + timedelta(days=offset) for offset in range(days + 1)]


def parse_query_date(value: str, name: str) -> date:
    """Parse a date query parameter, reporting bad input as a client error.

    Raises:
        InvalidTaskInputError: If the value is not a valid YYYY-MM-DD date
    """
    try:
        return parse_date(value)
    except ValueError as e:
        raise InvalidTaskInputError(f"{name} must be a YYYY-MM-DD date") from e
