"""Human-friendly duration and due date parsing."""

import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from dateutil import parser as date_parser, tz


class DurationParseError(ValueError):
    """Duration could not be parsed."""

    pass


class DateParseError(ValueError):
    """Date could not be parsed."""

    pass


_UNITS = {
    "w": 7 * 86400,
    "week": 7 * 86400,
    "weeks": 7 * 86400,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
}

_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")
_PART_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]+)")
_DURATION_RE = re.compile(r"^(?:\d+(?:\.\d+)?\s*[a-z]+[\s,]*)+$")
_CLOCK_RE = re.compile(r"^(\d+):(\d{2})(?::(\d{2}))?$")


def local_timezone() -> tzinfo:
    """Get the local timezone.

    Offsets follow daylight saving rules for the date they are applied to.
    """
    return tz.tzlocal()


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as "20 minutes", "1h30m" or "1:30:00".

    Bare numbers are seconds.

    Args:
        text: Duration text

    Returns:
        Parsed duration

    Raises:
        DurationParseError: If text is not a duration
    """
    value = text.strip().lower()
    if not value:
        raise DurationParseError("Empty duration")

    if _NUMBER_RE.match(value):
        return timedelta(seconds=float(value))

    clock = _CLOCK_RE.match(value)
    if clock:
        hours, minutes, seconds = clock.groups()
        return timedelta(hours=int(hours), minutes=int(minutes), seconds=int(seconds or 0))

    if not _DURATION_RE.match(value):
        raise DurationParseError(f"Could not parse duration: {text}")

    total = 0.0
    for amount, unit in _PART_RE.findall(value):
        if unit not in _UNITS:
            raise DurationParseError(f"Unknown duration unit '{unit}' in: {text}")
        total += float(amount) * _UNITS[unit]

    return timedelta(seconds=total)


def format_duration(duration: timedelta) -> str:
    """Format a duration compactly, e.g. "1h 30m"."""
    seconds = int(duration.total_seconds())
    if seconds == 0:
        return "0s"

    parts = []
    for unit, size in (("d", 86400), ("h", 3600), ("m", 60), ("s", 1)):
        amount, seconds = divmod(seconds, size)
        if amount:
            parts.append(f"{amount}{unit}")
    return " ".join(parts)


def parse_due(text: str, now: Optional[datetime] = None) -> datetime:
    """Parse a due date.

    Accepts ISO dates and datetimes, "YYYY-MM-DD HH:MM", "now", "today",
    "tomorrow", and relative forms "in 2 hours" or "+2h". Dates without a
    time fall at the end of that day.

    Args:
        text: Date text
        now: Reference time for relative forms (default: current local time)

    Returns:
        Timezone-aware datetime

    Raises:
        DateParseError: If text is not a date
    """
    if now is None:
        now = datetime.now(local_timezone())
    value = text.strip().lower()
    end_of_day = {"hour": 23, "minute": 59, "second": 59, "microsecond": 0}

    if value == "now":
        return now
    if value == "today":
        return now.replace(**end_of_day)
    if value == "tomorrow":
        return (now + timedelta(days=1)).replace(**end_of_day)

    relative = re.match(r"^(?:in\s+|\+)(.+)$", value)
    if relative:
        try:
            delta = parse_duration(relative.group(1))
        except DurationParseError as e:
            raise DateParseError(f"Could not parse date: {text}") from e
        # Elapsed time, not wall-clock time, across DST changes
        return (now.astimezone(timezone.utc) + delta).astimezone(now.tzinfo)

    try:
        parsed = date_parser.parse(text.strip())
    except (ValueError, OverflowError) as e:
        raise DateParseError(f"Could not parse date: {text}") from e

    if re.match(r"^\d{4}-\d{2}-\d{2}$", value):
        parsed = parsed.replace(**end_of_day)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=local_timezone())
    return parsed
