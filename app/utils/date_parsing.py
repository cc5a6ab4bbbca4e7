"""
Date normalization for user-supplied date strings.

Formats are attempted in a fixed order and the first successful parse wins.
Slash-separated numeric dates are inherently ambiguous (01/02/2006 parses as
January 2nd because MM/DD/YYYY is tried before DD/MM/YYYY), so callers can
ask is_ambiguous_numeric_date() and warn instead of silently guessing.
"""

import re
from datetime import date, datetime

from app.exceptions import InvalidDate

# (label, strptime format); order is significant
DATE_FORMATS: list[tuple[str, str]] = [
    ("YYYY-MM-DD", "%Y-%m-%d"),
    ("DD-MM-YYYY", "%d-%m-%Y"),
    ("MM/DD/YYYY", "%m/%d/%Y"),
    ("DD/MM/YYYY", "%d/%m/%Y"),
    ("YYYYMMDD", "%Y%m%d"),
    ("January 2, 2006", "%B %d, %Y"),
    ("2 January 2006", "%d %B %Y"),
]

_COMPACT_DATE_RE = re.compile(r"^\d{8}$")
_SLASH_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/\d{4}$")
_RFC3339_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<tz>Z|z|[+-]\d{2}:\d{2})$"
)

SUPPORTED_FORMATS_HINT = (
    "YYYY-MM-DD, DD-MM-YYYY, MM/DD/YYYY, DD/MM/YYYY, YYYYMMDD, "
    "'January 2, 2006', '2 January 2006', RFC3339"
)


def _parse_rfc3339(value: str) -> datetime | None:
    """Parse RFC3339 timestamps, with or without fractional seconds of any precision."""
    match = _RFC3339_RE.match(value)
    if not match:
        return None

    fraction = match.group("fraction") or ""
    # datetime only keeps microseconds; nanosecond precision is truncated
    fraction = fraction[:6].ljust(6, "0") if fraction else "000000"
    tz = match.group("tz")
    tz = "+00:00" if tz in ("Z", "z") else tz
    try:
        return datetime.fromisoformat(f"{match.group('base')}.{fraction}{tz}")
    except ValueError:
        return None


def parse_human_readable_date(value: str) -> date:
    """
    Parse a date string in one of the accepted formats into a calendar date.

    Raises InvalidDate if no format matches.
    """
    if value is None:
        raise InvalidDate("date value is required")

    candidate = value.strip()
    for label, fmt in DATE_FORMATS:
        # strptime accepts 7-digit strings for %Y%m%d; only exact 8 digits count
        if label == "YYYYMMDD" and not _COMPACT_DATE_RE.match(candidate):
            continue
        try:
            return datetime.strptime(candidate, fmt).date()
        except ValueError:
            continue

    parsed = _parse_rfc3339(candidate)
    if parsed is not None:
        return parsed.date()

    raise InvalidDate(
        f"unable to parse date '{value}'. Supported formats: {SUPPORTED_FORMATS_HINT}",
        context={"value": value},
    )


def is_ambiguous_numeric_date(value: str | None) -> bool:
    """True when a slash date could be read as either MM/DD or DD/MM and both differ."""
    if not value:
        return False
    match = _SLASH_DATE_RE.match(value.strip())
    if not match:
        return False
    first, second = int(match.group(1)), int(match.group(2))
    return first <= 12 and second <= 12 and first != second


def resolve_date_range(
    from_str: str | None,
    to_str: str | None,
    today: date | None = None,
) -> tuple[date, date]:
    """
    Resolve optional from/to strings into a validated inclusive date range.

    Absent or blank values default to today. A range whose start is after
    its end is rejected with InvalidDate before anything is fetched.
    """
    today = today or date.today()

    try:
        from_date = parse_human_readable_date(from_str) if from_str and from_str.strip() else today
    except InvalidDate as e:
        raise InvalidDate(f"invalid 'from' date: {e.message}", e.context) from e

    try:
        to_date = parse_human_readable_date(to_str) if to_str and to_str.strip() else today
    except InvalidDate as e:
        raise InvalidDate(f"invalid 'to' date: {e.message}", e.context) from e

    if from_date > to_date:
        raise InvalidDate(
            f"'from' date ({from_date.isoformat()}) cannot be after 'to' date ({to_date.isoformat()})",
            context={"from": from_date.isoformat(), "to": to_date.isoformat()},
        )

    return from_date, to_date
