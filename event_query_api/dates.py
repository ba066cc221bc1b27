"""
Calendar day keys and the window of days the API will serve.
"""
import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

YMD = "%Y-%m-%d"
YMD_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Days outside (EARLIEST_DATE, today) are never served. This lets clients
# follow pagination links backwards blindly and keeps uncollected days out.
EARLIEST_DATE = date(2016, 1, 1)


def parse_date(date_str: str) -> date:
    """
    Parse a zero padded YYYY-MM-DD day.

    Raises:
        ValueError: if the string is not a real calendar day in that format
    """
    if not isinstance(date_str, str) or not YMD_RE.match(date_str):
        raise ValueError(f"Invalid date: {date_str!r}")
    return datetime.strptime(date_str, YMD).date()


def try_parse_date(date_str: Optional[str]) -> Optional[date]:
    """Parse date or None on failure"""
    try:
        return parse_date(date_str)
    except ValueError:
        return None


def format_date(day: date) -> str:
    return day.strftime(YMD)


def prev_date_str(date_str: str) -> str:
    return format_date(parse_date(date_str) - timedelta(days=1))


def next_date_str(date_str: str) -> str:
    return format_date(parse_date(date_str) + timedelta(days=1))


def today() -> date:
    """Current UTC calendar day"""
    return datetime.now(timezone.utc).date()


def in_served_range(day: date, latest: Optional[date] = None) -> bool:
    """True if day lies strictly between EARLIEST_DATE and latest (default today)"""
    latest = latest or today()
    return EARLIEST_DATE < day < latest
