"""Date manipulation utilities"""

from datetime import datetime, timezone
from typing import Any, Optional
from dateutil import parser as date_parser

# Fields missing from a partial date string are filled from here rather than from "today"
_PARSE_DEFAULT = datetime(1970, 1, 1)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a datetime or date-like string; None when it cannot be understood"""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return date_parser.parse(value.strip(), default=_PARSE_DEFAULT)
    except (ValueError, OverflowError):
        return None


def to_utc(value: datetime) -> datetime:
    """Convert to an aware UTC datetime, treating naive values as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso_utc(value: datetime) -> str:
    """Canonical ISO-8601 instant string"""
    return to_utc(value).isoformat()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def month_key(value: Any) -> Optional[str]:
    """YYYY-MM bucket for a timestamp, None when unparseable"""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return to_utc(parsed).strftime("%Y-%m")
