"""
UTC-first datetime utilities for the Vet Clinic Record Service.

This module provides consistent date and datetime handling across both
storage backends:
- All timestamps are stored and processed in UTC
- Calendar dates (birth dates, consultation dates) are stored as ISO
  ``YYYY-MM-DD`` strings in both SQLite and MongoDB
- Timezone-aware parsing and conversion

Design Principles:
- Internal processing: Always use datetime with UTC timezone
- SQLite storage: ISO 8601 strings in UTC (stored as TEXT)
- MongoDB storage: native BSON datetimes (returned naive, treated as UTC)
- API responses: ISO 8601 strings with 'Z' suffix

Usage:
    from core.datetime_utils import utc_now, to_utc, parse_date, format_iso

    now = utc_now()
    birth = parse_date("2024-10-24")      # date(2024, 10, 24)
    iso_str = format_iso(now)             # "2025-01-01T10:00:00Z"
"""
import logging
from datetime import date, datetime, timezone
from typing import Optional, Union

logger = logging.getLogger(__name__)


# =============================================================================
# CORE UTILITIES
# =============================================================================

def utc_now() -> datetime:
    """
    Get current datetime in UTC with timezone info.

    Microseconds are dropped so that both backends (SQLite text and
    MongoDB millisecond datetimes) round-trip the same value.
    """
    return datetime.now(timezone.utc).replace(microsecond=0)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    - If datetime is naive (no timezone), assumes it's already UTC
    - If datetime has timezone, converts to UTC

    Args:
        dt: A datetime object (naive or timezone-aware).

    Returns:
        datetime: Timezone-aware datetime in UTC.
    """
    if dt.tzinfo is None:
        # Naive datetime - assume UTC (pymongo returns naive UTC by default)
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


# =============================================================================
# PARSING
# =============================================================================

def parse_datetime(value: Union[str, datetime]) -> datetime:
    """
    Parse a datetime value to UTC datetime.

    Args:
        value: ISO 8601 string (with or without timezone) or datetime.

    Returns:
        datetime: Timezone-aware datetime in UTC.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return to_utc(value)

    if not isinstance(value, str):
        raise ValueError(f"Expected datetime or string, got {type(value).__name__}")

    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return to_utc(datetime.fromisoformat(value))
    except ValueError:
        pass

    try:
        return datetime.strptime(value, "%Y-%m-%d %H:%M:%S").replace(tzinfo=timezone.utc)
    except ValueError:
        raise ValueError(f"Cannot parse datetime: '{value}'")


def parse_datetime_safe(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse datetime with graceful error handling.

    Returns:
        Parsed datetime in UTC, or None if parsing fails or input is None.
    """
    if value is None:
        return None
    try:
        return parse_datetime(value)
    except ValueError as e:
        logger.warning(f"Failed to parse datetime '{value}': {e}")
        return None


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """
    Parse a calendar date.

    Empty strings and None map to None so that an unknown birth date
    round-trips as null instead of failing.

    Accepts ``YYYY-MM-DD`` strings, full ISO timestamps (the date part is
    kept), and date/datetime objects.

    Raises:
        ValueError: If a non-empty value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    value = str(value).strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass

    try:
        return parse_datetime(value).date()
    except ValueError:
        raise ValueError(f"Cannot parse date: '{value}'")


# =============================================================================
# FORMATTING
# =============================================================================

def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string with UTC timezone.

    Example:
        >>> format_iso(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))
        '2024-01-15T10:30:00Z'
    """
    return to_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_date(value: Optional[date]) -> Optional[str]:
    """Format a date as ``YYYY-MM-DD`` (None stays None)."""
    return value.isoformat() if value is not None else None


# =============================================================================
# DATABASE HELPERS
# =============================================================================

def to_db_string(dt: datetime) -> str:
    """Convert datetime to the ISO 8601 string stored in SQLite."""
    return format_iso(dt)


def from_db_string(value: Optional[str]) -> Optional[datetime]:
    """Parse a datetime string from SQLite storage (None or invalid -> None)."""
    return parse_datetime_safe(value)
