"""
Helpers for the ISO-8601 timestamps Jira returns and we store.
"""

from datetime import datetime, timezone
from typing import Optional


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp into an aware datetime.

    Accepts Jira's ``2025-01-15T09:00:00.000+0000`` as well as
    ``...Z`` and ``...+00:00`` forms. Values without a UTC offset are
    rejected because they cannot be placed on the timeline.

    Returns:
        Aware datetime, or None if the value is missing or unparseable
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime in the stored interchange format."""
    return value.isoformat()


def to_utc_naive(value: datetime) -> datetime:
    """Convert to UTC and drop tzinfo; naive input is taken as UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def month_key(value: Optional[str]) -> Optional[str]:
    """``YYYY-MM`` of a stored timestamp in UTC, or None if it does not parse."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return parsed.astimezone(timezone.utc).strftime("%Y-%m")
