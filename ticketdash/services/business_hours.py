"""
Business-calendar duration calculator.

Measures how much working time elapses between two instants: only
Monday-Friday, and only inside a fixed daily window such as 09:00-17:00.
"""

from datetime import date, datetime, timedelta
from typing import Iterator

from ticketdash.services.timestamps import to_utc_naive

DEFAULT_OPENING_HOUR = 9
DEFAULT_CLOSING_HOUR = 17

# date.weekday(): Monday is 0, Saturday 5, Sunday 6
_WEEKEND = (5, 6)


def _dates_between(first: date, last: date) -> Iterator[date]:
    """Every calendar date from first to last, inclusive."""
    current = first
    while current <= last:
        yield current
        current += timedelta(days=1)


def business_hours_between(
    start: datetime,
    end: datetime,
    opening_hour: int = DEFAULT_OPENING_HOUR,
    closing_hour: int = DEFAULT_CLOSING_HOUR,
) -> float:
    """
    Working hours elapsed between two instants.

    Walks each calendar date from start to end. Weekend dates contribute
    nothing; on a weekday the contribution is the overlap of
    [opening, closing) with the part of [start, end) falling on that date.
    Aware datetimes are compared in UTC.

    Args:
        start: Beginning of the span
        end: End of the span
        opening_hour: First working hour of the day (inclusive)
        closing_hour: Hour the working day ends (exclusive), at most 24

    Returns:
        Fractional hours of working time

    Raises:
        ValueError: If start is after end or the window is not
            0 <= opening_hour < closing_hour <= 24

    Example:
        >>> business_hours_between(
        ...     datetime(2025, 1, 10, 16), datetime(2025, 1, 13, 10)
        ... )
        2.0
    """
    if not 0 <= opening_hour < closing_hour <= 24:
        raise ValueError(
            f"Invalid business window {opening_hour}-{closing_hour}"
        )

    start = to_utc_naive(start)
    end = to_utc_naive(end)
    if start > end:
        raise ValueError(f"start {start.isoformat()} is after end {end.isoformat()}")

    total_seconds = 0.0
    for day in _dates_between(start.date(), end.date()):
        if day.weekday() in _WEEKEND:
            continue

        midnight = datetime.combine(day, datetime.min.time())
        window_start = max(midnight + timedelta(hours=opening_hour), start)
        window_end = min(midnight + timedelta(hours=closing_hour), end)

        if window_end > window_start:
            total_seconds += (window_end - window_start).total_seconds()

    return total_seconds / 3600.0
