from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .settings import settings

# Bands are widened past their nominal quarter-day so that adjacent bands
# share hours. All lower bounds are inclusive, all upper bounds exclusive.


def is_morning(hour: int) -> bool:
    """Nominal 06-12, accepted [4, 14)."""
    return 4 <= hour < 14


def is_afternoon(hour: int) -> bool:
    """Nominal 12-18, accepted [10, 20)."""
    return 10 <= hour < 20


def is_evening(hour: int) -> bool:
    """Nominal 18-24, accepted [16, 24) and [0, 2)."""
    return hour >= 16 or hour < 2


def is_night(hour: int) -> bool:
    """Nominal 00-06, accepted [22, 24) and [0, 8)."""
    return hour >= 22 or hour < 8


_BANDS = {
    "morning": is_morning,
    "afternoon": is_afternoon,
    "evening": is_evening,
    "night": is_night,
}


def hour_in_band(hour: int, band: str | None) -> bool:
    if band is None or band == "all":
        return True
    predicate = _BANDS.get(band)
    if predicate is None:
        raise ValueError(f"unknown time-of-day band: {band}")
    return predicate(int(hour))


def local_zone() -> tzinfo:
    try:
        return ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def local_hour(moment: datetime) -> int:
    return int(moment.astimezone(local_zone()).hour)
