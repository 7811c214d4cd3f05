from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime, time, timedelta

from .geometry import point_in_polygon
from .models import ALL_CATEGORIES, ALL_REGIONS, FilterCriteria, FilterResult, Region, RegionLock, RiskPoint
from .regions import REGIONS, get_region
from .settings import settings
from .time_of_day import hour_in_band, local_hour, local_zone


def date_window(target: date, *, buffer_h: float | None = None) -> tuple[datetime, datetime]:
    """Closed window around a local calendar day, widened by the buffer on both sides.

    Sparse forecast data stays visible for days adjacent to the one picked.
    """
    buf = timedelta(hours=settings.date_window_buffer_h if buffer_h is None else float(buffer_h))
    tz = local_zone()
    start_of_day = datetime.combine(target, time.min, tzinfo=tz)
    end_of_day = datetime.combine(target, time.max, tzinfo=tz)
    return start_of_day - buf, end_of_day + buf


def in_region(point: RiskPoint, region: Region) -> bool:
    if region.id == ALL_REGIONS:
        return True
    if point.region_id != region.id:
        return False
    if region.polygon and not point_in_polygon((point.lat, point.lng), region.polygon):
        return False
    return True


def in_time_window(point: RiskPoint, window: tuple[datetime, datetime] | None, now: datetime) -> bool:
    # No date picked: only upcoming forecasts.
    if window is None:
        return point.forecast_time >= now
    lo, hi = window
    return lo <= point.forecast_time <= hi


def category_matches(point: RiskPoint, category: str | None) -> bool:
    if not category or category == ALL_CATEGORIES:
        return True
    return point.category == category


def region_lock_for(region: Region) -> RegionLock:
    if region.id == ALL_REGIONS:
        return RegionLock(locked=False, active_region=None, bounds=region.bounds)
    return RegionLock(locked=True, active_region=region, bounds=region.bounds)


def apply_filters(
    points: Iterable[RiskPoint],
    criteria: FilterCriteria,
    regions: dict[str, Region] | None = None,
    *,
    now: datetime | None = None,
) -> FilterResult:
    """Filter forecast points and derive the region lock.

    Predicates run in order (region, date, category, time of day) and the
    first failing one excludes the point. Pure function of its inputs.
    """
    catalogue = REGIONS if regions is None else regions
    region = get_region(criteria.region_id, catalogue)
    current = now if now is not None else datetime.now(UTC)
    window = date_window(criteria.target_date) if criteria.target_date is not None else None
    band = criteria.time_of_day

    kept: list[RiskPoint] = []
    for point in points:
        if not in_region(point, region):
            continue
        if not in_time_window(point, window, current):
            continue
        if not category_matches(point, criteria.category):
            continue
        if not hour_in_band(local_hour(point.forecast_time), band):
            continue
        kept.append(point)

    return FilterResult(points=kept, lock=region_lock_for(region))
