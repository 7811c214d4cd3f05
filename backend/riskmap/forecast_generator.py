from __future__ import annotations

import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta

from .geometry import point_in_polygon
from .models import Region, RiskPoint
from .regions import REGIONS
from .time_of_day import local_zone

CATEGORIES: tuple[str, ...] = ("سرقت", "نزاع و درگیری", "زورگیری")

MAX_PLACEMENT_ATTEMPTS = 50
MIN_INTENSITY = 0.2


@dataclass(frozen=True)
class ForecastProfile:
    center: tuple[float, float]
    spread: float
    count: int
    risk_level: float


FORECAST_PROFILES: dict[str, ForecastProfile] = {
    "downtown": ForecastProfile(center=(35.6892, 51.3890), spread=0.025, count=180, risk_level=0.8),
    "north": ForecastProfile(center=(35.8150, 51.4400), spread=0.035, count=95, risk_level=0.5),
    "south": ForecastProfile(center=(35.5850, 51.3750), spread=0.035, count=165, risk_level=0.85),
    "east": ForecastProfile(center=(35.7400, 51.5000), spread=0.035, count=140, risk_level=0.65),
    "west": ForecastProfile(center=(35.6850, 51.2600), spread=0.035, count=120, risk_level=0.7),
}

# (cumulative probability, horizon hours lo, hi)
_HORIZONS: tuple[tuple[float, float, float], ...] = (
    (0.3, 0.0, 24.0),
    (0.7, 24.0, 168.0),
    (1.0, 168.0, 720.0),
)

# Quarter-day bands the forecast hour is drawn from: morning, afternoon, evening, night.
_DAY_QUARTERS: tuple[tuple[float, float], ...] = ((6.0, 12.0), (12.0, 18.0), (18.0, 24.0), (0.0, 6.0))


def _place_point(rng: random.Random, profile: ForecastProfile, region: Region) -> tuple[float, float]:
    ring = region.polygon or ()
    for _ in range(MAX_PLACEMENT_ATTEMPTS):
        lat = profile.center[0] + (rng.random() - 0.5) * profile.spread
        lng = profile.center[1] + (rng.random() - 0.5) * profile.spread
        if point_in_polygon((lat, lng), ring):
            return lat, lng
    # Rejection sampling ran dry; the region center keeps the point inside its polygon.
    center = region.center or profile.center
    return float(center[0]), float(center[1])


def _forecast_time(rng: random.Random, now: datetime) -> datetime:
    pick = rng.random()
    lo, hi = _HORIZONS[-1][1:]
    for threshold, h_lo, h_hi in _HORIZONS:
        if pick < threshold:
            lo, hi = h_lo, h_hi
            break
    horizon_h = lo + rng.random() * (hi - lo)

    q_lo, q_hi = _DAY_QUARTERS[int(rng.random() * len(_DAY_QUARTERS)) % len(_DAY_QUARTERS)]
    hour_in_day = q_lo + rng.random() * (q_hi - q_lo)
    hour = min(23, int(math.floor(hour_in_day)))
    minute = min(59, int(math.floor((hour_in_day % 1) * 60)))

    local = (now + timedelta(hours=horizon_h)).astimezone(local_zone())
    pinned = local.replace(hour=hour, minute=minute, second=0, microsecond=0)
    # Forecasts never lie in the past: an hour already gone today moves to tomorrow.
    if pinned < now:
        pinned += timedelta(days=1)
    return pinned


def generate_forecast_points(
    *,
    now: datetime,
    seed: int | None = None,
    regions: dict[str, Region] | None = None,
    profiles: dict[str, ForecastProfile] | None = None,
) -> list[RiskPoint]:
    """Synthesize forecast risk points for every profiled region.

    Deterministic for a given ``seed`` and ``now``. The forecast hour of day is
    spread evenly across quarter-day bands so every time-of-day filter has data.
    """
    catalogue = REGIONS if regions is None else regions
    table = FORECAST_PROFILES if profiles is None else profiles
    rng = random.Random(seed) if seed is not None else random.Random()

    points: list[RiskPoint] = []
    for region_id, profile in table.items():
        region = catalogue.get(region_id)
        if region is None or not region.polygon:
            continue

        for _ in range(profile.count):
            lat, lng = _place_point(rng, profile, region)
            raw = min(1.0, profile.risk_level + (rng.random() - 0.5) * 0.3)
            forecast_time = _forecast_time(rng, now)
            category = CATEGORIES[int(rng.random() * len(CATEGORIES)) % len(CATEGORIES)]
            points.append(
                RiskPoint(
                    lat=lat,
                    lng=lng,
                    intensity=max(MIN_INTENSITY, raw),
                    region_id=region_id,
                    forecast_time=forecast_time,
                    category=category,
                    probability=max(0, min(100, int(math.floor(raw * 100)))),
                )
            )
    return points
