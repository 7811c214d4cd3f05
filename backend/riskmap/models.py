from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .geometry import polygon_center
from .settings import settings

TimeOfDayBand = Literal["morning", "afternoon", "evening", "night", "all"]
PathSource = Literal["osrm", "fallback"]

ALL_REGIONS = "all"
ALL_CATEGORIES = "all"
DEFAULT_PATROL_WAYPOINTS = 3

Coord = tuple[float, float]


class LatLng(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Region(BaseModel):
    """Static municipal region. The "all" pseudo-region carries no polygon."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    bounds: tuple[Coord, Coord]
    polygon: tuple[Coord, ...] | None = None
    center: Coord | None = None

    @model_validator(mode="before")
    @classmethod
    def derive_center(cls, value: object) -> object:
        if not isinstance(value, dict):
            return value
        data = dict(value)
        if data.get("center") is None and data.get("polygon"):
            data["center"] = polygon_center(data["polygon"])
        return data


class RiskPoint(BaseModel):
    """A forecast (not historical) risk location."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    intensity: float = Field(..., ge=0.2, le=1.0)
    region_id: str
    forecast_time: datetime
    category: str
    probability: int = Field(..., ge=0, le=100)

    @field_validator("forecast_time")
    @classmethod
    def aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("forecast_time must be timezone-aware")
        return v


class FilterCriteria(BaseModel):
    region_id: str = ALL_REGIONS
    target_date: date | None = None
    time_of_day: TimeOfDayBand = "all"
    category: str | None = ALL_CATEGORIES


class RegionLock(BaseModel):
    """Map interaction lock observed by the presentation layer.

    When ``locked`` is true the map is fitted to ``bounds`` and pan, zoom
    (scroll, box, touch, double-click) and keyboard navigation are disabled.
    """

    locked: bool = False
    active_region: Region | None = None
    bounds: tuple[Coord, Coord] | None = None


class FilterResult(BaseModel):
    points: list[RiskPoint]
    lock: RegionLock


class Waypoint(BaseModel):
    lat: float
    lng: float
    intensity: float = Field(..., ge=0.0, le=1.0)


class RouteDescriptor(BaseModel):
    id: int = Field(..., ge=1)
    waypoints: list[Waypoint] = Field(default_factory=list)
    center: LatLng
    point_count: int = Field(..., ge=0)
    synthesized: bool = False
    path: list[Coord] | None = None  # [lat, lng]
    path_source: PathSource | None = None
    path_length_km: float | None = None

    @field_validator("waypoints")
    @classmethod
    def within_waypoint_cap(cls, v: list[Waypoint]) -> list[Waypoint]:
        # The synthesized default patrol is a triangle, whatever the configured cap.
        cap = max(DEFAULT_PATROL_WAYPOINTS, settings.max_waypoints_per_route)
        if len(v) > cap:
            raise ValueError(f"at most {cap} waypoints per route")
        return v

    @model_validator(mode="after")
    def count_matches(self) -> "RouteDescriptor":
        if self.point_count != len(self.waypoints):
            raise ValueError("point_count must equal the number of waypoints")
        return self


class RegionListResponse(BaseModel):
    regions: list[Region]


class HeatmapResponse(BaseModel):
    total: int
    points: list[tuple[float, float, float]]  # [lat, lng, weight]


class FilterResponse(BaseModel):
    criteria: FilterCriteria
    total: int
    lock: RegionLock
    heat: list[tuple[float, float, float]]


class PatrolRequest(BaseModel):
    count: int = Field(default_factory=lambda: settings.default_patrol_count, ge=1)

    @field_validator("count")
    @classmethod
    def within_limit(cls, v: int) -> int:
        if v > settings.max_patrol_count:
            raise ValueError(f"count must be <= {settings.max_patrol_count}")
        return v


class RoutesResponse(BaseModel):
    routes: list[RouteDescriptor]
    active_patrols: int
    region_id: str = ALL_REGIONS


class StatsResponse(BaseModel):
    total_incidents: int
    active_patrols: int
    locked: bool
    by_region: dict[str, int]
    by_category: dict[str, int]
