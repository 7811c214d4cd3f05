from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from .errors import EmptyInputError, NoRegionMatchError, PartitionExhaustedError
from .geometry import bounding_box, point_in_polygon
from .models import LatLng, Region, RiskPoint, RouteDescriptor, Waypoint
from .settings import settings

DEFAULT_PATROL_INTENSITY = 0.3
DEFAULT_PATROL_OFFSET_FRACTION = 0.3


@dataclass(frozen=True)
class GridSpec:
    lat_min: float
    lng_min: float
    rows: int
    cols: int
    cell_lat: float
    cell_lng: float

    def cell_center(self, slot: int) -> tuple[float, float]:
        """Row-major slot index to cell center."""
        row = slot // self.cols
        col = slot % self.cols
        return (
            self.lat_min + (row + 0.5) * self.cell_lat,
            self.lng_min + (col + 0.5) * self.cell_lng,
        )


def grid_shape(count: int) -> tuple[int, int]:
    """``(rows, cols)`` with ``cols = ceil(sqrt(count))`` and ``rows * cols >= count``."""
    if count < 1:
        raise ValueError("count must be >= 1")
    cols = int(math.ceil(math.sqrt(count)))
    rows = int(math.ceil(count / cols))
    return rows, cols


def in_cell_box(point: Waypoint, center: tuple[float, float], cell_lat: float, cell_lng: float) -> bool:
    """Closed box membership: both half-spans are inclusive.

    A point on a shared cell edge belongs to both neighbouring cells.
    """
    return abs(point.lat - center[0]) <= cell_lat / 2 and abs(point.lng - center[1]) <= cell_lng / 2


def _default_patrol(center: tuple[float, float], cell_lat: float, cell_lng: float) -> list[Waypoint]:
    # Low-confidence triangle around an empty cell's center.
    offset = min(cell_lat, cell_lng) * DEFAULT_PATROL_OFFSET_FRACTION
    lat, lng = center
    return [
        Waypoint(lat=lat, lng=lng, intensity=DEFAULT_PATROL_INTENSITY),
        Waypoint(lat=lat + offset, lng=lng, intensity=DEFAULT_PATROL_INTENSITY),
        Waypoint(lat=lat, lng=lng + offset, intensity=DEFAULT_PATROL_INTENSITY),
    ]


def build_grid(points: Sequence[Waypoint], count: int) -> GridSpec:
    box = bounding_box((p.lat, p.lng) for p in points)
    if box is None:
        raise EmptyInputError()
    lat_min, lat_max, lng_min, lng_max = box
    rows, cols = grid_shape(count)
    return GridSpec(
        lat_min=lat_min,
        lng_min=lng_min,
        rows=rows,
        cols=cols,
        cell_lat=(lat_max - lat_min) / rows,
        cell_lng=(lng_max - lng_min) / cols,
    )


def partition(
    points: Sequence[RiskPoint],
    count: int,
    region: Region | None = None,
    *,
    max_waypoints: int | None = None,
) -> list[RouteDescriptor]:
    """Split the working area into a ``rows x cols`` grid and pick patrol waypoints per cell.

    With a polygon region active, points are first restricted to the polygon
    and cells whose center falls outside it are skipped, so fewer than
    ``count`` routes may come back. Ids are assigned in emission order.
    """
    if not points:
        raise EmptyInputError({"requested": count})

    limit = int(max_waypoints if max_waypoints is not None else settings.max_waypoints_per_route)
    ring = region.polygon if region is not None and region.polygon else None

    candidates = [Waypoint(lat=p.lat, lng=p.lng, intensity=p.intensity) for p in points]
    if ring is not None:
        candidates = [w for w in candidates if point_in_polygon((w.lat, w.lng), ring)]
        if not candidates:
            raise NoRegionMatchError({"region_id": region.id if region else None, "input_points": len(points)})

    grid = build_grid(candidates, count)

    routes: list[RouteDescriptor] = []
    for slot in range(count):
        center = grid.cell_center(slot)
        if ring is not None and not point_in_polygon(center, ring):
            continue

        in_cell = [w for w in candidates if in_cell_box(w, center, grid.cell_lat, grid.cell_lng)]
        in_cell.sort(key=lambda w: w.intensity, reverse=True)
        waypoints = in_cell[:limit]

        synthesized = False
        if not waypoints:
            waypoints = _default_patrol(center, grid.cell_lat, grid.cell_lng)
            synthesized = True

        if ring is not None:
            waypoints = [w for w in waypoints if point_in_polygon((w.lat, w.lng), ring)]
            if not waypoints:
                continue

        routes.append(
            RouteDescriptor(
                id=len(routes) + 1,
                waypoints=waypoints,
                center=LatLng(lat=center[0], lng=center[1]),
                point_count=len(waypoints),
                synthesized=synthesized,
            )
        )

    if not routes:
        raise PartitionExhaustedError(
            {"requested": count, "rows": grid.rows, "cols": grid.cols, "region_id": region.id if region else None}
        )
    return routes
