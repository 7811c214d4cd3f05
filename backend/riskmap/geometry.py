from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

Coord = tuple[float, float]

EARTH_RADIUS_M = 6_371_000.0


def point_in_polygon(point: Sequence[float], ring: Sequence[Sequence[float]]) -> bool:
    """Even-odd ray casting test.

    The ring is treated as implicitly closed (the last vertex connects back to
    the first), so a repeated closing vertex is harmless. An edge is counted
    only when ``(yi > y) != (yj > y)``; horizontal edges never count and a
    vertex shared by two edges is counted once.
    """
    x, y = float(point[0]), float(point[1])
    inside = False
    n = len(ring)
    if n < 3:
        return False

    j = n - 1
    for i in range(n):
        xi, yi = float(ring[i][0]), float(ring[i][1])
        xj, yj = float(ring[j][0]), float(ring[j][1])
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def bounding_box(points: Iterable[Sequence[float]]) -> tuple[float, float, float, float] | None:
    """Return ``(lat_min, lat_max, lng_min, lng_max)`` or None for no points."""
    lats: list[float] = []
    lngs: list[float] = []
    for pt in points:
        lats.append(float(pt[0]))
        lngs.append(float(pt[1]))
    if not lats:
        return None
    return min(lats), max(lats), min(lngs), max(lngs)


def polygon_center(ring: Sequence[Sequence[float]]) -> Coord:
    # Label anchor: midpoint of the first and third vertex (the box diagonal
    # for the rectangular municipal rings). Falls back to the vertex mean.
    if len(ring) >= 3:
        a, c = ring[0], ring[2]
        return (
            float(a[0]) + (float(c[0]) - float(a[0])) / 2.0,
            float(a[1]) + (float(c[1]) - float(a[1])) / 2.0,
        )
    if not ring:
        return (0.0, 0.0)
    return (
        sum(float(p[0]) for p in ring) / len(ring),
        sum(float(p[1]) for p in ring) / len(ring),
    )


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = math.sin(delta_lat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def path_length_km(path: Sequence[Sequence[float]] | None) -> float:
    """Great-circle length of a ``[lat, lng]`` polyline."""
    if not path or len(path) < 2:
        return 0.0
    total_m = 0.0
    for a, b in zip(path, path[1:]):
        total_m += haversine_m(float(a[0]), float(a[1]), float(b[0]), float(b[1]))
    return total_m / 1000.0
