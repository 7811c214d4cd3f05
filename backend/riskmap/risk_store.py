from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from threading import Lock

from .models import RiskPoint

HeatTriple = tuple[float, float, float]


class RiskPointStore:
    """Owns the generated forecast points.

    The point set is held as an immutable tuple and swapped wholesale by
    ``replace``; readers always see a complete snapshot.
    """

    def __init__(self, points: Iterable[RiskPoint] = ()) -> None:
        self._lock = Lock()
        self._points: tuple[RiskPoint, ...] = tuple(points)

    def __len__(self) -> int:
        return len(self._points)

    def all(self) -> tuple[RiskPoint, ...]:
        with self._lock:
            return self._points

    def replace(self, points: Iterable[RiskPoint]) -> int:
        snapshot = tuple(points)
        with self._lock:
            self._points = snapshot
        return len(snapshot)

    def stats(self, points: Iterable[RiskPoint] | None = None) -> dict[str, dict[str, int]]:
        source = self.all() if points is None else points
        by_region: Counter[str] = Counter()
        by_category: Counter[str] = Counter()
        for p in source:
            by_region[p.region_id] += 1
            by_category[p.category] += 1
        return {"by_region": dict(by_region), "by_category": dict(by_category)}


def heat_data(points: Iterable[RiskPoint]) -> list[HeatTriple]:
    """``[lat, lng, weight]`` triples for the heat layer."""
    return [(p.lat, p.lng, p.intensity) for p in points]
