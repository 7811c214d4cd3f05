from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime

from .forecast_generator import generate_forecast_points
from .logging_utils import log_event
from .models import FilterCriteria, FilterResult, Region, RegionLock, RiskPoint, RouteDescriptor
from .partitioner import partition
from .path_resolver import PathFetcher, resolve_paths
from .region_filter import apply_filters, region_lock_for
from .regions import REGIONS, get_region
from .risk_store import HeatTriple, RiskPointStore, heat_data


class PatrolSession:
    """Per-app working state: the point store, the current filter view and the route set.

    Filtering and partitioning replace their outputs wholesale. A failed
    operation raises before anything is assigned, so the previous view and
    route set stay visible.
    """

    def __init__(self, store: RiskPointStore, *, regions: dict[str, Region] | None = None) -> None:
        self.store = store
        self.regions = REGIONS if regions is None else regions
        self.criteria = FilterCriteria()
        self._filtered: tuple[RiskPoint, ...] = store.all()
        self._lock_state: RegionLock = region_lock_for(get_region(self.criteria.region_id, self.regions))
        self._routes: tuple[RouteDescriptor, ...] = ()

    @classmethod
    def with_generated_data(cls, *, now: datetime | None = None, seed: int | None = None) -> "PatrolSession":
        session = cls(RiskPointStore())
        session.regenerate(now=now, seed=seed)
        return session

    @property
    def filtered_points(self) -> tuple[RiskPoint, ...]:
        return self._filtered

    @property
    def lock(self) -> RegionLock:
        return self._lock_state

    @property
    def active_region(self) -> Region | None:
        return self._lock_state.active_region

    @property
    def routes(self) -> list[RouteDescriptor]:
        return list(self._routes)

    def regenerate(self, *, now: datetime | None = None, seed: int | None = None) -> int:
        points = generate_forecast_points(now=now or datetime.now(UTC), seed=seed, regions=self.regions)
        count = self.store.replace(points)
        log_event("risk_data_generated", point_count=count, seeded=seed is not None)
        self.reset_filters()
        self.clear_routes()
        return count

    def apply_filters(self, criteria: FilterCriteria, *, now: datetime | None = None) -> FilterResult:
        result = apply_filters(self.store.all(), criteria, self.regions, now=now)
        self.criteria = criteria
        self._filtered = tuple(result.points)
        self._lock_state = result.lock
        log_event(
            "filters_applied",
            region_id=criteria.region_id,
            target_date=criteria.target_date.isoformat() if criteria.target_date else None,
            time_of_day=criteria.time_of_day,
            category=criteria.category,
            total=len(self._filtered),
            locked=result.lock.locked,
        )
        return result

    def reset_filters(self) -> RegionLock:
        self.criteria = FilterCriteria()
        self._filtered = self.store.all()
        self._lock_state = region_lock_for(get_region(self.criteria.region_id, self.regions))
        return self._lock_state

    def plan_routes(self, count: int) -> list[RouteDescriptor]:
        t0 = time.perf_counter()
        routes = partition(list(self._filtered), count, self.active_region)
        log_event(
            "routes_partitioned",
            requested=count,
            produced=len(routes),
            synthesized=sum(1 for r in routes if r.synthesized),
            region_id=self.active_region.id if self.active_region else "all",
            duration_ms=round((time.perf_counter() - t0) * 1000, 2),
        )
        return routes

    async def calculate_routes(
        self,
        count: int,
        client: PathFetcher,
        *,
        concurrency: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> list[RouteDescriptor]:
        routes = self.plan_routes(count)
        await resolve_paths(routes, client, concurrency=concurrency, cancel=cancel)
        self._routes = tuple(routes)
        return list(self._routes)

    def clear_routes(self) -> int:
        cleared = len(self._routes)
        self._routes = ()
        if cleared:
            log_event("routes_cleared", cleared=cleared)
        return cleared

    def heat(self) -> list[HeatTriple]:
        return heat_data(self._filtered)

    def stats(self) -> dict[str, object]:
        breakdown = self.store.stats(self._filtered)
        return {
            "total_incidents": len(self._filtered),
            "active_patrols": len(self._routes),
            "locked": self._lock_state.locked,
            **breakdown,
        }
