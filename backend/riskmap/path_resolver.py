from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from typing import Protocol

from .errors import RoutingServiceError
from .geometry import path_length_km
from .logging_utils import log_event, log_warning
from .models import PathSource, RouteDescriptor
from .route_cache import get_cached_path, path_cache_key, set_cached_path
from .settings import settings

Coord = tuple[float, float]


class PathFetcher(Protocol):
    async def fetch_path(self, coords: Sequence[Coord]) -> list[Coord]: ...


def route_coordinates(route: RouteDescriptor) -> list[Coord]:
    """Waypoints as ``(lat, lng)``, closed back to the first one when there is more than one."""
    coords = [(w.lat, w.lng) for w in route.waypoints]
    if len(coords) > 1:
        coords.append(coords[0])
    return coords


async def _resolve_one(
    route: RouteDescriptor,
    client: PathFetcher,
    *,
    sem: asyncio.Semaphore,
    cancel: asyncio.Event | None,
    use_cache: bool,
) -> tuple[list[Coord], PathSource] | None:
    coords = route_coordinates(route)
    if not coords:
        return None

    async with sem:
        if cancel is not None and cancel.is_set():
            return coords, "fallback"

        key = path_cache_key(settings.osrm_profile, coords)
        if use_cache:
            cached = get_cached_path(key)
            if cached is not None:
                return cached, "osrm"

        try:
            path = await client.fetch_path(coords)
        except Exception as e:
            # Any fetcher failure stays local to this route; CancelledError is not an Exception.
            log_warning(
                "route_path_fallback",
                route_id=route.id,
                waypoint_count=len(route.waypoints),
                routing_error=isinstance(e, (RoutingServiceError, TimeoutError)),
                error=f"{type(e).__name__}: {e}",
            )
            return coords, "fallback"

    if use_cache:
        set_cached_path(key, path)
    return path, "osrm"


async def resolve_paths(
    routes: list[RouteDescriptor],
    client: PathFetcher,
    *,
    concurrency: int | None = None,
    cancel: asyncio.Event | None = None,
    use_cache: bool = True,
) -> list[RouteDescriptor]:
    """Populate ``path`` on every route that has waypoints.

    Each route is an independent task; the semaphore decides how many run at
    once (1 is strictly sequential). A failed request falls back to the
    straight-line waypoint loop for that route only. Once ``cancel`` is set,
    routes not yet started take the fallback without a network call.
    Results are written back by index, in place, and the same list is returned.
    """
    t0 = time.perf_counter()
    sem = asyncio.Semaphore(max(1, int(concurrency or settings.route_resolve_concurrency)))

    results = await asyncio.gather(
        *[
            _resolve_one(route, client, sem=sem, cancel=cancel, use_cache=use_cache)
            for route in routes
        ]
    )

    fallback_count = 0
    for idx, result in enumerate(results):
        if result is None:
            continue
        path, source = result
        route = routes[idx]
        route.path = path
        route.path_source = source
        route.path_length_km = round(path_length_km(path), 3)
        if source == "fallback":
            fallback_count += 1

    log_event(
        "routes_resolved",
        route_count=len(routes),
        fallback_count=fallback_count,
        cancelled=bool(cancel is not None and cancel.is_set()),
        duration_ms=round((time.perf_counter() - t0) * 1000, 2),
    )
    return routes
