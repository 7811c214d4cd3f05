from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from .errors import RoutingServiceError

Coord = tuple[float, float]

_MAX_BODY_CHARS = 240


class OSRMError(RoutingServiceError):
    pass


def _describe_failure(resp: httpx.Response) -> str:
    """One-line summary of a non-2xx OSRM response, preferring its JSON ``code``/``message``."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and (data.get("code") or data.get("message")):
        parts = [str(v) for v in (data.get("code"), data.get("message")) if v]
        return f"OSRM {resp.status_code}: " + " - ".join(parts)

    body = " ".join((resp.text or "").split())
    if not body:
        return f"OSRM HTTP {resp.status_code}"
    return f"OSRM {resp.status_code}: {body[:_MAX_BODY_CHARS]}"


def encode_coordinates(coords: Sequence[Coord]) -> str:
    """``[(lat, lng), ...]`` to OSRM's ``lng,lat;lng,lat`` path segment."""
    return ";".join(f"{lng},{lat}" for lat, lng in coords)


def validate_osrm_geometry(route: dict[str, Any]) -> list[Coord]:
    """Return the route geometry as ``[(lat, lng), ...]``.

    OSRM GeoJSON coordinates are ``[lng, lat]``; they are flipped here.
    """
    geom = route.get("geometry")
    coords = geom.get("coordinates") if isinstance(geom, dict) else None
    if not isinstance(coords, list) or not coords:
        raise OSRMError("OSRM route has no geometry coordinates")

    path: list[Coord] = []
    for pt in coords:
        if not isinstance(pt, (list, tuple)) or len(pt) < 2:
            raise OSRMError(f"OSRM geometry point malformed: {pt!r}")
        lng, lat = pt[0], pt[1]
        if not isinstance(lng, (int, float)) or not isinstance(lat, (int, float)):
            raise OSRMError(f"OSRM geometry point not numeric: {pt!r}")
        path.append((float(lat), float(lng)))
    return path


def parse_route_payload(data: Any) -> list[Coord]:
    """Geometry of the first route in a decoded ``/route`` response."""
    if not isinstance(data, dict):
        raise OSRMError("OSRM payload is not an object")
    if data.get("code") != "Ok":
        raise OSRMError(f"OSRM error code={data.get('code')} message={data.get('message')}")
    routes = data.get("routes")
    if not isinstance(routes, list) or not routes or not isinstance(routes[0], dict):
        raise OSRMError("OSRM returned no routes")
    return validate_osrm_geometry(routes[0])


class OSRMClient:
    """Thin async client for OSRM's ``/route`` service. One request per call, no retries."""

    def __init__(
        self,
        *,
        base_url: str,
        profile: str = "driving",
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_s, connect=min(5.0, timeout_s)),
            # Proxy env vars must not reroute requests meant for a local OSRM.
            trust_env=False,
            headers={"accept": "application/json"},
            transport=transport,
        )

    def route_url(self, coords: Sequence[Coord]) -> str:
        return f"{self.base_url}/route/v1/{self.profile}/{encode_coordinates(coords)}"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_path(self, coords: Sequence[Coord]) -> list[Coord]:
        """Road path visiting ``coords`` (lat, lng) in order. Every failure raises ``OSRMError``."""
        if not coords:
            raise OSRMError("no coordinates to route")

        try:
            resp = await self._client.get(
                self.route_url(coords),
                params={"overview": "full", "geometries": "geojson"},
            )
        except httpx.TimeoutException as e:
            raise OSRMError(f"OSRM request timed out ({self.base_url}): {type(e).__name__}") from e
        except httpx.HTTPError as e:
            # str() of some httpx errors is empty
            raise OSRMError(f"OSRM request failed ({self.base_url}): {type(e).__name__}: {str(e) or repr(e)}") from e

        if resp.is_error:
            raise OSRMError(_describe_failure(resp))

        try:
            data = resp.json()
        except ValueError as e:
            raise OSRMError("OSRM returned non-JSON payload") from e
        return parse_route_payload(data)
