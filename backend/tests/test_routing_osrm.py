from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

from riskmap.errors import RoutingServiceError
from riskmap.routing_osrm import (
    OSRMClient,
    OSRMError,
    encode_coordinates,
    parse_route_payload,
    validate_osrm_geometry,
)

COORDS = [(35.70, 51.40), (35.71, 51.41), (35.70, 51.40)]


def _client(handler: Any) -> OSRMClient:
    return OSRMClient(
        base_url="http://osrm.test/",
        profile="driving",
        timeout_s=2.0,
        transport=httpx.MockTransport(handler),
    )


def _fetch(client: OSRMClient, coords: list[tuple[float, float]] = COORDS) -> list[tuple[float, float]]:
    async def _run() -> list[tuple[float, float]]:
        try:
            return await client.fetch_path(coords)
        finally:
            await client.aclose()

    return asyncio.run(_run())


def test_encode_coordinates_is_lng_first() -> None:
    assert encode_coordinates([(35.7, 51.4), (35.71, 51.41)]) == "51.4,35.7;51.41,35.71"


def test_fetch_path_builds_request_and_flips_geometry() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "code": "Ok",
                "routes": [
                    {
                        "geometry": {
                            "type": "LineString",
                            "coordinates": [[51.40, 35.70], [51.405, 35.705], [51.41, 35.71]],
                        }
                    }
                ],
            },
        )

    path = _fetch(_client(handler))

    assert path == [(35.70, 51.40), (35.705, 51.405), (35.71, 51.41)]
    assert len(seen) == 1
    req = seen[0]
    assert req.url.path == "/route/v1/driving/51.4,35.7;51.41,35.71;51.4,35.7"
    assert req.url.params["overview"] == "full"
    assert req.url.params["geometries"] == "geojson"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"code": "NoRoute", "message": "Impossible route"}),
        httpx.Response(200, json={"code": "Ok", "routes": []}),
        httpx.Response(200, json={"code": "Ok", "routes": [{"distance": 12.0}]}),
        httpx.Response(200, json={"code": "Ok", "routes": [{"geometry": {"coordinates": [["a", "b"]]}}]}),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(400, json={"code": "InvalidQuery", "message": "Query string malformed"}),
        httpx.Response(503, text="upstream unavailable"),
    ],
)
def test_fetch_path_failures_raise_routing_error(response: httpx.Response) -> None:
    with pytest.raises(OSRMError):
        _fetch(_client(lambda _request: response))


def test_transport_errors_become_routing_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RoutingServiceError) as exc:
        _fetch(_client(handler))
    assert "ConnectError" in str(exc.value)


def test_timeouts_become_routing_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(OSRMError) as exc:
        _fetch(_client(handler))
    assert "timed out" in str(exc.value)


def test_empty_coordinate_list_is_rejected() -> None:
    with pytest.raises(OSRMError):
        _fetch(_client(lambda _request: httpx.Response(200, json={})), coords=[])


def test_validate_geometry_requires_coordinates() -> None:
    with pytest.raises(OSRMError):
        validate_osrm_geometry({})
    with pytest.raises(OSRMError):
        validate_osrm_geometry({"geometry": {"coordinates": []}})
    assert validate_osrm_geometry({"geometry": {"coordinates": [[51.4, 35.7]]}}) == [(35.7, 51.4)]


def test_parse_route_payload_takes_first_route() -> None:
    payload = {
        "code": "Ok",
        "routes": [
            {"geometry": {"coordinates": [[51.4, 35.7], [51.41, 35.71]]}},
            {"geometry": {"coordinates": [[0.0, 0.0]]}},
        ],
    }
    assert parse_route_payload(payload) == [(35.7, 51.4), (35.71, 51.41)]
    with pytest.raises(OSRMError):
        parse_route_payload(["not", "an", "object"])


def test_route_url_strips_trailing_slash() -> None:
    client = _client(lambda _request: httpx.Response(200, json={}))
    try:
        assert client.route_url([(35.7, 51.4)]) == "http://osrm.test/route/v1/driving/51.4,35.7"
    finally:
        asyncio.run(client.aclose())
