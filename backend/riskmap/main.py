from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import RiskMapError
from .logging_utils import log_event
from .models import (
    FilterCriteria,
    FilterResponse,
    HeatmapResponse,
    PatrolRequest,
    RegionListResponse,
    RoutesResponse,
    StatsResponse,
)
from .path_resolver import PathFetcher
from .regions import REGIONS
from .routing_osrm import OSRMClient
from .session import PatrolSession
from .settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.osrm = OSRMClient(
        base_url=settings.osrm_base_url,
        profile=settings.osrm_profile,
        timeout_s=settings.osrm_timeout_s,
    )
    app.state.session = PatrolSession.with_generated_data(seed=settings.forecast_seed)
    yield
    await app.state.osrm.aclose()


app = FastAPI(title="Patrol Risk Map", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RiskMapError)
async def risk_map_error_handler(request: Request, exc: RiskMapError) -> JSONResponse:
    status = 404 if exc.reason_code == "unknown_region" else 422
    log_event("user_facing_error", path=request.url.path, reason_code=exc.reason_code, status=status)
    return JSONResponse(status_code=status, content={"detail": exc.as_detail()})


def osrm_client(request: Request) -> PathFetcher:
    osrm: PathFetcher | None = getattr(request.app.state, "osrm", None)  # type: ignore[attr-defined]
    if osrm is None:
        raise HTTPException(status_code=503, detail="OSRM client not initialised")
    return osrm


def patrol_session(request: Request) -> PatrolSession:
    session: PatrolSession | None = getattr(request.app.state, "session", None)  # type: ignore[attr-defined]
    if session is None:
        raise HTTPException(status_code=503, detail="session not initialised")
    return session


OSRMDep = Annotated[PathFetcher, Depends(osrm_client)]
SessionDep = Annotated[PatrolSession, Depends(patrol_session)]


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "Backend is running. Visit /docs for the API UI.", "docs": "/docs"}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/regions", response_model=RegionListResponse)
async def list_regions() -> RegionListResponse:
    return RegionListResponse(regions=list(REGIONS.values()))


@app.get("/heatmap", response_model=HeatmapResponse)
async def heatmap(session: SessionDep) -> HeatmapResponse:
    heat = session.heat()
    return HeatmapResponse(total=len(heat), points=heat)


@app.post("/filters", response_model=FilterResponse)
async def filters(criteria: FilterCriteria, session: SessionDep) -> FilterResponse:
    result = session.apply_filters(criteria)
    return FilterResponse(criteria=criteria, total=len(result.points), lock=result.lock, heat=session.heat())


@app.post("/filters/reset", response_model=FilterResponse)
async def reset_filters(session: SessionDep) -> FilterResponse:
    lock = session.reset_filters()
    heat = session.heat()
    return FilterResponse(criteria=session.criteria, total=len(heat), lock=lock, heat=heat)


def _routes_response(session: PatrolSession) -> RoutesResponse:
    routes = session.routes
    region = session.active_region
    return RoutesResponse(
        routes=routes,
        active_patrols=len(routes),
        region_id=region.id if region is not None else "all",
    )


@app.post("/routes", response_model=RoutesResponse)
async def calculate_routes(req: PatrolRequest, session: SessionDep, osrm: OSRMDep) -> RoutesResponse:
    await session.calculate_routes(req.count, osrm)
    return _routes_response(session)


@app.get("/routes", response_model=RoutesResponse)
async def get_routes(session: SessionDep) -> RoutesResponse:
    return _routes_response(session)


@app.delete("/routes")
async def clear_routes(session: SessionDep) -> dict[str, int]:
    return {"cleared": session.clear_routes()}


@app.get("/stats", response_model=StatsResponse)
async def stats(session: SessionDep) -> StatsResponse:
    return StatsResponse(**session.stats())
