from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from .comparison import GroupSpec
from .config import FRONTEND_ORIGINS
from .exceptions import DataUnavailable
from .filters import FilterSpec
from .logger_config import setup_logging
from .service import ExportBlob, PedestrianQueryService
from .time_series import pivot_by_date

setup_logging()
logger = logging.getLogger(__name__)

SERVICE = PedestrianQueryService()


def get_service() -> PedestrianQueryService:
    return SERVICE


def _spec(
    borough: list[str] | None,
    category: list[str] | None,
    min_count: float | None,
    max_count: float | None,
    search: str | None,
) -> FilterSpec:
    return FilterSpec.from_params(
        borough=borough,
        category=category,
        min_count=min_count,
        max_count=max_count,
        search=search,
    )


def _attachment(blob: ExportBlob) -> Response:
    return Response(
        content=blob.content,
        media_type=blob.media_type,
        headers={"Content-Disposition": f'attachment; filename="{blob.filename}"'},
    )


app = FastAPI(title="Pedestrian Counts Explorer API", version="0.1.0")
app.add_middleware(GZipMiddleware, minimum_size=1024)
allow_credentials = FRONTEND_ORIGINS != ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=FRONTEND_ORIGINS if FRONTEND_ORIGINS else ["*"],
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DataUnavailable)
async def data_unavailable_handler(request: Request, exc: DataUnavailable) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/meta")
async def meta(service: PedestrianQueryService = Depends(get_service)) -> dict[str, Any]:
    return await service.get_filter_options()


@app.get("/locations")
async def locations(
    borough: list[str] | None = Query(default=None),
    category: list[str] | None = Query(default=None),
    min_count: float | None = Query(default=None),
    max_count: float | None = Query(default=None),
    search: str | None = Query(default=None),
    service: PedestrianQueryService = Depends(get_service),
) -> dict[str, Any]:
    spec = _spec(borough, category, min_count, max_count, search)
    return await service.get_locations(spec)


@app.get("/statistics/summary")
async def summary(
    borough: list[str] | None = Query(default=None),
    category: list[str] | None = Query(default=None),
    min_count: float | None = Query(default=None),
    max_count: float | None = Query(default=None),
    search: str | None = Query(default=None),
    service: PedestrianQueryService = Depends(get_service),
) -> dict[str, Any]:
    spec = _spec(borough, category, min_count, max_count, search)
    return await service.get_summary_statistics(spec)


@app.get("/statistics/{dimension}")
async def grouped_statistics(
    dimension: str,
    service: PedestrianQueryService = Depends(get_service),
) -> dict[str, Any]:
    try:
        return await service.get_grouped_statistics(dimension)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/top_sites")
async def top_sites(
    limit: int = Query(default=10, ge=1),
    borough: str | None = Query(default=None),
    service: PedestrianQueryService = Depends(get_service),
) -> dict[str, Any]:
    return await service.get_top_sites(limit, borough)


@app.get("/site_count")
async def site_count(
    borough: str | None = Query(default=None),
    service: PedestrianQueryService = Depends(get_service),
) -> dict[str, Any]:
    return {"borough": borough, "count": await service.get_site_count(borough)}


@app.get("/compare")
async def compare(
    group1_type: str = Query(..., pattern="^(borough|category)$"),
    group1: list[str] = Query(...),
    group2_type: str = Query(..., pattern="^(borough|category)$"),
    group2: list[str] = Query(...),
    service: PedestrianQueryService = Depends(get_service),
) -> dict[str, Any]:
    try:
        g1 = GroupSpec.from_params(group1_type, group1)
        g2 = GroupSpec.from_params(group2_type, group2)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return await service.compare_groups(g1, g2)


@app.get("/export/csv")
async def export_csv(
    borough: list[str] | None = Query(default=None),
    category: list[str] | None = Query(default=None),
    min_count: float | None = Query(default=None),
    max_count: float | None = Query(default=None),
    search: str | None = Query(default=None),
    service: PedestrianQueryService = Depends(get_service),
) -> Response:
    spec = _spec(borough, category, min_count, max_count, search)
    return _attachment(await service.export_tabular(spec))


@app.get("/export/geojson")
async def export_geojson(
    borough: list[str] | None = Query(default=None),
    category: list[str] | None = Query(default=None),
    min_count: float | None = Query(default=None),
    max_count: float | None = Query(default=None),
    search: str | None = Query(default=None),
    service: PedestrianQueryService = Depends(get_service),
) -> Response:
    spec = _spec(borough, category, min_count, max_count, search)
    return _attachment(await service.export_geospatial(spec))


@app.get("/time_series/{location_id}")
async def time_series(
    location_id: int,
    layout: str = Query(default="long", pattern="^(long|wide)$"),
    service: PedestrianQueryService = Depends(get_service),
) -> dict[str, Any]:
    payload = await service.get_time_series(location_id)
    if layout == "wide":
        payload["counts"] = pivot_by_date(payload["counts"])
    return payload
