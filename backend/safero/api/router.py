# safero/api/router.py
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from safero.clients import get_http_client
from safero.config import API_VERSION, Settings, get_settings
from safero.models import Region, SatelliteRequest
from safero.regions import get_region, list_regions
from safero.services.copernicus_service import COLLECTIONS, CopernicusService
from safero.services.firms_service import FirmsService
from safero.services.gee_service import GEEService
from safero.services.risk_service import calculate_fire_risk, calculate_hazard_indicators

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_FIRE_DAYS = 10
ANALYZE_HOTSPOT_LIMIT = 20


class InvalidRequest(Exception):
    """Requête mal formée : renvoyée au client en 400."""


def error_response(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def require_region(params: SatelliteRequest) -> Region:
    if not params.region_id:
        raise InvalidRequest("regionId is required")
    region = get_region(params.region_id)
    if region is None:
        raise InvalidRequest("Unknown region")
    return region


def region_payload(region: Region) -> dict:
    return {"regionId": region.id, "regionName": region.name, "bbox": region.bbox}


def gee_days(days_back: Optional[int]) -> int:
    return days_back or 30


def fire_days(days_back: Optional[int]) -> int:
    return min(days_back or 3, MAX_FIRE_DAYS)


async def analyze_region(region: Region, days_back: Optional[int], gee: GEEService, firms: FirmsService) -> dict:
    # GEE et FIRMS sont indépendants : appels en parallèle
    gee_analysis, hotspots = await asyncio.gather(
        gee.get_analysis(region.bbox, gee_days(days_back)),
        firms.get_hotspots(region.bbox, fire_days(days_back)),
    )
    indicators = calculate_hazard_indicators(gee_analysis, hotspots)

    return {
        **region_payload(region),
        "indicators": indicators.model_dump(by_alias=True),
        "geeAnalysis": gee_analysis.model_dump(by_alias=True),
        "sentinel2Products": [],
        "sentinel1Products": [],
        "fireHotspots": [h.model_dump() for h in hotspots[:ANALYZE_HOTSPOT_LIMIT]],
    }


# --- Actions ---

async def action_list_regions(params, client, settings):
    return {"regions": [r.model_dump() for r in list_regions()]}


async def action_analyze(params, client, settings):
    region = require_region(params)
    gee = GEEService(client, settings.gee_service_account_key)
    firms = FirmsService(client, settings.firms_api_key)
    return await analyze_region(region, params.days_back, gee, firms)


async def action_analyze_all(params, client, settings):
    gee = GEEService(client, settings.gee_service_account_key)
    firms = FirmsService(client, settings.firms_api_key)
    regions = list_regions()

    results = await asyncio.gather(
        *(analyze_region(r, params.days_back, gee, firms) for r in regions),
        return_exceptions=True,
    )

    analyses = []
    for region, result in zip(regions, results):
        if isinstance(result, Exception):
            logger.warning(f"Failed to analyze {region.id}: {result}")
            continue
        analyses.append(result)
    return {"analyses": analyses}


async def action_gee(params, client, settings):
    region = require_region(params)
    gee = GEEService(client, settings.gee_service_account_key)
    gee_analysis = await gee.get_analysis(region.bbox, gee_days(params.days_back))
    return {**region_payload(region), **gee_analysis.model_dump(by_alias=True)}


async def action_fires(params, client, settings):
    region = require_region(params)
    firms = FirmsService(client, settings.firms_api_key)
    hotspots = await firms.get_hotspots(region.bbox, fire_days(params.days_back))
    fire_analysis = calculate_fire_risk(hotspots)
    return {
        **region_payload(region),
        **fire_analysis.model_dump(by_alias=True),
        "hotspots": [h.model_dump() for h in hotspots],
    }


async def action_search(params, client, settings):
    region = require_region(params)
    satellite = params.satellite or "sentinel-2"
    if satellite not in COLLECTIONS:
        raise InvalidRequest("Invalid satellite")

    copernicus = CopernicusService(client, settings.copernicus_client_id, settings.copernicus_client_secret)
    products = await copernicus.search_products(
        region.bbox,
        satellite=satellite,
        max_cloud_cover=params.max_cloud_cover if params.max_cloud_cover is not None else 30,
        days_back=params.days_back or 30,
    )
    return {
        **region_payload(region),
        "satellite": satellite,
        "products": [p.model_dump(by_alias=True) for p in products],
    }


ACTIONS = {
    "list-regions": action_list_regions,
    "analyze": action_analyze,
    "analyze-all": action_analyze_all,
    "gee": action_gee,
    "fires": action_fires,
    "search": action_search,
}


async def dispatch(params: SatelliteRequest, client: httpx.AsyncClient, settings: Settings) -> JSONResponse:
    logger.info(f"Action: {params.action}, Region: {params.region_id}")
    try:
        handler = ACTIONS.get(params.action)
        if handler is None:
            raise InvalidRequest("Invalid action")
        return JSONResponse(await handler(params, client, settings))
    except InvalidRequest as e:
        return error_response(str(e))
    except Exception as e:
        logger.exception(f"Error while handling action {params.action}")
        return error_response(str(e) or "Internal server error", status_code=500)


@router.get("/satellite-data")
async def satellite_data_get(
    request: Request,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    query = request.query_params
    try:
        params = SatelliteRequest(
            action=query.get("action"),
            region_id=query.get("region") or query.get("regionId"),
            days_back=query.get("daysBack") or None,
            max_cloud_cover=query.get("maxCloudCover") or None,
            satellite=query.get("satellite"),
        )
    except ValueError:
        return error_response("Invalid request parameters")
    return await dispatch(params, client, settings)


@router.post("/satellite-data")
async def satellite_data_post(
    request: Request,
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
):
    try:
        body = await request.json()
        params = SatelliteRequest.model_validate(body)
    except ValueError:
        return error_response("Invalid request body")
    return await dispatch(params, client, settings)


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "version": API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
