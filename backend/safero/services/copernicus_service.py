# safero/services/copernicus_service.py
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

import httpx

from safero.config import CDSE_CATALOG_URL, CDSE_TOKEN_URL
from safero.models import ProductMetadata

logger = logging.getLogger(__name__)

COLLECTIONS = {
    "sentinel-1": "SENTINEL-1",
    "sentinel-2": "SENTINEL-2",
}
MAX_PRODUCTS = 20


def bbox_polygon(bbox: Sequence[float]) -> str:
    min_lon, min_lat, max_lon, max_lat = bbox
    ring = [
        (min_lon, min_lat), (max_lon, min_lat), (max_lon, max_lat),
        (min_lon, max_lat), (min_lon, min_lat),
    ]
    coords = ",".join(f"{lon} {lat}" for lon, lat in ring)
    return f"POLYGON(({coords}))"


def build_filter(
    satellite: str,
    bbox: Sequence[float],
    start: datetime,
    max_cloud_cover: float,
) -> str:
    clauses = [
        f"Collection/Name eq '{COLLECTIONS[satellite]}'",
        f"OData.CSC.Intersects(area=geography'SRID=4326;{bbox_polygon(bbox)}')",
        f"ContentDate/Start gt {start.strftime('%Y-%m-%dT%H:%M:%S.000Z')}",
    ]
    # La couverture nuageuse n'a de sens que pour l'optique
    if satellite == "sentinel-2":
        clauses.append(
            "Attributes/OData.CSC.DoubleAttribute/any(att:att/Name eq 'cloudCover' "
            f"and att/OData.CSC.DoubleAttribute/Value le {max_cloud_cover:.2f})"
        )
    return " and ".join(clauses)


def _attribute(entry: dict, name: str):
    for attr in entry.get("Attributes") or []:
        if attr.get("Name") == name:
            return attr.get("Value")
    return None


def _satellite_from_name(name: str) -> str:
    # S2A_MSIL2A_... -> Sentinel-2A, S1B_IW_GRDH_... -> Sentinel-1B
    prefix = name[:3]
    if len(prefix) == 3 and prefix[0] == "S" and prefix[1].isdigit():
        return f"Sentinel-{prefix[1]}{prefix[2]}"
    return "Sentinel"


def _processing_level(name: str) -> str:
    parts = name.split("_")
    if len(parts) > 1 and parts[1].startswith("MSIL"):
        return parts[1][3:]  # MSIL2A -> L2A
    if len(parts) > 2 and parts[2][:3] in ("GRD", "SLC", "RAW", "OCN"):
        return parts[2][:3]
    return "unknown"


def to_product(entry: dict) -> ProductMetadata:
    name = entry.get("Name", "")
    cloud_cover = _attribute(entry, "cloudCover")
    return ProductMetadata(
        id=entry.get("Id", ""),
        name=name,
        acquisition_date=(entry.get("ContentDate") or {}).get("Start", ""),
        cloud_cover=float(cloud_cover) if cloud_cover is not None else None,
        product_type=_attribute(entry, "productType") or (name.split("_")[1] if "_" in name else ""),
        satellite=_satellite_from_name(name),
        processing_level=_attribute(entry, "processingLevel") or _processing_level(name),
    )


class CopernicusService:
    """Recherche de produits Sentinel dans le catalogue Copernicus Data Space."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
    ):
        self.client = client
        self.client_id = client_id
        self.client_secret = client_secret

    async def get_access_token(self) -> Optional[str]:
        if not self.client_id or not self.client_secret:
            logger.info("Copernicus credentials not configured")
            return None

        try:
            response = await self.client.post(CDSE_TOKEN_URL, data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            })
            if response.status_code != 200:
                logger.error(f"Copernicus token error {response.status_code}: {response.text[:200]}")
                return None
            return response.json().get("access_token")
        except Exception as e:
            logger.error(f"Copernicus authentication error: {e}")
            return None

    async def search_products(
        self,
        bbox: Sequence[float],
        satellite: str = "sentinel-2",
        max_cloud_cover: float = 30,
        days_back: int = 30,
        now: Optional[datetime] = None,
    ) -> List[ProductMetadata]:
        token = await self.get_access_token()
        if not token:
            return []

        now = now or datetime.now(timezone.utc)
        params = {
            "$filter": build_filter(satellite, bbox, now - timedelta(days=days_back), max_cloud_cover),
            "$orderby": "ContentDate/Start desc",
            "$top": str(MAX_PRODUCTS),
            "$expand": "Attributes",
        }

        try:
            response = await self.client.get(
                CDSE_CATALOG_URL,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
            if response.status_code != 200:
                logger.error(f"Copernicus catalog error: {response.status_code}")
                return []
            products = [to_product(e) for e in response.json().get("value", [])]
        except Exception as e:
            logger.error(f"Error searching Copernicus products: {e}")
            return []

        logger.info(f"Found {len(products)} {satellite} products")
        return products
