# safero/services/firms_service.py
import logging
from typing import List, Optional, Sequence

import httpx

from safero.config import FIRMS_BASE_URL, FIRMS_COUNTRY, FIRMS_SOURCE
from safero.models import FireHotspot
from safero.utils import expand_bbox, parse_firms_csv

logger = logging.getLogger(__name__)


class FirmsService:
    def __init__(self, client: httpx.AsyncClient, api_key: Optional[str] = None):
        self.client = client
        self.api_key = api_key
        self.base_url = FIRMS_BASE_URL
        self.source = FIRMS_SOURCE

    def build_url(self, bbox: Sequence[float], days_back: int) -> str:
        """
        Avec une clé : requête par zone (bbox élargie de 0.5°).
        Sans clé : flux ouvert pour toute la Roumanie, filtré ensuite.
        """
        if self.api_key:
            area = ",".join(f"{v:g}" for v in expand_bbox(bbox))
            return f"{self.base_url}/area/csv/{self.api_key}/{self.source}/{area}/{days_back}"
        return f"{self.base_url}/country/csv/OPEN_DATA/{self.source}/{FIRMS_COUNTRY}/{days_back}"

    async def get_hotspots(self, bbox: Sequence[float], days_back: int = 3) -> List[FireHotspot]:
        url = self.build_url(bbox, days_back)
        logger.info(f"Fetching FIRMS data: {'authenticated' if self.api_key else 'open'}")

        try:
            response = await self.client.get(url)
            if response.status_code != 200:
                logger.error(f"FIRMS API error: {response.status_code}")
                return []

            # La requête par zone est déjà bornée, le flux pays ne l'est pas
            hotspots = parse_firms_csv(
                response.text,
                bbox=None if self.api_key else expand_bbox(bbox),
            )
        except Exception as e:
            logger.error(f"Error fetching FIRMS data: {e}")
            return []

        if not hotspots:
            logger.info("No fire data returned from FIRMS")
        else:
            logger.info(f"Found {len(hotspots)} fire hotspots for region")
        return hotspots
