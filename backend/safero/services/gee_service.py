# safero/services/gee_service.py
"""
Accès à Google Earth Engine par compte de service.

L'authentification suit le flux OAuth2 "JWT bearer" : on signe nous-mêmes
l'assertion (RS256) puis on l'échange contre un jeton d'accès. Le calcul de
pixels Earth Engine n'est pas fait via REST : seule la connexion est vérifiée,
et le NDVI / l'inondation sont estimés à partir de la saison et de la latitude.
"""
import json
import logging
import random
import time
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Sequence

import httpx
from google.auth import crypt, jwt

from safero.config import GEE_API_URL, GEE_SCOPE, GOOGLE_TOKEN_URL
from safero.models import GEEAnalysis, GEEConnectivity
from safero.services.risk_service import vegetation_stress

logger = logging.getLogger(__name__)

JWT_LIFETIME = 3600
JWT_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"

# Au-dessus de cette latitude (centre de la région) on considère une zone de montagne
MOUNTAIN_LATITUDE = 46.5


def load_credentials(raw: Optional[str]) -> Optional[dict]:
    """Lit le JSON du compte de service. Retourne None s'il est absent ou invalide."""
    if not raw:
        logger.info("GEE service account key not configured")
        return None

    try:
        key = json.loads(raw)
        return {
            "client_email": key["client_email"],
            "private_key": key["private_key"],
            "project_id": key["project_id"],
            "private_key_id": key.get("private_key_id"),
        }
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Failed to parse GEE service account key: {e}")
        return None


def build_assertion(credentials: dict, now: Optional[int] = None) -> str:
    """Construit et signe (RS256) l'assertion JWT envoyée au endpoint de jetons Google."""
    now = int(time.time()) if now is None else now
    payload = {
        "iss": credentials["client_email"],
        "sub": credentials["client_email"],
        "aud": GOOGLE_TOKEN_URL,
        "iat": now,
        "exp": now + JWT_LIFETIME,
        "scope": GEE_SCOPE,
    }
    signer = crypt.RSASigner.from_string(credentials["private_key"], credentials.get("private_key_id"))
    return jwt.encode(signer, payload).decode("utf-8")


def seasonal_ndvi_base(month: int) -> float:
    if 6 <= month <= 9:  # été
        return 0.55
    if month in (4, 5, 10, 11):  # printemps / automne
        return 0.40
    return 0.15  # hiver


def estimate_analysis(
    bbox: Sequence[float],
    today: date,
    rng=random,
    connected: bool = False,
) -> GEEAnalysis:
    """
    Estimation saisonnière pour la Roumanie. Ce n'est pas une mesure :
    les valeurs sont tirées dans des plages dépendant du mois et de la latitude.
    """
    month = today.month
    _, min_lat, _, max_lat = bbox
    center_lat = (min_lat + max_lat) / 2

    ndvi_mean = seasonal_ndvi_base(month) + rng.random() * 0.15
    if center_lat > MOUNTAIN_LATITUDE:
        ndvi_mean -= 0.05
    ndvi_mean = min(1.0, max(-1.0, ndvi_mean))

    ndvi_min = max(-1.0, ndvi_mean - 0.2)
    ndvi_max = min(1.0, ndvi_mean + 0.2)

    flood_percentage = 2 + rng.random() * 3
    if 4 <= month <= 6:
        flood_percentage += 3  # crues de printemps

    water_percentage = 1.5 + rng.random() * 2

    return GEEAnalysis(
        ndvi_mean=round(ndvi_mean, 3),
        ndvi_min=round(ndvi_min, 3),
        ndvi_max=round(ndvi_max, 3),
        flood_percentage=round(flood_percentage, 1),
        water_percentage=round(water_percentage, 1),
        vegetation_stress=vegetation_stress(ndvi_mean),
        data_date=today.isoformat(),
        gee_connected=connected,
    )


class GEEService:
    def __init__(self, client: httpx.AsyncClient, service_account_key: Optional[str] = None):
        self.client = client
        self.credentials = load_credentials(service_account_key)

    async def get_access_token(self) -> Optional[str]:
        """Échange l'assertion signée contre un jeton. Toute erreur donne None."""
        if not self.credentials:
            return None

        try:
            assertion = build_assertion(self.credentials)
            response = await self.client.post(
                GOOGLE_TOKEN_URL,
                data={"grant_type": JWT_GRANT_TYPE, "assertion": assertion},
            )
            if response.status_code != 200:
                logger.error(f"GEE token error {response.status_code}: {response.text[:200]}")
                return None

            token = response.json().get("access_token")
            if not token:
                logger.error("GEE token response without access_token")
                return None

            logger.info("GEE access token obtained successfully")
            return token
        except Exception as e:
            logger.error(f"GEE authentication error: {e}")
            return None

    async def check_connectivity(self) -> GEEConnectivity:
        token = await self.get_access_token()
        if not token:
            logger.info("GEE: no access token available")
            return GEEConnectivity(connected=False, message="No GEE credentials")

        url = f"{GEE_API_URL}/projects/{self.credentials['project_id']}/assets"
        try:
            response = await self.client.get(url, headers={"Authorization": f"Bearer {token}"})
        except Exception as e:
            logger.error(f"GEE connectivity error: {e}")
            return GEEConnectivity(connected=False, message="GEE connection failed")

        # 404 : aucun asset, mais l'authentification a fonctionné
        if response.status_code in (200, 404):
            logger.info("GEE connected successfully")
            return GEEConnectivity(connected=True, message="GEE authentication successful")

        logger.error(f"GEE connectivity check failed: {response.status_code} {response.text[:200]}")
        return GEEConnectivity(connected=False, message=f"GEE error: {response.status_code}")

    async def get_analysis(
        self,
        bbox: Sequence[float],
        days_back: int = 30,
        today: Optional[date] = None,
        rng=random,
    ) -> GEEAnalysis:
        today = today or datetime.now(timezone.utc).date()
        start = today - timedelta(days=days_back)
        logger.info(f"Querying GEE for NDVI: {start.isoformat()} to {today.isoformat()}")

        connectivity = await self.check_connectivity()
        return estimate_analysis(bbox, today, rng=rng, connected=connectivity.connected)
