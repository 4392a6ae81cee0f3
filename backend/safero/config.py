# safero/config.py
import logging
import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

logger = logging.getLogger(__name__)

# Google OAuth2 / Earth Engine
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GEE_SCOPE = "https://www.googleapis.com/auth/earthengine"
GEE_API_URL = "https://earthengine.googleapis.com/v1"

# NASA FIRMS
FIRMS_BASE_URL = "https://firms.modaps.eosdis.nasa.gov/api"
FIRMS_SOURCE = "VIIRS_SNPP_NRT"
FIRMS_COUNTRY = "ROU"

# Copernicus Data Space Ecosystem
CDSE_TOKEN_URL = (
    "https://identity.dataspace.copernicus.eu/auth/realms/CDSE/protocol/openid-connect/token"
)
CDSE_CATALOG_URL = "https://catalogue.dataspace.copernicus.eu/odata/v1/Products"

API_VERSION = "1.0.0"
DEFAULT_HTTP_TIMEOUT = 30.0


def _read_timeout(raw: Optional[str]) -> float:
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid SAFERO_HTTP_TIMEOUT {raw!r}, using {DEFAULT_HTTP_TIMEOUT}s")
        return DEFAULT_HTTP_TIMEOUT


class Settings(BaseModel):
    gee_service_account_key: Optional[str] = None
    firms_api_key: Optional[str] = None
    copernicus_client_id: Optional[str] = None
    copernicus_client_secret: Optional[str] = None
    cors_origins: List[str] = ["*"]
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("SAFERO_CORS_ORIGINS", "*")
        return cls(
            gee_service_account_key=os.getenv("GEE_SERVICE_ACCOUNT_KEY") or None,
            firms_api_key=os.getenv("NASA_FIRMS_API_KEY") or None,
            copernicus_client_id=os.getenv("COPERNICUS_CLIENT_ID") or None,
            copernicus_client_secret=os.getenv("COPERNICUS_CLIENT_SECRET") or None,
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            http_timeout=_read_timeout(os.getenv("SAFERO_HTTP_TIMEOUT")),
            log_level=os.getenv("SAFERO_LOG_LEVEL", "INFO").upper(),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
