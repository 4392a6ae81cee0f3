# safero/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from safero.api.router import router as api_router
from safero.config import API_VERSION, get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="safeRo Satellite Data API", version=API_VERSION)

# Le tableau de bord public appelle l'API depuis le navigateur
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

# Inclusion des routes
app.include_router(api_router, prefix="/api/v1")

logger.info(
    "safeRo API started (GEE: %s, FIRMS: %s, Copernicus: %s)",
    "configured" if settings.gee_service_account_key else "not configured",
    "authenticated" if settings.firms_api_key else "open data",
    "configured" if settings.copernicus_client_id else "not configured",
)


@app.get("/")
def read_root():
    return {"status": "Surveillance des risques actif"}
