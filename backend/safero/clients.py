# safero/clients.py
import httpx
from fastapi import Depends

from safero.config import Settings, get_settings


async def get_http_client(settings: Settings = Depends(get_settings)):
    """Un client HTTP par requête, partagé par les services appelés."""
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        yield client
