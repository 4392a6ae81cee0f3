import asyncio
import json

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient

from safero.clients import get_http_client
from safero.config import Settings, get_settings
from safero.main import app

# Extrait du flux VIIRS SNPP (colonnes dans l'ordre publié par FIRMS)
FIRMS_CSV = """latitude,longitude,bright_ti4,scan,track,acq_date,acq_time,satellite,instrument,confidence,version,bright_ti5,frp,daynight
45.80,24.90,330.5,0.39,0.36,2025-08-01,0112,N,VIIRS,h,2.0NRT,290.1,12.4,N
45.20,25.60,310.2,0.41,0.37,2025-08-01,0112,N,VIIRS,n,2.0NRT,288.0,3.1,N
44.43,26.10,301.7,0.45,0.39,2025-08-02,1045,N,VIIRS,l,2.0NRT,287.3,1.2,D
47.10,27.60,305.0,0.40,0.36,2025-08-02,1045,N,VIIRS,n,2.0NRT,286.9,2.5,D
"""


@pytest.fixture(scope="session")
def private_key_pem():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()


@pytest.fixture(scope="session")
def public_key_pem(private_key_pem):
    key = serialization.load_pem_private_key(private_key_pem.encode(), password=None)
    return key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


@pytest.fixture
def service_account_key(private_key_pem):
    return json.dumps({
        "type": "service_account",
        "project_id": "safero-test",
        "private_key_id": "abc123",
        "private_key": private_key_pem,
        "client_email": "gee@safero-test.iam.gserviceaccount.com",
    })


@pytest.fixture
def run_with_client():
    """Exécute `fn(client)` avec un AsyncClient branché sur un handler factice."""
    def _run(handler, fn):
        async def _main():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await fn(client)
        return asyncio.run(_main())
    return _run


@pytest.fixture
def api():
    """Construit un TestClient dont les appels sortants passent par `handler`."""
    def _build(handler, **settings):
        async def override_client():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                yield client

        app.dependency_overrides[get_http_client] = override_client
        app.dependency_overrides[get_settings] = lambda: Settings(**settings)
        return TestClient(app)

    yield _build
    app.dependency_overrides.clear()


@pytest.fixture
def firms_csv():
    return FIRMS_CSV
