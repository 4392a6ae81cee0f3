import httpx
import pytest

import safero.api.router as router_module

FIRMS_HOST = "firms.modaps.eosdis.nasa.gov"


def firms_only(firms_csv):
    def handler(request):
        if request.url.host == FIRMS_HOST:
            return httpx.Response(200, text=firms_csv)
        return httpx.Response(500, text="unexpected upstream")
    return handler


def gee_and_firms(firms_csv):
    def handler(request):
        if request.url.host == FIRMS_HOST:
            return httpx.Response(200, text=firms_csv)
        if request.url.host == "oauth2.googleapis.com":
            return httpx.Response(200, json={"access_token": "ya29.test"})
        return httpx.Response(200, json={"assets": []})
    return handler


def test_list_regions(api, firms_csv):
    client = api(firms_only(firms_csv))
    response = client.post("/api/v1/satellite-data", json={"action": "list-regions"})

    assert response.status_code == 200
    regions = response.json()["regions"]
    assert len(regions) == 8
    assert regions[0] == {"id": "fagaras", "name": "Făgăraș", "bbox": [24.5, 45.5, 25.5, 46.0]}


@pytest.mark.parametrize("action", ["analyze", "gee", "fires", "search"])
def test_missing_region_id(api, firms_csv, action):
    client = api(firms_only(firms_csv))
    response = client.post("/api/v1/satellite-data", json={"action": action})

    assert response.status_code == 400
    assert response.json() == {"error": "regionId is required"}


@pytest.mark.parametrize("action", ["analyze", "gee", "fires"])
def test_unknown_region(api, firms_csv, action):
    client = api(firms_only(firms_csv))
    response = client.post("/api/v1/satellite-data", json={"action": action, "regionId": "brasov"})

    assert response.status_code == 400
    assert response.json() == {"error": "Unknown region"}


@pytest.mark.parametrize("body", [{"action": "delete"}, {}, {"regionId": "cluj"}])
def test_invalid_action(api, firms_csv, body):
    client = api(firms_only(firms_csv))
    response = client.post("/api/v1/satellite-data", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid action"}


def test_invalid_body(api, firms_csv):
    client = api(firms_only(firms_csv))
    response = client.post(
        "/api/v1/satellite-data",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_get_query_parameters(api, firms_csv):
    client = api(firms_only(firms_csv))
    response = client.get("/api/v1/satellite-data", params={"action": "fires", "region": "fagaras", "daysBack": "2"})

    assert response.status_code == 200
    body = response.json()
    assert body["regionId"] == "fagaras"
    assert body["activeHotspots"] == 2


def test_get_invalid_days_back(api, firms_csv):
    client = api(firms_only(firms_csv))
    response = client.get("/api/v1/satellite-data", params={"action": "fires", "regionId": "fagaras", "daysBack": "abc"})
    assert response.status_code == 400


def test_fires(api, firms_csv):
    client = api(firms_only(firms_csv))
    response = client.post("/api/v1/satellite-data", json={"action": "fires", "regionId": "fagaras"})

    assert response.status_code == 200
    body = response.json()
    assert body["regionName"] == "Făgăraș"
    assert body["bbox"] == [24.5, 45.5, 25.5, 46.0]
    assert body["fireRisk"] == "medium"
    assert body["activeHotspots"] == 2
    assert body["highConfidenceCount"] == 1
    assert body["maxBrightness"] == 330.5
    assert body["totalFRP"] == pytest.approx(15.5)
    assert [h["acq_time"] for h in body["hotspots"]] == ["0112", "0112"]


def test_fire_days_are_capped(api, firms_csv):
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(200, text=firms_csv)

    client = api(handler, firms_api_key="MAPKEY")
    client.post("/api/v1/satellite-data", json={"action": "fires", "regionId": "fagaras", "daysBack": 30})

    assert seen == ["/api/area/csv/MAPKEY/VIIRS_SNPP_NRT/24,45,26,46.5/10"]


def test_analyze_with_gee_token_failure_still_returns_fire_data(api, firms_csv, service_account_key):
    client = api(firms_only(firms_csv), gee_service_account_key=service_account_key)
    response = client.post("/api/v1/satellite-data", json={"action": "analyze", "regionId": "fagaras"})

    assert response.status_code == 200
    body = response.json()
    assert body["geeAnalysis"]["geeConnected"] is False
    assert body["indicators"]["dataAvailability"] == "limited"
    assert body["indicators"]["fireRisk"] == "medium"
    assert body["indicators"]["fireData"]["activeHotspots"] == 2
    assert len(body["fireHotspots"]) == 2
    assert body["sentinel1Products"] == []
    assert body["sentinel2Products"] == []


def test_analyze_without_any_configuration(api, firms_csv):
    client = api(firms_only(firms_csv))
    response = client.post("/api/v1/satellite-data", json={"action": "analyze", "regionId": "bucuresti"})

    assert response.status_code == 200
    body = response.json()
    assert body["regionName"] == "București"
    assert body["geeAnalysis"]["geeConnected"] is False
    assert body["indicators"]["fireData"]["activeHotspots"] == 1
    assert body["indicators"]["fireRisk"] == "medium"


def test_analyze_region_without_fires(api, firms_csv):
    client = api(firms_only(firms_csv))
    response = client.post("/api/v1/satellite-data", json={"action": "analyze", "regionId": "constanta"})

    body = response.json()
    assert body["indicators"]["fireData"]["activeHotspots"] == 0
    assert body["indicators"]["fireRisk"] == "low"
    assert body["fireHotspots"] == []


def test_analyze_limits_hotspots(api):
    rows = "\n".join(f"45.{i:02d},24.90,320.0,n,0.5" for i in range(30))
    csv_text = "latitude,longitude,bright_ti4,confidence,frp\n" + rows + "\n"
    client = api(lambda request: httpx.Response(200, text=csv_text))

    response = client.post("/api/v1/satellite-data", json={"action": "analyze", "regionId": "fagaras"})

    body = response.json()
    assert body["indicators"]["fireData"]["activeHotspots"] == 30
    assert body["indicators"]["fireRisk"] == "critical"
    assert len(body["fireHotspots"]) == 20


def test_gee_action_connected(api, firms_csv, service_account_key):
    client = api(gee_and_firms(firms_csv), gee_service_account_key=service_account_key)
    response = client.post("/api/v1/satellite-data", json={"action": "gee", "regionId": "cluj", "daysBack": 14})

    assert response.status_code == 200
    body = response.json()
    assert body["regionId"] == "cluj"
    assert body["geeConnected"] is True
    assert body["source"] == "gee"
    assert -1 <= body["ndviMean"] <= 1
    assert body["vegetationStress"] in ("low", "moderate", "high")


def test_analyze_all(api, firms_csv, service_account_key):
    client = api(gee_and_firms(firms_csv), gee_service_account_key=service_account_key)
    response = client.post("/api/v1/satellite-data", json={"action": "analyze-all"})

    assert response.status_code == 200
    analyses = response.json()["analyses"]
    assert len(analyses) == 8
    assert all(a["indicators"]["dataAvailability"] == "good" for a in analyses)


def test_search_without_credentials(api, firms_csv):
    client = api(firms_only(firms_csv))
    response = client.post("/api/v1/satellite-data", json={"action": "search", "regionId": "iasi"})

    assert response.status_code == 200
    assert response.json()["products"] == []
    assert response.json()["satellite"] == "sentinel-2"


def test_search_invalid_satellite(api, firms_csv):
    client = api(firms_only(firms_csv))
    response = client.post("/api/v1/satellite-data", json={"action": "search", "regionId": "iasi", "satellite": "landsat-8"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid satellite"}


def test_unexpected_error_returns_500(api, firms_csv, monkeypatch):
    def boom(hotspots):
        raise RuntimeError("classification failed")

    monkeypatch.setattr(router_module, "calculate_fire_risk", boom)
    client = api(firms_only(firms_csv))
    response = client.post("/api/v1/satellite-data", json={"action": "fires", "regionId": "fagaras"})

    assert response.status_code == 500
    assert response.json() == {"error": "classification failed"}


def test_health(api, firms_csv):
    client = api(firms_only(firms_csv))
    body = client.get("/api/v1/health").json()
    assert body["status"] == "ok"
    assert "timestamp" in body


def test_root(api, firms_csv):
    client = api(firms_only(firms_csv))
    assert client.get("/").status_code == 200


def test_search_with_broken_token_endpoint(api):
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    client = api(handler, copernicus_client_id="client", copernicus_client_secret="secret")
    response = client.post("/api/v1/satellite-data", json={"action": "search", "regionId": "iasi"})

    assert response.status_code == 200
    assert response.json()["products"] == []
