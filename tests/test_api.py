import httpx
import pytest
from fastapi.testclient import TestClient

from api import create_app
from config import Settings
from conftest import PATNA_WEATHER, FakeServices, fixed_clock
from pipeline import AnalysisPipeline, build_pipeline


class MockedPipeline(AnalysisPipeline):
    """Pipeline whose outbound traffic goes to a FakeServices router."""

    services: FakeServices

    async def analyze(self, district, state, acres, client=None):
        async with self.services.client() as mocked:
            return await super().analyze(district, state, acres, client=mocked)


def _client(registry, soil_table, services, environment="development"):
    settings = Settings(openweather_api_key="key", environment=environment)
    wired = build_pipeline(settings, registry=registry, soil_table=soil_table, clock=fixed_clock())
    pipeline = MockedPipeline(wired.collector, wired.generator, wired.ranker, wired.clock)
    pipeline.services = services
    return TestClient(create_app(pipeline=pipeline, settings=settings))


@pytest.fixture
def services():
    return FakeServices(weather=PATNA_WEATHER)


@pytest.fixture
def client(registry, soil_table, services):
    return _client(registry, soil_table, services)


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "healthy"
    assert body["version"] == "1.0.0"


def test_analyze_info(client):
    body = client.get("/analyze").json()
    assert body["status"] == "online"
    assert body["endpoints"]["analyze"]["method"] == "POST"


def test_analyze_success(client):
    r = client.post("/analyze", json={"district": "Patna", "state": "Bihar", "acres": 5})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert [rec["expectedProfitPerAcre"] for rec in body["recommendations"]] == [67000, 40000, 38000]
    assert body["soilData"]["type"] == "Alluvial Soil"
    assert body["candidateSource"] == "rules"
    assert body["recommendations"][0]["marketQuote"] == {
        "crop": "Sugarcane", "pricePerKg": 3.5, "mandi": "Average Market Price", "trend": "Stable", "source": "average",
    }
    assert body["warnings"] == []


@pytest.mark.parametrize("payload", [
    {"district": "Patna", "state": "Bihar", "acres": 0},
    {"district": "Patna", "state": "Bihar", "acres": 1500},
    {"district": "", "state": "Bihar", "acres": 5},
    {"district": "Patna", "state": "Bihar"},
    {"district": "Patna", "state": "Bihar", "acres": "lots"},
])
def test_invalid_input_is_400(client, services, payload):
    r = client.post("/analyze", json=payload)
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["phase"] == "validating"
    assert services.total == 0


def test_unknown_district_is_a_processing_failure(client, services):
    r = client.post("/analyze", json={"district": "Atlantis", "state": "Bihar", "acres": 5})
    assert r.status_code == 500
    body = r.json()
    assert body["error"] == 'District "Atlantis" not found in database'
    assert body["phase"] == "collecting_environment"
    assert services.total == 0


def test_provider_failure_is_500_with_details(registry, soil_table):
    client = _client(registry, soil_table, FakeServices(weather=httpx.ConnectError))
    r = client.post("/analyze", json={"district": "Patna", "state": "Bihar", "acres": 5})
    assert r.status_code == 500
    body = r.json()
    assert body["phase"] == "collecting_environment"
    assert "Traceback" in body["details"]


def test_production_hides_details(registry, soil_table):
    client = _client(registry, soil_table, FakeServices(weather=500), environment="production")
    r = client.post("/analyze", json={"district": "Patna", "state": "Bihar", "acres": 5})
    assert r.status_code == 500
    assert "details" not in r.json()


def test_states_and_districts(client):
    assert "Bihar" in client.get("/states").json()
    districts = client.get("/states/bihar/districts").json()
    assert any(d["name"] == "Patna" for d in districts)
    assert client.get("/states/Atlantis/districts").status_code == 404
