import asyncio
import json
from collections import Counter
from datetime import datetime
from zoneinfo import ZoneInfo

import httpx
import pytest

from config import Settings
from crops import default_catalog
from environment import EnvironmentSnapshot
from locations import LocationRegistry, Region
from recommender import CandidateList, CropCandidate
from soil import SoilProfile, SoilTable
from varieties import VarietyKnowledgeBase
from weather import WeatherReading

PATNA = Region("Patna", "Bihar", 25.5941, 85.1376)

PATNA_WEATHER = {"main": {"temp": 28.0, "humidity": 70}, "rain": {"1h": 45}}

PATNA_SOIL = SoilProfile("Alluvial Soil", 7.2, "Medium", "High", "Medium", 0.65, "High")


def run(coro):
    return asyncio.run(coro)


def fixed_clock(month=7):
    stamp = datetime(2025, month, 15, 10, 0, tzinfo=ZoneInfo("Asia/Kolkata"))
    return lambda: stamp


def gemini_envelope(payload, finish_reason="STOP"):
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": finish_reason}]}


class FakeServices:
    """
    Routes outbound requests by host. Each route is a dict (200 JSON), an int
    (error status), an exception class raised as a transport error, or a
    callable taking the request. Calls are counted per route.
    """

    HOSTS = {
        "api.openweathermap.org": "weather",
        "generativelanguage.googleapis.com": "gemini",
        "api.data.gov.in": "mandi",
        "soil.example.test": "soil",
    }

    def __init__(self, **routes):
        self.routes = routes
        self.calls = Counter()
        self.requests = []

    @property
    def total(self):
        return sum(self.calls.values())

    def __call__(self, request: httpx.Request) -> httpx.Response:
        name = self.HOSTS.get(request.url.host, request.url.host)
        self.calls[name] += 1
        self.requests.append(request)
        route = self.routes.get(name)
        if route is None:
            return httpx.Response(404, json={"message": "no route"})
        if isinstance(route, type) and issubclass(route, Exception):
            raise route("simulated failure", request=request)
        if callable(route):
            return route(request)
        if isinstance(route, int):
            return httpx.Response(route, json={"message": "error"})
        return httpx.Response(200, json=route)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class StubGenerator:
    source = "stub"

    def __init__(self, names, reasoning="Stubbed crop list"):
        self.names = names
        self.reasoning = reasoning
        self.catalog = default_catalog()

    async def generate(self, snapshot, state, client):
        return CandidateList(
            candidates=tuple(CropCandidate(n, self.catalog.base_name(n)) for n in self.names),
            reasoning=self.reasoning,
            source=self.source,
        )


def make_snapshot(temp=28, humidity=70.0, rain=45.0, season="Kharif", soil=PATNA_SOIL, region=PATNA):
    weather = WeatherReading(temp, humidity, rain, season, region.name)
    return EnvironmentSnapshot(region=region, weather=weather, soil=soil)


@pytest.fixture(scope="session")
def registry():
    return LocationRegistry.from_csv()


@pytest.fixture(scope="session")
def soil_table():
    return SoilTable.from_csv()


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def varieties():
    return VarietyKnowledgeBase()


@pytest.fixture
def settings():
    return Settings(openweather_api_key="test-weather-key")
