from dataclasses import dataclass, field
import asyncio
import logging

import httpx

from config import Settings
from errors import DegradedDataWarning
from locations import LocationRegistry, Region
from soil import SoilProfile, SoilTable, fetch_soil
from weather import WeatherReading, fetch_current_weather

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnvironmentSnapshot:
    region: Region
    weather: WeatherReading
    soil: SoilProfile
    warnings: tuple[DegradedDataWarning, ...] = field(default=())

    @property
    def season(self) -> str:
        return self.weather.season


class EnvironmentCollector:
    """Resolves the district, then fetches weather and soil side by side."""

    def __init__(self, registry: LocationRegistry, soil_table: SoilTable, settings: Settings):
        self.registry = registry
        self.soil_table = soil_table
        self.settings = settings

    async def collect(self, district: str, state: str, client: httpx.AsyncClient, month: int) -> EnvironmentSnapshot:
        region = self.registry.find_region(district)
        if region.state.lower() != state.strip().lower():
            logger.warning(f"District {region.name} belongs to {region.state}, request named {state}")

        weather_task = asyncio.ensure_future(
            fetch_current_weather(client, region, self.settings.openweather_api_key, month)
        )
        soil_task = asyncio.ensure_future(
            fetch_soil(client, region, self.soil_table, self.settings.soil_api_url, self.settings.soil_api_key)
        )
        try:
            weather, (soil, notes) = await asyncio.gather(weather_task, soil_task)
        except BaseException:
            for task in (weather_task, soil_task):
                task.cancel()
            raise

        logger.info(f"Environment for {region.name}: {weather.temperature_c}°C, {weather.season}, {soil.soil_type}")
        return EnvironmentSnapshot(region=region, weather=weather, soil=soil, warnings=tuple(notes))
