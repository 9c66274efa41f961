from dataclasses import dataclass
import logging
import math

import httpx

from config import OPENWEATHER_URL, SEASON_OVERLAP_PRIORITY, WEATHER_TIMEOUT_SECONDS
from errors import DataUnavailableError
from locations import Region

logger = logging.getLogger(__name__)

SEASONS = ("Kharif", "Rabi", "Zaid")


@dataclass(frozen=True)
class WeatherReading:
    temperature_c: int
    humidity_pct: float
    rainfall_mm: float
    season: str
    district: str

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature_c,
            "humidity": self.humidity_pct,
            "rainfall": self.rainfall_mm,
            "season": self.season,
            "district": self.district,
        }


def season_from_month(m: int, overlap_priority: str = SEASON_OVERLAP_PRIORITY) -> str:
    # Kharif: Jun-Nov (monsoon), Rabi: Nov-Mar (winter), Zaid: what is left before June.
    if not 1 <= m <= 12:
        raise ValueError(f"month must be in 1..12, got {m}")
    kharif = 6 <= m <= 11
    rabi = m >= 11 or m <= 3
    if kharif and rabi:
        return overlap_priority
    if kharif: return "Kharif"
    if rabi: return "Rabi"
    return "Zaid"


def _parse_current(js: dict, region: Region, season: str) -> WeatherReading:
    main = js["main"]
    rain = js.get("rain")
    if not isinstance(rain, dict):
        rain = {}
    return WeatherReading(
        temperature_c=int(math.floor(float(main["temp"]) + 0.5)),
        humidity_pct=float(main["humidity"]),
        rainfall_mm=float(rain.get("1h", 0) or 0),
        season=season,
        district=region.name,
    )


async def fetch_current_weather(
    client: httpx.AsyncClient,
    region: Region,
    api_key: str,
    month: int,
    timeout: float = WEATHER_TIMEOUT_SECONDS,
) -> WeatherReading:
    """Current conditions for a district from OpenWeather. Single attempt, no fallback."""
    if not api_key:
        raise DataUnavailableError(
            "OPENWEATHER_API_KEY is required to fetch weather data", dependency="weather provider"
        )
    params = {"lat": region.lat, "lon": region.lon, "appid": api_key, "units": "metric"}
    season = season_from_month(month)
    try:
        r = await client.get(OPENWEATHER_URL, params=params, timeout=timeout)
        r.raise_for_status()
        return _parse_current(r.json(), region, season)
    except httpx.TimeoutException:
        logger.error(f"Weather API timed out after {timeout}s for lat={region.lat}, lon={region.lon}")
        raise DataUnavailableError(f"Weather service timed out after {timeout:g}s", dependency="weather provider")
    except httpx.HTTPStatusError as e:
        logger.error(f"Weather API returned error {e.response.status_code} for lat={region.lat}, lon={region.lon}")
        raise DataUnavailableError(
            f"Weather service unavailable: {e.response.status_code}", dependency="weather provider"
        )
    except httpx.RequestError as e:
        logger.error(f"Network error when fetching weather data for lat={region.lat}, lon={region.lon}: {e}")
        raise DataUnavailableError(f"Failed to connect to weather service: {e}", dependency="weather provider")
    except (AttributeError, KeyError, OverflowError, TypeError, ValueError) as e:
        logger.error(f"Malformed weather payload for lat={region.lat}, lon={region.lon}: {e!r}")
        raise DataUnavailableError("Weather service returned malformed data", dependency="weather provider")
