import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path(__file__).resolve().parent / "data"
DISTRICTS_CSV = DATA_DIR / "districts.csv"
SOIL_PROFILES_CSV = DATA_DIR / "soil_profiles.csv"

TIMEZONE = "Asia/Kolkata"
SEASON_OVERLAP_PRIORITY = "Kharif"  # month 11 sits in both Kharif (6-11) and Rabi (11-3)

CANDIDATE_COUNT = 5
TOP_N = 3
MAX_ACRES = 1000

KG_PER_QUINTAL = 100
DEFAULT_PRICE_PER_KG = 25.0
DEFAULT_YIELD_QTL = 10
DEFAULT_COST = 20000
DEFAULT_GROWTH_DAYS = 120
DEFAULT_WATER = "Medium"

SCORE_BASE = 60
SCORE_CAP = 100

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
GEMINI_MODEL = "gemini-2.5-flash"
MANDI_PRICE_URL = "https://api.data.gov.in/resource/9ef84268-d588-465a-a308-a864a43d0070"

WEATHER_TIMEOUT_SECONDS = 5.0
GENERATION_TIMEOUT_SECONDS = 30.0
PROVIDER_TIMEOUT_SECONDS = 10.0

GENERATION_TEMPERATURE = 0.7
GENERATION_MAX_TOKENS = 2048
GENERATION_MIN_RESPONSE_CHARS = 100


@dataclass(frozen=True)
class Settings:
    openweather_api_key: str = ""
    gemini_api_key: str = ""
    soil_api_key: str = ""
    soil_api_url: str = ""
    market_api_key: str = ""
    environment: str = "development"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openweather_api_key=os.environ.get("OPENWEATHER_API_KEY", ""),
            gemini_api_key=os.environ.get("GEMINI_API_KEY", ""),
            soil_api_key=os.environ.get("SOIL_API_KEY", ""),
            soil_api_url=os.environ.get("SOIL_API_URL", ""),
            market_api_key=os.environ.get("MARKET_API_KEY", ""),
            environment=os.environ.get("APP_ENV", "development"),
        )

    @property
    def expose_error_details(self) -> bool:
        return self.environment != "production"
