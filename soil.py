from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
import logging

import httpx
import pandas as pd

from config import PROVIDER_TIMEOUT_SECONDS, SOIL_PROFILES_CSV
from errors import DegradedDataWarning
from locations import Region

# Soil is advisory, low-confidence data: every failure path degrades to the
# static table or the default profile instead of failing the analysis.

logger = logging.getLogger(__name__)

LEVELS = ("Low", "Medium", "High")


@dataclass(frozen=True)
class SoilProfile:
    soil_type: str
    ph: float
    nitrogen: str
    phosphorus: str
    potassium: str
    organic_carbon_pct: float
    fertility: str

    def to_dict(self) -> dict:
        return {
            "type": self.soil_type,
            "pH": self.ph,
            "nitrogen": self.nitrogen,
            "phosphorus": self.phosphorus,
            "potassium": self.potassium,
            "organicCarbon": self.organic_carbon_pct,
            "fertility": self.fertility,
        }


def get_default_soil_profile() -> SoilProfile:
    """
    Profile used when a district has no soil record.
    Typical alluvial plains soil with medium nutrient levels.
    """
    return SoilProfile(
        soil_type="Alluvial Soil",
        ph=7.0,
        nitrogen="Medium",
        phosphorus="Medium",
        potassium="Medium",
        organic_carbon_pct=0.5,
        fertility="Medium",
    )


def _level(value) -> str:
    v = str(value).strip().title()
    if v not in LEVELS:
        raise ValueError(f"unknown nutrient level {value!r}")
    return v


class SoilTable:
    """Static per-district soil profiles."""

    def __init__(self, profiles: dict[str, SoilProfile]):
        self._profiles = MappingProxyType({k.lower(): v for k, v in profiles.items()})

    @classmethod
    def from_csv(cls, path: Path = SOIL_PROFILES_CSV) -> "SoilTable":
        df = pd.read_csv(path)
        profiles = {}
        for _, r in df.iterrows():
            profiles[str(r["district"]).strip()] = SoilProfile(
                soil_type=str(r["type"]),
                ph=float(r["ph"]),
                nitrogen=_level(r["nitrogen"]),
                phosphorus=_level(r["phosphorus"]),
                potassium=_level(r["potassium"]),
                organic_carbon_pct=float(r["organic_carbon"]),
                fertility=_level(r["fertility"]),
            )
        return cls(profiles)

    def lookup(self, district: str) -> SoilProfile | None:
        return self._profiles.get(district.strip().lower())


def profile_from_table(table: SoilTable, region: Region) -> tuple[SoilProfile, list[DegradedDataWarning]]:
    profile = table.lookup(region.name)
    if profile is not None:
        return profile, []
    warning = DegradedDataWarning("soil", f"No soil record for {region.name}; using default alluvial profile")
    logger.warning(str(warning))
    return get_default_soil_profile(), [warning]


def _parse_profile(data: dict) -> SoilProfile:
    return SoilProfile(
        soil_type=str(data["type"]),
        ph=float(data["pH"]),
        nitrogen=_level(data["nitrogen"]),
        phosphorus=_level(data["phosphorus"]),
        potassium=_level(data["potassium"]),
        organic_carbon_pct=float(data["organicCarbon"]),
        fertility=_level(data["fertility"]),
    )


async def fetch_soil(
    client: httpx.AsyncClient,
    region: Region,
    table: SoilTable,
    api_url: str = "",
    api_key: str = "",
    timeout: float = PROVIDER_TIMEOUT_SECONDS,
) -> tuple[SoilProfile, list[DegradedDataWarning]]:
    if not (api_url and api_key):
        logger.info(f"No soil API configured; using static soil data for {region.name}")
        return profile_from_table(table, region)

    params = {"district": region.name, "state": region.state, "lat": region.lat, "lon": region.lon}
    headers = {"Authorization": f"Bearer {api_key}"}
    try:
        r = await client.get(api_url, params=params, headers=headers, timeout=timeout)
        r.raise_for_status()
        return _parse_profile(r.json()), []
    except httpx.HTTPStatusError as e:
        reason = f"Soil API returned error {e.response.status_code}"
    except httpx.RequestError as e:
        reason = f"Network error when fetching soil data: {e!r}"
    except (KeyError, TypeError, ValueError) as e:
        reason = f"Malformed soil payload: {e!r}"

    logger.error(f"{reason} for {region.name}, {region.state}")
    profile, notes = profile_from_table(table, region)
    return profile, [DegradedDataWarning("soil", f"{reason}; using static soil data"), *notes]
