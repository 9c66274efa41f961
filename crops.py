from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from config import DEFAULT_COST, DEFAULT_GROWTH_DAYS, DEFAULT_WATER, DEFAULT_YIELD_QTL

# Average yield, quintals per acre
CROP_YIELD_QTL = {
    "Rice": 18, "Wheat": 16, "Cotton": 8, "Sugarcane": 320, "Maize": 20,
    "Soybean": 10, "Groundnut": 12, "Lentil": 6, "Chickpea": 8, "Mustard": 6,
    "Bajra": 12, "Jowar": 10, "Barley": 14, "Potato": 140, "Onion": 100,
    "Watermelon": 200, "Cucumber": 120, "Turmeric": 25, "Chilli": 15,
}

# Cultivation cost per acre in rupees (seed, fertiliser, pesticide, labour, irrigation)
CULTIVATION_COST = {
    "Rice": 25000, "Wheat": 20000, "Cotton": 35000, "Sugarcane": 45000, "Maize": 18000,
    "Soybean": 15000, "Groundnut": 22000, "Lentil": 12000, "Chickpea": 14000, "Mustard": 10000,
    "Bajra": 8000, "Jowar": 9000, "Barley": 12000, "Potato": 40000, "Onion": 35000,
    "Watermelon": 25000, "Cucumber": 20000, "Turmeric": 50000, "Chilli": 30000,
}

GROWTH_DAYS = {
    "Rice": 120, "Wheat": 130, "Cotton": 180, "Sugarcane": 365, "Maize": 90,
    "Soybean": 100, "Groundnut": 110, "Lentil": 120, "Chickpea": 120, "Mustard": 100,
    "Bajra": 75, "Jowar": 90, "Barley": 120, "Potato": 90, "Onion": 120,
    "Watermelon": 75, "Cucumber": 60, "Turmeric": 270, "Chilli": 150,
}

WATER_REQUIREMENT = {
    "Rice": "High", "Wheat": "Medium", "Cotton": "Medium", "Sugarcane": "High", "Maize": "Medium",
    "Soybean": "Low", "Groundnut": "Low", "Lentil": "Low", "Chickpea": "Low", "Mustard": "Low",
    "Bajra": "Low", "Jowar": "Low", "Barley": "Medium", "Potato": "Medium", "Onion": "Medium",
    "Watermelon": "High", "Cucumber": "Medium", "Turmeric": "High", "Chilli": "Medium",
}

SEASON_CROPS = {
    "Kharif": ("Rice", "Cotton", "Soybean", "Maize", "Bajra", "Jowar", "Groundnut", "Sugarcane", "Turmeric"),
    "Rabi": ("Wheat", "Barley", "Gram", "Mustard", "Peas", "Lentil", "Chickpea", "Potato", "Onion"),
    "Zaid": ("Watermelon", "Cucumber", "Bitter Gourd", "Pumpkin", "Muskmelon", "Moong Dal", "Fodder"),
}

PULSES = frozenset({"Lentil", "Chickpea"})


@dataclass(frozen=True)
class CropCatalog:
    yields: Mapping[str, float]
    costs: Mapping[str, int]
    durations: Mapping[str, int]
    water: Mapping[str, str]
    season_crops: Mapping[str, tuple[str, ...]]

    def base_name(self, display_name: str) -> str:
        """
        "BT Cotton (Bollgard II)" -> "Cotton". The parenthesised variety is
        dropped and the rest matched against the known crops; unknown names
        pass through as the stripped text.
        """
        stripped = display_name.split("(")[0].strip()
        lowered = stripped.lower()
        for crop in self.yields:
            if crop.lower() in lowered:
                return crop
        return stripped

    def yield_for(self, crop: str) -> float:
        return self.yields.get(crop, DEFAULT_YIELD_QTL)

    def cost_for(self, crop: str) -> int:
        return self.costs.get(crop, DEFAULT_COST)

    def duration_for(self, crop: str) -> int:
        return self.durations.get(crop, DEFAULT_GROWTH_DAYS)

    def water_for(self, crop: str) -> str:
        return self.water.get(crop, DEFAULT_WATER)

    def crops_for_season(self, season: str) -> tuple[str, ...]:
        return self.season_crops.get(season, ())


def default_catalog() -> CropCatalog:
    return CropCatalog(
        yields=MappingProxyType(dict(CROP_YIELD_QTL)),
        costs=MappingProxyType(dict(CULTIVATION_COST)),
        durations=MappingProxyType(dict(GROWTH_DAYS)),
        water=MappingProxyType(dict(WATER_REQUIREMENT)),
        season_crops=MappingProxyType(dict(SEASON_CROPS)),
    )
