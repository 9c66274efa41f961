from dataclasses import dataclass
import logging
import math

import httpx

from config import KG_PER_QUINTAL, SCORE_BASE, SCORE_CAP, TOP_N
from crops import PULSES, CropCatalog
from environment import EnvironmentSnapshot
from errors import DegradedDataWarning
from market import MarketPriceProvider, MarketQuote
from recommender import CropCandidate
from soil import SoilProfile
from weather import WeatherReading

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CropRecommendation:
    crop_name: str
    yield_per_acre: float
    price_per_kg: float
    profit_per_acre: int
    reasoning: str
    soil_score: int
    climate_score: int
    market_score: int
    growth_duration_days: int
    water_requirement: str
    market: MarketQuote | None = None

    def to_dict(self) -> dict:
        return {
            "cropName": self.crop_name,
            "expectedYieldPerAcre": self.yield_per_acre,
            "marketPricePerKg": self.price_per_kg,
            "expectedProfitPerAcre": self.profit_per_acre,
            "reasoning": self.reasoning,
            "soilSuitability": self.soil_score,
            "climateSuitability": self.climate_score,
            "marketDemand": self.market_score,
            "growthDuration": self.growth_duration_days,
            "waterRequirement": self.water_requirement,
            "marketQuote": self.market.to_dict() if self.market else None,
        }


@dataclass(frozen=True)
class RankingOutcome:
    recommendations: tuple[CropRecommendation, ...]
    warnings: tuple[DegradedDataWarning, ...] = ()


def compute_profit(yield_per_acre: float, price_per_kg: float, cost: float, units: int = KG_PER_QUINTAL) -> int:
    """Revenue (yield x price x kg per quintal) minus cultivation cost, rounded half up."""
    return int(math.floor(yield_per_acre * price_per_kg * units - cost + 0.5))


def _clamp(score: int) -> int:
    return max(SCORE_BASE, min(score, SCORE_CAP))


def soil_score(soil: SoilProfile) -> int:
    score = SCORE_BASE
    if soil.fertility == "High": score += 20
    elif soil.fertility == "Medium": score += 10
    if 6.5 <= soil.ph <= 7.5: score += 10
    if soil.organic_carbon_pct > 0.6: score += 10
    return _clamp(score)


def climate_score(weather: WeatherReading) -> int:
    score = SCORE_BASE
    if 20 <= weather.temperature_c <= 35: score += 20
    if 50 <= weather.humidity_pct <= 80: score += 10
    if weather.rainfall_mm > 20: score += 10
    return _clamp(score)


def market_score(crop: str, price_per_kg: float, temperature_c: float) -> int:
    score = SCORE_BASE
    if price_per_kg > 50: score += 20
    elif price_per_kg > 30: score += 10
    if crop in PULSES: score += 10  # pulses carry structurally higher demand
    if crop == "Cotton" and temperature_c > 25: score += 10
    return _clamp(score)


class ProfitabilityRanker:
    def __init__(self, catalog: CropCatalog, market: MarketPriceProvider, top_n: int = TOP_N):
        self.catalog = catalog
        self.market = market
        self.top_n = top_n

    async def score(
        self, snapshot: EnvironmentSnapshot, candidate: CropCandidate, client: httpx.AsyncClient
    ) -> tuple[CropRecommendation, DegradedDataWarning | None]:
        base = self.catalog.base_name(candidate.display_name)
        quote = await self.market.quote(client, base, snapshot.region.state)
        yield_qtl = self.catalog.yield_for(base)
        profit = compute_profit(yield_qtl, quote.price_per_kg, self.catalog.cost_for(base))
        reasoning = (
            f"{candidate.display_name} shows strong profitability with ₹{quote.price_per_kg:g}/kg market price "
            f"and {yield_qtl:g} quintal/acre yield. {snapshot.season} season is optimal for this crop."
        )
        rec = CropRecommendation(
            crop_name=candidate.display_name,
            yield_per_acre=yield_qtl,
            price_per_kg=quote.price_per_kg,
            profit_per_acre=profit,
            reasoning=reasoning,
            soil_score=soil_score(snapshot.soil),
            climate_score=climate_score(snapshot.weather),
            market_score=market_score(base, quote.price_per_kg, snapshot.weather.temperature_c),
            growth_duration_days=self.catalog.duration_for(base),
            water_requirement=self.catalog.water_for(base),
            market=quote,
        )
        return rec, quote.warning

    async def rank(
        self, snapshot: EnvironmentSnapshot, candidates: list[CropCandidate], client: httpx.AsyncClient
    ) -> RankingOutcome:
        options = []
        notes = []
        for candidate in candidates:
            rec, warning = await self.score(snapshot, candidate, client)
            options.append(rec)
            if warning is not None:
                notes.append(warning)

        # list.sort is stable with reverse=True, equal profits keep generator order
        options.sort(key=lambda x: x.profit_per_acre, reverse=True)
        top = tuple(options[: self.top_n])
        if top:
            logger.info(f"Top crop = {top[0].crop_name} with ₹{top[0].profit_per_acre} profit/acre")
        return RankingOutcome(recommendations=top, warnings=tuple(notes))
