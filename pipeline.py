"""
Analysis orchestrator.

Runs the phases in order

    validating -> collecting_environment -> generating_candidates -> ranking -> done

and stops at the first error, which is re-raised with the failing phase
stamped on it. Nothing is retried and no partial result is ever returned.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable
from zoneinfo import ZoneInfo
import logging
import math
import time

import httpx

from config import MAX_ACRES, TIMEZONE, Settings
from crops import CropCatalog, default_catalog
from environment import EnvironmentCollector
from errors import AnalysisError, DegradedDataWarning, ValidationError
from locations import LocationRegistry
from market import MarketPriceProvider
from ranking import CropRecommendation, ProfitabilityRanker
from recommender import make_generator
from soil import SoilProfile, SoilTable
from varieties import VarietyKnowledgeBase
from weather import WeatherReading

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    VALIDATING = "validating"
    COLLECTING_ENVIRONMENT = "collecting_environment"
    GENERATING_CANDIDATES = "generating_candidates"
    RANKING = "ranking"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class AnalysisRequest:
    district: str
    state: str
    acres: float


@dataclass(frozen=True)
class AnalysisResult:
    recommendations: tuple[CropRecommendation, ...]
    weather: WeatherReading
    soil: SoilProfile
    analysis_date: datetime
    district: str
    state: str
    acres: float
    candidate_source: str
    summary: str
    warnings: tuple[DegradedDataWarning, ...] = field(default=())

    def to_dict(self) -> dict:
        return {
            "success": True,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "weatherData": self.weather.to_dict(),
            "soilData": self.soil.to_dict(),
            "analysisDate": self.analysis_date.isoformat(),
            "district": self.district,
            "state": self.state,
            "acres": self.acres,
            "candidateSource": self.candidate_source,
            "analysisSummary": self.summary,
            "warnings": [str(w) for w in self.warnings],
        }


def validate_request(district, state, acres) -> AnalysisRequest:
    district = district.strip() if isinstance(district, str) else ""
    state = state.strip() if isinstance(state, str) else ""
    if not district or not state:
        raise ValidationError("District and state are required", phase=Phase.VALIDATING.value)
    if isinstance(acres, bool) or not isinstance(acres, (int, float)) or not math.isfinite(acres):
        raise ValidationError("Acres must be a number", phase=Phase.VALIDATING.value)
    if acres <= 0 or acres > MAX_ACRES:
        raise ValidationError(f"Acres must be greater than 0 and at most {MAX_ACRES}", phase=Phase.VALIDATING.value)
    return AnalysisRequest(district=district, state=state, acres=float(acres))


def _now() -> datetime:
    return datetime.now(ZoneInfo(TIMEZONE))


class AnalysisPipeline:
    def __init__(self, collector: EnvironmentCollector, generator, ranker: ProfitabilityRanker,
                 clock: Callable[[], datetime] = _now):
        self.collector = collector
        self.generator = generator
        self.ranker = ranker
        self.clock = clock

    async def analyze(self, district, state, acres, client: httpx.AsyncClient | None = None) -> AnalysisResult:
        request = validate_request(district, state, acres)
        if client is None:
            async with httpx.AsyncClient() as own_client:
                return await self._run(request, own_client)
        return await self._run(request, client)

    async def _run(self, request: AnalysisRequest, client: httpx.AsyncClient) -> AnalysisResult:
        started = time.perf_counter()
        now = self.clock()
        phase = Phase.COLLECTING_ENVIRONMENT
        logger.info(f"Crop analysis started for {request.district}, {request.state} ({request.acres:g} acres)")
        try:
            snapshot = await self.collector.collect(request.district, request.state, client, month=now.month)

            phase = Phase.GENERATING_CANDIDATES
            logger.info(f"Phase {phase.value}: {self.generator.source} generator")
            candidates = await self.generator.generate(snapshot, request.state, client)
            logger.info(f"Suggested crops: {', '.join(candidates.names)}")

            phase = Phase.RANKING
            outcome = await self.ranker.rank(snapshot, list(candidates.candidates), client)
        except AnalysisError as e:
            e.phase = e.phase or phase.value
            logger.error(f"Analysis {Phase.FAILED.value} during {e.phase}: {e.message}")
            raise

        result = AnalysisResult(
            recommendations=outcome.recommendations,
            weather=snapshot.weather,
            soil=snapshot.soil,
            analysis_date=now,
            district=snapshot.region.name,
            state=request.state,
            acres=request.acres,
            candidate_source=candidates.source,
            summary=candidates.reasoning,
            warnings=snapshot.warnings + outcome.warnings,
        )
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"Analysis {Phase.DONE.value} in {elapsed_ms:.0f}ms, {len(result.recommendations)} recommendations")
        return result


def build_pipeline(
    settings: Settings | None = None,
    registry: LocationRegistry | None = None,
    soil_table: SoilTable | None = None,
    varieties: VarietyKnowledgeBase | None = None,
    catalog: CropCatalog | None = None,
    clock: Callable[[], datetime] = _now,
) -> AnalysisPipeline:
    """Wire the pipeline from settings; static catalogs are loaded once here."""
    if settings is None: settings = Settings.from_env()
    if registry is None: registry = LocationRegistry.from_csv()
    if soil_table is None: soil_table = SoilTable.from_csv()
    if varieties is None: varieties = VarietyKnowledgeBase()
    if catalog is None: catalog = default_catalog()
    return AnalysisPipeline(
        collector=EnvironmentCollector(registry, soil_table, settings),
        generator=make_generator(settings, varieties, catalog),
        ranker=ProfitabilityRanker(catalog, MarketPriceProvider(settings.market_api_key)),
        clock=clock,
    )
