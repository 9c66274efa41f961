from datetime import datetime, timezone
from typing import List, Optional
import logging
import traceback

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config import Settings
from errors import AnalysisError
from pipeline import AnalysisPipeline, build_pipeline

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Krishi Sakhi - Crop Analysis API"
VERSION = "1.0.0"


class AnalyzeIn(BaseModel):
    district: str = ""
    state: str = ""
    acres: Optional[float] = None


class MarketQuoteOut(BaseModel):
    crop: str
    pricePerKg: float
    mandi: str
    trend: str
    source: str


class RecommendationOut(BaseModel):
    cropName: str
    expectedYieldPerAcre: float
    marketPricePerKg: float
    expectedProfitPerAcre: int
    reasoning: str
    soilSuitability: int
    climateSuitability: int
    marketDemand: int
    growthDuration: int
    waterRequirement: str
    marketQuote: Optional[MarketQuoteOut] = None


class WeatherOut(BaseModel):
    temperature: int
    humidity: float
    rainfall: float
    season: str
    district: str


class SoilOut(BaseModel):
    type: str
    pH: float
    nitrogen: str
    phosphorus: str
    potassium: str
    organicCarbon: float
    fertility: str


class AnalysisOut(BaseModel):
    success: bool
    recommendations: List[RecommendationOut]
    weatherData: WeatherOut
    soilData: SoilOut
    analysisDate: str
    district: str
    state: str
    acres: float
    candidateSource: str
    analysisSummary: str
    warnings: List[str]


class DistrictOut(BaseModel):
    name: str
    state: str
    lat: float
    lon: float


def _failure(status_code: int, message: str, settings: Settings, phase: Optional[str] = None,
             exc: Optional[BaseException] = None) -> JSONResponse:
    body = {"success": False, "error": message}
    if phase:
        body["phase"] = phase
    if exc is not None and settings.expose_error_details:
        body["details"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=body)


def create_app(pipeline: Optional[AnalysisPipeline] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(title="Krishi Sakhi Crop Advisor")
    app.state.settings = settings
    app.state.pipeline = pipeline or build_pipeline(settings)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return _failure(400, f"Invalid request body: {message}", settings, phase="validating")

    @app.get("/")
    def root():
        return {
            "message": "Crop Profitability Advisor API",
            "endpoints": ["/analyze", "/health", "/states", "/states/{state}/districts"],
        }

    @app.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "version": VERSION,
        }

    @app.get("/analyze")
    def analyze_info():
        return {
            "status": "online",
            "service": SERVICE_NAME,
            "version": VERSION,
            "endpoints": {
                "analyze": {
                    "method": "POST",
                    "path": "/analyze",
                    "description": "Get crop recommendations ranked by profit per acre",
                    "requiredFields": ["district", "state", "acres"],
                },
            },
            "stages": {
                "environment": "Data Collector (Weather + Soil)",
                "candidates": "Crop Analyzer (Biotech varieties)",
                "ranking": "Market Optimizer (Profitability Ranking)",
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.post("/analyze", response_model=AnalysisOut)
    async def analyze(body: AnalyzeIn, request: Request):
        pipeline: AnalysisPipeline = request.app.state.pipeline
        logger.info(f"Analysis requested for district={body.district}, state={body.state}, acres={body.acres}")
        try:
            result = await pipeline.analyze(body.district, body.state, body.acres)
        except AnalysisError as e:
            logger.error(f"Analysis failed: {e.describe()}")
            return _failure(e.status_code, e.message, settings, phase=e.phase, exc=e if e.status_code >= 500 else None)
        except Exception as e:
            logger.exception(f"Unexpected error analysing {body.district}, {body.state}: {e}")
            return _failure(500, "Analysis failed. Please try again.", settings, exc=e)
        return result.to_dict()

    @app.get("/states", response_model=List[str])
    def states(request: Request):
        return request.app.state.pipeline.collector.registry.list_states()

    @app.get("/states/{state}/districts", response_model=List[DistrictOut])
    def districts(state: str, request: Request):
        regions = request.app.state.pipeline.collector.registry.list_regions_in_state(state)
        if not regions:
            raise HTTPException(status_code=404, detail=f"No districts found for state {state}")
        return [DistrictOut(name=r.name, state=r.state, lat=r.lat, lon=r.lon) for r in regions]

    return app


app = create_app()
