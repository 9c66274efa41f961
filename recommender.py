from dataclasses import dataclass
import json
import logging

import httpx

from config import (
    CANDIDATE_COUNT,
    GEMINI_MODEL,
    GEMINI_URL,
    GENERATION_MAX_TOKENS,
    GENERATION_MIN_RESPONSE_CHARS,
    GENERATION_TEMPERATURE,
    GENERATION_TIMEOUT_SECONDS,
    Settings,
)
from crops import CropCatalog
from environment import EnvironmentSnapshot
from errors import GenerationError
from varieties import VarietyKnowledgeBase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CropCandidate:
    display_name: str
    base_name: str


@dataclass(frozen=True)
class CandidateList:
    candidates: tuple[CropCandidate, ...]
    reasoning: str
    source: str

    @property
    def names(self) -> list[str]:
        return [c.display_name for c in self.candidates]


def _unique(names: list[str]) -> list[str]:
    seen = set()
    out = []
    for n in names:
        if n not in seen:
            seen.add(n)
            out.append(n)
    return out


# Rule table: (predicate over the snapshot, crops it contributes), evaluated in order.
RULES = (
    (lambda s: "alluvial" in s.soil.soil_type.lower() or s.soil.fertility == "High",
     ("Wheat (HD-3086)", "Rice (Swarna Sub-1)", "Sugarcane (Co-0238)")),
    (lambda s: "black" in s.soil.soil_type.lower() and s.weather.temperature_c > 25,
     ("Cotton (BT Bollgard II)", "Soybean (JS-335)")),
    (lambda s: s.weather.rainfall_mm < 30,
     ("Maize (NK-6240 Drought-tolerant)", "Groundnut (TAG-24)")),
    (lambda s: s.season == "Rabi",
     ("Chickpea (Pusa 362)", "Lentil (Pusa Vaibhav)", "Mustard (Pusa Bold)")),
)


class RuleBasedGenerator:
    """Deterministic decision table, used when no generation credential is configured."""

    source = "rules"

    def __init__(self, catalog: CropCatalog, count: int = CANDIDATE_COUNT):
        self.catalog = catalog
        self.count = count

    def select(self, snapshot: EnvironmentSnapshot) -> list[str]:
        picked = []
        for matches, crops in RULES:
            if matches(snapshot):
                picked.extend(crops)
        picked = _unique(picked)[: self.count]

        # Top up from the season's staple list, skipping crops already present.
        have = {self.catalog.base_name(n) for n in picked}
        for crop in self.catalog.crops_for_season(snapshot.season):
            if len(picked) >= self.count:
                break
            if self.catalog.base_name(crop) not in have:
                picked.append(crop)
                have.add(self.catalog.base_name(crop))
        return picked

    async def generate(self, snapshot: EnvironmentSnapshot, state: str, client: httpx.AsyncClient) -> CandidateList:
        names = self.select(snapshot)
        reasoning = (
            f"Selected crops based on {snapshot.soil.soil_type}, {snapshot.season} season, and temperature "
            f"{snapshot.weather.temperature_c}°C. Biotech varieties included for better yield and climate resilience."
        )
        return CandidateList(
            candidates=tuple(CropCandidate(n, self.catalog.base_name(n)) for n in names),
            reasoning=reasoning,
            source=self.source,
        )


def strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[-1] if "\n" in cleaned else cleaned[3:]
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
        cleaned = cleaned.rsplit("```", 1)[0]
    return cleaned.strip()


def parse_generation(text: str | None, min_chars: int = GENERATION_MIN_RESPONSE_CHARS) -> tuple[list[str], str]:
    """Validate a model response of shape {"crops": [...], "reasoning": "..."}."""
    if not text or not text.strip():
        raise GenerationError("Crop analyzer returned an empty response", dependency="generation service")
    if len(text) < min_chars:
        raise GenerationError(
            f"Crop analyzer returned incomplete response ({len(text)} chars)", dependency="generation service"
        )
    try:
        parsed = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise GenerationError(f"Crop analyzer returned invalid JSON: {e.msg}", dependency="generation service")
    if not isinstance(parsed, dict):
        raise GenerationError("Crop analyzer response is not a JSON object", dependency="generation service")

    crops = parsed.get("crops") or []
    if not isinstance(crops, list):
        raise GenerationError("Crop analyzer response has no crop list", dependency="generation service")
    names = _unique([c.strip() for c in crops if isinstance(c, str) and c.strip()])
    if not names:
        raise GenerationError("Crop analyzer suggested no crops", dependency="generation service")
    reasoning = parsed.get("reasoning")
    if not isinstance(reasoning, str) or not reasoning.strip():
        reasoning = "Crops selected based on climate and soil suitability"
    return names, reasoning.strip()


class AIAssistedGenerator:
    """Asks Gemini for candidates, constrained by the regional variety catalog."""

    source = "ai"

    def __init__(
        self,
        api_key: str,
        varieties: VarietyKnowledgeBase,
        catalog: CropCatalog,
        model: str = GEMINI_MODEL,
        timeout: float = GENERATION_TIMEOUT_SECONDS,
        count: int = CANDIDATE_COUNT,
    ):
        self.api_key = api_key
        self.varieties = varieties
        self.catalog = catalog
        self.model = model
        self.timeout = timeout
        self.count = count

    def build_prompt(self, snapshot: EnvironmentSnapshot, state: str) -> str:
        w, s = snapshot.weather, snapshot.soil
        available = self.varieties.prompt_summary(state)
        return (
            f"Recommend {self.count} crops for:\n"
            f"Location: {snapshot.region.name}, {state}\n"
            f"Temp: {w.temperature_c}°C, Humidity: {w.humidity_pct:g}%, Rain: {w.rainfall_mm:g}mm\n"
            f"Season: {w.season}\n"
            f"Soil: {s.soil_type}, pH {s.ph:g}, {s.fertility} fertility, "
            f"N/P/K {s.nitrogen}/{s.phosphorus}/{s.potassium}, organic carbon {s.organic_carbon_pct:g}%\n\n"
            f"Available biotech: {available}\n\n"
            "Return JSON only:\n"
            "{\n"
            '  "crops": ["Crop1 (Variety)", "Crop2", "Crop3", "Crop4", "Crop5"],\n'
            '  "reasoning": "One short sentence"\n'
            "}"
        )

    def request_body(self, prompt: str) -> dict:
        return {
            "contents": [{
                "role": "user",
                "parts": [{"text": (
                    "You are an expert agricultural biotechnologist specializing in Indian farming "
                    f"and climate-resilient crop varieties.\n\n{prompt}\n\nRespond with valid JSON only."
                )}],
            }],
            "generationConfig": {
                "temperature": GENERATION_TEMPERATURE,
                "maxOutputTokens": GENERATION_MAX_TOKENS,
                "responseMimeType": "application/json",
            },
        }

    async def generate(self, snapshot: EnvironmentSnapshot, state: str, client: httpx.AsyncClient) -> CandidateList:
        url = GEMINI_URL.format(model=self.model)
        body = self.request_body(self.build_prompt(snapshot, state))
        try:
            r = await client.post(url, json=body, headers={"x-goog-api-key": self.api_key}, timeout=self.timeout)
            r.raise_for_status()
            js = r.json()
        except httpx.TimeoutException:
            logger.error(f"Gemini request timed out after {self.timeout}s")
            raise GenerationError(f"Crop analyzer timed out after {self.timeout:g}s", dependency="generation service")
        except httpx.HTTPStatusError as e:
            logger.error(f"Gemini returned error {e.response.status_code}")
            raise GenerationError(
                f"Crop analyzer unavailable: {e.response.status_code}", dependency="generation service"
            )
        except httpx.RequestError as e:
            logger.error(f"Network error when calling Gemini: {e}")
            raise GenerationError(f"Failed to connect to crop analyzer: {e}", dependency="generation service")
        except ValueError:
            raise GenerationError("Crop analyzer returned a non-JSON envelope", dependency="generation service")

        try:
            candidate = (js.get("candidates") or [{}])[0]
            parts = (candidate.get("content") or {}).get("parts") or []
            text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        except (AttributeError, IndexError, TypeError):
            raise GenerationError("Crop analyzer returned a malformed envelope", dependency="generation service")
        logger.info(f"Gemini finish reason: {candidate.get('finishReason')}, {len(text)} chars")

        names, reasoning = parse_generation(text)
        names = names[: self.count]
        logger.info(f"Gemini suggested {len(names)} crops: {', '.join(names)}")
        return CandidateList(
            candidates=tuple(CropCandidate(n, self.catalog.base_name(n)) for n in names),
            reasoning=reasoning,
            source=self.source,
        )


def make_generator(settings: Settings, varieties: VarietyKnowledgeBase, catalog: CropCatalog):
    """AI-assisted when a Gemini key is configured, rule-based otherwise."""
    if settings.gemini_api_key:
        return AIAssistedGenerator(settings.gemini_api_key, varieties, catalog)
    logger.warning("GEMINI_API_KEY not set; candidate generation uses the rule-based table")
    return RuleBasedGenerator(catalog)
