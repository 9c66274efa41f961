from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class VarietyRecord:
    base_crop: str
    label: str
    traits: frozenset[str]
    regions: tuple[str, ...]

    def applies_to(self, target: str) -> bool:
        t = target.strip().lower()
        if not t:
            return False
        return any(r.lower() in t or t in r.lower() for r in self.regions)


def _v(crop, label, traits, regions) -> VarietyRecord:
    return VarietyRecord(crop, label, frozenset(traits), tuple(regions))


# ICAR / state agricultural university releases. Abbreviated state names are
# kept next to the full names so substring matching works for both.
BIOTECH_VARIETIES = (
    _v("Cotton", "BT Cotton (Bollgard II)", ["Pest-resistant", "High yield"], ["Maharashtra", "Gujarat", "Telangana"]),
    _v("Cotton", "Hybrid Cotton DCH-32", ["Drought-tolerant", "Long staple"], ["Punjab", "Haryana"]),
    _v("Wheat", "HD-3086 (Pusa Wheat)", ["High yield", "Disease-resistant"], ["Punjab", "Haryana", "UP", "Uttar Pradesh"]),
    _v("Wheat", "DBW-187", ["Heat-tolerant", "Early maturing"], ["Rajasthan", "MP", "Madhya Pradesh"]),
    _v("Wheat", "PBW-725", ["Rust-resistant", "High protein"], ["Punjab", "Haryana"]),
    _v("Rice", "Swarna Sub-1 (Flood-tolerant)", ["Submergence-tolerant", "High yield"], ["Bihar", "Odisha", "West Bengal"]),
    _v("Rice", "Pusa Basmati 1121", ["Premium quality", "Long grain"], ["Punjab", "Haryana"]),
    _v("Rice", "IR-64 (Drought-tolerant)", ["Water-efficient", "Stable yield"], ["Tamil Nadu", "AP", "Andhra Pradesh"]),
    _v("Maize", "DHM-117 (Hybrid)", ["High yield", "Disease-resistant"], ["Karnataka", "AP", "Andhra Pradesh"]),
    _v("Maize", "NK-6240 (Drought-tolerant)", ["Water-efficient", "Heat-tolerant"], ["Rajasthan", "MP", "Madhya Pradesh"]),
    _v("Sugarcane", "Co-0238 (High sugar)", ["High sucrose", "Disease-resistant"], ["Maharashtra", "UP", "Uttar Pradesh"]),
    _v("Sugarcane", "CoS-767 (Early maturing)", ["Short duration", "Drought-tolerant"], ["Karnataka", "Tamil Nadu"]),
    _v("Soybean", "JS-335", ["High yield", "Disease-resistant"], ["MP", "Madhya Pradesh", "Maharashtra"]),
    _v("Soybean", "RKS-18 (Drought-tolerant)", ["Water-efficient", "Early maturing"], ["Rajasthan", "Gujarat"]),
    _v("Lentil", "Pusa Vaibhav", ["High yield", "Wilt-resistant"], ["UP", "Uttar Pradesh", "MP", "Madhya Pradesh", "Bihar"]),
    _v("Lentil", "IPL-220", ["Early maturing", "Bold grain"], ["Rajasthan", "Haryana"]),
    _v("Chickpea", "Pusa 362", ["Wilt-resistant", "High yield"], ["MP", "Madhya Pradesh", "Maharashtra"]),
    _v("Chickpea", "JG-11 (Kabuli type)", ["Premium quality", "Export grade"], ["Rajasthan", "Karnataka"]),
    _v("Mustard", "Pusa Bold", ["High oil content", "Early maturing"], ["Rajasthan", "Haryana"]),
    _v("Mustard", "RH-30 (Hybrid)", ["High yield", "Disease-resistant"], ["UP", "Uttar Pradesh", "MP", "Madhya Pradesh"]),
    _v("Groundnut", "TAG-24", ["Drought-tolerant", "High oil"], ["Gujarat", "Rajasthan"]),
    _v("Groundnut", "Kadiri-9", ["Early maturing", "Disease-resistant"], ["AP", "Andhra Pradesh", "Karnataka"]),
)


class VarietyKnowledgeBase:
    def __init__(self, records: Iterable[VarietyRecord] = BIOTECH_VARIETIES):
        self._records = tuple(records)

    def __len__(self) -> int:
        return len(self._records)

    def varieties_applicable_to(self, state: str) -> dict[str, VarietyRecord]:
        """First registered variety per base crop whose regions match ``state``."""
        out: dict[str, VarietyRecord] = {}
        for rec in self._records:
            if rec.base_crop not in out and rec.applies_to(state):
                out[rec.base_crop] = rec
        return out

    def prompt_summary(self, state: str) -> str:
        pairs = [f"{crop}: {rec.label}" for crop, rec in self.varieties_applicable_to(state).items()]
        return ", ".join(pairs) or "standard varieties"
