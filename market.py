from dataclasses import dataclass
from types import MappingProxyType
import logging

import httpx

from config import DEFAULT_PRICE_PER_KG, KG_PER_QUINTAL, MANDI_PRICE_URL, PROVIDER_TIMEOUT_SECONDS
from errors import DegradedDataWarning

logger = logging.getLogger(__name__)

# Average mandi prices, rupees per kg
AVERAGE_PRICES = MappingProxyType({
    "Wheat": (25, "Stable"),
    "Rice": (35, "Rising"),
    "Cotton": (68, "Rising"),
    "Sugarcane": (3.5, "Stable"),
    "Lentil": (95, "Rising"),
    "Chickpea": (75, "Stable"),
    "Soybean": (55, "Falling"),
    "Maize": (22, "Stable"),
    "Groundnut": (65, "Rising"),
    "Mustard": (70, "Rising"),
})


@dataclass(frozen=True)
class MarketQuote:
    crop: str
    price_per_kg: float
    mandi: str
    trend: str
    source: str  # "live", "average" or "default"
    warning: DegradedDataWarning | None = None

    def to_dict(self) -> dict:
        return {
            "crop": self.crop,
            "pricePerKg": self.price_per_kg,
            "mandi": self.mandi,
            "trend": self.trend,
            "source": self.source,
        }


class MarketPriceProvider:
    """
    Per-crop market price. Queries the data.gov.in mandi resource when an API
    key is configured, otherwise (or when that call fails) uses the average
    price table, and finally the flat default price.
    """

    def __init__(self, api_key: str = "", prices=AVERAGE_PRICES, url: str = MANDI_PRICE_URL,
                 timeout: float = PROVIDER_TIMEOUT_SECONDS):
        self.api_key = api_key
        self.prices = prices
        self.url = url
        self.timeout = timeout

    def average_quote(self, crop: str, reason: str | None = None) -> MarketQuote:
        if crop in self.prices:
            price, trend = self.prices[crop]
            warning = DegradedDataWarning("market", f"{reason}; using average price for {crop}") if reason else None
            return MarketQuote(crop, float(price), "Average Market Price", trend, "average", warning)
        message = f"No price data for {crop}; using default ₹{DEFAULT_PRICE_PER_KG:g}/kg"
        warning = DegradedDataWarning("market", f"{reason}. {message}" if reason else message)
        logger.warning(str(warning))
        return MarketQuote(crop, DEFAULT_PRICE_PER_KG, "Average Market", "Stable", "default", warning)

    async def quote(self, client: httpx.AsyncClient, crop: str, state: str | None = None) -> MarketQuote:
        if not self.api_key:
            return self.average_quote(crop)

        params = {
            "api-key": self.api_key,
            "format": "json",
            "limit": 10,
            "filters[commodity]": crop.title(),
        }
        if state:
            params["filters[state]"] = state.title()
        try:
            r = await client.get(self.url, params=params, timeout=self.timeout)
            r.raise_for_status()
            records = r.json().get("records", [])
            modal = [float(rec["modal_price"]) for rec in records if _is_number(rec.get("modal_price"))]
            market = str(records[-1].get("market", "Mandi")) if records else "Mandi"
        except httpx.HTTPStatusError as e:
            logger.error(f"Mandi API returned error {e.response.status_code} for {crop}")
            return self.average_quote(crop, f"Mandi API error {e.response.status_code}")
        except httpx.RequestError as e:
            logger.error(f"Network error when fetching mandi prices for {crop}: {e}")
            return self.average_quote(crop, "Mandi API unreachable")
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"Malformed mandi payload for {crop}: {e!r}")
            return self.average_quote(crop, "Mandi API returned malformed data")

        if not modal:
            return self.average_quote(crop, f"No mandi records for {crop}")
        trend = self.prices[crop][1] if crop in self.prices else "Stable"
        # modal_price is quoted per quintal
        price = round(sum(modal) / len(modal) / KG_PER_QUINTAL, 2)
        return MarketQuote(crop, price, market, trend, "live")


def _is_number(value) -> bool:
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True
