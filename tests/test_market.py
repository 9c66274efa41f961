import httpx
import pytest

from conftest import FakeServices, run
from market import MarketPriceProvider


def _quote(provider, crop, services=None, state="Bihar"):
    services = services or FakeServices()

    async def go():
        async with services.client() as client:
            return await provider.quote(client, crop, state)
    return run(go())


def test_average_price_without_key():
    services = FakeServices()
    quote = _quote(MarketPriceProvider(), "Rice", services)
    assert quote.price_per_kg == 35
    assert quote.trend == "Rising"
    assert quote.source == "average"
    assert quote.warning is None
    assert services.total == 0


def test_unknown_crop_uses_default_price_with_warning():
    quote = _quote(MarketPriceProvider(), "Quinoa")
    assert quote.price_per_kg == 25.0
    assert quote.source == "default"
    assert quote.warning.source == "market"
    assert "Quinoa" in str(quote.warning)


def test_live_mandi_price_is_averaged_per_kg():
    records = {"records": [
        {"market": "Patna", "modal_price": "2500"},
        {"market": "Gaya", "modal_price": "2700"},
        {"market": "Arrah", "modal_price": "NR"},
    ]}
    services = FakeServices(mandi=records)
    quote = _quote(MarketPriceProvider(api_key="mandi-key"), "Wheat", services)
    assert quote.price_per_kg == pytest.approx(26.0)
    assert quote.mandi == "Arrah"
    assert quote.source == "live"
    assert quote.warning is None

    params = services.requests[0].url.params
    assert params["api-key"] == "mandi-key"
    assert params["filters[commodity]"] == "Wheat"
    assert params["filters[state]"] == "Bihar"


@pytest.mark.parametrize("route", [500, httpx.ConnectError, {"records": []}, {"records": "bad"}])
def test_mandi_failure_falls_back_to_average(route):
    quote = _quote(MarketPriceProvider(api_key="mandi-key"), "Cotton", FakeServices(mandi=route))
    assert quote.price_per_kg == 68
    assert quote.source == "average"
    assert quote.warning is not None


def test_quote_to_dict():
    quote = MarketPriceProvider().average_quote("Soybean")
    assert quote.to_dict() == {
        "crop": "Soybean", "pricePerKg": 55.0, "mandi": "Average Market Price", "trend": "Falling", "source": "average",
    }
