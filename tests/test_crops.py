import pytest


@pytest.mark.parametrize("display,base", [
    ("BT Cotton (Bollgard II)", "Cotton"),
    ("Lentil", "Lentil"),
    ("Wheat (HD-3086)", "Wheat"),
    ("Sugarcane (Co-0238)", "Sugarcane"),
    ("  hybrid maize  ", "Maize"),
    ("Dragon Fruit (Red)", "Dragon Fruit"),
    ("Quinoa", "Quinoa"),
])
def test_base_name(catalog, display, base):
    assert catalog.base_name(display) == base


def test_known_crop_figures(catalog):
    assert catalog.yield_for("Wheat") == 16
    assert catalog.cost_for("Rice") == 25000
    assert catalog.duration_for("Sugarcane") == 365
    assert catalog.water_for("Groundnut") == "Low"


def test_unknown_crop_uses_defaults(catalog):
    assert catalog.yield_for("Quinoa") == 10
    assert catalog.cost_for("Quinoa") == 20000
    assert catalog.duration_for("Quinoa") == 120
    assert catalog.water_for("Quinoa") == "Medium"


def test_crops_for_season(catalog):
    assert catalog.crops_for_season("Kharif")[:3] == ("Rice", "Cotton", "Soybean")
    assert "Watermelon" in catalog.crops_for_season("Zaid")
    assert catalog.crops_for_season("Monsoon") == ()


def test_catalog_is_read_only(catalog):
    with pytest.raises(TypeError):
        catalog.yields["Wheat"] = 99
