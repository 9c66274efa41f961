import pytest

from errors import NotFoundError
from locations import LocationRegistry


def test_find_region_is_case_insensitive(registry):
    region = registry.find_region("  patna ")
    assert region.name == "Patna"
    assert region.state == "Bihar"
    assert region.lat == pytest.approx(25.5941)


def test_unknown_region_raises_not_found(registry):
    with pytest.raises(NotFoundError) as exc:
        registry.find_region("Atlantis")
    assert exc.value.status_code == 500
    assert "Atlantis" in exc.value.message
    assert exc.value.dependency == "location registry"


def test_list_states_sorted_and_unique(registry):
    states = registry.list_states()
    assert states == sorted(set(states))
    assert "Bihar" in states


def test_list_regions_in_state(registry):
    names = [r.name for r in registry.list_regions_in_state("bihar")]
    assert "Patna" in names
    assert registry.list_regions_in_state("Atlantis") == []


def test_empty_registry_is_usable():
    registry = LocationRegistry([])
    assert len(registry) == 0
    assert registry.list_states() == []
