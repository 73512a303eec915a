import pytest

from services.cities import GREECE_CITIES, CityTable, lookup_city, normalize_city

TABLE = CityTable.from_records(GREECE_CITIES)


def test_lookup_known_slug():
    city = lookup_city(TABLE, "thessaloniki")
    assert city.name == "Thessaloniki"
    assert 40 < city.lat < 41


def test_lookup_normalizes_slug():
    assert lookup_city(TABLE, "  Chania ").slug == "chania"


def test_lookup_unknown_or_missing_falls_back_to_athens():
    assert lookup_city(TABLE, "atlantis").slug == "athens"
    assert lookup_city(TABLE, None).slug == "athens"
    assert lookup_city(TABLE, "").slug == "athens"


def test_get_returns_none_for_unknown():
    assert TABLE.get("atlantis") is None


def test_default_falls_back_to_first_city_by_priority():
    table = CityTable.from_records(
        [
            {"id": "volos", "name": "Volos", "lat": 39.36, "lng": 22.94, "priority": 5},
            {"id": "patras", "name": "Patras", "lat": 38.25, "lng": 21.73, "priority": 2},
        ]
    )
    assert table.default().slug == "patras"
    assert [c.slug for c in table.all()] == ["patras", "volos"]


def test_normalize_city_rejects_bad_records():
    assert normalize_city({"name": "No id", "lat": 1, "lng": 2}) is None
    assert normalize_city({"id": "x", "lat": "north", "lng": 2}) is None
    assert normalize_city({"id": "x", "lat": float("nan"), "lng": 2}) is None


def test_normalize_city_accepts_slug_key_and_featured_ids():
    city = normalize_city({"slug": "Hydra", "lat": 37.35, "lng": 23.46, "featuredPlaceIds": ["p1", "p2"]})
    assert city.id == city.slug == "hydra"
    assert city.featured_place_ids == ("p1", "p2")


def test_empty_table_is_rejected():
    with pytest.raises(ValueError):
        CityTable.from_records([{"id": "broken"}])


def test_radius_precedence():
    santorini = lookup_city(TABLE, "santorini")
    heraklion = lookup_city(TABLE, "heraklion")

    assert TABLE.radius_meters(santorini, 1500) == 1500
    assert TABLE.radius_meters(santorini) == 6000
    assert TABLE.radius_meters(heraklion) == 3000
    assert TABLE.radius_meters(heraklion, 0) == 3000
    assert TABLE.radius_meters(heraklion, -50) == 3000


def test_table_is_read_only_view():
    assert isinstance(TABLE.all(), tuple)
